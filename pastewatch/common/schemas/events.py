"""
Edit Event Schema

Structured edit events as emitted by the editing surface. One event carries
every content change the editor applied to a single document in one go.
"""

from typing import List
from pydantic import BaseModel, Field


class ContentChange(BaseModel):
    """One inserted/replaced fragment within an edit event"""
    text: str = Field(default="", description="Inserted text (empty for pure deletions)")
    range_length: int = Field(default=0, ge=0, description="Size of the replaced range")

    @property
    def line_breaks(self) -> int:
        # "\r\n" contains exactly one "\n"; a lone "\r" is not a line break
        return self.text.count("\n")


class EditEvent(BaseModel):
    """Aggregated edit event for a single document"""
    document_id: str = Field(..., min_length=1, description="Opaque, stable document identifier")
    language_id: str = Field(default="", description="Editor language id, e.g. 'python'")
    changes: List[ContentChange] = Field(default_factory=list)

    @property
    def inserted_text(self) -> str:
        """Concatenated inserted fragments in arrival order"""
        return "".join(c.text for c in self.changes if c.text)

    @property
    def inserted_chars(self) -> int:
        return sum(len(c.text) for c in self.changes)

    @property
    def inserted_lines(self) -> int:
        return sum(c.line_breaks for c in self.changes)
