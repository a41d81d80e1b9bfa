"""
Bulk-Insert Classifier

Size-based classification of a single edit event. Manual typing arrives in
small fragmented bursts; pasted or agent-generated content arrives as one or
a few large fragments.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..common.config import MonitorConfig
from ..common.schemas import EditEvent


class EditKind(str, Enum):
    """Classifier outcome"""
    BULK_INSERT = "bulk_insert"
    TYPING = "typing"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Classification:
    """Result of classifying one edit event"""
    kind: EditKind
    chars: int
    lines: int
    fragments: int
    text: str = ""

    @property
    def is_bulk(self) -> bool:
        return self.kind is EditKind.BULK_INSERT

    @property
    def is_typing(self) -> bool:
        return self.kind is EditKind.TYPING


class BulkInsertClassifier:
    """
    Classifies edit events by inserted size.

    Rules:
    1. Bulk insert: inserted chars >= bulk_min_chars OR line breaks >= bulk_min_lines
    2. Typing: chars <= typing_max_chars AND fragments <= typing_max_fragments
       AND at least one fragment contains non-whitespace
    3. Anything else is neutral

    Deleted ranges never count toward the inserted size.
    """

    def __init__(self, config: Optional[MonitorConfig] = None):
        self._config = config or MonitorConfig()

    @property
    def bulk_min_chars(self) -> int:
        return self._config.bulk_min_chars

    @property
    def bulk_min_lines(self) -> int:
        return self._config.bulk_min_lines

    def classify_size(self, chars: int, lines: int) -> bool:
        """True when (chars, lines) qualifies as a bulk insertion."""
        return chars >= self._config.bulk_min_chars or lines >= self._config.bulk_min_lines

    def classify(self, event: EditEvent) -> Classification:
        chars = event.inserted_chars
        lines = event.inserted_lines
        fragments = len(event.changes)

        if self.classify_size(chars, lines):
            return Classification(
                kind=EditKind.BULK_INSERT,
                chars=chars,
                lines=lines,
                fragments=fragments,
                text=event.inserted_text,
            )

        has_content = any(c.text.strip() for c in event.changes)
        if (
            chars <= self._config.typing_max_chars
            and fragments <= self._config.typing_max_fragments
            and has_content
        ):
            kind = EditKind.TYPING
        else:
            kind = EditKind.NEUTRAL

        return Classification(kind=kind, chars=chars, lines=lines, fragments=fragments)
