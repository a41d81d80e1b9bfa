"""
Pastewatch Schemas

Wire models for edit events consumed from the editing surface.
"""

from .events import ContentChange, EditEvent

__all__ = [
    "ContentChange",
    "EditEvent",
]
