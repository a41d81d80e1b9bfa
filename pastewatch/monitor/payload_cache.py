"""
Payload Cache

Holds the most recent bulk insertion and the user's free-text description of
it. Only one insertion is retained ("last wins"); the summary is stored with
the insertion id that was current when it was recorded and survives later
insertions, so a summary written for an older insertion can be detected as
stale instead of being evaluated against a newer payload.
"""

import itertools
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class PayloadMeta:
    """Read-only description of the cached payload"""
    insertion_id: str
    document_id: str
    timestamp: float  # epoch ms
    chars: int
    lines: int


@dataclass(frozen=True)
class BulkInsertPayload:
    """Most recent bulk insertion"""
    insertion_id: str
    document_id: str
    timestamp: float
    text: str
    chars: int
    lines: int

    @property
    def meta(self) -> PayloadMeta:
        return PayloadMeta(
            insertion_id=self.insertion_id,
            document_id=self.document_id,
            timestamp=self.timestamp,
            chars=self.chars,
            lines=self.lines,
        )


@dataclass(frozen=True)
class UserSummary:
    """User's description of an insertion"""
    text: str
    timestamp: float
    insertion_id: Optional[str] = None
    submitted: bool = False


class PayloadCache:
    """Single-slot store for the last bulk insertion and its summary."""

    def __init__(self, clock: Callable[[], float]):
        self._clock = clock
        self._ids = itertools.count(1)
        self._payload: Optional[BulkInsertPayload] = None
        self._summary: Optional[UserSummary] = None

    def store(self, document_id: str, text: str, chars: int, lines: int) -> BulkInsertPayload:
        """Overwrite the slot with a new insertion. The summary keeps its own insertion id."""
        payload = BulkInsertPayload(
            insertion_id=f"ins_{next(self._ids):06d}",
            document_id=document_id,
            timestamp=self._clock(),
            text=text,
            chars=chars,
            lines=lines,
        )
        self._payload = payload
        return payload

    @property
    def payload(self) -> Optional[BulkInsertPayload]:
        return self._payload

    @property
    def summary(self) -> Optional[UserSummary]:
        return self._summary

    def get_last_payload_text(self) -> Optional[str]:
        return self._payload.text if self._payload else None

    def get_last_payload_meta(self) -> Optional[PayloadMeta]:
        return self._payload.meta if self._payload else None

    @property
    def pending_summary(self) -> Optional[UserSummary]:
        """Recorded summary that has not been submitted for evaluation yet"""
        if self._summary is None or self._summary.submitted:
            return None
        return self._summary

    def record_user_summary(self, text: str, submitted: bool = False) -> UserSummary:
        summary = UserSummary(
            text=text,
            timestamp=self._clock(),
            insertion_id=self._payload.insertion_id if self._payload else None,
            submitted=submitted,
        )
        self._summary = summary
        return summary

    def discard_summary(self) -> None:
        self._summary = None

    def is_current(self, insertion_id: Optional[str]) -> bool:
        """True when insertion_id names the cached payload."""
        return (
            self._payload is not None
            and insertion_id is not None
            and self._payload.insertion_id == insertion_id
        )
