"""
Review Window

Pending-review table and the per-document window state machine.

States per document:
- ABSENT: no entry
- OPEN: entry exists, now < deadline
- CLEARED: entry removed, either by an early edit (warning emitted) or by a
  later edit arriving after the deadline (silent)

Each document id owns at most one entry. A new bulk insertion replaces the
entry wholesale; sizes are never merged.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .classifier import Classification

logger = logging.getLogger("pastewatch.monitor.review_window")


@dataclass(frozen=True)
class PendingReview:
    """Open review window for one document"""
    document_id: str
    opened_at: float  # epoch ms
    deadline: float  # epoch ms when the window closes
    expected_duration_ms: float
    chars: int
    lines: int

    def is_open(self, now: float) -> bool:
        return now < self.deadline

    def elapsed_ms(self, now: float) -> float:
        return max(0.0, self.expected_duration_ms - (self.deadline - now))


@dataclass(frozen=True)
class EarlyEditWarning:
    """User started editing before the review window elapsed"""
    document_id: str
    elapsed_ms: float
    expected_duration_ms: float


class ReviewWindowTable:
    """
    Per-document review windows keyed by opaque document id.

    Only the owning monitor mutates the table; readers go through
    is_in_review_window / get_pending, which never change state.
    """

    def __init__(self, clock: Callable[[], float]):
        """
        Args:
            clock: Returns current time in epoch milliseconds
        """
        self._clock = clock
        self._pending: Dict[str, PendingReview] = {}

    def open(
        self,
        document_id: str,
        expected_duration_ms: float,
        chars: int,
        lines: int,
    ) -> PendingReview:
        """Open (or replace) the window for a document."""
        now = self._clock()
        entry = PendingReview(
            document_id=document_id,
            opened_at=now,
            deadline=now + expected_duration_ms,
            expected_duration_ms=expected_duration_ms,
            chars=chars,
            lines=lines,
        )
        replaced = self._pending.get(document_id)
        self._pending[document_id] = entry
        if replaced is not None:
            logger.debug("Replaced pending review for %s", document_id)
        return entry

    def observe(self, document_id: str, classification: Classification) -> Optional[EarlyEditWarning]:
        """
        Apply a non-bulk edit to the document's window.

        Returns:
            EarlyEditWarning when the edit is typing inside an open window,
            None otherwise
        """
        entry = self._pending.get(document_id)
        if entry is None:
            return None

        now = self._clock()
        if not entry.is_open(now):
            # Window elapsed; clear without a warning
            del self._pending[document_id]
            return None

        if not classification.is_typing:
            return None

        del self._pending[document_id]
        return EarlyEditWarning(
            document_id=document_id,
            elapsed_ms=entry.elapsed_ms(now),
            expected_duration_ms=entry.expected_duration_ms,
        )

    def is_in_review_window(self, document_id: Optional[str]) -> bool:
        if not document_id:
            return False
        entry = self._pending.get(document_id)
        return entry is not None and entry.is_open(self._clock())

    def get_pending(self, document_id: str) -> Optional[PendingReview]:
        return self._pending.get(document_id)

    def open_documents(self) -> List[str]:
        """Document ids whose window has not yet elapsed"""
        now = self._clock()
        return [doc for doc, entry in self._pending.items() if entry.is_open(now)]

    def pending_count(self) -> int:
        """Entries held, including elapsed ones not yet cleared by an edit"""
        return len(self._pending)

    def __len__(self) -> int:
        return self.pending_count()
