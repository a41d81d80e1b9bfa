"""
Bulk Insert Monitor

Consumes edit events from the editing surface and drives the review workflow:

1. Classify the event (bulk insert / typing / neutral)
2. Bulk insert: open or replace the document's review window, refresh the
   payload cache, emit a one-shot review prompt
3. Otherwise: check the document's open window for an early edit

Event handling is synchronous and never awaits, so one event is fully applied
before the next is looked at. Only submit_summary() awaits (the evaluator).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..common.config import MonitorConfig, EstimatorConfig
from ..common.schemas import EditEvent
from .classifier import BulkInsertClassifier, Classification
from .estimator import ReviewTimeEstimator
from .evaluator import EvaluationResult, FailureKind, SummaryEvaluator
from .payload_cache import PayloadCache, PayloadMeta
from .review_window import EarlyEditWarning, PendingReview, ReviewWindowTable

logger = logging.getLogger("pastewatch.monitor.bulk_insert_monitor")

NO_CODE_MESSAGE = "no code to evaluate"


def _now_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True)
class ReviewPrompt:
    """One-shot signal asking the user to review a bulk insertion"""
    document_id: str
    insertion_id: str
    code_preview: str
    chars: int
    lines: int
    expected_duration_ms: float
    truncated: bool


def format_review_message(prompt: ReviewPrompt) -> str:
    secs = max(1, round(prompt.expected_duration_ms / 1000))
    return (
        f"Large code insertion detected ({prompt.lines} lines, {prompt.chars} chars). "
        f"Take ~{secs}s to review before modifying."
    )


def format_early_edit_message(warning: EarlyEditWarning) -> str:
    elapsed_s = warning.elapsed_ms / 1000
    expected_s = warning.expected_duration_ms / 1000
    return (
        f"You started editing {elapsed_s:.1f}s after a large insertion "
        f"(expected ~{expected_s:.1f}s). Consider reviewing for correctness/security."
    )


class BulkInsertMonitor:
    """
    Per-document review windows over a stream of edit events.

    Listeners:
        on_review_prompt(ReviewPrompt): after each bulk insertion
        on_early_edit(EarlyEditWarning): when typing starts inside a window
    """

    def __init__(
        self,
        monitor_config: Optional[MonitorConfig] = None,
        estimator_config: Optional[EstimatorConfig] = None,
        evaluator: Optional[SummaryEvaluator] = None,
        clock: Callable[[], float] = _now_ms,
        on_review_prompt: Optional[Callable[[ReviewPrompt], None]] = None,
        on_early_edit: Optional[Callable[[EarlyEditWarning], None]] = None,
    ):
        self._config = monitor_config or MonitorConfig()
        self._classifier = BulkInsertClassifier(self._config)
        self._estimator = ReviewTimeEstimator(estimator_config)
        self._evaluator = evaluator
        self._clock = clock
        self._windows = ReviewWindowTable(clock)
        self._payloads = PayloadCache(clock)
        self.on_review_prompt = on_review_prompt
        self.on_early_edit = on_early_edit

        self._events_seen = 0
        self._bulk_inserts = 0
        self._early_edits = 0

    @property
    def classifier(self) -> BulkInsertClassifier:
        return self._classifier

    @property
    def evaluator(self) -> Optional[SummaryEvaluator]:
        return self._evaluator

    # ------------------------------------------------------------------
    # Edit events
    # ------------------------------------------------------------------

    def handle_edit(self, event: EditEvent) -> Classification:
        """Apply one edit event. Returns its classification."""
        self._events_seen += 1
        result = self._classifier.classify(event)

        if result.is_bulk:
            self._open_review(event, result)
            return result

        warning = self._windows.observe(event.document_id, result)
        if warning is not None:
            self._early_edits += 1
            logger.info(
                "Early edit in %s: %.1fs after insertion (expected ~%.1fs)",
                warning.document_id,
                warning.elapsed_ms / 1000,
                warning.expected_duration_ms / 1000,
            )
            if self.on_early_edit:
                self.on_early_edit(warning)

        return result

    def _open_review(self, event: EditEvent, result: Classification) -> None:
        expected_ms = self._estimator.estimate(result.chars, result.lines, event.language_id)
        entry = self._windows.open(event.document_id, expected_ms, result.chars, result.lines)
        payload = self._payloads.store(event.document_id, result.text, result.chars, result.lines)
        self._bulk_inserts += 1

        logger.info(
            "Large insertion in %s (%d lines, %d chars), expected review time %.0fms",
            event.document_id, result.lines, result.chars, expected_ms,
        )

        if self.on_review_prompt:
            limit = self._config.preview_max_chars
            self.on_review_prompt(
                ReviewPrompt(
                    document_id=event.document_id,
                    insertion_id=payload.insertion_id,
                    code_preview=result.text[:limit],
                    chars=entry.chars,
                    lines=entry.lines,
                    expected_duration_ms=entry.expected_duration_ms,
                    truncated=len(result.text) > limit,
                )
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_in_review_window(self, document_id: Optional[str]) -> bool:
        return self._windows.is_in_review_window(document_id)

    def get_pending(self, document_id: str) -> Optional[PendingReview]:
        return self._windows.get_pending(document_id)

    def get_last_payload_text(self) -> Optional[str]:
        return self._payloads.get_last_payload_text()

    def get_last_payload_meta(self) -> Optional[PayloadMeta]:
        return self._payloads.get_last_payload_meta()

    def get_stats(self) -> dict:
        return {
            "events_seen": self._events_seen,
            "bulk_inserts": self._bulk_inserts,
            "early_edits": self._early_edits,
            "pending_reviews": self._windows.pending_count(),
            "open_review_windows": len(self._windows.open_documents()),
        }

    # ------------------------------------------------------------------
    # Summary hand-off
    # ------------------------------------------------------------------

    def record_user_summary(self, text: str) -> None:
        self._payloads.record_user_summary(text)

    def _resolve_payload(self, insertion_id: Optional[str]) -> Optional[EvaluationResult]:
        """Failure result when there is nothing valid to evaluate, else None."""
        payload = self._payloads.payload
        if payload is None:
            return EvaluationResult.failure(FailureKind.NO_CODE, NO_CODE_MESSAGE)
        if insertion_id is not None and not self._payloads.is_current(insertion_id):
            logger.info(
                "Summary for %s is stale (current insertion %s)",
                insertion_id, payload.insertion_id,
            )
            return EvaluationResult.failure(FailureKind.STALE, NO_CODE_MESSAGE, insertion_id)
        return None

    async def submit_summary(self, text: str, insertion_id: Optional[str] = None) -> EvaluationResult:
        """
        Record the user's summary and evaluate it against the cached payload.

        Args:
            text: User's description of the inserted code
            insertion_id: Insertion the summary was written for; a mismatch
                with the cached payload fails instead of evaluating. When
                omitted, the insertion of a summary recorded earlier through
                record_user_summary() and not yet submitted is used

        Returns:
            EvaluationResult with the verdict or a single failure
        """
        if not text or not text.strip():
            return EvaluationResult.failure(FailureKind.EMPTY_SUMMARY, "summary is empty", insertion_id)

        pending = self._payloads.pending_summary
        from_recorded = insertion_id is None and pending is not None
        if from_recorded:
            insertion_id = pending.insertion_id

        failure = self._resolve_payload(insertion_id)
        if failure is not None:
            if failure.error_kind is FailureKind.STALE and from_recorded:
                # Reported once; a resubmission targets the current insertion
                self._payloads.discard_summary()
            return failure

        summary = self._payloads.record_user_summary(text, submitted=True)
        payload = self._payloads.payload

        if self._evaluator is None:
            return EvaluationResult.failure(
                FailureKind.UNAVAILABLE, "evaluator is not configured", payload.insertion_id
            )

        result = await self._evaluator.evaluate_async(payload.text, summary.text)
        result.insertion_id = payload.insertion_id
        return result
