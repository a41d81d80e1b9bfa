"""
Monitor - Bulk Insertion Review

Classifies edit events and manages a timed review window per document.

Key Components:
- BulkInsertClassifier: Size-based bulk insert / typing / neutral decision
- ReviewTimeEstimator: Clamped review-time heuristic
- ReviewWindowTable: Per-document review windows and early-edit detection
- PayloadCache: Last bulk insertion and the user's summary of it
- SummaryEvaluator: LLM judgment of the summary against the code
- MilestoneScheduler: Drift-free reminders anchored to session start
- Session: Session lifecycle and notification suppression
"""

from .classifier import BulkInsertClassifier, Classification, EditKind
from .estimator import ReviewTimeEstimator, estimate_review_time_ms
from .review_window import ReviewWindowTable, PendingReview, EarlyEditWarning
from .payload_cache import PayloadCache, PayloadMeta, BulkInsertPayload, UserSummary
from .evaluator import SummaryEvaluator, EvaluationResult, FailureKind
from .bulk_insert_monitor import BulkInsertMonitor, ReviewPrompt
from .scheduler import MilestoneScheduler
from .session import Session, Milestone

__all__ = [
    "BulkInsertClassifier",
    "Classification",
    "EditKind",
    "ReviewTimeEstimator",
    "estimate_review_time_ms",
    "ReviewWindowTable",
    "PendingReview",
    "EarlyEditWarning",
    "PayloadCache",
    "PayloadMeta",
    "BulkInsertPayload",
    "UserSummary",
    "SummaryEvaluator",
    "EvaluationResult",
    "FailureKind",
    "BulkInsertMonitor",
    "ReviewPrompt",
    "MilestoneScheduler",
    "Session",
    "Milestone",
]
