"""
Pastewatch Server

FastAPI server that an editor plugin posts edit events to and a notification
layer polls.

Endpoints:
- GET /health: Health check
- POST /events: Submit one edit event
- GET /review/{document_id}: Review window state for a document
- GET /payload: Last bulk insertion (metadata + preview)
- POST /summary: Submit the user's summary for evaluation
- GET /notifications: Drain queued prompts, warnings and milestones
- POST /session/start, POST /session/stop, GET /session: Session lifecycle
- GET /stats: Monitor statistics
"""

from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..common.config import load_config, PastewatchConfig, ensure_directories, setup_file_logging
from ..common.llm_client import LLMClient
from ..common.schemas import EditEvent
from .bulk_insert_monitor import (
    BulkInsertMonitor,
    ReviewPrompt,
    format_early_edit_message,
    format_review_message,
)
from .evaluator import SummaryEvaluator
from .review_window import EarlyEditWarning
from .session import Milestone, Session


# Global state
config: Optional[PastewatchConfig] = None
monitor: Optional[BulkInsertMonitor] = None
session: Optional[Session] = None
notifications: Deque[Dict[str, Any]] = deque(maxlen=200)


def _push_review_prompt(prompt: ReviewPrompt) -> None:
    notifications.append({
        "type": "review_prompt",
        "message": format_review_message(prompt),
        **asdict(prompt),
    })


def _push_early_edit(warning: EarlyEditWarning) -> None:
    notifications.append({
        "type": "early_edit",
        "message": format_early_edit_message(warning),
        **asdict(warning),
    })


def _push_milestone(milestone: Milestone) -> None:
    notifications.append({"type": "milestone", **asdict(milestone)})


def build_components(cfg: PastewatchConfig, llm_client: Optional[LLMClient] = None) -> None:
    """Wire monitor, evaluator and session into module state."""
    global config, monitor, session, notifications

    config = cfg
    notifications = deque(maxlen=cfg.monitor.notification_queue_size)

    if llm_client is None:
        llm_client = LLMClient.from_config(cfg.llm)
    evaluator = SummaryEvaluator(
        llm_client,
        timeout_seconds=cfg.llm.timeout_seconds,
        max_tokens=cfg.llm.max_tokens,
        max_payload_chars=cfg.llm.max_payload_chars,
    )

    monitor = BulkInsertMonitor(
        monitor_config=cfg.monitor,
        estimator_config=cfg.estimator,
        evaluator=evaluator,
        on_review_prompt=_push_review_prompt,
        on_early_edit=_push_early_edit,
    )
    session = Session(
        monitor=monitor,
        scheduler_config=cfg.scheduler,
        on_milestone=_push_milestone,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    print("[Pastewatch] Starting up...")

    ensure_directories()
    log_path = setup_file_logging()
    print(f"[Pastewatch] Logging to {log_path}")
    cfg = load_config()
    print(
        f"[Pastewatch] Loaded config (bulk: {cfg.monitor.bulk_min_chars} chars "
        f"/ {cfg.monitor.bulk_min_lines} lines)"
    )

    build_components(cfg)
    if monitor.evaluator.is_available:
        print(f"[Pastewatch] Evaluator ready ({cfg.llm.provider})")
    else:
        print("[Pastewatch] Evaluator not available (summaries will fail until configured)")

    print("[Pastewatch] Ready to receive edit events")

    yield

    print("[Pastewatch] Shutting down...")
    if session:
        session.stop()


app = FastAPI(
    title="Pastewatch",
    description="Bulk insertion review monitor for code editors",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Request Models
# =============================================================================

class SummarySubmission(BaseModel):
    """Summary submission request"""
    text: str
    insertion_id: str = Field(..., min_length=1)


def _require_monitor() -> BulkInsertMonitor:
    if not monitor:
        raise HTTPException(status_code=503, detail="Monitor not initialized")
    return monitor


def _require_session() -> Session:
    if not session:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "pastewatch",
        "initialized": monitor is not None,
        "session_active": session.is_active() if session else False,
        "evaluator_available": monitor.evaluator.is_available if monitor and monitor.evaluator else False,
        "pending_reviews": monitor.get_stats()["pending_reviews"] if monitor else 0,
    }


@app.post("/events")
async def post_event(event: EditEvent):
    """Apply one edit event"""
    mon = _require_monitor()
    result = mon.handle_edit(event)
    return {
        "document_id": event.document_id,
        "classification": result.kind.value,
        "chars": result.chars,
        "lines": result.lines,
        "in_review_window": mon.is_in_review_window(event.document_id),
    }


@app.get("/review/{document_id:path}")
async def get_review(document_id: str):
    """Review window state for a document"""
    mon = _require_monitor()
    pending = mon.get_pending(document_id)
    return {
        "document_id": document_id,
        "in_review_window": mon.is_in_review_window(document_id),
        "suppress_notifications": session.should_suppress_notifications(document_id) if session else True,
        "pending": asdict(pending) if pending else None,
    }


@app.get("/payload")
async def get_payload():
    """Last bulk insertion"""
    mon = _require_monitor()
    meta = mon.get_last_payload_meta()
    if meta is None:
        raise HTTPException(status_code=404, detail="No bulk insertion recorded")

    text = mon.get_last_payload_text() or ""
    limit = config.monitor.preview_max_chars if config else len(text)
    return {
        **asdict(meta),
        "preview": text[:limit],
        "truncated": len(text) > limit,
    }


@app.post("/summary")
async def submit_summary(submission: SummarySubmission):
    """Evaluate the user's summary against the last bulk insertion"""
    mon = _require_monitor()
    result = await mon.submit_summary(submission.text, insertion_id=submission.insertion_id)

    if result.ok:
        return {
            "ok": True,
            "insertion_id": result.insertion_id,
            "verdict": result.verdict,
            "matches": result.matches,
        }

    return {
        "ok": False,
        "insertion_id": result.insertion_id,
        "error": result.error,
        "error_kind": result.error_kind.value if result.error_kind else None,
        "message": result.message,
    }


@app.get("/notifications")
async def drain_notifications():
    """Return and clear queued notifications"""
    items = list(notifications)
    notifications.clear()
    return {"count": len(items), "items": items}


@app.post("/session/start")
async def start_session():
    sess = _require_session()
    started = sess.start()
    return {"active": True, "started": started, "started_at": sess.started_at}


@app.post("/session/stop")
async def stop_session():
    sess = _require_session()
    duration = sess.stop()
    return {"active": False, "stopped": duration is not None, "duration_ms": duration}


@app.get("/session")
async def get_session():
    sess = _require_session()
    return {
        "active": sess.is_active(),
        "started_at": sess.started_at,
        "elapsed_ms": sess.elapsed_ms(),
        "reminders": [
            {
                "name": s.name,
                "interval_ms": s.interval_ms,
                "running": s.is_running,
                "next_index": s.next_index,
                "next_fire_time": s.next_fire_time,
            }
            for s in sess.schedulers
        ],
    }


@app.get("/stats")
async def get_stats():
    """Monitor statistics"""
    stats = {
        "service": "pastewatch",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "queued_notifications": len(notifications),
    }

    if monitor:
        stats["monitor"] = monitor.get_stats()
        stats["thresholds"] = {
            "bulk_min_chars": monitor.classifier.bulk_min_chars,
            "bulk_min_lines": monitor.classifier.bulk_min_lines,
        }

    return stats


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Pastewatch server"""
    import uvicorn

    cfg = load_config()
    port = cfg.monitor.port

    print(f"[Pastewatch] Starting server on port {port}")
    uvicorn.run(
        "pastewatch.monitor.server:app",
        host="127.0.0.1",
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
