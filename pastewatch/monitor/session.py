"""
Coding Session

Start/stop lifecycle for a user's coding session. A running session owns one
MilestoneScheduler per configured reminder, all anchored to the session start.
Pending review windows are independent of the session and expire on their own.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..common.config import ReminderConfig, SchedulerConfig
from .bulk_insert_monitor import BulkInsertMonitor
from .scheduler import MilestoneScheduler

logger = logging.getLogger("pastewatch.monitor.session")


def _now_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True)
class Milestone:
    """A reminder tick: the k-th multiple of its interval since session start"""
    name: str
    ordinal: int
    message: str
    elapsed_ms: float


class Session:
    """
    Coding session with anchored reminders.

    Args:
        monitor: Monitor consulted for notification suppression
        scheduler_config: Reminders to run while active
        on_milestone: Listener for reminder ticks
        clock: Epoch-ms clock shared with the schedulers
        loop: Event loop for the schedulers (default: running loop)
    """

    def __init__(
        self,
        monitor: Optional[BulkInsertMonitor] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        on_milestone: Optional[Callable[[Milestone], None]] = None,
        clock: Callable[[], float] = _now_ms,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._monitor = monitor
        self._clock = clock
        self.on_milestone = on_milestone
        self._active = False
        self._started_at: Optional[float] = None
        self._schedulers: Dict[str, MilestoneScheduler] = {}

        config = scheduler_config or SchedulerConfig()
        for reminder in config.reminders:
            self._schedulers[reminder.name] = MilestoneScheduler(
                reminder.interval_ms,
                self._make_tick(reminder),
                is_active=self.is_active,
                clock=clock,
                loop=loop,
                name=reminder.name,
            )

    def _make_tick(self, reminder: ReminderConfig) -> Callable[[int], None]:
        def tick(k: int) -> None:
            milestone = Milestone(
                name=reminder.name,
                ordinal=k,
                message=reminder.message,
                elapsed_ms=self._clock() - (self._started_at or self._clock()),
            )
            logger.info("Milestone %s #%d", reminder.name, k)
            if self.on_milestone:
                self.on_milestone(milestone)

        return tick

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def schedulers(self) -> List[MilestoneScheduler]:
        return list(self._schedulers.values())

    def get_scheduler(self, name: str) -> Optional[MilestoneScheduler]:
        return self._schedulers.get(name)

    def is_active(self) -> bool:
        return self._active

    def start(self) -> bool:
        """Start the session. Returns False if it was already running."""
        if self._active:
            return False

        started_at = self._clock()
        started: List[MilestoneScheduler] = []
        try:
            for scheduler in self._schedulers.values():
                scheduler.start(start_time=started_at)
                started.append(scheduler)
        except RuntimeError:
            for scheduler in started:
                scheduler.stop()
            raise

        self._started_at = started_at
        self._active = True
        logger.info("Session started (%d reminders)", len(self._schedulers))
        return True

    def stop(self) -> Optional[float]:
        """
        Stop the session and all reminders.

        Returns:
            Session duration in ms, or None if no session was running
        """
        if not self._active:
            return None

        self._active = False
        for scheduler in self._schedulers.values():
            scheduler.stop()
        duration = self._clock() - self._started_at
        logger.info("Session stopped after %.0fms", duration)
        return duration

    def elapsed_ms(self) -> float:
        if not self._active:
            return 0.0
        return self._clock() - self._started_at

    def should_suppress_notifications(self, document_id: Optional[str] = None) -> bool:
        """
        True when motivational pop-ups should stay quiet: the session is not
        running, or the document is inside a bulk-insert review window.
        """
        if not self._active:
            return True
        return bool(self._monitor and self._monitor.is_in_review_window(document_id))
