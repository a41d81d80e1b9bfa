"""
Milestone Scheduler

Fires a callback at exact multiples of an interval measured from a fixed
anchor (session start). Each delay is recomputed from the anchor rather than
from the previous fire, so timer latency never accumulates:

    k     = floor((now - start_time) / interval_ms) + 1
    delay = max(0, start_time + k * interval_ms - now)

Exactly one asyncio timer handle is outstanding while running.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger("pastewatch.monitor.scheduler")


def _now_ms() -> float:
    return time.time() * 1000.0


def next_fire_index(start_time: float, interval_ms: float, now: float) -> int:
    """Smallest positive k with start_time + k * interval_ms > now."""
    if now < start_time:
        return 1
    return int((now - start_time) // interval_ms) + 1


class MilestoneScheduler:
    """
    Drift-free recurring timer anchored to a start time.

    - start() is a no-op while running
    - stop() cancels the outstanding handle; no tick fires afterwards
    - set_interval() restarts with k recomputed from current time
    - if is_active() reports False when a tick fires, the tick is dropped
      and the scheduler stops instead of rescheduling
    """

    def __init__(
        self,
        interval_ms: float,
        callback: Callable[[int], None],
        *,
        is_active: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = _now_ms,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        name: str = "milestone",
    ):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._interval_ms = float(interval_ms)
        self._callback = callback
        self._is_active = is_active
        self._clock = clock
        self._loop = loop
        self.name = name

        self._running = False
        self._start_time: Optional[float] = None
        self._next_index: Optional[int] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def start_time(self) -> Optional[float]:
        return self._start_time

    @property
    def next_index(self) -> Optional[int]:
        return self._next_index

    @property
    def next_fire_time(self) -> Optional[float]:
        if not self._running or self._next_index is None:
            return None
        return self._start_time + self._next_index * self._interval_ms

    def start(self, start_time: Optional[float] = None) -> None:
        """
        Begin firing milestones.

        Args:
            start_time: Anchor in epoch ms (default: now)
        """
        if self._running:
            return

        self._start_time = self._clock() if start_time is None else float(start_time)
        try:
            self._schedule(next_fire_index(self._start_time, self._interval_ms, self._clock()))
        except RuntimeError:
            # No running event loop; remain stopped
            self._start_time = None
            raise
        self._running = True
        logger.info(
            "%s scheduler started (interval %.0fms, next k=%d)",
            self.name, self._interval_ms, self._next_index,
        )

    def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._next_index = None
        logger.info("%s scheduler stopped", self.name)

    def set_interval(self, interval_ms: float) -> None:
        """Change the interval; a running scheduler restarts on the same anchor."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if interval_ms == self._interval_ms:
            return

        was_running = self._running
        anchor = self._start_time
        self.stop()
        self._interval_ms = float(interval_ms)
        if was_running:
            self.start(start_time=anchor)

    def _schedule(self, k: int) -> None:
        now = self._clock()
        delay_ms = max(0.0, self._start_time + k * self._interval_ms - now)
        loop = self._loop or asyncio.get_running_loop()
        self._next_index = k
        self._handle = loop.call_later(delay_ms / 1000.0, self._fire, k)

    def _fire(self, k: int) -> None:
        self._handle = None
        if not self._running:
            return

        if self._is_active is not None and not self._is_active():
            logger.info("%s tick %d dropped: consumer inactive, stopping", self.name, k)
            self._running = False
            self._next_index = None
            return

        try:
            self._callback(k)
        except Exception:
            logger.exception("%s callback failed at tick %d", self.name, k)

        # The callback may have stopped or restarted us
        if self._running and self._handle is None:
            self._schedule(k + 1)
