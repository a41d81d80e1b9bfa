"""Shared fixtures: a controllable millisecond clock and a fake event loop."""

import pytest


class FakeClock:
    """Epoch-ms clock advanced by hand"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeHandle:
    def __init__(self, when: float, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """
    Minimal stand-in for asyncio's call_later, driven by a FakeClock.

    advance(ms) moves the clock forward and runs due callbacks in time order,
    including callbacks scheduled by earlier ones.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.handles = []

    def call_later(self, delay: float, callback, *args) -> FakeHandle:
        handle = FakeHandle(self.clock.now + delay * 1000.0, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, ms: float, latency_ms: float = 0.0) -> None:
        """Run everything due up to now+ms; each fire happens latency_ms late."""
        target = self.clock.now + ms
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.clock.now = max(self.clock.now, handle.when + latency_ms)
            handle.callback(*handle.args)
        self.clock.now = max(self.clock.now, target)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def loop(clock):
    return FakeLoop(clock)
