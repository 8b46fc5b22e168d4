from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flashpay_core.application.ports import Scheduler

if TYPE_CHECKING:
    from collections.abc import Callable


class AsyncioScheduler(Scheduler):
    """Timers on the running event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)


@dataclass(slots=True)
class ManualTimer:
    due_ms: int
    callback: Callable[[], None]
    cancelled: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Test scheduler with a virtual clock driven by advance()."""

    def __init__(self) -> None:
        self._now_ms = 0
        self._timers: list[ManualTimer] = []

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due_ms=self._now_ms + delay_ms, callback=callback)
        self._timers.append(timer)
        return timer

    def advance(self, ms: int) -> None:
        """Run every timer due within the next ms milliseconds, in due order."""
        target = self._now_ms + ms
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self._timers.remove(timer)
            self._now_ms = timer.due_ms
            timer.callback()
        self._now_ms = target
        self._timers = [t for t in self._timers if not t.cancelled]
