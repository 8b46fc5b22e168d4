from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from flashpay_core.application.ports import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)

DEFAULT_DELAY_MS = 100


class WriteBuffer:
    """Debounces durable writes.

    Every schedule() restarts the window; when the window elapses without
    another schedule(), the write callback runs once. flush() writes any
    pending change immediately.

    The scheduler is injected so tests can advance time by hand.
    """

    def __init__(
        self,
        write: Callable[[], None],
        scheduler: Scheduler,
        delay_ms: int = DEFAULT_DELAY_MS,
    ) -> None:
        self._write = write
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._pending: TimerHandle | None = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._scheduler.call_later(self._delay_ms, self._on_timer)

    def flush(self) -> None:
        """Write now if a change is pending; no-op otherwise."""
        if self._pending is None:
            return
        self._pending.cancel()
        self._on_timer()

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_timer(self) -> None:
        self._pending = None
        logger.debug("write_buffer_flush", delay_ms=self._delay_ms)
        self._write()
