from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from flashpay_core.domain.exceptions import BackendMirrorError

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = structlog.get_logger(__name__)


class BackgroundTasks:
    """Fire-and-forget mirror calls that can still be awaited on shutdown.

    A BackendMirrorError raised by a task is logged and dropped; anything
    else is logged with its traceback. spawn() needs a running event loop.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._run(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            await coro
        except BackendMirrorError as e:
            logger.warning("backend_mirror_failed", task=name, error=str(e))
        except Exception:
            logger.exception("background_task_failed", task=name)
