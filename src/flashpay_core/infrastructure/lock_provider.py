from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.ports import LockProvider
from flashpay_core.domain.exceptions import OperationInProgressError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)


class InMemoryLockProvider(LockProvider):
    """In-flight set for one event loop.

    Every caller runs on the same loop, so a plain set is enough: nothing
    can interleave between the membership test and the add. A held
    resource fails fast instead of queueing, which turns a double submit
    into a Conflict result rather than a second provider call.
    """

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def is_held(self, resource_id: str) -> bool:
        return resource_id in self._in_flight

    @contextmanager
    def acquire(self, resource_id: str) -> Iterator[None]:
        if resource_id in self._in_flight:
            logger.warning("operation_in_progress", resource_id=resource_id)
            raise OperationInProgressError(f"Operation already in progress: {resource_id}")

        self._in_flight.add(resource_id)
        try:
            yield
        finally:
            self._in_flight.discard(resource_id)

