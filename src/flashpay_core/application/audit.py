"""Bounded audit and error trails.

Each entry carries a fresh tracking id that is handed back to the caller,
so an end user can quote it and support can find the exact entry. When a
trail is full the oldest entry is dropped.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from flashpay_core.domain.value_objects import TrackingId

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from flashpay_core.application.ports import TimeProvider

logger = structlog.get_logger(__name__)

DEFAULT_ERROR_CAPACITY = 100
DEFAULT_AUDIT_CAPACITY = 200


class Outcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class TrailEntry:
    tracking_id: str
    timestamp: datetime
    operation: str
    outcome: Outcome
    message: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)


class _BoundedTrail:
    def __init__(self, time_provider: TimeProvider, capacity: int) -> None:
        self._time_provider = time_provider
        self._entries: deque[TrailEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def recent(self, limit: int = 20) -> list[TrailEntry]:
        """Return up to limit entries, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._entries))[:limit]

    def get(self, tracking_id: str) -> TrailEntry | None:
        return next((e for e in self._entries if e.tracking_id == tracking_id), None)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("trail_cleared", trail=type(self).__name__)

    def _append(
        self,
        operation: str,
        outcome: Outcome,
        message: str | None,
        details: Mapping[str, Any] | None,
    ) -> TrailEntry:
        now = self._time_provider.now()
        entry = TrailEntry(
            tracking_id=TrackingId.generate(now).value,
            timestamp=now,
            operation=operation,
            outcome=outcome,
            message=message,
            details=dict(details or {}),
        )
        self._entries.append(entry)
        return entry


class ErrorTrail(_BoundedTrail):
    """Every guard and orchestrator failure, recorded exactly once."""

    def __init__(self, time_provider: TimeProvider, capacity: int = DEFAULT_ERROR_CAPACITY) -> None:
        super().__init__(time_provider, capacity)

    def record(
        self,
        operation: str,
        message: str,
        details: Mapping[str, Any] | None = None,
    ) -> str:
        """Append a failure and return its tracking id."""
        entry = self._append(operation, Outcome.FAILURE, message, details)
        logger.error(
            "operation_failed",
            tracking_id=entry.tracking_id,
            operation=operation,
            error=message,
            details=dict(entry.details),
        )
        return entry.tracking_id


class AuditTrail(_BoundedTrail):
    """Sensitive operations: creations, status changes, toggle changes."""

    def __init__(
        self,
        time_provider: TimeProvider,
        capacity: int = DEFAULT_AUDIT_CAPACITY,
        enabled: bool = True,
    ) -> None:
        super().__init__(time_provider, capacity)
        self._enabled = enabled

    def record(
        self,
        operation: str,
        details: Mapping[str, Any] | None = None,
        outcome: Outcome = Outcome.SUCCESS,
    ) -> str | None:
        """Append an audit entry and return its tracking id.

        Returns None without recording when audit logging is disabled.
        """
        if not self._enabled:
            return None

        entry = self._append(operation, outcome, None, details)
        logger.info(
            "audit",
            tracking_id=entry.tracking_id,
            operation=operation,
            outcome=outcome.value,
            details=dict(entry.details),
        )
        return entry.tracking_id
