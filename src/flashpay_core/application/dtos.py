"""Data Transfer Objects for guard and use case output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from flashpay_core.domain.exceptions import ErrorKind, ProviderErrorKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class GuardResult:
    """Outcome of a single policy check."""

    passed: bool
    tracking_id: str
    reason: str | None = None
    kind: ErrorKind | None = None


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    max_attempts: int
    window_ms: int


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    remaining_attempts: int


@dataclass(frozen=True, slots=True)
class OperationResult(Generic[T]):
    """Structured outcome of an orchestrator operation.

    Failures are returned, never raised: error holds a short human-readable
    message and tracking_id the id to quote to support.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    provider_error_kind: ProviderErrorKind | None = None
    tracking_id: str | None = None
    is_replay: bool = False  # True if an existing record was returned unchanged

    @classmethod
    def ok(cls, data: T, tracking_id: str | None = None, is_replay: bool = False) -> OperationResult[T]:
        return cls(success=True, data=data, tracking_id=tracking_id, is_replay=is_replay)

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind,
        tracking_id: str,
        provider_error_kind: ProviderErrorKind | None = None,
    ) -> OperationResult[T]:
        return cls(
            success=False,
            error=error,
            error_kind=kind,
            tracking_id=tracking_id,
            provider_error_kind=provider_error_kind,
        )
