from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flashpay_core.application.dtos import OperationResult

if TYPE_CHECKING:
    from collections.abc import Mapping

    from flashpay_core.application.audit import ErrorTrail
    from flashpay_core.domain.exceptions import DomainException, ErrorKind, ProviderErrorKind

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 30.0


def record_failure(
    error_trail: ErrorTrail,
    operation: str,
    message: str,
    kind: ErrorKind,
    details: Mapping[str, Any] | None = None,
    provider_error_kind: ProviderErrorKind | None = None,
) -> OperationResult[Any]:
    """Record a failure once in the error trail and wrap it as a result."""
    tracking_id = error_trail.record(operation, message, details)
    return OperationResult.fail(message, kind, tracking_id, provider_error_kind)


def record_exception(
    error_trail: ErrorTrail,
    operation: str,
    exc: DomainException,
    details: Mapping[str, Any] | None = None,
) -> OperationResult[Any]:
    return record_failure(
        error_trail,
        operation,
        str(exc),
        exc.kind,
        details,
        getattr(exc, "provider_kind", None),
    )
