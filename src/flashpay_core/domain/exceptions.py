"""Domain exceptions for flashpay-core.

Exception hierarchy:
    DomainException (base)
    ├── Validation Errors (ErrorKind.VALIDATION)
    │   ├── InvalidAmountError
    │   ├── InvalidNoteError
    │   └── InvalidPaymentIdError
    ├── Guard Errors (ErrorKind.GUARD_DENIED)
    │   ├── RateLimitExceededError
    │   ├── WalletUnavailableError
    │   ├── FeatureDisabledError
    │   └── MaintenanceModeError
    ├── Not Found Errors (ErrorKind.NOT_FOUND)
    │   └── PaymentNotFoundError
    ├── Conflict Errors (ErrorKind.CONFLICT)
    │   ├── PaymentAlreadyPaidError
    │   ├── OperationInProgressError
    │   └── InvalidStatusTransitionError
    ├── Provider Errors (ErrorKind.PROVIDER)
    │   ├── ProviderTimeoutError
    │   └── PaymentCancelledError
    └── Infrastructure Errors
        ├── PersistenceError (ErrorKind.PERSISTENCE)
        └── BackendMirrorError (ErrorKind.BACKEND)

Guard and orchestrator failures are reported to callers as structured
results carrying the matching ErrorKind; these classes are raised only
inside the core and translated at the use case boundary.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Failure category surfaced to callers alongside a tracking id."""

    VALIDATION = "validation"
    GUARD_DENIED = "guard_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PROVIDER = "provider"
    PERSISTENCE = "persistence"
    BACKEND = "backend"


class ProviderErrorKind(Enum):
    """Distinguishes why the external payment provider failed."""

    FAILURE = "failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class DomainException(Exception):
    """Base exception for all domain-level errors.

    All domain exceptions inherit from this class to enable
    catching domain errors distinctly from library errors.
    """

    kind: ErrorKind = ErrorKind.VALIDATION


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(DomainException):
    """Bad input. Recoverable; shown inline next to the offending field."""

    kind = ErrorKind.VALIDATION


class InvalidAmountError(ValidationError):
    """Raised when an amount is not a finite number in (0, 1,000,000]
    with at most 7 fractional digits."""


class InvalidNoteError(ValidationError):
    """Raised when a note is not a string or exceeds 500 characters."""


class InvalidPaymentIdError(ValidationError):
    """Raised when a payment ID is blank or longer than 100 characters."""


# =============================================================================
# Guard Errors
# =============================================================================


class GuardDeniedError(DomainException):
    """A policy check blocked the operation."""

    kind = ErrorKind.GUARD_DENIED


class RateLimitExceededError(GuardDeniedError):
    """The sliding window for an operation key is saturated."""


class WalletUnavailableError(GuardDeniedError):
    """The wallet SDK is missing or the wallet is not connected."""


class FeatureDisabledError(GuardDeniedError):
    """The feature domain required by the operation is switched off."""


class MaintenanceModeError(GuardDeniedError):
    """The master kill-switch is off."""


# =============================================================================
# Not Found Errors
# =============================================================================


class PaymentNotFoundError(DomainException):
    """Raised when a payment is missing or belongs to another merchant.

    The message is deliberately generic so callers cannot tell the two
    cases apart.
    """

    kind = ErrorKind.NOT_FOUND


# =============================================================================
# Conflict Errors
# =============================================================================


class ConflictError(DomainException):
    """The operation collides with the current state of the record."""

    kind = ErrorKind.CONFLICT


class PaymentAlreadyPaidError(ConflictError):
    """Raised when completing or executing a payment that is already PAID."""


class OperationInProgressError(ConflictError):
    """Raised when the same resource is already being processed in this context."""


class InvalidStatusTransitionError(ConflictError):
    """Raised when a status change violates the payment lifecycle.

    Valid transitions:
        - pending → paid | failed | cancelled
        - failed | cancelled → paid | failed | cancelled (retry)

    Invalid transitions:
        - paid → anything (terminal state)
        - anything → pending
    """


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(DomainException):
    """The external payment provider failed, timed out or was cancelled."""

    kind = ErrorKind.PROVIDER
    provider_kind: ProviderErrorKind = ProviderErrorKind.FAILURE


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""

    provider_kind = ProviderErrorKind.TIMEOUT


class PaymentCancelledError(ProviderError):
    """The payer cancelled the flow in the provider UI."""

    provider_kind = ProviderErrorKind.CANCELLED


# =============================================================================
# Infrastructure Errors
# =============================================================================


class PersistenceError(DomainException):
    """Storage is unavailable or holds data that cannot be decoded.

    Never propagated to callers of the ledger: the store logs it and
    falls back to in-memory defaults.
    """

    kind = ErrorKind.PERSISTENCE


class BackendMirrorError(DomainException):
    """The best-effort backend mirror could not be reached or rejected a call."""

    kind = ErrorKind.BACKEND
