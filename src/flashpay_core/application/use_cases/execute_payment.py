from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from flashpay_core.application.audit import Outcome
from flashpay_core.application.dtos import OperationResult, RateLimitConfig
from flashpay_core.application.guards import (
    GuardChain,
    rate_limit_step,
    validate_payment_id,
    validation_step,
)
from flashpay_core.application.ports import (
    ApprovalRequested,
    Cancelled,
    Completed,
    Failed,
    ProviderPaymentRequest,
)
from flashpay_core.application.use_cases.common import record_exception
from flashpay_core.domain.entities import PaymentStatus
from flashpay_core.domain.exceptions import (
    ErrorKind,
    PaymentAlreadyPaidError,
    PaymentCancelledError,
    PaymentNotFoundError,
    ProviderError,
)

if TYPE_CHECKING:
    from flashpay_core.application.audit import AuditTrail, ErrorTrail
    from flashpay_core.application.background import BackgroundTasks
    from flashpay_core.application.guards import RateLimiter
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.application.ports import (
        BackendMirror,
        PaymentProvider,
        ProviderEvent,
        ProviderEventListener,
        TimeProvider,
    )
    from flashpay_core.domain.entities import Payment

logger = structlog.get_logger(__name__)

OPERATION = "executePayment"
DEFAULT_EXECUTE_RATE_LIMIT = RateLimitConfig(max_attempts=5, window_ms=60_000)

SuccessCallback = Callable[[str], None]
ErrorCallback = Callable[[str, str | None], None]


def execute_rate_limit_key(payment_id: str) -> str:
    return f"execute_payment_{payment_id}"


class ExecutePaymentUseCase:
    """Starts the payer-facing provider flow for an existing payment.

    execute() runs the pre-flight checks and returns once the provider flow
    has started. The outcome arrives later as provider events; each handler
    re-reads the payment before writing, because the ledger may have
    changed (or been cleared) while the payer was in the provider UI.
    Payers need no connected wallet, so only the rate limit and the id are
    checked up front.

    on_success(txid) fires as soon as the ledger records PAID. Backend
    mirroring runs afterwards as background tasks and never delays it.
    """

    def __init__(
        self,
        store: LedgerStore,
        provider: PaymentProvider,
        mirror: BackendMirror,
        rate_limiter: RateLimiter,
        time_provider: TimeProvider,
        audit_trail: AuditTrail,
        error_trail: ErrorTrail,
        background: BackgroundTasks,
        rate_limit: RateLimitConfig = DEFAULT_EXECUTE_RATE_LIMIT,
    ) -> None:
        self._store = store
        self._provider = provider
        self._mirror = mirror
        self._rate_limiter = rate_limiter
        self._time_provider = time_provider
        self._audit_trail = audit_trail
        self._error_trail = error_trail
        self._background = background
        self._rate_limit = rate_limit

    def execute(
        self,
        payment_id: str,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> OperationResult[Payment]:
        result = self._start(payment_id, on_success, on_error)
        if not result.success:
            on_error(result.error or "Payment failed", result.tracking_id)
        return result

    def _start(
        self,
        payment_id: str,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> OperationResult[Payment]:
        details: dict[str, Any] = {"payment_id": payment_id}

        chain = GuardChain(
            OPERATION,
            [
                rate_limit_step(
                    self._rate_limiter,
                    execute_rate_limit_key(str(payment_id)),
                    self._rate_limit,
                    self._time_provider,
                    "Too many payment attempts. Please wait a moment.",
                ),
                validation_step(validate_payment_id, payment_id, self._time_provider),
            ],
            self._error_trail,
            self._time_provider,
        )
        guard = chain.run(details)
        if not guard.passed:
            return OperationResult.fail(
                guard.reason or "Operation blocked",
                guard.kind or ErrorKind.GUARD_DENIED,
                guard.tracking_id,
            )

        payment = self._store.get(payment_id)
        if payment is None:
            return record_exception(
                self._error_trail, OPERATION, PaymentNotFoundError("Payment not found"), details
            )

        if payment.is_paid:
            return record_exception(
                self._error_trail,
                OPERATION,
                PaymentAlreadyPaidError("This payment has already been completed"),
                details,
            )

        if payment.is_retryable:
            logger.warning("payment_retry", payment_id=payment_id, status=payment.status.value)

        request = ProviderPaymentRequest(amount=payment.amount, memo=payment.note, payment_id=payment.id)
        try:
            self._provider.request_payment(
                request,
                self._listener(payment.id, request, on_success, on_error),
            )
        except ProviderError as e:
            return record_exception(self._error_trail, OPERATION, e, details)

        tracking_id = self._audit_trail.record(
            OPERATION,
            {"payment_id": payment.id, "amount": str(payment.amount), "status": payment.status.value},
        )

        return OperationResult.ok(payment, tracking_id=tracking_id)

    def _listener(
        self,
        payment_id: str,
        request: ProviderPaymentRequest,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> ProviderEventListener:
        def handle(event: ProviderEvent) -> None:
            if self._store.get(payment_id) is None:
                message = "Payment no longer exists"
                tracking_id = self._error_trail.record(
                    OPERATION,
                    message,
                    {"payment_id": payment_id, "event": type(event).__name__},
                )
                on_error(message, tracking_id)
                return

            match event:
                case ApprovalRequested(provider_payment_id=provider_payment_id):
                    logger.info("payment_approval_requested", payment_id=payment_id)
                    self._background.spawn(
                        self._mirror.approve(provider_payment_id, request),
                        name=f"backend_approve:{payment_id}",
                    )
                case Completed(provider_payment_id=provider_payment_id, txid=txid):
                    self._on_completed(payment_id, provider_payment_id, txid, request, on_success, on_error)
                case Cancelled():
                    self._on_unsuccessful(
                        payment_id,
                        PaymentStatus.CANCELLED,
                        PaymentCancelledError("Payment was cancelled"),
                        on_error,
                    )
                case Failed(message=message):
                    self._on_unsuccessful(
                        payment_id, PaymentStatus.FAILED, ProviderError(message), on_error
                    )

        return handle

    def _on_completed(
        self,
        payment_id: str,
        provider_payment_id: str,
        txid: str,
        request: ProviderPaymentRequest,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        if not self._store.update_status(payment_id, PaymentStatus.PAID, txid):
            message = "Payment was already completed by another transaction"
            tracking_id = self._error_trail.record(
                OPERATION, message, {"payment_id": payment_id, "txid": txid}
            )
            on_error(message, tracking_id)
            return

        self._audit_trail.record("paymentCompleted", {"payment_id": payment_id, "txid": txid})
        on_success(txid)

        self._background.spawn(
            self._mirror.complete(provider_payment_id, txid, request),
            name=f"backend_complete:{payment_id}",
        )
        self._background.spawn(
            self._mirror.update_status(payment_id, PaymentStatus.PAID, txid),
            name=f"backend_status:{payment_id}",
        )

    def _on_unsuccessful(
        self,
        payment_id: str,
        status: PaymentStatus,
        error: ProviderError,
        on_error: ErrorCallback,
    ) -> None:
        if not self._store.update_status(payment_id, status):
            logger.warning("payment_status_not_updated", payment_id=payment_id, status=status.value)
            message = "Payment was already completed by another transaction"
            tracking_id = self._error_trail.record(
                OPERATION, message, {"payment_id": payment_id, "status": status.value}
            )
            on_error(message, tracking_id)
            return

        message = str(error)
        tracking_id = self._error_trail.record(
            OPERATION,
            message,
            {
                "payment_id": payment_id,
                "status": status.value,
                "provider_error_kind": error.provider_kind.value,
            },
        )
        self._audit_trail.record(
            OPERATION,
            {"payment_id": payment_id, "status": status.value},
            outcome=Outcome.FAILURE,
        )
        self._background.spawn(
            self._mirror.update_status(payment_id, status),
            name=f"backend_status:{payment_id}",
        )
        on_error(message, tracking_id)
