from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from flashpay_core.application.dtos import OperationResult, RateLimitConfig
from flashpay_core.application.guards import (
    GuardChain,
    rate_limit_step,
    validate_amount,
    validate_note,
    validate_payment_id,
    validation_step,
)
from flashpay_core.application.ports import ProviderPaymentRequest
from flashpay_core.application.use_cases.common import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    record_exception,
    record_failure,
)
from flashpay_core.domain.entities.feature_domain import PRIMARY_DOMAIN_ID
from flashpay_core.domain.exceptions import (
    DomainException,
    ErrorKind,
    OperationInProgressError,
    PersistenceError,
    ProviderError,
    ProviderTimeoutError,
)
from flashpay_core.domain.value_objects import Amount

if TYPE_CHECKING:
    from flashpay_core.application.audit import AuditTrail, ErrorTrail
    from flashpay_core.application.background import BackgroundTasks
    from flashpay_core.application.guards import RateLimiter, SecurityGuard
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.application.ports import (
        BackendMirror,
        LockProvider,
        PaymentCache,
        PaymentProvider,
        TimeProvider,
    )
    from flashpay_core.domain.entities import Payment

logger = structlog.get_logger(__name__)

OPERATION = "createPayment"
CREATE_RATE_LIMIT_KEY = "create_payment"
DEFAULT_CREATE_RATE_LIMIT = RateLimitConfig(max_attempts=10, window_ms=60_000)


class CreatePaymentUseCase:
    """Issues a new payment request for the active merchant.

    Workflow:
    - Guard chain: rate limit, amount, note, then master/domain/wallet checks
    - Replay: a caller-supplied id already in the ledger returns that record
    - Acquire the in-flight lock so a double submit cannot race
    - Register with the provider (under timeout) to mint the durable id
    - Write the ledger, audit, then best-effort cache and backend mirror

    The ledger is untouched unless the provider registration succeeds.
    """

    def __init__(
        self,
        store: LedgerStore,
        provider: PaymentProvider,
        mirror: BackendMirror,
        cache: PaymentCache,
        security_guard: SecurityGuard,
        rate_limiter: RateLimiter,
        lock_provider: LockProvider,
        time_provider: TimeProvider,
        audit_trail: AuditTrail,
        error_trail: ErrorTrail,
        background: BackgroundTasks,
        rate_limit: RateLimitConfig = DEFAULT_CREATE_RATE_LIMIT,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._provider = provider
        self._mirror = mirror
        self._cache = cache
        self._security_guard = security_guard
        self._rate_limiter = rate_limiter
        self._lock_provider = lock_provider
        self._time_provider = time_provider
        self._audit_trail = audit_trail
        self._error_trail = error_trail
        self._background = background
        self._rate_limit = rate_limit
        self._provider_timeout = provider_timeout

    async def execute(
        self,
        amount: object,
        note: str = "",
        payment_id: str | None = None,
    ) -> OperationResult[Payment]:
        details: dict[str, Any] = {"amount": str(amount), "payment_id": payment_id}

        guard = self._guard_chain(amount, note, payment_id).run(details)
        if not guard.passed:
            return OperationResult.fail(
                guard.reason or "Operation blocked",
                guard.kind or ErrorKind.GUARD_DENIED,
                guard.tracking_id,
            )

        resource_id = f"create:{payment_id}" if payment_id else f"create:{amount}:{note}"
        try:
            with self._lock_provider.acquire(resource_id):
                return await self._execute_within_lock(amount, note, payment_id, details)
        except OperationInProgressError:
            return record_failure(
                self._error_trail,
                OPERATION,
                "Payment creation already in progress",
                ErrorKind.CONFLICT,
                details,
            )

    def _guard_chain(self, amount: object, note: object, payment_id: str | None) -> GuardChain:
        steps = [
            rate_limit_step(
                self._rate_limiter,
                CREATE_RATE_LIMIT_KEY,
                self._rate_limit,
                self._time_provider,
                "Too many payment requests. Please wait a moment.",
            ),
            validation_step(validate_amount, amount, self._time_provider),
            validation_step(validate_note, note, self._time_provider),
        ]
        if payment_id is not None:
            steps.append(validation_step(validate_payment_id, payment_id, self._time_provider))
        steps.append(
            lambda: self._security_guard.pre_operation_check(OPERATION, PRIMARY_DOMAIN_ID)
        )
        return GuardChain(OPERATION, steps, self._error_trail, self._time_provider)

    async def _execute_within_lock(
        self,
        amount: object,
        note: str,
        payment_id: str | None,
        details: dict[str, Any],
    ) -> OperationResult[Payment]:
        if payment_id is not None:
            existing = self._store.get(payment_id)
            if existing is not None:
                logger.info("payment_replayed", payment_id=payment_id)
                return OperationResult.ok(existing, is_replay=True)

        request = ProviderPaymentRequest(
            amount=Amount.of(amount).value,
            memo=note,
            payment_id=payment_id,
        )
        try:
            receipt = await asyncio.wait_for(
                self._provider.register_payment(request),
                timeout=self._provider_timeout,
            )
        except TimeoutError:
            return record_exception(
                self._error_trail,
                OPERATION,
                ProviderTimeoutError("Payment provider did not respond in time"),
                details,
            )
        except ProviderError as e:
            return record_exception(self._error_trail, OPERATION, e, details)

        try:
            payment = self._store.create(
                amount,
                note,
                payment_id=payment_id or receipt.payment_id,
                created_at=receipt.created_at,
            )
        except DomainException as e:
            return record_exception(self._error_trail, OPERATION, e, details)

        tracking_id = self._audit_trail.record(
            OPERATION,
            {
                "payment_id": payment.id,
                "merchant_id": payment.merchant_id,
                "amount": str(payment.amount),
            },
        )

        try:
            self._cache.put(payment)
        except PersistenceError as e:
            logger.warning("payment_cache_write_failed", payment_id=payment.id, error=str(e))

        self._background.spawn(self._mirror.create(payment), name=f"backend_create:{payment.id}")

        return OperationResult.ok(payment, tracking_id=tracking_id)
