from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.dtos import OperationResult
from flashpay_core.application.guards import validate_payment_id
from flashpay_core.application.use_cases.common import record_exception, record_failure
from flashpay_core.domain.exceptions import (
    BackendMirrorError,
    ErrorKind,
    PaymentNotFoundError,
    PersistenceError,
)

if TYPE_CHECKING:
    from flashpay_core.application.audit import ErrorTrail
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.application.ports import BackendMirror, PaymentCache
    from flashpay_core.domain.entities import Payment, PaymentStats

logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGE = "Payment not found"


class QueryPaymentsUseCase:
    """Read side of the ledger, always scoped to the active merchant.

    fetch_payment() falls back from the ledger to the local cache and then
    to the backend mirror; whatever it finds is imported into the ledger.
    Records owned by another merchant read as not found.
    """

    def __init__(
        self,
        store: LedgerStore,
        cache: PaymentCache,
        mirror: BackendMirror,
        error_trail: ErrorTrail,
    ) -> None:
        self._store = store
        self._cache = cache
        self._mirror = mirror
        self._error_trail = error_trail

    def get_payment(self, payment_id: str) -> OperationResult[Payment]:
        validation = validate_payment_id(payment_id)
        if not validation.valid:
            return record_failure(
                self._error_trail,
                "getPayment",
                validation.error or "Payment ID is invalid",
                ErrorKind.VALIDATION,
            )

        payment = self._store.get(payment_id)
        if payment is None:
            return record_exception(
                self._error_trail,
                "getPayment",
                PaymentNotFoundError(NOT_FOUND_MESSAGE),
                {"payment_id": payment_id},
            )
        return OperationResult.ok(payment)

    def get_all_payments(self) -> list[Payment]:
        return self._store.list()

    def get_payment_stats(self) -> PaymentStats:
        return self._store.stats()

    def is_payment_paid(self, payment_id: str) -> bool:
        payment = self._store.get(payment_id)
        return payment is not None and payment.is_paid

    def can_retry_payment(self, payment_id: str) -> bool:
        payment = self._store.get(payment_id)
        return payment is not None and payment.is_retryable

    async def fetch_payment(self, payment_id: str) -> OperationResult[Payment]:
        validation = validate_payment_id(payment_id)
        if not validation.valid:
            return record_failure(
                self._error_trail,
                "fetchPayment",
                validation.error or "Payment ID is invalid",
                ErrorKind.VALIDATION,
            )

        local = self._store.get(payment_id)
        if local is not None:
            return OperationResult.ok(local)

        cached = self._from_cache(payment_id)
        if cached is not None:
            self._store.add(cached)
            return OperationResult.ok(cached)

        try:
            remote = await self._mirror.fetch(payment_id)
        except BackendMirrorError as e:
            logger.warning("backend_fetch_failed", payment_id=payment_id, error=str(e))
            remote = None

        if remote is not None and remote.merchant_id == self._store.merchant_id:
            self._store.add(remote)
            logger.info("payment_fetched_from_backend", payment_id=payment_id)
            return OperationResult.ok(remote)

        return record_exception(
            self._error_trail,
            "fetchPayment",
            PaymentNotFoundError(NOT_FOUND_MESSAGE),
            {"payment_id": payment_id},
        )

    def _from_cache(self, payment_id: str) -> Payment | None:
        try:
            cached = self._cache.get(payment_id)
        except PersistenceError as e:
            logger.warning("payment_cache_read_failed", payment_id=payment_id, error=str(e))
            return None

        if cached is None or cached.merchant_id != self._store.merchant_id:
            return None
        return cached
