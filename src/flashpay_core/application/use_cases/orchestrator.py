from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from flashpay_core.application.use_cases.merchant_session import DEFAULT_SCOPES

if TYPE_CHECKING:
    from flashpay_core.application.background import BackgroundTasks
    from flashpay_core.application.dtos import OperationResult
    from flashpay_core.application.ports import ProviderIdentity
    from flashpay_core.application.use_cases.create_payment import CreatePaymentUseCase
    from flashpay_core.application.use_cases.execute_payment import (
        ErrorCallback,
        ExecutePaymentUseCase,
        SuccessCallback,
    )
    from flashpay_core.application.use_cases.merchant_session import MerchantSessionUseCase
    from flashpay_core.application.use_cases.query_payments import QueryPaymentsUseCase
    from flashpay_core.domain.entities import Payment, PaymentStats, WalletStatus


class PaymentOrchestrator:
    """Single entry point over the payment use cases.

    Every operation returns a result rather than raising for expected
    failures. drain() waits for the background mirror calls.
    """

    def __init__(
        self,
        create: CreatePaymentUseCase,
        execute: ExecutePaymentUseCase,
        query: QueryPaymentsUseCase,
        merchant_session: MerchantSessionUseCase,
        background: BackgroundTasks,
    ) -> None:
        self._create = create
        self._execute = execute
        self._query = query
        self._merchant_session = merchant_session
        self._background = background

    async def create_payment(
        self,
        amount: object,
        note: str = "",
        payment_id: str | None = None,
    ) -> OperationResult[Payment]:
        return await self._create.execute(amount, note, payment_id)

    def execute_payment(
        self,
        payment_id: str,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> OperationResult[Payment]:
        return self._execute.execute(payment_id, on_success, on_error)

    def get_payment(self, payment_id: str) -> OperationResult[Payment]:
        return self._query.get_payment(payment_id)

    def get_all_payments(self) -> list[Payment]:
        return self._query.get_all_payments()

    def get_payment_stats(self) -> PaymentStats:
        return self._query.get_payment_stats()

    def is_payment_paid(self, payment_id: str) -> bool:
        return self._query.is_payment_paid(payment_id)

    def can_retry_payment(self, payment_id: str) -> bool:
        return self._query.can_retry_payment(payment_id)

    async def fetch_payment(self, payment_id: str) -> OperationResult[Payment]:
        return await self._query.fetch_payment(payment_id)

    async def initialize_wallet(self) -> OperationResult[WalletStatus]:
        return await self._merchant_session.initialize_wallet()

    async def authenticate_merchant(
        self,
        scopes: Sequence[str] = DEFAULT_SCOPES,
    ) -> OperationResult[ProviderIdentity]:
        return await self._merchant_session.authenticate_merchant(scopes)

    async def drain(self) -> None:
        await self._background.drain()
