from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flashpay_core.application.ports.payment_provider import ProviderPaymentRequest
    from flashpay_core.domain.entities import Payment, PaymentStatus


class BackendMirror(ABC):
    """Port for the best-effort HTTP mirror of the ledger.

    Contract:
    - Every failure (network, HTTP status, malformed body) raises BackendMirrorError
    - fetch() returns None when the backend does not know the payment
    - The ledger stays authoritative; callers log mirror failures and carry on
    """

    @abstractmethod
    async def create(self, payment: Payment) -> None: ...

    @abstractmethod
    async def fetch(self, payment_id: str) -> Payment | None: ...

    @abstractmethod
    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        txid: str | None = None,
    ) -> None: ...

    @abstractmethod
    async def approve(self, provider_payment_id: str, request: ProviderPaymentRequest) -> None: ...

    @abstractmethod
    async def complete(
        self,
        provider_payment_id: str,
        txid: str,
        request: ProviderPaymentRequest,
    ) -> None: ...
