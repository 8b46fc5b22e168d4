from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.ports import (
    ApprovalRequested,
    Cancelled,
    Completed,
    Failed,
    PaymentProvider,
    ProviderConfig,
    ProviderIdentity,
    ProviderReceipt,
)
from flashpay_core.domain.exceptions import ProviderError
from flashpay_core.infrastructure.time_provider import SystemTimeProvider

if TYPE_CHECKING:
    from flashpay_core.application.ports import (
        ProviderEvent,
        ProviderEventListener,
        ProviderPaymentRequest,
        TimeProvider,
    )

logger = structlog.get_logger(__name__)


class InMemoryPaymentProvider(PaymentProvider):
    """Scripted provider: tests decide when and how each flow ends.

    Set the *_error attributes to make the matching call raise, and delay
    to make init/authenticate/register_payment sleep first (for timeouts).
    A started flow stays open until approve(), complete(), cancel() or
    fail() is called for its payment id.
    """

    def __init__(
        self,
        available: bool = True,
        identity: ProviderIdentity | None = None,
        time_provider: TimeProvider | None = None,
    ) -> None:
        self.available = available
        self.identity = identity or ProviderIdentity(uid="uid-1", username="merchant", access_token="token")
        self.delay: float | None = None
        self.init_error: ProviderError | None = None
        self.auth_error: ProviderError | None = None
        self.register_error: ProviderError | None = None
        self.request_error: ProviderError | None = None
        self.config: ProviderConfig | None = None
        self.registered: list[ProviderPaymentRequest] = []
        self._time_provider = time_provider or SystemTimeProvider()
        self._flows: dict[str, tuple[str, ProviderEventListener]] = {}

    def is_available(self) -> bool:
        return self.available

    async def init(self, config: ProviderConfig) -> None:
        await self._wait()
        if self.init_error is not None:
            raise self.init_error
        self.config = config

    async def authenticate(self, scopes: Sequence[str]) -> ProviderIdentity:
        await self._wait()
        if self.auth_error is not None:
            raise self.auth_error
        logger.debug("provider_authenticated", username=self.identity.username, scopes=list(scopes))
        return self.identity

    async def register_payment(self, request: ProviderPaymentRequest) -> ProviderReceipt:
        await self._wait()
        if self.register_error is not None:
            raise self.register_error
        self.registered.append(request)
        return ProviderReceipt(
            payment_id=request.payment_id or str(uuid.uuid4()),
            created_at=self._time_provider.now(),
        )

    def request_payment(
        self,
        request: ProviderPaymentRequest,
        listener: ProviderEventListener,
    ) -> None:
        if self.request_error is not None:
            raise self.request_error
        if request.payment_id is None:
            raise ProviderError("payment_id is required to start a payment flow")
        self._flows[request.payment_id] = (f"pi_{request.payment_id}", listener)

    def has_open_flow(self, payment_id: str) -> bool:
        return payment_id in self._flows

    def approve(self, payment_id: str) -> None:
        provider_id, _ = self._flows[payment_id]
        self._emit(payment_id, ApprovalRequested(provider_payment_id=provider_id), final=False)

    def complete(self, payment_id: str, txid: str) -> None:
        provider_id, _ = self._flows[payment_id]
        self._emit(payment_id, Completed(provider_payment_id=provider_id, txid=txid))

    def cancel(self, payment_id: str) -> None:
        provider_id, _ = self._flows[payment_id]
        self._emit(payment_id, Cancelled(provider_payment_id=provider_id))

    def fail(self, payment_id: str, message: str) -> None:
        provider_id, _ = self._flows[payment_id]
        self._emit(payment_id, Failed(message=message, provider_payment_id=provider_id))

    def _emit(self, payment_id: str, event: ProviderEvent, final: bool = True) -> None:
        _, listener = self._flows[payment_id]
        if final:
            del self._flows[payment_id]
        listener(event)

    async def _wait(self) -> None:
        if self.delay is not None:
            await asyncio.sleep(self.delay)
