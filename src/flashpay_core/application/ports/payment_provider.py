"""Port for the external wallet provider that moves the actual value.

The provider reports the outcome of a payment flow through tagged events
rather than ad hoc callbacks, so consumers can match on them exhaustively.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    version: str = "2.0"
    sandbox: bool = False


@dataclass(frozen=True, slots=True)
class ProviderIdentity:
    uid: str
    username: str
    access_token: str


@dataclass(frozen=True, slots=True)
class ProviderPaymentRequest:
    amount: Decimal
    memo: str
    payment_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProviderReceipt:
    """Durable identifier minted by the provider for a new payment."""

    payment_id: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ApprovalRequested:
    provider_payment_id: str


@dataclass(frozen=True, slots=True)
class Completed:
    provider_payment_id: str
    txid: str


@dataclass(frozen=True, slots=True)
class Cancelled:
    provider_payment_id: str


@dataclass(frozen=True, slots=True)
class Failed:
    message: str
    provider_payment_id: str | None = None


ProviderEvent = ApprovalRequested | Completed | Cancelled | Failed
ProviderEventListener = Callable[[ProviderEvent], None]


class PaymentProvider(ABC):
    """Port for the wallet provider SDK.

    Contract:
    - init(), authenticate() and register_payment() raise ProviderError on failure
    - request_payment() returns immediately; the outcome arrives later via
      the listener, ending with exactly one of Completed, Cancelled or Failed
    - Listener calls may happen after the caller has gone away
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the SDK is present in this context."""

    @abstractmethod
    async def init(self, config: ProviderConfig) -> None: ...

    @abstractmethod
    async def authenticate(self, scopes: Sequence[str]) -> ProviderIdentity: ...

    @abstractmethod
    async def register_payment(self, request: ProviderPaymentRequest) -> ProviderReceipt:
        """Mint the durable identifier for a new payment request."""

    @abstractmethod
    def request_payment(
        self,
        request: ProviderPaymentRequest,
        listener: ProviderEventListener,
    ) -> None:
        """Start the payer-facing flow for an existing payment."""
