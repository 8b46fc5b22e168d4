from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flashpay_core.domain.entities import Payment


class PaymentCache(ABC):
    """Port for the per-payment secondary cache.

    Contract:
    - One entry per payment id, independent of the merchant lists
    - get() returns None when nothing is cached
    - Failures raise PersistenceError; callers treat the cache as best-effort
    """

    @abstractmethod
    def get(self, payment_id: str) -> Payment | None: ...

    @abstractmethod
    def put(self, payment: Payment) -> None: ...
