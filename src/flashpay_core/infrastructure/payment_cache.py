from __future__ import annotations

from typing import TYPE_CHECKING

import pydantic

from flashpay_core.application.ports import PaymentCache
from flashpay_core.domain.exceptions import PersistenceError
from flashpay_core.infrastructure.persistence.engine import DEFAULT_PREFIX
from flashpay_core.infrastructure.persistence.schemas import PaymentRecord

if TYPE_CHECKING:
    from flashpay_core.application.ports import KeyValueStorage
    from flashpay_core.domain.entities import Payment


class StoragePaymentCache(PaymentCache):
    """One entry per payment under "{prefix}_payment_{id}"."""

    def __init__(self, storage: KeyValueStorage, prefix: str = DEFAULT_PREFIX) -> None:
        self._storage = storage
        self._prefix = prefix

    def key(self, payment_id: str) -> str:
        return f"{self._prefix}_payment_{payment_id}"

    def get(self, payment_id: str) -> Payment | None:
        raw = self._storage.get(self.key(payment_id))
        if raw is None:
            return None
        try:
            return PaymentRecord.model_validate_json(raw).to_entity()
        except pydantic.ValidationError as e:
            raise PersistenceError(f"Unreadable cache entry for payment {payment_id}") from e

    def put(self, payment: Payment) -> None:
        self._storage.set(self.key(payment.id), PaymentRecord.from_entity(payment).model_dump_json())


class InMemoryPaymentCache(PaymentCache):
    def __init__(self) -> None:
        self._entries: dict[str, Payment] = {}

    def get(self, payment_id: str) -> Payment | None:
        return self._entries.get(payment_id)

    def put(self, payment: Payment) -> None:
        self._entries[payment.id] = payment
