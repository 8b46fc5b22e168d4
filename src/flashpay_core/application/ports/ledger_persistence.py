from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flashpay_core.domain.entities import LedgerSnapshot, Payment

SnapshotListener = Callable[["LedgerSnapshot"], None]


class LedgerPersistence(ABC):
    """Port for durable, two-tier ledger storage.

    Contract:
    - The global snapshot holds every section except payments
    - Payments are stored per merchant, under a merchant-derived key
    - save() writes the merchant list before the global snapshot
    - load_*() return None / empty when nothing is stored
    - Unreadable or unwritable data raises PersistenceError
    - subscribe() delivers decoded global snapshots written by other
      contexts; undecodable notifications are logged and dropped
    """

    @abstractmethod
    def load_snapshot(self) -> LedgerSnapshot | None:
        """Decode the global snapshot (payments empty)."""

    @abstractmethod
    def load_payments(self, merchant_id: str) -> tuple[Payment, ...]:
        """Decode the payment list stored for merchant_id."""

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> None:
        """Persist the active merchant's payments, then the global snapshot."""

    @abstractmethod
    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Receive global snapshots written by other contexts."""

    @abstractmethod
    def load_owner_grant(self) -> str | None:
        """Return the stored owner grant, or None."""

    @abstractmethod
    def save_owner_grant(self, grant: str) -> None:
        """Remember that this medium holds an authenticated owner session."""
