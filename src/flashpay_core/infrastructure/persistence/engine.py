"""Two-tier ledger persistence over a shared key/value medium.

Layout:
    {prefix}_unified_state               every section except payments
    {prefix}_merchant_{merchant_id}_data  that merchant's payment list
    {prefix}_owner_grant                  remembered owner authentication

The merchant list is written before the global snapshot. Other contexts
react to the global key only, so by the time they reload a merchant list
it already holds the data the snapshot announces.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pydantic
import structlog

from flashpay_core.application.ports import LedgerPersistence
from flashpay_core.domain.entities.snapshot import SCHEMA_VERSION
from flashpay_core.domain.exceptions import PersistenceError
from flashpay_core.infrastructure.persistence.schemas import (
    GlobalBucket,
    MerchantBucket,
    PaymentRecord,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from flashpay_core.application.ports import KeyValueStorage, StorageChange, StorageChangeTransport
    from flashpay_core.application.ports.ledger_persistence import SnapshotListener
    from flashpay_core.domain.entities import LedgerSnapshot, Payment

logger = structlog.get_logger(__name__)

DEFAULT_PREFIX = "flashpay"


class StorageLedgerPersistence(LedgerPersistence):
    def __init__(
        self,
        storage: KeyValueStorage,
        transport: StorageChangeTransport,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._storage = storage
        self._transport = transport
        self._prefix = prefix

    @property
    def global_key(self) -> str:
        return f"{self._prefix}_unified_state"

    @property
    def owner_grant_key(self) -> str:
        return f"{self._prefix}_owner_grant"

    def merchant_key(self, merchant_id: str) -> str:
        return f"{self._prefix}_merchant_{merchant_id}_data"

    def load_snapshot(self) -> LedgerSnapshot | None:
        raw = self._storage.get(self.global_key)
        if raw is None:
            return None
        return self._decode_snapshot(raw)

    def load_payments(self, merchant_id: str) -> tuple[Payment, ...]:
        raw = self._storage.get(self.merchant_key(merchant_id))
        if raw is None:
            return ()

        try:
            bucket = MerchantBucket.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise PersistenceError(f"Unreadable payment list for merchant {merchant_id}") from e

        self._check_version(bucket.schema_version, self.merchant_key(merchant_id))
        # A bucket only ever holds its own merchant's records
        return tuple(r.to_entity() for r in bucket.payments if r.merchant_id == merchant_id)

    def save(self, snapshot: LedgerSnapshot) -> None:
        merchant_id = snapshot.active_merchant_id
        merchant_bucket = MerchantBucket(
            merchant_id=merchant_id,
            last_updated=snapshot.last_updated,
            payments=[
                PaymentRecord.from_entity(p)
                for p in snapshot.payments
                if p.merchant_id == merchant_id
            ],
        )
        global_bucket = GlobalBucket.from_snapshot(snapshot)

        self._storage.set(self.merchant_key(merchant_id), merchant_bucket.model_dump_json())
        self._storage.set(self.global_key, global_bucket.model_dump_json())

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        def on_change(change: StorageChange) -> None:
            if change.key != self.global_key or change.new_value is None:
                return
            try:
                snapshot = self._decode_snapshot(change.new_value)
            except PersistenceError as e:
                logger.warning("sync_decode_failed", key=change.key, error=str(e))
                return
            logger.debug("sync_change_received", version=snapshot.last_updated)
            listener(snapshot)

        return self._transport.subscribe(on_change)

    def load_owner_grant(self) -> str | None:
        return self._storage.get(self.owner_grant_key)

    def save_owner_grant(self, grant: str) -> None:
        self._storage.set(self.owner_grant_key, grant)

    def _decode_snapshot(self, raw: str) -> LedgerSnapshot:
        try:
            bucket = GlobalBucket.model_validate_json(raw)
        except pydantic.ValidationError as e:
            raise PersistenceError("Unreadable ledger snapshot") from e

        self._check_version(bucket.schema_version, self.global_key)
        return bucket.to_snapshot()

    def _check_version(self, version: int, key: str) -> None:
        if version > SCHEMA_VERSION:
            logger.warning("schema_version_newer", key=key, stored=version, supported=SCHEMA_VERSION)
