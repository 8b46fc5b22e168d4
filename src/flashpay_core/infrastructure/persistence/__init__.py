"""Persistence - Durable, two-tier storage of the ledger."""

from flashpay_core.infrastructure.persistence.engine import StorageLedgerPersistence

__all__ = ["StorageLedgerPersistence"]
