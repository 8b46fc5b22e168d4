"""Infrastructure layer - Concrete implementations of ports.

This layer contains:
- Storage: Shared key/value medium with per-context views
- Persistence: Two-tier ledger storage and the local payment cache
- External Services: Payment provider and backend mirror adapters
- Time Provider and Scheduler: Clock and timer abstractions for testability
- Locking: Per-context in-flight guards
- Logging: structlog configuration

Infrastructure adapters implement the ports defined in the application layer.
"""

from flashpay_core.infrastructure.backend_mirror import HttpBackendMirror, InMemoryBackendMirror
from flashpay_core.infrastructure.key_value_storage import InMemoryStorageMedium, StorageView
from flashpay_core.infrastructure.lock_provider import InMemoryLockProvider
from flashpay_core.infrastructure.payment_cache import InMemoryPaymentCache, StoragePaymentCache
from flashpay_core.infrastructure.payment_provider import InMemoryPaymentProvider
from flashpay_core.infrastructure.persistence import StorageLedgerPersistence
from flashpay_core.infrastructure.scheduler import AsyncioScheduler, ManualScheduler
from flashpay_core.infrastructure.time_provider import FixedTimeProvider, SystemTimeProvider

__all__ = [
    "AsyncioScheduler",
    "FixedTimeProvider",
    "HttpBackendMirror",
    "InMemoryBackendMirror",
    "InMemoryLockProvider",
    "InMemoryPaymentCache",
    "InMemoryPaymentProvider",
    "InMemoryStorageMedium",
    "ManualScheduler",
    "StorageLedgerPersistence",
    "StoragePaymentCache",
    "StorageView",
    "SystemTimeProvider",
]
