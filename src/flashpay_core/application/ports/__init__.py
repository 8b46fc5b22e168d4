"""Ports - Abstract interfaces for external dependencies.

Ports define the contracts that infrastructure adapters must implement.
This allows the application layer to remain decoupled from concrete implementations.
"""

from flashpay_core.application.ports.backend_mirror import BackendMirror
from flashpay_core.application.ports.key_value_storage import (
    KeyValueStorage,
    StorageChange,
    StorageChangeTransport,
)
from flashpay_core.application.ports.ledger_persistence import LedgerPersistence
from flashpay_core.application.ports.lock_provider import LockProvider
from flashpay_core.application.ports.payment_cache import PaymentCache
from flashpay_core.application.ports.payment_provider import (
    ApprovalRequested,
    Cancelled,
    Completed,
    Failed,
    PaymentProvider,
    ProviderConfig,
    ProviderEvent,
    ProviderEventListener,
    ProviderIdentity,
    ProviderPaymentRequest,
    ProviderReceipt,
)
from flashpay_core.application.ports.scheduler import Scheduler, TimerHandle
from flashpay_core.application.ports.time_provider import TimeProvider

__all__ = [
    "ApprovalRequested",
    "BackendMirror",
    "Cancelled",
    "Completed",
    "Failed",
    "KeyValueStorage",
    "LedgerPersistence",
    "LockProvider",
    "PaymentCache",
    "PaymentProvider",
    "ProviderConfig",
    "ProviderEvent",
    "ProviderEventListener",
    "ProviderIdentity",
    "ProviderPaymentRequest",
    "ProviderReceipt",
    "Scheduler",
    "StorageChange",
    "StorageChangeTransport",
    "TimeProvider",
    "TimerHandle",
]
