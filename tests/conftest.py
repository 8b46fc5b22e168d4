"""Shared pytest fixtures for the test suite."""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime

import pytest
import structlog

from flashpay_core.application.audit import AuditTrail, ErrorTrail
from flashpay_core.application.ledger_store import LedgerStore
from flashpay_core.config import Settings
from flashpay_core.entrypoints import AppContext, build_context
from flashpay_core.infrastructure import (
    FixedTimeProvider,
    InMemoryBackendMirror,
    InMemoryPaymentProvider,
    InMemoryStorageMedium,
    ManualScheduler,
    StorageLedgerPersistence,
)


@pytest.fixture
def fixed_time() -> datetime:
    """A fixed timestamp for deterministic testing."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def time_provider(fixed_time: datetime) -> FixedTimeProvider:
    return FixedTimeProvider(fixed_time)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def medium() -> InMemoryStorageMedium:
    """Storage shared by every context in a test."""
    return InMemoryStorageMedium()


@pytest.fixture
def persistence(medium: InMemoryStorageMedium) -> StorageLedgerPersistence:
    view = medium.attach()
    return StorageLedgerPersistence(view, view)


@pytest.fixture
def store(
    persistence: StorageLedgerPersistence,
    scheduler: ManualScheduler,
    time_provider: FixedTimeProvider,
) -> LedgerStore:
    return LedgerStore(persistence, scheduler, time_provider, owner_secret="owner-secret")


@pytest.fixture
def error_trail(time_provider: FixedTimeProvider) -> ErrorTrail:
    return ErrorTrail(time_provider)


@pytest.fixture
def audit_trail(time_provider: FixedTimeProvider) -> AuditTrail:
    return AuditTrail(time_provider)


# =============================================================================
# Full Context
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(provider_timeout_seconds=0.05, owner_secret=None)


@pytest.fixture
def provider(time_provider: FixedTimeProvider) -> InMemoryPaymentProvider:
    return InMemoryPaymentProvider(time_provider=time_provider)


@pytest.fixture
def mirror() -> InMemoryBackendMirror:
    return InMemoryBackendMirror()


@pytest.fixture
def context(
    provider: InMemoryPaymentProvider,
    mirror: InMemoryBackendMirror,
    settings: Settings,
    medium: InMemoryStorageMedium,
    scheduler: ManualScheduler,
    time_provider: FixedTimeProvider,
) -> AppContext:
    """A context whose wallet is initialized and connected."""
    ctx = build_context(
        provider,
        settings=settings,
        medium=medium,
        mirror=mirror,
        scheduler=scheduler,
        time_provider=time_provider,
    )
    ctx.store.update_wallet_status(sdk_available=True, initialized=True, connected=True)
    return ctx


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo setup_logging() so later tests keep structlog's defaults."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
