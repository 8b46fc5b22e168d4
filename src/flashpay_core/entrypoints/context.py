from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.audit import AuditTrail, ErrorTrail
from flashpay_core.application.background import BackgroundTasks
from flashpay_core.application.dtos import RateLimitConfig
from flashpay_core.application.feature_toggle import FeatureToggle
from flashpay_core.application.guards import OperationalFlags, RateLimiter, SecurityGuard
from flashpay_core.application.ledger_store import LedgerStore
from flashpay_core.application.ports import ProviderConfig
from flashpay_core.application.use_cases import (
    CreatePaymentUseCase,
    ExecutePaymentUseCase,
    MerchantSessionUseCase,
    PaymentOrchestrator,
    QueryPaymentsUseCase,
)
from flashpay_core.config import get_settings
from flashpay_core.infrastructure import (
    AsyncioScheduler,
    HttpBackendMirror,
    InMemoryLockProvider,
    InMemoryStorageMedium,
    StorageLedgerPersistence,
    StoragePaymentCache,
    SystemTimeProvider,
)
from flashpay_core.infrastructure.logging import setup_logging

if TYPE_CHECKING:
    from flashpay_core.application.ports import (
        BackendMirror,
        LockProvider,
        PaymentProvider,
        Scheduler,
        TimeProvider,
    )
    from flashpay_core.config import Settings
    from flashpay_core.infrastructure import StorageView

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class AppContext:
    """Everything one context needs, built once and passed around."""

    settings: Settings
    storage: StorageView
    store: LedgerStore
    toggles: FeatureToggle
    security_guard: SecurityGuard
    rate_limiter: RateLimiter
    audit_trail: AuditTrail
    error_trail: ErrorTrail
    orchestrator: PaymentOrchestrator
    background: BackgroundTasks
    mirror: BackendMirror

    async def close(self) -> None:
        """Flush pending writes, finish background work and detach from storage."""
        await self.background.drain()
        self.store.close()
        self.storage.close()
        if isinstance(self.mirror, HttpBackendMirror):
            await self.mirror.aclose()
        logger.info("context_closed", merchant_id=self.store.merchant_id)


def operational_flags(settings: Settings) -> OperationalFlags:
    return OperationalFlags(
        testnet_only=settings.testnet_only,
        require_wallet=settings.require_wallet,
        require_domain_enabled=settings.require_domain_enabled,
        require_master_enabled=settings.require_master_enabled,
        enable_rate_limiting=settings.enable_rate_limiting,
        enable_audit_logging=settings.enable_audit_logging,
    )


def build_context(
    provider: PaymentProvider,
    *,
    settings: Settings | None = None,
    medium: InMemoryStorageMedium | None = None,
    mirror: BackendMirror | None = None,
    scheduler: Scheduler | None = None,
    time_provider: TimeProvider | None = None,
    lock_provider: LockProvider | None = None,
) -> AppContext:
    """Wire one context.

    Contexts built on the same medium share storage and sync with each
    other. Omitted adapters get their production defaults; the default
    scheduler needs a running event loop once a write is scheduled.

    Raises:
        ValueError: If testnet_only is set but the provider is not sandboxed.
    """
    settings = settings or get_settings()
    if settings.testnet_only and not settings.provider_sandbox:
        raise ValueError("testnet_only requires provider_sandbox=True")

    flags = operational_flags(settings)
    time_provider = time_provider or SystemTimeProvider()
    medium = medium or InMemoryStorageMedium()
    storage = medium.attach()
    mirror = mirror or HttpBackendMirror(
        settings.backend_base_url, timeout=settings.backend_timeout_seconds
    )

    store = LedgerStore(
        StorageLedgerPersistence(storage, storage, prefix=settings.storage_prefix),
        scheduler or AsyncioScheduler(),
        time_provider,
        debounce_ms=settings.persist_debounce_ms,
        owner_secret=settings.owner_secret.get_secret_value() if settings.owner_secret else None,
        sdk_available=provider.is_available(),
    )

    audit_trail = AuditTrail(
        time_provider,
        capacity=settings.audit_trail_capacity,
        enabled=flags.enable_audit_logging,
    )
    error_trail = ErrorTrail(time_provider, capacity=settings.error_trail_capacity)
    toggles = FeatureToggle(store, audit_trail, error_trail)
    security_guard = SecurityGuard(store, toggles, time_provider, flags)
    rate_limiter = RateLimiter(time_provider, enabled=flags.enable_rate_limiting)
    background = BackgroundTasks()
    cache = StoragePaymentCache(storage, prefix=settings.storage_prefix)

    orchestrator = PaymentOrchestrator(
        create=CreatePaymentUseCase(
            store=store,
            provider=provider,
            mirror=mirror,
            cache=cache,
            security_guard=security_guard,
            rate_limiter=rate_limiter,
            lock_provider=lock_provider or InMemoryLockProvider(),
            time_provider=time_provider,
            audit_trail=audit_trail,
            error_trail=error_trail,
            background=background,
            rate_limit=RateLimitConfig(
                settings.create_rate_limit_max_attempts, settings.create_rate_limit_window_ms
            ),
            provider_timeout=settings.provider_timeout_seconds,
        ),
        execute=ExecutePaymentUseCase(
            store=store,
            provider=provider,
            mirror=mirror,
            rate_limiter=rate_limiter,
            time_provider=time_provider,
            audit_trail=audit_trail,
            error_trail=error_trail,
            background=background,
            rate_limit=RateLimitConfig(
                settings.execute_rate_limit_max_attempts, settings.execute_rate_limit_window_ms
            ),
        ),
        query=QueryPaymentsUseCase(store, cache, mirror, error_trail),
        merchant_session=MerchantSessionUseCase(
            store,
            provider,
            audit_trail,
            error_trail,
            provider_config=ProviderConfig(
                version=settings.provider_sdk_version, sandbox=settings.provider_sandbox
            ),
            provider_timeout=settings.provider_timeout_seconds,
        ),
        background=background,
    )

    logger.info(
        "context_built",
        merchant_id=store.merchant_id,
        version=store.version,
        testnet=flags.testnet_only,
    )
    return AppContext(
        settings=settings,
        storage=storage,
        store=store,
        toggles=toggles,
        security_guard=security_guard,
        rate_limiter=rate_limiter,
        audit_trail=audit_trail,
        error_trail=error_trail,
        orchestrator=orchestrator,
        background=background,
        mirror=mirror,
    )


def bootstrap(provider: PaymentProvider, settings: Settings | None = None) -> AppContext:
    """Process entry point: configure logging once, then wire a production context."""
    settings = settings or get_settings()
    setup_logging(settings)
    return build_context(provider, settings=settings)
