"""The in-memory ledger and its synchronization with other contexts.

LedgerStore is the only component that mutates state. Every mutation
replaces the immutable snapshot, schedules one debounced durable write
and notifies subscribers synchronously. Snapshots written by other
contexts are applied with last-writer-wins on the snapshot version.

Versioning uses a hybrid logical clock: a write stamps
max(previous + 1, now_ms), and applying a remote snapshot adopts its
version. A context whose wall clock lags still produces versions that
win over everything it has already observed.
"""

from __future__ import annotations

import hashlib
import hmac
from collections import defaultdict
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import structlog

from flashpay_core.application.write_buffer import DEFAULT_DELAY_MS, WriteBuffer
from flashpay_core.domain.entities import GlobalAnalytics, LedgerSnapshot, Payment, StateSection
from flashpay_core.domain.entities.analytics import compute_global_analytics, compute_payment_stats
from flashpay_core.domain.exceptions import (
    ConflictError,
    InvalidStatusTransitionError,
    PersistenceError,
)
from flashpay_core.domain.value_objects import MerchantId, PaymentId

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from flashpay_core.application.ports import LedgerPersistence, Scheduler, TimeProvider
    from flashpay_core.domain.entities import (
        DomainState,
        MerchantContext,
        PaymentStats,
        PaymentStatus,
        Session,
        UIState,
        WalletStatus,
    )

logger = structlog.get_logger(__name__)

Subscriber = Callable[[], None]

_DATA_SECTIONS = tuple(s for s in StateSection if s is not StateSection.ALL)


class LedgerStore:
    """Single source of truth for one context.

    Args:
        persistence: Two-tier durable storage shared with other contexts.
        scheduler: Drives the write debounce.
        time_provider: Clock for timestamps and versions.
        debounce_ms: Write debounce window.
        owner_secret: Secret unlocking the cross-merchant analytics;
            owner access is impossible when None.
        sdk_available: Initial wallet SDK availability.
    """

    def __init__(
        self,
        persistence: LedgerPersistence,
        scheduler: Scheduler,
        time_provider: TimeProvider,
        debounce_ms: int = DEFAULT_DELAY_MS,
        owner_secret: str | None = None,
        sdk_available: bool = False,
    ) -> None:
        self._persistence = persistence
        self._time_provider = time_provider
        self._owner_secret = owner_secret
        self._subscribers: dict[StateSection, list[Subscriber]] = defaultdict(list)
        self._buffer = WriteBuffer(self._write_now, scheduler, debounce_ms)

        self._state = self._rehydrate(sdk_available)
        self._owner_authenticated = self._has_owner_grant()
        self._unsubscribe_remote = persistence.subscribe(self.apply_remote_snapshot)

    # =========================================================================
    # State access
    # =========================================================================

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._state

    @property
    def version(self) -> int:
        return self._state.last_updated

    @property
    def merchant_id(self) -> str:
        """The active merchant: the session's, else the merchant context's."""
        return self._state.active_merchant_id

    @property
    def merchant(self) -> MerchantContext:
        return self._state.merchant

    @property
    def session(self) -> Session:
        return self._state.session

    @property
    def wallet(self) -> WalletStatus:
        return self._state.wallet

    @property
    def ui(self) -> UIState:
        return self._state.ui

    @property
    def domain_state(self) -> DomainState:
        return self._state.domain_state

    @property
    def has_pending_write(self) -> bool:
        return self._buffer.has_pending

    # =========================================================================
    # Payments
    # =========================================================================

    def create(
        self,
        amount: object,
        note: str,
        payment_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Payment:
        """Create a PENDING payment for the active merchant.

        A duplicate id returns the existing record unchanged.

        Raises:
            ValidationError: If amount, note or payment_id are invalid.
            ConflictError: If the id is already used by another merchant.
        """
        new_id = payment_id or PaymentId.generate().value
        existing = self._find(new_id)
        if existing is not None:
            if existing.merchant_id != self.merchant_id:
                raise ConflictError("Payment ID is already in use")
            logger.warning("payment_already_exists", payment_id=new_id)
            return existing

        payment = Payment.create(
            payment_id=new_id,
            merchant_id=self.merchant_id,
            amount=amount,
            note=note,
            created_at=created_at or self._time_provider.now(),
        )
        self._commit_payments((payment, *self._state.payments))

        logger.info(
            "payment_created",
            payment_id=payment.id,
            merchant_id=payment.merchant_id,
            amount=str(payment.amount),
        )
        return payment

    def add(self, payment: Payment) -> bool:
        """Import an existing record (backend fetch, local cache).

        Returns False without mutation if the id is already present.
        """
        if self._find(payment.id) is not None:
            logger.warning("payment_already_exists", payment_id=payment.id)
            return False

        self._commit_payments((payment, *self._state.payments))
        logger.info("payment_imported", payment_id=payment.id, merchant_id=payment.merchant_id)
        return True

    def get(self, payment_id: str) -> Payment | None:
        payment = self._find(payment_id)
        if payment is None:
            return None

        if payment.merchant_id != self.merchant_id:
            logger.warning(
                "cross_merchant_access_blocked",
                payment_id=payment_id,
                owner=payment.merchant_id,
                requester=self.merchant_id,
            )
            return None

        return payment

    def list(self) -> list[Payment]:
        """The active merchant's payments, newest first."""
        merchant_id = self.merchant_id
        own = [p for p in self._state.payments if p.merchant_id == merchant_id]
        return sorted(own, key=lambda p: p.created_at, reverse=True)

    def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        txid: str | None = None,
    ) -> bool:
        """Transition a payment; False without mutation when refused.

        Refused when the payment is missing or foreign, already PAID, or
        the transition is otherwise invalid.
        """
        payment = self.get(payment_id)
        if payment is None:
            logger.warning("payment_not_found", payment_id=payment_id)
            return False

        if payment.is_paid:
            logger.warning("guard_blocked", check="double_payment", payment_id=payment_id)
            return False

        try:
            updated = payment.transition_to(status, self._time_provider.now(), txid)
        except InvalidStatusTransitionError as e:
            logger.warning("invalid_status_transition", payment_id=payment_id, error=str(e))
            return False

        self._commit_payments(
            tuple(updated if p.id == payment_id else p for p in self._state.payments)
        )
        logger.info(
            "payment_status_updated",
            payment_id=payment_id,
            previous=payment.status.value,
            status=status.value,
        )
        return True

    def stats(self) -> PaymentStats:
        return compute_payment_stats(self.list())

    def clear_payments(self) -> None:
        """Remove the active merchant's payments; other merchants keep theirs."""
        merchant_id = self.merchant_id
        remaining = tuple(p for p in self._state.payments if p.merchant_id != merchant_id)
        removed = len(self._state.payments) - len(remaining)
        self._commit_payments(remaining)
        logger.info("payments_cleared", merchant_id=merchant_id, removed=removed)

    # =========================================================================
    # Session, merchant, wallet and UI sections
    # =========================================================================

    def update_session(self, **changes: Any) -> None:
        session = replace(self._state.session, **changes, last_activity=self._time_provider.now())
        self._commit(replace(self._state, session=session), StateSection.SESSION)

    def update_wallet_status(self, **changes: Any) -> None:
        wallet = replace(self._state.wallet, **changes, last_checked=self._time_provider.now())
        self._commit(replace(self._state, wallet=wallet), StateSection.WALLET)

    def update_ui_state(self, **changes: Any) -> None:
        self._commit(replace(self._state, ui=replace(self._state.ui, **changes)), StateSection.UI)

    def update_merchant_state(self, **changes: Any) -> None:
        """Raises ValueError on an attempt to change merchant_id."""
        if "merchant_id" in changes:
            raise ValueError("merchant_id cannot be changed")
        merchant = replace(self._state.merchant, **changes)
        self._commit(replace(self._state, merchant=merchant), StateSection.MERCHANT)

    def complete_merchant_setup(self, identity: str, wallet_address: str | None = None) -> None:
        """Mark setup done and bind the session to this context's merchant."""
        now = self._time_provider.now()
        merchant = replace(
            self._state.merchant,
            setup_complete=True,
            external_identity=identity,
            wallet_address=wallet_address,
            connected_at=now,
        )
        session = replace(
            self._state.session,
            authenticated=True,
            merchant_id=merchant.merchant_id,
            username=identity,
            last_activity=now,
        )
        self._commit(
            replace(self._state, merchant=merchant, session=session),
            StateSection.MERCHANT,
            StateSection.SESSION,
        )
        logger.info("merchant_setup_complete", merchant_id=merchant.merchant_id, identity=identity)

    def set_domain_state(self, domain_state: DomainState) -> None:
        self._commit(replace(self._state, domain_state=domain_state), StateSection.DOMAIN_STATE)

    # =========================================================================
    # Owner analytics
    # =========================================================================

    @property
    def is_owner_authenticated(self) -> bool:
        return self._owner_authenticated

    def authenticate_owner(self, secret: str) -> bool:
        if self._owner_secret is None or not hmac.compare_digest(
            secret.encode(), self._owner_secret.encode()
        ):
            logger.warning("owner_auth_failed")
            return False

        self._owner_authenticated = True
        try:
            self._persistence.save_owner_grant(_grant_for(self._owner_secret))
        except PersistenceError as e:
            logger.error("owner_grant_save_failed", error=str(e))

        logger.info("owner_authenticated")
        return True

    def global_analytics(self) -> GlobalAnalytics:
        if not self._owner_authenticated:
            return GlobalAnalytics()
        return self._state.owner_analytics

    def all_payments_across_merchants(self) -> list[Payment]:
        if not self._owner_authenticated:
            return []
        return sorted(self._state.payments, key=lambda p: p.created_at, reverse=True)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, topic: StateSection, callback: Subscriber) -> Callable[[], None]:
        """Call callback after every mutation of topic; returns an unsubscribe."""
        self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers[topic]:
                self._subscribers[topic].remove(callback)

        return unsubscribe

    # =========================================================================
    # Synchronization
    # =========================================================================

    def apply_remote_snapshot(self, incoming: LedgerSnapshot) -> bool:
        """Last-writer-wins merge of a snapshot written by another context.

        Returns True if the snapshot was applied. Stale or equal versions
        are discarded.
        """
        local_version = self._state.last_updated
        if incoming.last_updated <= local_version:
            logger.info(
                "sync_stale_snapshot_ignored",
                incoming=incoming.last_updated,
                local=local_version,
            )
            return False

        payments = self._load_payments(incoming.active_merchant_id)
        # Unflushed local changes are superseded by the newer snapshot
        self._buffer.cancel()
        self._state = replace(incoming, payments=payments)

        logger.info(
            "sync_snapshot_applied",
            version=incoming.last_updated,
            previous=local_version,
            payments=len(payments),
        )
        self._notify(_DATA_SECTIONS)
        return True

    def flush(self) -> None:
        """Write any pending change now."""
        self._buffer.flush()

    def reset(self) -> None:
        """Restore defaults with a fresh merchant id."""
        fresh = LedgerSnapshot.default(self._time_provider.now(), self._state.wallet.sdk_available)
        self._commit(replace(fresh, last_updated=self._state.last_updated), *_DATA_SECTIONS)
        logger.info("ledger_reset", merchant_id=fresh.merchant.merchant_id)

    def close(self) -> None:
        self._buffer.flush()
        self._unsubscribe_remote()

    # =========================================================================
    # Internals
    # =========================================================================

    def _find(self, payment_id: str) -> Payment | None:
        return next((p for p in self._state.payments if p.id == payment_id), None)

    def _commit_payments(self, payments: tuple[Payment, ...]) -> None:
        self._commit(
            replace(
                self._state,
                payments=payments,
                owner_analytics=compute_global_analytics(payments),
            ),
            StateSection.PAYMENTS,
            StateSection.OWNER_ANALYTICS,
        )

    def _commit(self, state: LedgerSnapshot, *sections: StateSection) -> None:
        self._state = state
        self._buffer.schedule()
        self._notify(sections)

    def _notify(self, sections: Iterable[StateSection]) -> None:
        for section in (*sections, StateSection.ALL):
            for callback in list(self._subscribers[section]):
                try:
                    callback()
                except Exception:
                    logger.exception("subscriber_failed", topic=section.value)

    def _write_now(self) -> None:
        version = max(self._state.last_updated + 1, self._time_provider.now_millis())
        self._state = replace(self._state, last_updated=version)
        try:
            self._persistence.save(self._state)
        except PersistenceError as e:
            logger.error("snapshot_save_failed", version=version, error=str(e))
            return
        logger.debug("snapshot_saved", version=version, merchant_id=self.merchant_id)

    def _rehydrate(self, sdk_available: bool) -> LedgerSnapshot:
        now = self._time_provider.now()
        default = LedgerSnapshot.default(now, sdk_available)

        try:
            stored = self._persistence.load_snapshot()
        except PersistenceError as e:
            logger.error("rehydrate_failed", error=str(e))
            return default

        if stored is None:
            logger.info("rehydrate_empty", merchant_id=default.merchant.merchant_id)
            return default

        merchant = stored.merchant
        if not merchant.merchant_id:
            merchant = replace(merchant, merchant_id=MerchantId.generate(now).value)
            logger.info("rehydrate_merchant_id_backfilled", merchant_id=merchant.merchant_id)

        session = stored.session
        if not session.merchant_id:
            session = replace(session, merchant_id=merchant.merchant_id)

        state = replace(
            stored,
            merchant=merchant,
            session=session,
            wallet=replace(stored.wallet, sdk_available=sdk_available),
        )
        payments = self._load_payments(state.active_merchant_id)
        logger.info(
            "rehydrate_complete",
            merchant_id=state.active_merchant_id,
            version=state.last_updated,
            payments=len(payments),
        )
        return replace(state, payments=payments)

    def _load_payments(self, merchant_id: str) -> tuple[Payment, ...]:
        try:
            return self._persistence.load_payments(merchant_id)
        except PersistenceError as e:
            logger.error("payments_load_failed", merchant_id=merchant_id, error=str(e))
            return ()

    def _has_owner_grant(self) -> bool:
        if self._owner_secret is None:
            return False
        try:
            grant = self._persistence.load_owner_grant()
        except PersistenceError as e:
            logger.error("owner_grant_load_failed", error=str(e))
            return False
        return grant is not None and hmac.compare_digest(grant, _grant_for(self._owner_secret))


def _grant_for(secret: str) -> str:
    return hashlib.sha256(secret.encode()).hexdigest()
