"""Tests for SecurityGuard and GuardChain.

Tests cover:
- Wallet, domain and master checks with their flags
- Pre-operation check ordering
- Chain short-circuiting and error trail recording
"""

import pytest

from flashpay_core.application.audit import AuditTrail, ErrorTrail
from flashpay_core.application.dtos import GuardResult, RateLimitConfig
from flashpay_core.application.feature_toggle import FeatureToggle
from flashpay_core.application.guards import (
    GuardChain,
    OperationalFlags,
    RateLimiter,
    SecurityGuard,
    rate_limit_step,
    validate_amount,
    validation_step,
)
from flashpay_core.application.ledger_store import LedgerStore
from flashpay_core.domain.exceptions import ErrorKind
from flashpay_core.infrastructure import FixedTimeProvider

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def toggles(store: LedgerStore, audit_trail: AuditTrail, error_trail: ErrorTrail) -> FeatureToggle:
    return FeatureToggle(store, audit_trail, error_trail)


@pytest.fixture
def guard(store: LedgerStore, toggles: FeatureToggle, time_provider: FixedTimeProvider) -> SecurityGuard:
    return SecurityGuard(store, toggles, time_provider)


@pytest.fixture
def connected_store(store: LedgerStore) -> LedgerStore:
    store.update_wallet_status(sdk_available=True, initialized=True, connected=True)
    return store


# =============================================================================
# Wallet Guard
# =============================================================================


class TestWalletGuard:
    def test_fails_without_sdk(self, guard: SecurityGuard) -> None:
        result = guard.check_wallet()

        assert result.passed is False
        assert result.kind == ErrorKind.GUARD_DENIED
        assert result.reason is not None
        assert result.reason.startswith("Wallet SDK is not available")
        assert result.tracking_id.startswith("TRK-")

    def test_fails_when_not_connected(self, store: LedgerStore, guard: SecurityGuard) -> None:
        store.update_wallet_status(sdk_available=True)

        result = guard.check_wallet()

        assert result.passed is False
        assert "not connected" in (result.reason or "")

    def test_passes_when_connected(self, connected_store: LedgerStore, guard: SecurityGuard) -> None:
        assert guard.check_wallet().passed is True

    def test_skipped_when_flag_is_off(
        self, store: LedgerStore, toggles: FeatureToggle, time_provider: FixedTimeProvider
    ) -> None:
        guard = SecurityGuard(store, toggles, time_provider, OperationalFlags(require_wallet=False))

        assert guard.check_wallet().passed is True


# =============================================================================
# Domain and Master Guards
# =============================================================================


class TestDomainGuard:
    def test_primary_domain_passes_even_with_master_off(self, guard: SecurityGuard) -> None:
        assert guard.check_domain_access("flashpay").passed is True

    def test_auxiliary_domain_fails_while_master_off(self, guard: SecurityGuard) -> None:
        result = guard.check_domain_access("pinet")

        assert result.passed is False
        assert "pinet" in (result.reason or "")

    def test_unknown_domain_fails(self, guard: SecurityGuard) -> None:
        assert guard.check_domain_access("nope").passed is False

    def test_skipped_when_flag_is_off(
        self, store: LedgerStore, toggles: FeatureToggle, time_provider: FixedTimeProvider
    ) -> None:
        guard = SecurityGuard(
            store, toggles, time_provider, OperationalFlags(require_domain_enabled=False)
        )

        assert guard.check_domain_access("pinet").passed is True


class TestMasterGuard:
    def test_non_blocking_by_default(self, guard: SecurityGuard) -> None:
        assert guard.check_master_toggle().passed is True

    def test_blocks_when_required_and_off(
        self, store: LedgerStore, toggles: FeatureToggle, time_provider: FixedTimeProvider
    ) -> None:
        guard = SecurityGuard(
            store, toggles, time_provider, OperationalFlags(require_master_enabled=True)
        )

        result = guard.check_master_toggle()

        assert result.passed is False
        assert "maintenance" in (result.reason or "")


class TestPreOperationCheck:
    def test_passes_with_connected_wallet(
        self, connected_store: LedgerStore, guard: SecurityGuard
    ) -> None:
        assert guard.pre_operation_check("createPayment", "flashpay").passed is True

    def test_domain_is_checked_before_wallet(self, guard: SecurityGuard) -> None:
        result = guard.pre_operation_check("createPayment", "pinet")

        assert "pinet" in (result.reason or "")

    def test_master_is_checked_first(
        self, store: LedgerStore, toggles: FeatureToggle, time_provider: FixedTimeProvider
    ) -> None:
        guard = SecurityGuard(
            store, toggles, time_provider, OperationalFlags(require_master_enabled=True)
        )

        result = guard.pre_operation_check("createPayment", "pinet")

        assert "maintenance" in (result.reason or "")


# =============================================================================
# Guard Chain
# =============================================================================


class TestGuardChain:
    def test_all_steps_pass(self, error_trail: ErrorTrail, time_provider: FixedTimeProvider) -> None:
        chain = GuardChain(
            "op",
            [validation_step(validate_amount, 5, time_provider)],
            error_trail,
            time_provider,
        )

        result = chain.run()

        assert result.passed is True
        assert len(error_trail) == 0

    def test_first_failure_short_circuits(
        self, error_trail: ErrorTrail, time_provider: FixedTimeProvider
    ) -> None:
        calls: list[str] = []

        def later_step() -> GuardResult:
            calls.append("later")
            return GuardResult(passed=True, tracking_id="TRK-x")

        chain = GuardChain(
            "createPayment",
            [validation_step(validate_amount, -1, time_provider), later_step],
            error_trail,
            time_provider,
        )

        result = chain.run({"amount": "-1"})

        assert result.passed is False
        assert result.kind == ErrorKind.VALIDATION
        assert calls == []

    def test_failure_is_recorded_once_with_returned_tracking_id(
        self, error_trail: ErrorTrail, time_provider: FixedTimeProvider
    ) -> None:
        chain = GuardChain(
            "createPayment",
            [validation_step(validate_amount, 0, time_provider)],
            error_trail,
            time_provider,
        )

        result = chain.run()

        assert len(error_trail) == 1
        entry = error_trail.get(result.tracking_id)
        assert entry is not None
        assert entry.operation == "createPayment"
        assert entry.message == result.reason

    def test_rate_limit_step_denies_after_budget(
        self, error_trail: ErrorTrail, time_provider: FixedTimeProvider
    ) -> None:
        limiter = RateLimiter(time_provider)
        step = rate_limit_step(limiter, "k", RateLimitConfig(1, 1000), time_provider)

        first = step()
        second = step()

        assert first.passed is True
        assert second.passed is False
        assert second.kind == ErrorKind.GUARD_DENIED
