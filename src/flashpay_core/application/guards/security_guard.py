from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.dtos import GuardResult
from flashpay_core.domain.exceptions import (
    FeatureDisabledError,
    GuardDeniedError,
    MaintenanceModeError,
    WalletUnavailableError,
)
from flashpay_core.domain.value_objects import TrackingId

if TYPE_CHECKING:
    from flashpay_core.application.feature_toggle import FeatureToggle
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.application.ports import TimeProvider

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OperationalFlags:
    """Switches that turn individual guards on or off."""

    testnet_only: bool = True
    require_wallet: bool = True
    require_domain_enabled: bool = True
    require_master_enabled: bool = False  # the master toggle never blocks core operations
    enable_rate_limiting: bool = True
    enable_audit_logging: bool = True


class SecurityGuard:
    """Wallet, domain and master-switch checks.

    Every check returns a GuardResult with its own tracking id and never
    raises. A check whose flag is off always passes.
    """

    def __init__(
        self,
        store: LedgerStore,
        toggles: FeatureToggle,
        time_provider: TimeProvider,
        flags: OperationalFlags | None = None,
    ) -> None:
        self._store = store
        self._toggles = toggles
        self._time_provider = time_provider
        self._flags = flags or OperationalFlags()

    @property
    def flags(self) -> OperationalFlags:
        return self._flags

    def check_wallet(self) -> GuardResult:
        if not self._flags.require_wallet:
            return self._passed()

        wallet = self._store.wallet
        if not wallet.sdk_available:
            return self._blocked(
                "wallet",
                WalletUnavailableError(
                    "Wallet SDK is not available. Please open this app in the wallet browser."
                ),
            )

        if not wallet.connected:
            return self._blocked(
                "wallet",
                WalletUnavailableError(
                    "Wallet is not connected. Please connect your wallet to continue."
                ),
            )

        logger.debug("guard_passed", check="wallet")
        return self._passed()

    def check_domain_access(self, domain_id: str) -> GuardResult:
        if not self._flags.require_domain_enabled:
            return self._passed()

        if not self._toggles.is_domain_enabled(domain_id):
            return self._blocked(
                "domain",
                FeatureDisabledError(
                    f"This service ({domain_id}) is currently disabled. Please contact support."
                ),
            )

        logger.debug("guard_passed", check="domain", domain_id=domain_id)
        return self._passed()

    def check_master_toggle(self) -> GuardResult:
        if not self._flags.require_master_enabled:
            return self._passed()

        if not self._toggles.is_master_enabled():
            return self._blocked(
                "master",
                MaintenanceModeError("System maintenance in progress. Please try again later."),
            )

        logger.debug("guard_passed", check="master")
        return self._passed()

    def pre_operation_check(self, operation: str, domain_id: str | None = None) -> GuardResult:
        """Master switch, then domain (when given), then wallet."""
        logger.info("pre_operation_check", operation=operation, testnet=self._flags.testnet_only)

        checks = [self.check_master_toggle]
        if domain_id is not None:
            checks.append(lambda: self.check_domain_access(domain_id))
        checks.append(self.check_wallet)

        for check in checks:
            result = check()
            if not result.passed:
                return result

        return self._passed()

    def _passed(self) -> GuardResult:
        return GuardResult(passed=True, tracking_id=TrackingId.generate(self._time_provider.now()).value)

    def _blocked(self, check: str, denial: GuardDeniedError) -> GuardResult:
        logger.warning("guard_blocked", check=check, reason=str(denial))
        return GuardResult(
            passed=False,
            reason=str(denial),
            kind=denial.kind,
            tracking_id=TrackingId.generate(self._time_provider.now()).value,
        )
