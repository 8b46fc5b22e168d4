from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from flashpay_core.application.dtos import OperationResult
from flashpay_core.application.ports import ProviderConfig
from flashpay_core.application.use_cases.common import (
    DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    record_exception,
)
from flashpay_core.domain.exceptions import (
    ErrorKind,
    ProviderError,
    ProviderTimeoutError,
    WalletUnavailableError,
)

if TYPE_CHECKING:
    from flashpay_core.application.audit import AuditTrail, ErrorTrail
    from flashpay_core.application.ledger_store import LedgerStore
    from flashpay_core.application.ports import PaymentProvider, ProviderIdentity
    from flashpay_core.domain.entities import WalletStatus

logger = structlog.get_logger(__name__)

DEFAULT_SCOPES: tuple[str, ...] = ("username", "payments")


class MerchantSessionUseCase:
    """Wallet initialization and merchant sign-in through the provider."""

    def __init__(
        self,
        store: LedgerStore,
        provider: PaymentProvider,
        audit_trail: AuditTrail,
        error_trail: ErrorTrail,
        provider_config: ProviderConfig | None = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._provider = provider
        self._audit_trail = audit_trail
        self._error_trail = error_trail
        self._provider_config = provider_config or ProviderConfig()
        self._provider_timeout = provider_timeout

    async def initialize_wallet(self) -> OperationResult[WalletStatus]:
        """Initialize the provider SDK; wallet status is updated either way."""
        if not self._provider.is_available():
            self._store.update_wallet_status(sdk_available=False, initialized=False)
            return record_exception(
                self._error_trail,
                "initializeWallet",
                WalletUnavailableError(
                    "Wallet SDK is not available. Please open this app in the wallet browser."
                ),
            )

        try:
            await asyncio.wait_for(
                self._provider.init(self._provider_config),
                timeout=self._provider_timeout,
            )
        except TimeoutError:
            self._store.update_wallet_status(sdk_available=True, initialized=False)
            return record_exception(
                self._error_trail,
                "initializeWallet",
                ProviderTimeoutError("Wallet initialization timed out"),
            )
        except ProviderError as e:
            self._store.update_wallet_status(sdk_available=True, initialized=False)
            return record_exception(self._error_trail, "initializeWallet", e)

        self._store.update_wallet_status(sdk_available=True, initialized=True)
        logger.info("wallet_initialized", sandbox=self._provider_config.sandbox)
        return OperationResult.ok(self._store.wallet)

    async def authenticate_merchant(
        self,
        scopes: Sequence[str] = DEFAULT_SCOPES,
    ) -> OperationResult[ProviderIdentity]:
        """Sign the merchant in and bind the session to this context's merchant."""
        if not self._store.wallet.initialized:
            initialized = await self.initialize_wallet()
            if not initialized.success:
                return OperationResult.fail(
                    initialized.error or "Wallet initialization failed",
                    initialized.error_kind or ErrorKind.PROVIDER,
                    initialized.tracking_id or "",
                    initialized.provider_error_kind,
                )

        try:
            identity = await asyncio.wait_for(
                self._provider.authenticate(list(scopes)),
                timeout=self._provider_timeout,
            )
        except TimeoutError:
            return record_exception(
                self._error_trail,
                "authenticateMerchant",
                ProviderTimeoutError("Authentication timed out. Please try again."),
            )
        except ProviderError as e:
            return record_exception(self._error_trail, "authenticateMerchant", e)

        self._store.complete_merchant_setup(identity.username)
        self._store.update_session(user_id=identity.uid)
        self._store.update_wallet_status(connected=True)

        tracking_id = self._audit_trail.record(
            "authenticateMerchant",
            {"merchant_id": self._store.merchant_id, "username": identity.username},
        )
        return OperationResult.ok(identity, tracking_id=tracking_id)
