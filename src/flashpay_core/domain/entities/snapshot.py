"""The complete state of one context, as held in memory and persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from flashpay_core.domain.entities.analytics import GlobalAnalytics
from flashpay_core.domain.entities.feature_domain import DomainState
from flashpay_core.domain.entities.merchant import MerchantContext, Session, UIState, WalletStatus
from flashpay_core.domain.value_objects import MerchantId

if TYPE_CHECKING:
    from datetime import datetime

    from flashpay_core.domain.entities.payment import Payment

SCHEMA_VERSION = 1


class StateSection(Enum):
    """Subscription topics: one per top-level section, plus a wildcard."""

    PAYMENTS = "payments"
    DOMAIN_STATE = "domain_state"
    MERCHANT = "merchant"
    SESSION = "session"
    WALLET = "wallet"
    UI = "ui"
    OWNER_ANALYTICS = "owner_analytics"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Every state section plus its version metadata.

    last_updated is the version used for last-writer-wins reconciliation
    between contexts; it only ever grows within one context.
    """

    payments: tuple[Payment, ...]
    domain_state: DomainState
    merchant: MerchantContext
    session: Session
    wallet: WalletStatus
    ui: UIState = field(default_factory=UIState)
    owner_analytics: GlobalAnalytics = field(default_factory=GlobalAnalytics)
    last_updated: int = 0
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def default(cls, now: datetime, sdk_available: bool = False) -> LedgerSnapshot:
        """Fresh state for a context that has never persisted anything."""
        return cls(
            payments=(),
            domain_state=DomainState.default(),
            merchant=MerchantContext(merchant_id=MerchantId.generate(now).value),
            session=Session(authenticated=False, merchant_id="", last_activity=now),
            wallet=WalletStatus(
                connected=False,
                sdk_available=sdk_available,
                initialized=False,
                last_checked=now,
            ),
        )

    @property
    def active_merchant_id(self) -> str:
        return self.session.merchant_id or self.merchant.merchant_id
