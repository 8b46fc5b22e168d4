"""Domain entities - Objects with identity and lifecycle."""

from flashpay_core.domain.entities.analytics import (
    GlobalAnalytics,
    MerchantAnalytics,
    PaymentStats,
)
from flashpay_core.domain.entities.feature_domain import DomainState, FeatureDomain
from flashpay_core.domain.entities.merchant import (
    MerchantContext,
    Session,
    Theme,
    UIState,
    WalletStatus,
)
from flashpay_core.domain.entities.payment import Payment, PaymentStatus
from flashpay_core.domain.entities.snapshot import LedgerSnapshot, StateSection

__all__ = [
    "DomainState",
    "FeatureDomain",
    "GlobalAnalytics",
    "LedgerSnapshot",
    "MerchantAnalytics",
    "MerchantContext",
    "Payment",
    "PaymentStats",
    "PaymentStatus",
    "Session",
    "StateSection",
    "Theme",
    "UIState",
    "WalletStatus",
]
