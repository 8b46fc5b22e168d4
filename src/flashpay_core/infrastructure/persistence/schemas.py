"""Wire models for the two storage buckets.

Every bucket carries schema_version. Unknown fields are ignored so an
older build can still read what a newer one wrote.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from flashpay_core.domain.entities import (
    DomainState,
    GlobalAnalytics,
    LedgerSnapshot,
    MerchantAnalytics,
    MerchantContext,
    Payment,
    PaymentStatus,
    Session,
    Theme,
    UIState,
    WalletStatus,
)
from flashpay_core.domain.entities.snapshot import SCHEMA_VERSION


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PaymentRecord(_Record):
    id: str
    merchant_id: str
    amount: Decimal
    note: str = ""
    status: PaymentStatus
    created_at: datetime
    paid_at: datetime | None = None
    txid: str | None = None

    @classmethod
    def from_entity(cls, payment: Payment) -> PaymentRecord:
        return cls(
            id=payment.id,
            merchant_id=payment.merchant_id,
            amount=payment.amount,
            note=payment.note,
            status=payment.status,
            created_at=payment.created_at,
            paid_at=payment.paid_at,
            txid=payment.txid,
        )

    def to_entity(self) -> Payment:
        return Payment(
            id=self.id,
            merchant_id=self.merchant_id,
            amount=self.amount,
            note=self.note,
            status=self.status,
            created_at=self.created_at,
            paid_at=self.paid_at,
            txid=self.txid,
        )


class DomainStateRecord(_Record):
    master_enabled: bool = False
    domains: dict[str, bool] = Field(default_factory=dict)


class MerchantRecord(_Record):
    merchant_id: str = ""
    setup_complete: bool = False
    external_identity: str | None = None
    wallet_address: str | None = None
    connected_at: datetime | None = None


class SessionRecord(_Record):
    authenticated: bool = False
    merchant_id: str = ""
    last_activity: datetime
    user_id: str | None = None
    username: str | None = None


class WalletRecord(_Record):
    connected: bool = False
    sdk_available: bool = False
    initialized: bool = False
    last_checked: datetime


class UIRecord(_Record):
    theme: Theme = Theme.LIGHT
    sidebar_open: bool = False
    last_visited_route: str = "/"


class MerchantAnalyticsRecord(_Record):
    merchant_id: str
    total_payments: int = 0
    paid_payments: int = 0
    total_amount: Decimal = Decimal("0")
    first_payment_at: datetime | None = None
    last_payment_at: datetime | None = None


class GlobalAnalyticsRecord(_Record):
    total_merchants: int = 0
    total_payments: int = 0
    total_volume: Decimal = Decimal("0")
    active_merchants: int = 0
    merchant_analytics: list[MerchantAnalyticsRecord] = Field(default_factory=list)


class MerchantBucket(_Record):
    """Stored under "{prefix}_merchant_{merchant_id}_data"."""

    schema_version: int = SCHEMA_VERSION
    merchant_id: str
    last_updated: int = 0
    payments: list[PaymentRecord] = Field(default_factory=list)


class GlobalBucket(_Record):
    """Stored under "{prefix}_unified_state". payments is always empty."""

    schema_version: int = SCHEMA_VERSION
    last_updated: int = 0
    payments: list[PaymentRecord] = Field(default_factory=list)
    domain_state: DomainStateRecord = Field(default_factory=DomainStateRecord)
    merchant: MerchantRecord = Field(default_factory=MerchantRecord)
    session: SessionRecord
    wallet: WalletRecord
    ui: UIRecord = Field(default_factory=UIRecord)
    owner_analytics: GlobalAnalyticsRecord = Field(default_factory=GlobalAnalyticsRecord)

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> GlobalBucket:
        analytics = snapshot.owner_analytics
        return cls(
            schema_version=snapshot.schema_version,
            last_updated=snapshot.last_updated,
            domain_state=DomainStateRecord(
                master_enabled=snapshot.domain_state.master_enabled,
                domains=dict(snapshot.domain_state.domains),
            ),
            merchant=MerchantRecord(**_fields(snapshot.merchant)),
            session=SessionRecord(**_fields(snapshot.session)),
            wallet=WalletRecord(**_fields(snapshot.wallet)),
            ui=UIRecord(**_fields(snapshot.ui)),
            owner_analytics=GlobalAnalyticsRecord(
                total_merchants=analytics.total_merchants,
                total_payments=analytics.total_payments,
                total_volume=analytics.total_volume,
                active_merchants=analytics.active_merchants,
                merchant_analytics=[
                    MerchantAnalyticsRecord(**_fields(m)) for m in analytics.merchant_analytics
                ],
            ),
        )

    def to_snapshot(self) -> LedgerSnapshot:
        analytics = self.owner_analytics
        return LedgerSnapshot(
            payments=(),
            domain_state=DomainState(
                master_enabled=self.domain_state.master_enabled,
                domains=dict(self.domain_state.domains),
            ),
            merchant=MerchantContext(**self.merchant.model_dump()),
            session=Session(**self.session.model_dump()),
            wallet=WalletStatus(**self.wallet.model_dump()),
            ui=UIState(**self.ui.model_dump()),
            owner_analytics=GlobalAnalytics(
                total_merchants=analytics.total_merchants,
                total_payments=analytics.total_payments,
                total_volume=analytics.total_volume,
                active_merchants=analytics.active_merchants,
                merchant_analytics=tuple(
                    MerchantAnalytics(**m.model_dump()) for m in analytics.merchant_analytics
                ),
            ),
            last_updated=self.last_updated,
            schema_version=self.schema_version,
        )


def _fields(obj: object) -> dict[str, object]:
    return {name: getattr(obj, name) for name in obj.__dataclass_fields__}  # type: ignore[attr-defined]
