"""Aggregates computed from the ledger.

PaymentStats is the merchant-facing summary; GlobalAnalytics is the
owner-only cross-merchant view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from flashpay_core.domain.entities.payment import PaymentStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from flashpay_core.domain.entities.payment import Payment


@dataclass(frozen=True, slots=True)
class PaymentStats:
    total_payments: int
    paid_payments: int
    pending_payments: int
    failed_payments: int
    cancelled_payments: int
    total_amount: Decimal
    conversion_rate: float


@dataclass(frozen=True, slots=True)
class MerchantAnalytics:
    merchant_id: str
    total_payments: int = 0
    paid_payments: int = 0
    total_amount: Decimal = Decimal("0")
    first_payment_at: datetime | None = None
    last_payment_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class GlobalAnalytics:
    total_merchants: int = 0
    total_payments: int = 0
    total_volume: Decimal = Decimal("0")
    active_merchants: int = 0
    merchant_analytics: tuple[MerchantAnalytics, ...] = field(default_factory=tuple)


def compute_payment_stats(payments: Iterable[Payment]) -> PaymentStats:
    counts = dict.fromkeys(PaymentStatus, 0)
    total_amount = Decimal("0")

    for payment in payments:
        counts[payment.status] += 1
        if payment.status == PaymentStatus.PAID:
            total_amount += payment.amount

    total = sum(counts.values())
    paid = counts[PaymentStatus.PAID]

    return PaymentStats(
        total_payments=total,
        paid_payments=paid,
        pending_payments=counts[PaymentStatus.PENDING],
        failed_payments=counts[PaymentStatus.FAILED],
        cancelled_payments=counts[PaymentStatus.CANCELLED],
        total_amount=total_amount,
        conversion_rate=(paid / total * 100) if total > 0 else 0.0,
    )


def compute_global_analytics(payments: Iterable[Payment]) -> GlobalAnalytics:
    per_merchant: dict[str, MerchantAnalytics] = {}
    total_payments = 0

    for payment in payments:
        total_payments += 1
        current = per_merchant.get(payment.merchant_id) or MerchantAnalytics(
            merchant_id=payment.merchant_id
        )
        is_paid = payment.status == PaymentStatus.PAID

        per_merchant[payment.merchant_id] = MerchantAnalytics(
            merchant_id=payment.merchant_id,
            total_payments=current.total_payments + 1,
            paid_payments=current.paid_payments + (1 if is_paid else 0),
            total_amount=current.total_amount + (payment.amount if is_paid else 0),
            first_payment_at=_earliest(current.first_payment_at, payment.created_at),
            last_payment_at=_latest(current.last_payment_at, payment.created_at),
        )

    merchants = tuple(per_merchant.values())
    return GlobalAnalytics(
        total_merchants=len(merchants),
        total_payments=total_payments,
        total_volume=sum((m.total_amount for m in merchants), Decimal("0")),
        active_merchants=sum(1 for m in merchants if m.paid_payments > 0),
        merchant_analytics=merchants,
    )


def _earliest(current: datetime | None, candidate: datetime) -> datetime:
    return candidate if current is None or candidate < current else current


def _latest(current: datetime | None, candidate: datetime) -> datetime:
    return candidate if current is None or candidate > current else current
