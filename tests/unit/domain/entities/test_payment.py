"""Tests for the Payment entity lifecycle.

Tests cover:
- Factory validation
- Valid and invalid status transitions
- PAID stamping and terminality
- Immutability
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from flashpay_core.domain.entities import Payment, PaymentStatus
from flashpay_core.domain.exceptions import (
    InvalidAmountError,
    InvalidNoteError,
    InvalidPaymentIdError,
    InvalidStatusTransitionError,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def pending(now: datetime) -> Payment:
    return Payment.create("pay-1", "merchant_a", 5, "coffee", now)


# =============================================================================
# Factory
# =============================================================================


class TestPaymentCreate:
    def test_create_returns_pending_payment(self, pending: Payment, now: datetime) -> None:
        assert pending.status == PaymentStatus.PENDING
        assert pending.amount == Decimal("5")
        assert pending.merchant_id == "merchant_a"
        assert pending.created_at == now
        assert pending.paid_at is None
        assert pending.txid is None

    def test_create_rejects_invalid_amount(self, now: datetime) -> None:
        with pytest.raises(InvalidAmountError):
            Payment.create("pay-1", "merchant_a", 0, "", now)

    def test_create_rejects_invalid_note(self, now: datetime) -> None:
        with pytest.raises(InvalidNoteError):
            Payment.create("pay-1", "merchant_a", 1, "x" * 501, now)

    def test_create_rejects_blank_id(self, now: datetime) -> None:
        with pytest.raises(InvalidPaymentIdError):
            Payment.create(" ", "merchant_a", 1, "", now)


# =============================================================================
# Transitions
# =============================================================================


class TestPaymentTransitions:
    @pytest.mark.parametrize(
        "target", [PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED]
    )
    def test_pending_can_move_to_any_final_status(
        self, pending: Payment, now: datetime, target: PaymentStatus
    ) -> None:
        assert pending.transition_to(target, now).status == target

    def test_paid_stamps_paid_at_and_txid(self, pending: Payment, now: datetime) -> None:
        later = now + timedelta(minutes=1)

        paid = pending.transition_to(PaymentStatus.PAID, later, txid="abc")

        assert paid.paid_at == later
        assert paid.txid == "abc"

    def test_failed_payment_can_be_retried_to_paid(self, pending: Payment, now: datetime) -> None:
        failed = pending.transition_to(PaymentStatus.FAILED, now)

        assert failed.is_retryable
        assert failed.transition_to(PaymentStatus.PAID, now, "tx").is_paid

    def test_cancelled_payment_can_be_retried(self, pending: Payment, now: datetime) -> None:
        cancelled = pending.transition_to(PaymentStatus.CANCELLED, now)

        assert cancelled.transition_to(PaymentStatus.FAILED, now).status == PaymentStatus.FAILED

    @pytest.mark.parametrize(
        "target",
        [PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.PENDING],
    )
    def test_paid_is_terminal(self, pending: Payment, now: datetime, target: PaymentStatus) -> None:
        paid = pending.transition_to(PaymentStatus.PAID, now, "tx")

        with pytest.raises(InvalidStatusTransitionError):
            paid.transition_to(target, now)

    def test_nothing_returns_to_pending(self, pending: Payment, now: datetime) -> None:
        failed = pending.transition_to(PaymentStatus.FAILED, now)

        assert not failed.can_transition_to(PaymentStatus.PENDING)
        with pytest.raises(InvalidStatusTransitionError):
            failed.transition_to(PaymentStatus.PENDING, now)

    def test_transition_returns_new_instance(self, pending: Payment, now: datetime) -> None:
        paid = pending.transition_to(PaymentStatus.PAID, now, "tx")

        assert pending.status == PaymentStatus.PENDING
        assert paid is not pending


class TestPaymentImmutability:
    def test_fields_cannot_be_assigned(self, pending: Payment) -> None:
        with pytest.raises(FrozenInstanceError):
            pending.amount = Decimal("10")  # type: ignore[misc]
