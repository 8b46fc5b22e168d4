"""Payment entity with lifecycle behavior.

A payment request is issued by a merchant and settled by a payer through
the external wallet provider.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from flashpay_core.domain.exceptions import InvalidStatusTransitionError
from flashpay_core.domain.value_objects import Amount, Note, PaymentId

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal


class PaymentStatus(Enum):
    """Payment lifecycle states."""

    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True, slots=True)
class Payment:
    """Payment entity with lifecycle behavior.

    Payment is immutable (frozen dataclass). All state-changing methods
    return a new Payment instance; id, merchant_id and amount never change.

    Lifecycle:
        - pending → paid | failed | cancelled
        - failed | cancelled → paid | failed | cancelled (payer retries)
        - paid is terminal (no further transitions)
        - nothing returns to pending
    """

    id: str
    merchant_id: str
    amount: Decimal
    note: str
    status: PaymentStatus
    created_at: datetime
    paid_at: datetime | None = None
    txid: str | None = None

    @classmethod
    def create(
        cls,
        payment_id: str,
        merchant_id: str,
        amount: object,
        note: str,
        created_at: datetime,
    ) -> Payment:
        """Factory method to create a PENDING Payment with validation.

        Raises:
            InvalidPaymentIdError: If payment_id is blank or too long.
            InvalidAmountError: If amount breaks the amount rules.
            InvalidNoteError: If note is not a string or too long.
        """
        return cls(
            id=PaymentId(payment_id).value,
            merchant_id=merchant_id,
            amount=Amount.of(amount).value,
            note=Note(note).value,
            status=PaymentStatus.PENDING,
            created_at=created_at,
        )

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID

    @property
    def is_retryable(self) -> bool:
        return self.status in (PaymentStatus.FAILED, PaymentStatus.CANCELLED)

    def can_transition_to(self, status: PaymentStatus) -> bool:
        if self.status == PaymentStatus.PAID:
            return False
        return status != PaymentStatus.PENDING

    def transition_to(
        self,
        status: PaymentStatus,
        now: datetime,
        txid: str | None = None,
    ) -> Payment:
        """Move the payment to a new status.

        Args:
            status: Target status.
            now: Current timestamp (UTC), stamped as paid_at on PAID.
            txid: Blockchain transaction id, recorded on PAID.

        Returns:
            New Payment instance in the target status.

        Raises:
            InvalidStatusTransitionError: If the payment is PAID or the
                target is PENDING.
        """
        if not self.can_transition_to(status):
            raise InvalidStatusTransitionError(
                f"Cannot move payment {self.id} from {self.status.value} to {status.value}"
            )

        if status == PaymentStatus.PAID:
            return replace(self, status=status, paid_at=now, txid=txid)

        return replace(self, status=status)
