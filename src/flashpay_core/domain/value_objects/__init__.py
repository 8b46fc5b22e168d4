"""Value objects - Immutable objects defined by their attributes."""

from flashpay_core.domain.value_objects.amount import Amount
from flashpay_core.domain.value_objects.note import Note
from flashpay_core.domain.value_objects.payment_id import PaymentId
from flashpay_core.domain.value_objects.tracking_id import MerchantId, TrackingId

__all__ = [
    "Amount",
    "MerchantId",
    "Note",
    "PaymentId",
    "TrackingId",
]
