from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from flashpay_core.domain.exceptions import InvalidPaymentIdError

MAX_LENGTH = 100


@dataclass(frozen=True, slots=True)
class PaymentId:
    """Value object for payment identifiers.

    Identifiers are opaque strings, usually issued by the payment provider:
      - Non-blank
      - At most 100 characters
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidPaymentIdError("Payment ID is required")

        if len(self.value) > MAX_LENGTH:
            raise InvalidPaymentIdError("Payment ID is invalid")

    @classmethod
    def generate(cls) -> PaymentId:
        """Generate a new unique PaymentId."""
        return cls(value=str(uuid4()))

    def __str__(self) -> str:
        return self.value
