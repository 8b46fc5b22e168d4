from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from flashpay_core.domain.exceptions import InvalidAmountError

MAX_AMOUNT = Decimal("1000000")
MAX_FRACTION_DIGITS = 7


@dataclass(frozen=True, slots=True)
class Amount:
    """Value object for payment amounts.

    Rules:
      - A real number (bool and str are rejected)
      - Finite
      - 0 < amount <= 1,000,000
      - At most 7 fractional digits, counted after normalization
        (floats are measured on their shortest repr, so 0.1 has one digit)
    """

    value: Decimal

    @classmethod
    def of(cls, raw: object) -> Amount:
        """Build an Amount from an int, float or Decimal.

        Raises:
            InvalidAmountError: If any rule above is violated.
        """
        value = _to_decimal(raw)

        if not value.is_finite():
            raise InvalidAmountError("Amount must be finite")

        if value <= 0:
            raise InvalidAmountError("Amount must be greater than zero")

        if value > MAX_AMOUNT:
            raise InvalidAmountError("Amount exceeds maximum limit (1,000,000)")

        if fraction_digits(value) > MAX_FRACTION_DIGITS:
            raise InvalidAmountError(
                f"Amount cannot have more than {MAX_FRACTION_DIGITS} decimal places"
            )

        return cls(value=value)

    def __str__(self) -> str:
        return str(self.value)


def fraction_digits(value: Decimal) -> int:
    exponent = value.normalize().as_tuple().exponent
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    return -exponent


def _to_decimal(raw: object) -> Decimal:
    if isinstance(raw, bool) or not isinstance(raw, (int, float, Decimal)):
        raise InvalidAmountError("Amount must be a valid number")

    if isinstance(raw, float):
        if math.isnan(raw):
            raise InvalidAmountError("Amount must be a valid number")
        if math.isinf(raw):
            raise InvalidAmountError("Amount must be finite")
        return Decimal(repr(raw))

    try:
        value = Decimal(raw)
    except InvalidOperation as e:
        raise InvalidAmountError("Amount must be a valid number") from e

    if value.is_nan():
        raise InvalidAmountError("Amount must be a valid number")
    return value
