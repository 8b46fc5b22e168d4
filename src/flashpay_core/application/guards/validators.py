"""Pure per-field input validators.

Each function answers with a ValidationResult instead of raising, so the
guard chain can short-circuit on the first invalid field.
"""

from __future__ import annotations

from flashpay_core.application.dtos import ValidationResult
from flashpay_core.domain.exceptions import ValidationError
from flashpay_core.domain.value_objects import Amount, Note, PaymentId


def validate_amount(amount: object) -> ValidationResult:
    """Finite real number, 0 < amount <= 1,000,000, at most 7 decimals."""
    try:
        Amount.of(amount)
    except ValidationError as e:
        return ValidationResult(valid=False, error=str(e))
    return ValidationResult(valid=True)


def validate_note(note: object) -> ValidationResult:
    """String of at most 500 characters (empty is fine)."""
    try:
        Note(note)  # type: ignore[arg-type]
    except ValidationError as e:
        return ValidationResult(valid=False, error=str(e))
    return ValidationResult(valid=True)


def validate_payment_id(payment_id: object) -> ValidationResult:
    """Non-blank string of at most 100 characters."""
    try:
        PaymentId(payment_id)  # type: ignore[arg-type]
    except ValidationError as e:
        return ValidationResult(valid=False, error=str(e))
    return ValidationResult(valid=True)
