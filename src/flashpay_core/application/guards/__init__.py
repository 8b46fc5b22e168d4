"""Guard layer - Independent policy checks and their composition."""

from flashpay_core.application.guards.chain import GuardChain, rate_limit_step, validation_step
from flashpay_core.application.guards.rate_limiter import RateLimiter
from flashpay_core.application.guards.security_guard import OperationalFlags, SecurityGuard
from flashpay_core.application.guards.validators import (
    validate_amount,
    validate_note,
    validate_payment_id,
)

__all__ = [
    "GuardChain",
    "OperationalFlags",
    "RateLimiter",
    "SecurityGuard",
    "rate_limit_step",
    "validate_amount",
    "validate_note",
    "validate_payment_id",
    "validation_step",
]
