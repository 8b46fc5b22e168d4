from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

_ALPHABET = string.digits + string.ascii_uppercase
_SUFFIX_LENGTH = 9


def random_suffix(length: int = _SUFFIX_LENGTH) -> str:
    """Random base36 (upper case) string used in generated identifiers."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass(frozen=True, slots=True)
class TrackingId:
    """Opaque correlation id attached to every audit and error entry.

    Format: TRK-{epoch_ms}-{9 random base36 chars}. Shown to end users
    so support can find the matching log entry.
    """

    value: str

    @classmethod
    def generate(cls, now: datetime) -> TrackingId:
        return cls(value=f"TRK-{epoch_millis(now)}-{random_suffix()}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class MerchantId:
    """Tenant identifier, generated once per merchant and never changed."""

    value: str

    @classmethod
    def generate(cls, now: datetime) -> MerchantId:
        return cls(value=f"merchant_{epoch_millis(now)}_{random_suffix().lower()}")

    def __str__(self) -> str:
        return self.value
