from __future__ import annotations

from dataclasses import dataclass

from flashpay_core.domain.exceptions import InvalidNoteError

MAX_LENGTH = 500


@dataclass(frozen=True, slots=True)
class Note:
    """Free-text memo attached to a payment request (at most 500 characters)."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise InvalidNoteError("Note must be a string")

        if len(self.value) > MAX_LENGTH:
            raise InvalidNoteError(f"Note cannot exceed {MAX_LENGTH} characters")
