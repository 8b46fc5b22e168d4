from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


class TimeProvider(ABC):
    """Port for time operations.

    Contract:
    - now() MUST return a datetime with tzinfo=datetime.UTC
    - now() MUST NOT return naive datetimes under any circumstance

    Rate-limit windows, tracking ids and snapshot versions are all
    derived from now(), so tests control every clock through one object.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current UTC datetime (tzinfo=datetime.UTC)."""
        ...

    def now_millis(self) -> int:
        """Return now() as integer milliseconds since the epoch."""
        return int(self.now().timestamp() * 1000)
