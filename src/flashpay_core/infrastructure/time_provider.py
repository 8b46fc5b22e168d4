from datetime import UTC, datetime, timedelta

from flashpay_core.application.ports import TimeProvider


class SystemTimeProvider(TimeProvider):
    """Wall-clock time provider."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedTimeProvider(TimeProvider):
    """Test clock that only moves when told to.

    Rate-limit windows and snapshot versions read this clock, so tests
    step through them with advance() instead of sleeping.
    """

    def __init__(self, fixed_time: datetime) -> None:
        self._validate_utc(fixed_time)
        self._fixed_time = fixed_time

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, new_time: datetime) -> None:
        self._validate_utc(new_time)
        self._fixed_time = new_time

    def advance(self, *, milliseconds: int = 0, seconds: float = 0) -> datetime:
        """Move the clock forward and return the new time."""
        if milliseconds < 0 or seconds < 0:
            raise ValueError("FixedTimeProvider cannot move backwards via advance()")
        self._fixed_time += timedelta(milliseconds=milliseconds, seconds=seconds)
        return self._fixed_time

    def _validate_utc(self, dt: datetime) -> None:
        if dt.tzinfo is not UTC:
            raise ValueError(f"datetime must have tzinfo=UTC, got tzinfo={dt.tzinfo}")
