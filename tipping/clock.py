"""Wall-clock sources. All timestamps are naive UTC, matching the stored columns."""

from datetime import datetime, timedelta
from typing import Protocol

from tipping.models import to_naive_utc, utcnow


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Current UTC time."""

    def now(self) -> datetime:
        return utcnow()


class ManualClock:
    """
    Clock that only moves when told to.

    Usage:
        clock = ManualClock(datetime(2026, 3, 1, 15, 0))
        clock.advance(minutes=25)
    """

    def __init__(self, start: datetime):
        self._now = to_naive_utc(start)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = to_naive_utc(value)

    def advance(self, **delta) -> datetime:
        """Move forward by timedelta keyword arguments; returns the new time."""
        step = timedelta(**delta)
        if step < timedelta(0):
            raise ValueError("ManualClock cannot move backward")
        self._now = self._now + step
        return self._now
