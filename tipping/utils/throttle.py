"""Minimum-interval throttle for repeated background work.

Usage:
    throttle = Throttle(interval=5)

    if throttle.ready():
        throttle.mark()
        await do_work()

An interval of 0 disables throttling (ready() is always True).
"""

import time
from typing import Callable


class Throttle:
    """Tracks the last run and reports whether the interval has elapsed."""

    __slots__ = ("interval", "last_run", "_monotonic")

    def __init__(self, interval: float, monotonic: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.last_run: "float | None" = None
        self._monotonic = monotonic

    def ready(self) -> bool:
        if self.interval <= 0 or self.last_run is None:
            return True
        return self._monotonic() - self.last_run >= self.interval

    def mark(self) -> None:
        self.last_run = self._monotonic()

    def reset(self) -> None:
        self.last_run = None

    @property
    def age(self) -> "float | None":
        """Seconds since last mark, or None if never marked."""
        if self.last_run is None:
            return None
        return self._monotonic() - self.last_run
