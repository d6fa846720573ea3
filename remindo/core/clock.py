"""Injectable sources of the current instant."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Anything able to report the current local wall-clock time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Naive local time straight from the operating system."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """A clock that only moves when told to.

    Used to drive the scanner and the calculator in tests without waiting on
    real time.
    """

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, **delta: float) -> datetime:
        """Move the clock forward by ``timedelta(**delta)`` and return the new instant."""

        step = timedelta(**delta)
        if step < timedelta(0):
            raise ValueError("FixedClock cannot move backwards")
        self._instant = self._instant + step
        return self._instant
