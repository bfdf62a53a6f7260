"""Time sources for rate limiters.

Every clock reports its readings as :class:`~governor.nanos.Nanos`, so
readings can be compared, offset and subtracted in the same way regardless
of where they come from.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from datetime import timedelta

from governor.nanos import Nanos

__all__ = [
    "Clock",
    "FakeRelativeClock",
    "MonotonicClock",
    "SystemClock",
    "DefaultClock",
]


class Clock(ABC):
    """A time source used by rate limiters."""

    @abstractmethod
    def now(self) -> Nanos:
        """Return a reading of the clock."""

    def reference_point(self) -> Nanos:
        """Return a reference reading taken at the start of an operation."""
        return self.now()


class FakeRelativeClock(Clock):
    """A clock that only moves when told to.

    Every holder of the same instance sees the same time; advancing it is
    safe from several threads at once.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self) -> None:
        self._now = Nanos(0)
        self._lock = threading.Lock()

    def now(self) -> Nanos:
        return self._now

    def advance(self, by: int | timedelta) -> None:
        """Move the clock forward by ``by`` nanoseconds (or a timedelta)."""
        step = Nanos(by)
        with self._lock:
            self._now = self._now + step

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FakeRelativeClock):
            return NotImplemented
        return self.now() == other.now()

    def __repr__(self) -> str:
        return f"FakeRelativeClock(now={self._now!r})"


class MonotonicClock(Clock):
    """The monotonic clock of the running system."""

    def now(self) -> Nanos:
        return Nanos(time.monotonic_ns())

    def __repr__(self) -> str:
        return "MonotonicClock()"


class SystemClock(Clock):
    """The wall clock, which may jump when the system time is adjusted."""

    def now(self) -> Nanos:
        return Nanos(time.time_ns())

    def __repr__(self) -> str:
        return "SystemClock()"


DefaultClock = MonotonicClock