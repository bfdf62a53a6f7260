"""Random deviation added to wait times."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import timedelta
from typing import ClassVar

from governor.nanos import Nanos


@dataclass(frozen=True)
class Jitter:
    """An interval ``[min, max)`` from which extra wait time is drawn.

    Adding jitter to waits keeps many tasks waiting on the same limiter
    from all waking up at once.
    """

    min: Nanos = Nanos(0)
    max: Nanos = Nanos(0)

    NONE: ClassVar[Jitter]

    def __post_init__(self) -> None:
        low = Nanos(self.min)
        high = Nanos(self.max)
        if low > high:
            raise ValueError(f"jitter minimum {low!r} exceeds maximum {high!r}")
        object.__setattr__(self, "min", low)
        object.__setattr__(self, "max", high)

    @classmethod
    def up_to(cls, max: int | timedelta) -> Jitter:
        """Jitter of at most ``max``."""
        return cls(Nanos(0), Nanos(max))

    @classmethod
    def new(cls, min: int | timedelta, interval: int | timedelta) -> Jitter:
        """Jitter of at least ``min`` and less than ``min + interval``."""
        low = Nanos(min)
        return cls(low, low + Nanos(interval))

    def get(self) -> Nanos:
        """Draw an amount of jitter from the interval."""
        if self.min == self.max:
            return self.min
        return Nanos(random.randrange(int(self.min), int(self.max)))

    def apply(self, duration: int | timedelta) -> Nanos:
        """Return ``duration`` lengthened by a random amount of jitter."""
        return Nanos(duration) + self.get()

    def __add__(self, other: object) -> Nanos:
        if isinstance(other, (int, timedelta)):
            return self.apply(other)
        return NotImplemented

    __radd__ = __add__


Jitter.NONE = Jitter()