"""Nanosecond time values used for durations and clock readings."""

from __future__ import annotations

import operator
from datetime import timedelta

_U64_MAX = 2**64 - 1

_UNITS = (
    (1_000_000_000, 9, "s"),
    (1_000_000, 6, "ms"),
    (1_000, 3, "µs"),
)


def _format_duration(value: int) -> str:
    for unit_ns, digits, suffix in _UNITS:
        if value >= unit_ns:
            whole, frac = divmod(value, unit_ns)
            frac_text = f"{frac:0{digits}d}".rstrip("0")
            if frac_text:
                return f"{whole}.{frac_text}{suffix}"
            return f"{whole}{suffix}"
    return f"{value}ns"


class Nanos(int):
    """A non-negative number of nanoseconds, either a span or a point on a clock.

    Values must fit into an unsigned 64-bit integer (about 584 years).
    Arithmetic between ``Nanos`` values stays within ``Nanos``; results
    that would be negative or too large raise.
    """

    __slots__ = ()

    def __new__(cls, value: int | timedelta = 0) -> Nanos:
        if isinstance(value, timedelta):
            value = (
                (value.days * 86_400 + value.seconds) * 1_000_000_000
                + value.microseconds * 1_000
            )
        else:
            value = operator.index(value)
        if value < 0:
            raise ValueError(f"nanoseconds can not be negative: {value}")
        if value > _U64_MAX:
            raise OverflowError("Duration is longer than 584 years")
        return super().__new__(cls, value)

    @classmethod
    def from_secs(cls, secs: int) -> Nanos:
        """Whole seconds as nanoseconds."""
        return cls(operator.index(secs) * 1_000_000_000)

    @classmethod
    def from_millis(cls, millis: int) -> Nanos:
        """Whole milliseconds as nanoseconds."""
        return cls(operator.index(millis) * 1_000_000)

    @classmethod
    def from_micros(cls, micros: int) -> Nanos:
        """Whole microseconds as nanoseconds."""
        return cls(operator.index(micros) * 1_000)

    def saturating_sub(self, other: int | timedelta) -> Nanos:
        """Subtract, stopping at zero instead of going negative."""
        return Nanos(max(int(self) - int(Nanos(other)), 0))

    def duration_since(self, earlier: int | timedelta) -> Nanos:
        """The time separating ``earlier`` from this reading, or zero if it lies later."""
        return self.saturating_sub(earlier)

    def total_seconds(self) -> float:
        """This value in (fractional) seconds."""
        return int(self) / 1_000_000_000

    def __add__(self, other: object) -> Nanos:
        if isinstance(other, (int, timedelta)):
            return Nanos(int(self) + int(Nanos(other)))
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: object) -> Nanos:
        if isinstance(other, (int, timedelta)):
            return Nanos(int(self) - int(Nanos(other)))
        return NotImplemented

    def __mul__(self, other: object) -> Nanos:
        if isinstance(other, int) and not isinstance(other, bool):
            return Nanos(int(self) * int(other))
        return NotImplemented

    __rmul__ = __mul__

    def __floordiv__(self, other: object) -> int | Nanos:
        if isinstance(other, Nanos):
            return int(self) // int(other)
        if isinstance(other, int) and not isinstance(other, bool):
            return Nanos(int(self) // other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Nanos({_format_duration(int(self))})"

    __str__ = __repr__