"""Rate-limiting quotas: how many cells, replenished how fast."""

from __future__ import annotations

import operator
import warnings
from dataclasses import dataclass
from datetime import timedelta

from governor.nanos import Nanos

_U32_MAX = 2**32 - 1

_SECOND = Nanos.from_secs(1)
_MINUTE = Nanos.from_secs(60)
_HOUR = Nanos.from_secs(60 * 60)


def _burst_size(value: int) -> int:
    burst = operator.index(value)
    if not 1 <= burst <= _U32_MAX:
        raise ValueError(f"burst size must lie between 1 and {_U32_MAX}, got {burst}")
    return burst


@dataclass(frozen=True)
class Quota:
    """A rate-limiting quota.

    A quota is a positive number of cells that may pass in one burst, and
    the time it takes to replenish a single cell.
    """

    max_burst: int
    replenish_1_per: Nanos

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_burst", _burst_size(self.max_burst))
        object.__setattr__(self, "replenish_1_per", Nanos(self.replenish_1_per))

    @classmethod
    def _per(cls, period: Nanos, max_burst: int) -> Quota:
        burst = _burst_size(max_burst)
        return cls(burst, Nanos(int(period) // burst))

    @classmethod
    def per_second(cls, max_burst: int) -> Quota:
        """``max_burst`` cells per second, with a burst size of ``max_burst``."""
        return cls._per(_SECOND, max_burst)

    @classmethod
    def per_minute(cls, max_burst: int) -> Quota:
        """``max_burst`` cells per minute, with a burst size of ``max_burst``."""
        return cls._per(_MINUTE, max_burst)

    @classmethod
    def per_hour(cls, max_burst: int) -> Quota:
        """``max_burst`` cells per hour, with a burst size of ``max_burst``."""
        return cls._per(_HOUR, max_burst)

    @classmethod
    def with_period(cls, replenish_1_per: int | timedelta) -> Quota:
        """One cell replenished per ``replenish_1_per``, with a burst size of one.

        Raises ``ValueError`` if the period is zero.
        """
        period = Nanos(replenish_1_per)
        if period == 0:
            raise ValueError("replenishment period must not be zero")
        return cls(1, period)

    @classmethod
    def new(cls, max_burst: int, replenish_all_per: int | timedelta) -> Quota:
        """A burst of ``max_burst`` cells, replenished entirely within ``replenish_all_per``.

        Deprecated: prefer the ``per_*`` and ``with_period`` constructors
        together with :meth:`allow_burst`. Raises ``ValueError`` if the
        period is zero.
        """
        warnings.warn(
            "Quota.new is often confusing; use the per_* / with_period "
            "constructors and allow_burst instead",
            DeprecationWarning,
            stacklevel=2,
        )
        period = Nanos(replenish_all_per)
        if period == 0:
            raise ValueError("replenishment period must not be zero")
        burst = _burst_size(max_burst)
        return cls(burst, Nanos(int(period) // burst))

    def allow_burst(self, max_burst: int) -> Quota:
        """A copy of this quota with a different maximum burst size."""
        return Quota(_burst_size(max_burst), self.replenish_1_per)

    def replenish_interval(self) -> Nanos:
        """Time to replenish a single cell."""
        return self.replenish_1_per

    def burst_size(self) -> int:
        """The maximum number of cells allowed in one burst."""
        return self.max_burst

    def burst_size_replenished_in(self) -> Nanos:
        """Time to replenish the entire burst size."""
        return self.replenish_1_per * self.max_burst

    @classmethod
    def from_gcra_parameters(cls, t: int, tau: int) -> Quota:
        """Rebuild a quota from a cell weight ``t`` and a burst capacity ``tau``."""
        weight = Nanos(t)
        return cls(int(Nanos(tau)) // int(weight), weight)