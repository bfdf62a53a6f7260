"""What a rate limiter reports about a decision: state snapshots and denials."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from governor.jitter import Jitter
from governor.nanos import Nanos
from governor.quota import Quota

__all__ = ["StateSnapshot", "NotUntil"]


@dataclass(frozen=True)
class StateSnapshot:
    """The rate-limiting state that was used to reach a decision.

    ``t`` is the weight of a single cell in time, ``tau`` the burst
    capacity, ``time_of_measurement`` when the decision was made and
    ``tat`` the theoretical arrival time of the next cell, both relative to
    the limiter's start.
    """

    t: Nanos
    tau: Nanos
    time_of_measurement: Nanos
    tat: Nanos

    def __post_init__(self) -> None:
        for name in ("t", "tau", "time_of_measurement", "tat"):
            object.__setattr__(self, name, Nanos(getattr(self, name)))

    def quota(self) -> Quota:
        """The quota used to make the decision."""
        return Quota.from_gcra_parameters(self.t, self.tau)

    def remaining_burst_capacity(self) -> int:
        """Cells that could pass in addition to a (possible) positive outcome.

        For a snapshot taken on a negative decision this is zero.
        """
        t0 = self.time_of_measurement + self.t
        headroom = (t0 + self.tau).saturating_sub(self.tat)
        return int(min(headroom, self.tau)) // int(self.t)


class NotUntil(Exception):
    """A negative rate-limiting decision.

    Tells when the caller can next expect a positive decision.
    """

    def __init__(self, state: StateSnapshot, start: int | timedelta) -> None:
        self.state = state
        self.start = Nanos(start)
        super().__init__(state, self.start)

    def earliest_possible(self) -> Nanos:
        """The earliest time at which a decision could conform."""
        return self.start + self.state.tat

    def wait_time_from(self, from_: int | timedelta) -> Nanos:
        """How long after ``from_`` a decision could conform; zero if already past."""
        earliest = self.earliest_possible()
        return earliest.duration_since(min(earliest, Nanos(from_)))

    def quota(self) -> Quota:
        """The quota used to reach the decision."""
        return self.state.quota()

    def earliest_possible_with_offset(self, jitter: Jitter) -> Nanos:
        """Like :meth:`earliest_possible`, lengthened by a draw of ``jitter``."""
        return self.start + jitter.apply(self.state.tat)

    def wait_time_with_offset(self, from_: int | timedelta, jitter: Jitter) -> Nanos:
        """Like :meth:`wait_time_from`, lengthened by a draw of ``jitter``."""
        earliest = self.earliest_possible_with_offset(jitter)
        return earliest.duration_since(min(earliest, Nanos(from_)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NotUntil):
            return NotImplemented
        return self.state == other.state and self.start == other.start

    def __hash__(self) -> int:
        return hash((NotUntil, self.state, self.start))

    def __str__(self) -> str:
        return f"rate-limited until {self.earliest_possible()!r}"

    def __repr__(self) -> str:
        return f"NotUntil(state={self.state!r}, start={self.start!r})"