"""The Generic Cell Rate Algorithm that makes rate-limiting decisions."""

from __future__ import annotations

import operator
from typing import Any, Callable, Protocol, TypeVar

from governor.errors import InsufficientCapacity
from governor.middleware import RateLimitingMiddleware
from governor.nanos import Nanos
from governor.outcomes import StateSnapshot
from governor.quota import Quota

__all__ = ["Gcra"]

T = TypeVar("T")


class _StateStore(Protocol):
    def measure_and_replace(
        self, key: Any, f: Callable[[Nanos | None], tuple[T, Nanos | None]]
    ) -> T: ...


def _raise_denial(outcome: object) -> None:
    if not isinstance(outcome, BaseException):
        raise TypeError(
            f"middleware disallow() must return an exception, got {outcome!r}"
        )
    raise outcome


class Gcra:
    """Decision parameters derived from a quota.

    ``t`` is the weight of a single cell in time and ``tau`` the burst
    capacity of the bucket.
    """

    __slots__ = ("t", "tau")

    def __init__(self, quota: Quota) -> None:
        self.t = quota.replenish_interval()
        self.tau = self.t * quota.burst_size()

    def starting_state(self, t0: int) -> Nanos:
        """The state of a bucket first measured at ``t0``."""
        return Nanos(t0) + self.t

    def _decide(
        self,
        start: Nanos,
        key: Any,
        state: _StateStore,
        t0: Nanos,
        weight: Nanos,
        middleware: RateLimitingMiddleware,
    ) -> Any:
        t, tau = self.t, self.tau

        def decide(tat: Nanos | None) -> tuple[Any, Nanos]:
            current = self.starting_state(t0) if tat is None else tat
            earliest_time = (current + weight).saturating_sub(tau)
            if t0 < earliest_time:
                snapshot = StateSnapshot(t, tau, earliest_time, earliest_time)
                _raise_denial(middleware.disallow(key, snapshot, start))
            following = max(current, t0) + t + weight
            snapshot = StateSnapshot(t, tau, t0, following)
            return middleware.allow(key, snapshot), following

        return state.measure_and_replace(key, decide)

    def test_and_update(
        self,
        start: int,
        key: Any,
        state: _StateStore,
        t0: int,
        middleware: RateLimitingMiddleware,
    ) -> Any:
        """Test a single cell at time ``t0`` and update the state at ``key``.

        Returns what the middleware allows; raises what it disallows.
        """
        start = Nanos(start)
        relative = Nanos(t0).duration_since(start)
        return self._decide(start, key, state, relative, Nanos(0), middleware)

    def test_n_all_and_update(
        self,
        start: int,
        key: Any,
        n: int,
        state: _StateStore,
        t0: int,
        middleware: RateLimitingMiddleware,
    ) -> Any:
        """Test whether all ``n`` cells fit at time ``t0``, updating the state if so.

        Raises :class:`InsufficientCapacity` if ``n`` cells can never fit.
        """
        count = operator.index(n)
        if count < 1:
            raise ValueError(f"number of cells must be positive, got {count}")
        additional_weight = self.t * (count - 1)
        if additional_weight + self.t > self.tau:
            raise InsufficientCapacity(int(self.tau) // int(self.t))
        start = Nanos(start)
        relative = Nanos(t0).duration_since(start)
        return self._decide(start, key, state, relative, additional_weight, middleware)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gcra):
            return NotImplemented
        return (self.t, self.tau) == (other.t, other.tau)

    def __hash__(self) -> int:
        return hash((Gcra, self.t, self.tau))

    def __repr__(self) -> str:
        return f"Gcra(t={self.t!r}, tau={self.tau!r})"