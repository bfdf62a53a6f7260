"""Customisable behaviour for rate-limiting decisions.

Middleware does not change whether a decision is positive or negative; it
chooses what is handed back. ``allow`` gives the value returned for a
positive decision. ``disallow`` gives the exception raised for a negative
one, so it must return an exception instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from governor.nanos import Nanos
from governor.outcomes import NotUntil, StateSnapshot

__all__ = [
    "RateLimitingMiddleware",
    "NoOpMiddleware",
    "StateInformationMiddleware",
]


def _require_snapshot(state: Any) -> StateSnapshot:
    if not isinstance(state, StateSnapshot):
        raise TypeError(f"expected a StateSnapshot, got {type(state).__name__}")
    return state


class RateLimitingMiddleware(ABC):
    """Defines the values produced by rate-limiting decisions."""

    @abstractmethod
    def allow(self, key: Any, state: StateSnapshot) -> Any:
        """Called on a positive decision; the result is returned to the caller.

        ``state`` reflects the limiter *after* the decision.
        """

    @abstractmethod
    def disallow(self, key: Any, state: StateSnapshot, start_time: Nanos) -> BaseException:
        """Called on a negative decision; the returned exception is raised."""

    def __repr__(self) -> str:
        return type(self).__name__


class NoOpMiddleware(RateLimitingMiddleware):
    """Returns ``None`` when allowed and raises :class:`NotUntil` when denied."""

    def allow(self, key: Any, state: StateSnapshot) -> None:
        _require_snapshot(state)

    def disallow(self, key: Any, state: StateSnapshot, start_time: Nanos) -> NotUntil:
        return NotUntil(_require_snapshot(state), start_time)


class StateInformationMiddleware(RateLimitingMiddleware):
    """Returns the :class:`StateSnapshot` when allowed and raises :class:`NotUntil` when denied."""

    def allow(self, key: Any, state: StateSnapshot) -> StateSnapshot:
        return _require_snapshot(state)

    def disallow(self, key: Any, state: StateSnapshot, start_time: Nanos) -> NotUntil:
        return NotUntil(_require_snapshot(state), start_time)