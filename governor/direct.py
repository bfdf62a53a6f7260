"""Direct rate limiters: a single rate-limiting state for everything."""

from __future__ import annotations

import asyncio
from typing import Any

from governor.clock import Clock
from governor.jitter import Jitter
from governor.limiter import RateLimiter
from governor.middleware import RateLimitingMiddleware
from governor.outcomes import NotUntil
from governor.quota import Quota
from governor.store import InMemoryState, NotKeyed

__all__ = ["DirectRateLimiter", "DefaultDirectRateLimiter", "direct"]


class DirectRateLimiter(RateLimiter[InMemoryState]):
    """A rate limiter that keeps one state, e.g. for a single connection.

    ``check`` and ``check_n`` return what the middleware allows and raise
    what it disallows (:class:`~governor.outcomes.NotUntil` by default).
    """

    def __init__(
        self,
        quota: Quota,
        clock: Clock | None = None,
        *,
        state: Any = None,
        middleware: RateLimitingMiddleware | type[RateLimitingMiddleware] | None = None,
    ) -> None:
        super().__init__(
            quota, InMemoryState() if state is None else state, clock, middleware
        )

    def check(self) -> Any:
        """Let a single cell through, or raise the negative outcome."""
        return self._gcra.test_and_update(
            self._start, NotKeyed.NON_KEY, self._state, self._clock.now(), self._middleware
        )

    def check_n(self, n: int) -> Any:
        """Let all ``n`` cells through at once, or none of them.

        Raises :class:`~governor.errors.InsufficientCapacity` if ``n`` cells
        could never fit, and the negative outcome if they do not fit now.
        """
        return self._gcra.test_n_all_and_update(
            self._start,
            NotKeyed.NON_KEY,
            n,
            self._state,
            self._clock.now(),
            self._middleware,
        )

    async def until_ready(self, jitter: Jitter | None = None) -> Any:
        """Wait until a single cell is let through, sleeping as the limiter advises."""
        jitter = Jitter.NONE if jitter is None else jitter
        while True:
            try:
                return self.check()
            except NotUntil as negative:
                wait = jitter.apply(negative.wait_time_from(self._clock.now()))
                await asyncio.sleep(wait.total_seconds())

    async def until_n_ready(self, n: int, jitter: Jitter | None = None) -> Any:
        """Wait until all ``n`` cells are let through at once.

        Raises :class:`~governor.errors.InsufficientCapacity` if they never can be.
        """
        jitter = Jitter.NONE if jitter is None else jitter
        while True:
            try:
                return self.check_n(n)
            except NotUntil as negative:
                wait = jitter.apply(negative.wait_time_from(self._clock.now()))
                await asyncio.sleep(wait.total_seconds())


DefaultDirectRateLimiter = DirectRateLimiter


def direct(quota: Quota, clock: Clock | None = None) -> DirectRateLimiter:
    """An in-memory direct rate limiter, on the default clock unless one is given."""
    return DirectRateLimiter(quota, clock)