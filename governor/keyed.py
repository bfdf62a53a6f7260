"""Keyed rate limiters: one rate-limiting state per key under a shared quota."""

from __future__ import annotations

import asyncio
from collections.abc import Hashable
from typing import Any

from governor.clock import Clock
from governor.jitter import Jitter
from governor.limiter import RateLimiter
from governor.middleware import RateLimitingMiddleware
from governor.nanos import Nanos
from governor.outcomes import NotUntil
from governor.quota import Quota
from governor.store import HashMapStateStore

__all__ = ["KeyedRateLimiter", "DefaultKeyedRateLimiter", "keyed", "hashmap"]


class KeyedRateLimiter(RateLimiter[Any]):
    """A rate limiter keeping one state per key, e.g. one per API client.

    The check methods return what the middleware allows and raise what it
    disallows (:class:`~governor.outcomes.NotUntil` by default). Any store
    offering ``measure_and_replace(key, f)`` may be supplied as ``state``;
    housekeeping additionally needs ``retain_recent`` and ``len()``.
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
            quota, HashMapStateStore() if state is None else state, clock, middleware
        )

    def check_key_at(self, key: Hashable, now: int) -> Any:
        """Like :meth:`check_key`, measured at the clock reading ``now``."""
        return self._gcra.test_and_update(
            self._start, key, self._state, Nanos(now), self._middleware
        )

    def check_key(self, key: Hashable) -> Any:
        """Let a single cell through for ``key``, or raise the negative outcome."""
        return self.check_key_at(key, self._clock.now())

    def check_key_n_at(self, key: Hashable, n: int, now: int) -> Any:
        """Like :meth:`check_key_n`, measured at the clock reading ``now``."""
        return self._gcra.test_n_all_and_update(
            self._start, key, n, self._state, Nanos(now), self._middleware
        )

    def check_key_n(self, key: Hashable, n: int) -> Any:
        """Let all ``n`` cells through for ``key`` at once, or none of them.

        Raises :class:`~governor.errors.InsufficientCapacity` if ``n`` cells
        could never fit, and the negative outcome if they do not fit now.
        """
        return self.check_key_n_at(key, n, self._clock.now())

    def retain_recent(self) -> None:
        """Drop keys whose state is indistinguishable from a fresh one."""
        drop_below = self._clock.now().duration_since(self._start)
        self._state.retain_recent(drop_below)

    def shrink_to_fit(self) -> None:
        """Shrink the state store's storage, if the store supports it."""
        shrink = getattr(self._state, "shrink_to_fit", None)
        if shrink is not None:
            shrink()

    def is_empty(self) -> bool:
        """Whether the state store holds no keys."""
        check = getattr(self._state, "is_empty", None)
        if check is not None:
            return bool(check())
        return len(self) == 0

    def __len__(self) -> int:
        return len(self._state)

    async def until_key_ready(self, key: Hashable, jitter: Jitter | None = None) -> Any:
        """Wait until a single cell for ``key`` is let through."""
        jitter = Jitter.NONE if jitter is None else jitter
        while True:
            try:
                return self.check_key(key)
            except NotUntil as negative:
                wait = jitter.apply(negative.wait_time_from(self._clock.now()))
                await asyncio.sleep(wait.total_seconds())


DefaultKeyedRateLimiter = KeyedRateLimiter


def keyed(quota: Quota, clock: Clock | None = None) -> KeyedRateLimiter:
    """A keyed rate limiter on the default state store and clock."""
    return KeyedRateLimiter(quota, clock)


def hashmap(quota: Quota, clock: Clock | None = None) -> KeyedRateLimiter:
    """A keyed rate limiter explicitly backed by a :class:`HashMapStateStore`."""
    return KeyedRateLimiter(quota, clock, state=HashMapStateStore())