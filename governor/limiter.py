"""The rate limiter that ties a quota, a state store, a clock and middleware together."""

from __future__ import annotations

import copy
from typing import Any, Generic, TypeVar

from governor.clock import Clock, DefaultClock
from governor.gcra import Gcra
from governor.middleware import NoOpMiddleware, RateLimitingMiddleware
from governor.nanos import Nanos
from governor.quota import Quota

__all__ = ["RateLimiter"]

S = TypeVar("S")


def _as_middleware(middleware: Any) -> RateLimitingMiddleware:
    if middleware is None:
        return NoOpMiddleware()
    if isinstance(middleware, type) and issubclass(middleware, RateLimitingMiddleware):
        return middleware()
    if isinstance(middleware, RateLimitingMiddleware):
        return middleware
    raise TypeError(f"not a rate-limiting middleware: {middleware!r}")


class RateLimiter(Generic[S]):
    """A rate limiter built from its components.

    ``state`` is the store that keeps rate-limiting state, ``clock`` the
    time source (the default monotonic clock if omitted) and
    ``middleware`` decides what decisions return (a
    :class:`~governor.middleware.NoOpMiddleware` if omitted). The limiter's
    start is the clock's reading at construction time.
    """

    def __init__(
        self,
        quota: Quota,
        state: S,
        clock: Clock | None = None,
        middleware: RateLimitingMiddleware | type[RateLimitingMiddleware] | None = None,
    ) -> None:
        self._gcra = Gcra(quota)
        self._state = state
        self._clock = clock if clock is not None else DefaultClock()
        self._start = self._clock.now()
        self._middleware = _as_middleware(middleware)

    @property
    def quota(self) -> Quota:
        """The quota this limiter enforces."""
        return Quota.from_gcra_parameters(self._gcra.t, self._gcra.tau)

    @property
    def gcra(self) -> Gcra:
        """The decision parameters derived from the quota."""
        return self._gcra

    @property
    def clock(self) -> Clock:
        """The time source of this limiter."""
        return self._clock

    @property
    def start(self) -> Nanos:
        """The clock reading taken when the limiter was created."""
        return self._start

    @property
    def middleware(self) -> RateLimitingMiddleware:
        """The middleware that shapes decision outcomes."""
        return self._middleware

    def with_middleware(
        self, middleware: RateLimitingMiddleware | type[RateLimitingMiddleware]
    ) -> RateLimiter[S]:
        """A limiter sharing this one's state, clock and start, with other middleware."""
        other = copy.copy(self)
        other._middleware = _as_middleware(middleware)
        return other

    def into_state_store(self) -> S:
        """The state store backing this limiter."""
        return self._state

    def reference_reading(self) -> Nanos:
        """A reference reading of the clock at the start of an operation."""
        return self._clock.reference_point()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(quota={self.quota!r}, state={self._state!r}, "
            f"clock={self._clock!r}, start={self._start!r}, "
            f"middleware={self._middleware!r})"
        )