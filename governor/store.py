"""In-memory state stores for rate limiters.

A state store keeps the theoretical arrival time of the next cell, in
nanoseconds since the rate limiter was created. Zero means "no state yet".

Updates go through a decision function ``f``. It receives the current
state (``None`` when there is none) and returns a pair
``(result, new_state)``. When ``new_state`` is ``None`` the state is left
as it was; otherwise it is replaced. The ``result`` is handed back to the
caller. Exceptions raised by ``f`` propagate and leave the state unchanged.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

from governor.nanos import Nanos

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

Decision = Callable[["Nanos | None"], "tuple[T, Nanos | None]"]


class NotKeyed(enum.Enum):
    """The key used by state stores that hold only one state."""

    NON_KEY = enum.auto()


class InMemoryState:
    """A single rate-limiting state, safe to update from several threads."""

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0) -> None:
        self._value = Nanos(value)
        self._lock = threading.Lock()

    @property
    def tat(self) -> Nanos | None:
        """The stored theoretical arrival time, or ``None`` if there is none."""
        return self._value or None

    def measure_and_replace_one(self, f: Decision[T]) -> T:
        """Run ``f`` on the current state and store its new state atomically."""
        with self._lock:
            result, new_state = f(self.tat)
            if new_state is not None:
                self._value = Nanos(new_state)
            return result

    def measure_and_replace(self, key: object, f: Decision[T]) -> T:
        """Same as :meth:`measure_and_replace_one`; the key is ignored."""
        return self.measure_and_replace_one(f)

    def is_older_than(self, nanos: int) -> bool:
        """Whether the stored state lies at or before ``nanos``."""
        return self._value <= Nanos(nanos)

    def __repr__(self) -> str:
        return f"InMemoryState({self._value!r})"


class HashMapStateStore(Generic[K]):
    """One :class:`InMemoryState` per key, guarded by a lock."""

    def __init__(self) -> None:
        self._states: dict[K, InMemoryState] = {}
        self._lock = threading.Lock()

    def measure_and_replace(self, key: K, f: Decision[T]) -> T:
        """Update the state at ``key``, creating it if it does not exist."""
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = self._states.setdefault(key, InMemoryState())
            return state.measure_and_replace_one(f)

    def retain_recent(self, drop_below: int) -> None:
        """Drop every key whose state lies at or before ``drop_below``."""
        limit = Nanos(drop_below)
        with self._lock:
            self._states = {
                key: state
                for key, state in self._states.items()
                if not state.is_older_than(limit)
            }

    def shrink_to_fit(self) -> None:
        """Release storage held for removed keys."""
        with self._lock:
            self._states = dict(self._states)

    def keys(self) -> list[K]:
        """A snapshot of the keys currently stored."""
        with self._lock:
            return list(self._states)

    def is_empty(self) -> bool:
        """Whether no keys are stored."""
        return len(self) == 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._states

    def __repr__(self) -> str:
        with self._lock:
            return f"HashMapStateStore({self._states!r})"