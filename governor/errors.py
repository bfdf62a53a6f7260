"""Errors raised by rate limiters."""

from __future__ import annotations


class InsufficientCapacity(Exception):
    """The number of cells asked for exceeds the bucket's capacity.

    Such a request can never conform. ``capacity`` is the largest number of
    cells that could ever be let through at once.
    """

    def __init__(self, capacity: int) -> None:
        super().__init__(capacity)
        self.capacity = capacity

    def __str__(self) -> str:
        return f"required number of cells {self.capacity} exceeds bucket's capacity"

    def __repr__(self) -> str:
        return f"InsufficientCapacity({self.capacity})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InsufficientCapacity):
            return NotImplemented
        return self.capacity == other.capacity

    def __hash__(self) -> int:
        return hash((InsufficientCapacity, self.capacity))