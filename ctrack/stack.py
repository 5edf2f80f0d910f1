"""Bounded last-in, first-out stack."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class Stack(Generic[T]):
    """A stack that holds at most ``max_elems`` items."""

    def __init__(self, max_elems: int) -> None:
        if max_elems < 0:
            raise ValueError("max_elems must not be negative")
        self.max_elems = max_elems
        self._items: list[T] = []

    def push(self, item: T) -> None:
        """Put ``item`` on top of the stack; raise OverflowError when full."""
        if len(self._items) >= self.max_elems:
            raise OverflowError("stack is full")
        self._items.append(item)

    def pop(self) -> T:
        """Remove and return the top item; raise IndexError when empty."""
        if not self._items:
            raise IndexError("pop from empty stack")
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)