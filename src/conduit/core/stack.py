# src/conduit/core/stack.py
"""Persistent (immutable, structurally shared) LIFO stack.

Every stack is a reference to its top node; each node owns a reference to
the rest of the stack. push() allocates one node and reuses the receiver as
its tail, pop() and peek() only follow references. Nothing is ever mutated,
so stacks that share a tail cannot observe each other.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class _Node(Generic[T]):
    value: T
    next: _Node[T] | None


class PersistentStack(Generic[T]):
    """Immutable singly linked stack.

    Example:
        empty = PersistentStack[int]()
        one = empty.push(1)
        two = one.push(2)

        assert two.peek() == 2
        assert two.pop() is not one  # new wrapper, same nodes
        assert list(two.pop()) == list(one) == [1]
        assert len(empty) == 0  # untouched by the pushes
    """

    __slots__ = ("_top",)

    def __init__(self, _top: _Node[T] | None = None) -> None:
        self._top = _top

    def push(self, value: T) -> PersistentStack[T]:
        return PersistentStack(_Node(value, self._top))

    def peek(self) -> T | None:
        """Top value, or None for the empty stack."""
        if self._top is None:
            return None
        return self._top.value

    def pop(self) -> PersistentStack[T]:
        """Stack without its top frame. Popping the empty stack returns it unchanged."""
        if self._top is None:
            return self
        return PersistentStack(self._top.next)

    @property
    def is_empty(self) -> bool:
        return self._top is None

    def __iter__(self) -> Iterator[T]:
        """Yield values from top to bottom."""
        node = self._top
        while node is not None:
            yield node.value
            node = node.next

    def __len__(self) -> int:
        # Counted by traversal: there is no cached size to keep consistent.
        return sum(1 for _ in self)

    def to_list(self) -> list[T]:
        return list(self)

    def __repr__(self) -> str:
        return f"PersistentStack({self.to_list()!r})"
