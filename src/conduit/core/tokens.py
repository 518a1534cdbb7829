# src/conduit/core/tokens.py
"""Token tree: the data model of a graph description.

A token is either a leaf MethodToken (one task invocation) or a composite
SequenceToken / ParallelToken holding an ordered tuple of at least two child
tokens. Tokens are frozen and compare by value, so identical descriptions
are equal no matter how they were built or parsed.

Graphs built by chaining ``.foo().sequence()`` are left-deep and can be
thousands of levels tall. Everything here that walks a tree (equality,
hashing, traversal) uses an explicit stack instead of recursion.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias

from conduit.contracts.errors import TokenStructureError
from conduit.contracts.types import TaskName

MIN_CHILDREN = 2


@dataclass(frozen=True, slots=True)
class MethodToken:
    """Invocation of a registered task.

    Attributes:
        name: Registered task name
        args: Opaque payload handed to the implementation
        label: Accumulator key for the result; a generated id is used when None
    """

    TAG: ClassVar[str] = "method"

    name: TaskName
    args: Any = None
    label: str | None = None


@dataclass(frozen=True, slots=True, eq=False)
class _CompositeToken:
    children: tuple[Token, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if len(self.children) < MIN_CHILDREN:
            raise TokenStructureError(
                f"{type(self).__name__} needs at least {MIN_CHILDREN} children, got {len(self.children)}"
            )

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return _same_tree(self, other)  # type: ignore[arg-type]

    def __hash__(self) -> int:
        return hash(
            tuple(node if isinstance(node, MethodToken) else (node.TAG, len(node.children)) for node in walk_postfix(self))  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True, eq=False)
class SequenceToken(_CompositeToken):
    """Children run one after another, left to right."""

    TAG: ClassVar[str] = "seq"


@dataclass(frozen=True, slots=True, eq=False)
class ParallelToken(_CompositeToken):
    """Children start together; the node completes when all of them have."""

    TAG: ClassVar[str] = "par"


Token: TypeAlias = MethodToken | SequenceToken | ParallelToken


def _same_tree(left: Token, right: Token) -> bool:
    pairs: list[tuple[Token, Token]] = [(left, right)]
    while pairs:
        a, b = pairs.pop()
        if a is b:
            continue
        if type(a) is not type(b):
            return False
        if isinstance(a, _CompositeToken) and isinstance(b, _CompositeToken):
            if len(a.children) != len(b.children):
                return False
            pairs.extend(zip(a.children, b.children, strict=True))
        elif a != b:
            return False
    return True


def walk_postfix(token: Token) -> Iterator[Token]:
    """Yield every node after its children, children left to right.

    This is the order the builder creates them in: replaying it through
    invoke/sequence/parallel rebuilds the tree.
    """
    pending: list[tuple[Token, bool]] = [(token, False)]
    while pending:
        node, expanded = pending.pop()
        if isinstance(node, MethodToken) or expanded:
            yield node
            continue
        pending.append((node, True))
        pending.extend((child, False) for child in reversed(node.children))


def iter_methods(token: Token) -> Iterator[MethodToken]:
    """Yield method tokens depth-first, left to right."""
    for node in walk_postfix(token):
        if isinstance(node, MethodToken):
            yield node


def task_names_used(token: Token) -> set[str]:
    return {method.name for method in iter_methods(token)}


def find_duplicate_labels(tokens: Iterable[Token]) -> list[str]:
    """Labels used by more than one method token, sorted.

    Static counterpart of the check the fold executor enforces lazily.
    Unlabelled methods never collide (they receive generated ids).
    """
    counts = Counter(
        method.label for token in tokens for method in iter_methods(token) if method.label is not None
    )
    return sorted(label for label, count in counts.items() if count > 1)
