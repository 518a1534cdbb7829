# src/conduit/core/conduit.py
"""Conduit: immutable, stack-backed builder for series-parallel task graphs.

Graphs are written in reverse-Polish style. Each registered task name is a
builder operation that pushes a MethodToken; sequence(n) and parallel(n) pop
the top n frames and push them back as a single composite token. A conduit
whose stack holds exactly one token is fully reduced: that token is the root
of a complete graph, ready to be merged into another conduit, serialized, or
bound to implementations and folded.

Example:
    c = new_instance(["fetch", "resize"])
    c = (
        c.fetch({"url": "a.png"}, "img")
        .resize({"width": 64}, "small")
        .resize({"width": 256}, "large")
        .parallel()
        .sequence()
    )
    # fetch, then both resizes concurrently
    future = c.bind_behavior(actions).fold()

Every operation returns a new Conduit. Reusing a fragment in several graphs
never has side effects because tokens and stack nodes are immutable.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import Future
from functools import partial
from itertools import islice
from types import MappingProxyType
from typing import Any

from conduit.contracts.errors import (
    InvalidTaskNamesError,
    MissingBehaviorError,
    NotEnoughFramesError,
    UnknownTaskError,
    UnresolvedGraphError,
)
from conduit.contracts.types import Accumulator, Behavior, Completion, TaskImpl, TaskName
from conduit.core.canonical import serialize
from conduit.core.stack import PersistentStack
from conduit.core.tokens import MIN_CHILDREN, MethodToken, ParallelToken, SequenceToken, Token, task_names_used

# Builder operations live in the same namespace as task names.
RESERVED_PREFIX = "__"


class Conduit:
    """Immutable graph builder.

    Use new_instance() or parse() to create one; the constructor does not
    validate task names.
    """

    __slots__ = ("_behavior", "_stack", "_task_names")

    def __init__(
        self,
        task_names: tuple[str, ...],
        stack: PersistentStack[Token] | None = None,
        behavior: Mapping[str, TaskImpl] | None = None,
    ) -> None:
        self._task_names = task_names
        self._stack: PersistentStack[Token] = stack if stack is not None else PersistentStack()
        self._behavior = behavior

    def _derive(self, stack: PersistentStack[Token]) -> Conduit:
        return Conduit(self._task_names, stack, self._behavior)

    # -------------------------------------------------------------------------
    # Builder operations
    # -------------------------------------------------------------------------

    def invoke(self, task_name: str, args: Any = None, label: str | None = None) -> Conduit:
        """Push a MethodToken for a registered task.

        ``conduit.foo(args, label)`` is shorthand for
        ``conduit.invoke("foo", args, label)``.

        Raises:
            UnknownTaskError: If task_name is not registered
        """
        if task_name not in self._task_names:
            raise UnknownTaskError(task_name, self._task_names)
        return self._derive(self._stack.push(MethodToken(TaskName(task_name), args, label)))

    def __getattr__(self, name: str) -> Callable[..., Conduit]:
        # Only reached when normal lookup fails, so operations always win.
        # The slot is unset while copy or pickle inspect a bare instance.
        try:
            task_names = object.__getattribute__(self, "_task_names")
        except AttributeError:
            raise AttributeError(name) from None
        if name in task_names:
            return partial(self.invoke, name)
        if name.startswith("_"):
            raise AttributeError(name)
        raise UnknownTaskError(name, task_names)

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._task_names})

    def sequence(self, n: int | None = None) -> Conduit:
        """Reduce the top max(n, 2) frames into a SequenceToken."""
        return self._reduce(n, SequenceToken)

    def parallel(self, n: int | None = None) -> Conduit:
        """Reduce the top max(n, 2) frames into a ParallelToken."""
        return self._reduce(n, ParallelToken)

    def _reduce(self, n: int | None, composite: type[SequenceToken] | type[ParallelToken]) -> Conduit:
        frames = max(n if n is not None else MIN_CHILDREN, MIN_CHILDREN)
        if sum(1 for _ in islice(self._stack, frames)) < frames:
            raise NotEnoughFramesError(frames, len(self._stack))

        popped: list[Token] = []
        rest = self._stack
        for _ in range(frames):
            token = rest.peek()
            assert token is not None  # frame count checked above
            popped.append(token)
            rest = rest.pop()
        # Popped top-to-bottom; children keep construction order.
        popped.reverse()
        return self._derive(rest.push(composite(tuple(popped))))

    def merge(self, other: Conduit) -> Conduit:
        """Push the root token of a fully reduced conduit onto this one.

        The token is adopted by value; no reference to ``other`` remains.

        Raises:
            UnresolvedGraphError: If other does not hold exactly one frame
            UnknownTaskError: If other's graph uses tasks not registered here
        """
        root = other._require_root("merge")
        unknown = sorted(task_names_used(root) - set(self._task_names))
        if unknown:
            raise UnknownTaskError(unknown[0], self._task_names)
        return self._derive(self._stack.push(root))

    def bind_behavior(self, actions: Behavior) -> Conduit:
        """Attach task implementations. Structure and task names are unchanged.

        Coverage is not checked here: a missing implementation surfaces as
        UnboundTaskError when the fold reaches that task.
        """
        return Conduit(self._task_names, self._stack, MappingProxyType(dict(actions)))

    # -------------------------------------------------------------------------
    # Serialization and execution
    # -------------------------------------------------------------------------

    def serialize(self) -> str:
        """Canonical text form of the task names and stack contents."""
        return serialize(self._task_names, self.tokens())

    def fold(
        self,
        accumulator: Accumulator | None = None,
        completion: Completion | None = None,
    ) -> Future[Accumulator]:
        """Execute the graph, folding task outcomes into an accumulator.

        Args:
            accumulator: Map to fold into; a fresh dict when None
            completion: Called exactly once as completion(error, accumulator)

        Returns:
            Future resolved with the accumulator once the graph finished, or
            failed with the first error that surfaced.

        Raises:
            UnresolvedGraphError: If the conduit is not fully reduced
            MissingBehaviorError: If no behavior has been bound
        """
        from conduit.engine.fold import FoldExecutor

        root = self._require_root("fold")
        if self._behavior is None:
            raise MissingBehaviorError("Cannot fold a graph without bound behavior; call bind_behavior() first")
        if accumulator is None:
            accumulator = {}
        return FoldExecutor(self._behavior).run(root, accumulator, completion)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def task_names(self) -> tuple[str, ...]:
        return self._task_names

    @property
    def behavior(self) -> Mapping[str, TaskImpl] | None:
        return self._behavior

    @property
    def root(self) -> Token | None:
        """The single remaining token, or None when not fully reduced."""
        return self._stack.peek() if self.is_fully_reduced else None

    @property
    def is_fully_reduced(self) -> bool:
        return sum(1 for _ in islice(self._stack, 2)) == 1

    def tokens(self) -> list[Token]:
        """Stack contents, most recently pushed first."""
        return self._stack.to_list()

    def _require_root(self, action: str) -> Token:
        frames = len(self._stack)
        if frames != 1:
            raise UnresolvedGraphError(frames, action)
        root = self._stack.peek()
        assert root is not None
        return root

    def __len__(self) -> int:
        return len(self._stack)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Conduit):
            return NotImplemented
        return self._task_names == other._task_names and self.tokens() == other.tokens()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Conduit(task_names={list(self._task_names)!r}, frames={len(self)})"


OPERATION_NAMES: frozenset[str] = frozenset(name for name in dir(Conduit) if not name.startswith("_"))

# Any class attribute wins over __getattr__, private helpers included
_SHADOWING_NAMES: frozenset[str] = frozenset(dir(Conduit))


def _validate_task_names(task_names: list[str]) -> None:
    seen: set[str] = set()
    for name in task_names:
        if not isinstance(name, str) or not name:
            raise InvalidTaskNamesError(task_names, f"{name!r} is not a non-empty string")
        if name.startswith(RESERVED_PREFIX):
            raise InvalidTaskNamesError(task_names, f"'{name}' uses the reserved '{RESERVED_PREFIX}' prefix")
        if name in _SHADOWING_NAMES:
            raise InvalidTaskNamesError(task_names, f"'{name}' collides with a builder operation")
        if name in seen:
            raise InvalidTaskNamesError(task_names, f"duplicate task name '{name}'")
        seen.add(name)


def new_instance(task_names: Iterable[str]) -> Conduit:
    """Create an empty conduit with one builder operation per task name.

    Args:
        task_names: Names of the tasks graphs may invoke

    Returns:
        Empty Conduit with no behavior bound

    Raises:
        InvalidTaskNamesError: If a name is empty, reserved, or duplicated
    """
    names = list(task_names)
    _validate_task_names(names)
    return Conduit(tuple(names))
