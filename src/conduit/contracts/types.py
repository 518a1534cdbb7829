"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of semantically different string values.
"""

from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, NewType, TypeAlias

from conduit.contracts.results import TaskOutcome

TaskName = NewType("TaskName", str)
"""Registered task name (e.g., 'fetch', 'resize')"""

TaskID = NewType("TaskID", str)
"""Accumulator key for one method invocation: its label or a generated id"""

Accumulator: TypeAlias = MutableMapping[str, TaskOutcome]
"""Label-keyed results threaded through a fold."""

Done: TypeAlias = Callable[[Any, Any], None]
"""Completion callback handed to a task: done(error, result), called exactly once."""

TaskImpl: TypeAlias = Callable[[Accumulator, Any, Done], None]
"""Task implementation: impl(accumulator, args, done).

The implementation may finish synchronously or hand the work to another
thread; either way it reports through ``done``. It may read
``accumulator[label].result`` to consume an earlier task's output.
"""

Behavior: TypeAlias = Mapping[str, TaskImpl]
"""Task name to implementation mapping bound to a graph before folding."""

Completion: TypeAlias = Callable[[BaseException | None, Accumulator], None]
"""Top-level fold callback: completion(error, accumulator)."""
