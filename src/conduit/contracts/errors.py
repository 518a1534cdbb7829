# src/conduit/contracts/errors.py
"""Exception hierarchy for graph construction, the text format and folding.

Construction errors are raised synchronously at the offending builder call.
Fold errors either abort fold() before traversal starts or travel up the
token tree to the completion callback, exactly like task failures.
"""

from typing import Any


class ConduitError(Exception):
    """Base class for every error raised by conduit itself."""

    pass


# =============================================================================
# Construction
# =============================================================================


class ConstructionError(ConduitError, ValueError):
    """Raised when a builder operation cannot produce a valid graph."""

    pass


class InvalidTaskNamesError(ConstructionError):
    """Raised when a task name set cannot be registered on a builder."""

    def __init__(self, task_names: list[str], reason: str) -> None:
        super().__init__(f"Invalid task names {task_names!r}: {reason}")
        self.task_names = task_names
        self.reason = reason


class NotEnoughFramesError(ConstructionError):
    """Raised when a reduction needs more frames than the stack holds."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Not enough frames: reduction needs {required}, stack has {available}")
        self.required = required
        self.available = available


class UnresolvedGraphError(ConstructionError):
    """Raised when a graph with more or less than one frame is used as a whole."""

    def __init__(self, frames: int, action: str) -> None:
        super().__init__(f"Cannot {action} a graph that is not fully reduced (stack has {frames} frames)")
        self.frames = frames


class UnknownTaskError(ConstructionError, AttributeError):
    """Raised when a task name is not registered on the builder.

    Also an AttributeError so that ``conduit.missing_task`` behaves like any
    other missing attribute.
    """

    def __init__(self, name: str, registered: tuple[str, ...]) -> None:
        super().__init__(f"Unknown task '{name}', registered tasks: {list(registered)}")
        self.name = name


class TokenStructureError(ConstructionError):
    """Raised when a composite token is built with fewer than two children."""

    pass


# =============================================================================
# Text format
# =============================================================================


class SerializationError(ConduitError, ValueError):
    """Raised when a graph holds arguments that have no canonical JSON form."""

    pass


class ParseError(ConduitError, ValueError):
    """Raised when serialized text does not describe a valid graph."""

    pass


# =============================================================================
# Fold
# =============================================================================


class FoldError(ConduitError):
    """Base class for binding and execution errors raised by the engine."""

    pass


class MissingBehaviorError(FoldError):
    """Raised when fold() is called before bind_behavior()."""

    pass


class UnboundTaskError(FoldError):
    """Raised when a method token names a task with no implementation."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No implementation bound for task '{name}'")
        self.name = name


class DuplicateLabelError(FoldError):
    """Raised when a task id is already present in the accumulator."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Duplicate label '{label}' in task graph")
        self.label = label


class TaskCompletionError(FoldError):
    """Raised when a task signals completion more than once."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' signalled completion more than once")
        self.task_id = task_id


class TaskError(ConduitError):
    """Wraps an error value reported by a task that is not an exception."""

    def __init__(self, task_id: str, error: Any) -> None:
        super().__init__(f"Task '{task_id}' failed: {error!r}")
        self.task_id = task_id
        self.error = error
