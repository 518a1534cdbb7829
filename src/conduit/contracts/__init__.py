# src/conduit/contracts/__init__.py
"""Shared contracts: errors, accumulator entries and type aliases.

Leaf package: imports nothing from conduit.core or conduit.engine.
"""

from conduit.contracts.errors import (
    ConduitError,
    ConstructionError,
    DuplicateLabelError,
    FoldError,
    InvalidTaskNamesError,
    MissingBehaviorError,
    NotEnoughFramesError,
    ParseError,
    SerializationError,
    TaskCompletionError,
    TaskError,
    TokenStructureError,
    UnboundTaskError,
    UnknownTaskError,
    UnresolvedGraphError,
)
from conduit.contracts.results import TaskOutcome
from conduit.contracts.types import (
    Accumulator,
    Behavior,
    Completion,
    Done,
    TaskID,
    TaskImpl,
    TaskName,
)

__all__ = [
    "Accumulator",
    "Behavior",
    "Completion",
    "ConduitError",
    "ConstructionError",
    "Done",
    "DuplicateLabelError",
    "FoldError",
    "InvalidTaskNamesError",
    "MissingBehaviorError",
    "NotEnoughFramesError",
    "ParseError",
    "SerializationError",
    "TaskCompletionError",
    "TaskError",
    "TaskID",
    "TaskImpl",
    "TaskName",
    "TaskOutcome",
    "TokenStructureError",
    "UnboundTaskError",
    "UnknownTaskError",
    "UnresolvedGraphError",
]
