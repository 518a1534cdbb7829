# src/conduit/core/canonical.py
"""
Canonical text form of a graph description.

Two-phase approach, as for any canonical JSON:
1. Normalize: tokens become flat postfix programs, tuples become lists (our code)
2. Serialize: deterministic JSON per RFC 8785/JCS (rfc8785 package)

Document layout:

    {
      "format": "conduit-v1",
      "task_names": ["foo", "bar"],
      "tasks": [<program>, ...]        # top of stack first
    }

    <program> := [<op>, ...]           # one stack frame, postfix order
    <op>      := {"type": "method", "name": str, "args": any, "label": str|null}
               | {"type": "seq" | "par", "count": int >= 2}

A program is the builder language itself: method ops push, seq/par ops reduce
the last `count` results. Replaying a program leaves exactly one token, the
frame it encodes. Keeping the encoding flat means tree depth never reaches the
JSON encoder or decoder, so arbitrarily deep graphs round-trip.

The document is self-describing: parsing needs nothing but the text. Task
implementations are code and are never part of it; bind them after parsing.

NaN and Infinity in task arguments are REJECTED on both sides, not silently
converted.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Annotated, Any, Literal

import rfc8785
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from conduit.contracts.errors import ParseError, SerializationError
from conduit.contracts.types import TaskName
from conduit.core.stack import PersistentStack
from conduit.core.tokens import MIN_CHILDREN, MethodToken, ParallelToken, SequenceToken, Token, walk_postfix

if TYPE_CHECKING:
    from conduit.core.conduit import Conduit

# Version string stored with every serialized graph
FORMAT_VERSION = "conduit-v1"

_COMPOSITES: dict[str, type[SequenceToken] | type[ParallelToken]] = {
    SequenceToken.TAG: SequenceToken,
    ParallelToken.TAG: ParallelToken,
}


# =============================================================================
# Encoding
# =============================================================================


def token_to_program(token: Token) -> list[dict[str, Any]]:
    """Encode a token tree as postfix ops: children first, then their parent."""
    return [
        {"type": MethodToken.TAG, "name": node.name, "args": node.args, "label": node.label}
        if isinstance(node, MethodToken)
        else {"type": node.TAG, "count": len(node.children)}
        for node in walk_postfix(token)
    ]


def _normalize_for_canonical(data: Any) -> Any:
    """Recursively convert tuples to lists and reject non-finite floats.

    Raises:
        SerializationError: If data contains NaN or Infinity
    """
    if isinstance(data, dict):
        return {k: _normalize_for_canonical(v) for k, v in data.items()}
    if isinstance(data, list | tuple):
        return [_normalize_for_canonical(v) for v in data]
    if isinstance(data, float) and (math.isnan(data) or math.isinf(data)):
        raise SerializationError(f"Cannot canonicalize non-finite float: {data}. Use None for missing values, not NaN.")
    return data


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON (no whitespace, sorted keys).

    Raises:
        SerializationError: If obj holds values with no canonical JSON form
    """
    normalized = _normalize_for_canonical(obj)
    try:
        result: bytes = rfc8785.dumps(normalized)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Task arguments are not canonical JSON: {e}") from e
    return result.decode("utf-8")


def serialize(task_names: Sequence[str], tokens: Iterable[Token]) -> str:
    """Serialize task names and stack contents (top of stack first)."""
    return canonical_json(
        {
            "format": FORMAT_VERSION,
            "task_names": list(task_names),
            "tasks": [token_to_program(token) for token in tokens],
        }
    )


# =============================================================================
# Decoding
# =============================================================================


class MethodOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["method"]
    name: str
    args: Any = None
    label: str | None = None

    @field_validator("args")
    @classmethod
    def _reject_non_finite(cls, value: Any) -> Any:
        # SerializationError is a ValueError, so pydantic reports it as a validation error
        _normalize_for_canonical(value)
        return value


class ReduceOp(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["seq", "par"]
    count: int = Field(ge=MIN_CHILDREN)


Op = Annotated[MethodOp | ReduceOp, Field(discriminator="type")]


class GraphDocument(BaseModel):
    """Validated shape of a serialized graph."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    format: Literal["conduit-v1"]
    task_names: list[str]
    tasks: list[Annotated[list[Op], Field(min_length=1)]]


def _replay(program: Sequence[MethodOp | ReduceOp], registered: frozenset[str], position: int) -> Token:
    """Rebuild one frame by running its postfix program on an operand stack."""
    operands: list[Token] = []
    for op in program:
        if isinstance(op, MethodOp):
            if op.name not in registered:
                raise ParseError(f"tasks[{position}] uses unregistered task name '{op.name}'")
            operands.append(MethodToken(TaskName(op.name), op.args, op.label))
            continue
        if len(operands) < op.count:
            raise ParseError(f"tasks[{position}]: '{op.type}' needs {op.count} operands, {len(operands)} available")
        children = tuple(operands[-op.count :])
        del operands[-op.count :]
        operands.append(_COMPOSITES[op.type](children))
    if len(operands) != 1:
        raise ParseError(f"tasks[{position}] must reduce to exactly one token, got {len(operands)}")
    return operands[0]


def parse(text: str | bytes) -> Conduit:
    """Rebuild a conduit (without behavior) from its serialized form.

    Tokens are pushed back in reverse order so the stack matches the one
    that was serialized.

    Raises:
        ParseError: If text is not a valid graph document, a program does not
            reduce to a single token, or a token names a task missing from
            the document's task names
        InvalidTaskNamesError: If the task names cannot be registered
    """
    from conduit.core.conduit import Conduit, new_instance

    try:
        document = GraphDocument.model_validate_json(text)
    except ValidationError as e:
        raise ParseError(f"Invalid graph document: {e}") from e

    empty = new_instance(document.task_names)
    registered = frozenset(empty.task_names)
    tokens = [_replay(program, registered, position) for position, program in enumerate(document.tasks)]

    stack: PersistentStack[Token] = PersistentStack()
    for token in reversed(tokens):
        stack = stack.push(token)
    return Conduit(empty.task_names, stack)
