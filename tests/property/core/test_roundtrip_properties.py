"""Property-based tests for graph serialization.

Round-trip Properties:
- parse(serialize(c)) == c for any stack contents built through the
  builder operations
- serialization is canonical: re-serializing a parsed graph yields the
  same text
- a parsed graph folds to the same labelled accumulator as the original
- the serialized program of a token, replayed through invoke/sequence/parallel,
  rebuilds that token
"""

from __future__ import annotations

from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from conduit.contracts import Accumulator, Done
from conduit.core.canonical import parse, token_to_program
from conduit.core.conduit import Conduit, new_instance
from conduit.core.tokens import MethodToken, ParallelToken, SequenceToken, Token

TASK_NAMES = ["foo", "bar"]

# =============================================================================
# Strategies
# =============================================================================

json_scalars = st.none() | st.booleans() | st.integers(min_value=-(2**31), max_value=2**31) | st.text(max_size=10)
task_args = json_scalars | st.dictionaries(st.text(max_size=5), json_scalars, max_size=3) | st.lists(json_scalars, max_size=3)

method_tokens = st.builds(
    MethodToken,
    name=st.sampled_from(TASK_NAMES),
    args=task_args,
    label=st.none() | st.text(min_size=1, max_size=8),
)

tokens = st.recursive(
    method_tokens,
    lambda children: st.one_of(
        st.lists(children, min_size=2, max_size=4).map(lambda c: SequenceToken(tuple(c))),
        st.lists(children, min_size=2, max_size=4).map(lambda c: ParallelToken(tuple(c))),
    ),
    max_leaves=12,
)


def emit(conduit: Conduit, token: Token) -> Conduit:
    """Rebuild token on top of conduit using only builder operations."""
    if isinstance(token, MethodToken):
        return conduit.invoke(token.name, token.args, token.label)
    for child in token.children:
        conduit = emit(conduit, child)
    if isinstance(token, SequenceToken):
        return conduit.sequence(len(token.children))
    return conduit.parallel(len(token.children))


def build(frames: list[Token]) -> Conduit:
    conduit = new_instance(TASK_NAMES)
    for token in frames:
        conduit = emit(conduit, token)
    return conduit


def echo(acc: Accumulator, args: Any, done: Done) -> None:
    done(None, args)


def fold_labelled(conduit: Conduit) -> tuple[type | None, dict[str, Any]]:
    outcome: list[tuple[BaseException | None, Accumulator]] = []
    conduit.bind_behavior({"foo": echo, "bar": echo}).fold(completion=lambda e, acc: outcome.append((e, acc)))
    [(error, accumulator)] = outcome
    labelled = {k: v for k, v in accumulator.items() if not k.startswith("anon-")}
    return (type(error) if error is not None else None), labelled


# =============================================================================
# Properties
# =============================================================================


class TestRoundTrip:
    @given(frames=st.lists(tokens, max_size=4))
    def test_builder_reproduces_tokens(self, frames: list[Token]) -> None:
        assert build(frames).tokens() == list(reversed(frames))

    @given(frames=st.lists(tokens, max_size=4))
    def test_parse_inverts_serialize(self, frames: list[Token]) -> None:
        conduit = build(frames)
        parsed = parse(conduit.serialize())
        assert parsed == conduit
        assert parsed.task_names == conduit.task_names
        assert parsed.behavior is None

    @given(frames=st.lists(tokens, max_size=4))
    def test_serialization_is_canonical(self, frames: list[Token]) -> None:
        text = build(frames).serialize()
        assert parse(text).serialize() == text

    @given(root=tokens)
    def test_parsed_graph_folds_identically(self, root: Token) -> None:
        conduit = build([root])
        assert fold_labelled(parse(conduit.serialize())) == fold_labelled(conduit)

    @given(root=tokens)
    def test_program_replays_through_builder(self, root: Token) -> None:
        conduit = new_instance(TASK_NAMES)
        for op in token_to_program(root):
            if op["type"] == "method":
                conduit = conduit.invoke(op["name"], op["args"], op["label"])
            elif op["type"] == "seq":
                conduit = conduit.sequence(op["count"])
            else:
                conduit = conduit.parallel(op["count"])
        assert conduit.root == root
