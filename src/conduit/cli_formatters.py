# src/conduit/cli_formatters.py
"""Text renderings of token trees for CLI output."""

from __future__ import annotations

from conduit.contracts.errors import SerializationError
from conduit.core.canonical import canonical_json
from conduit.core.tokens import MethodToken, Token


def _describe(token: Token) -> str:
    if not isinstance(token, MethodToken):
        return f"{token.TAG} ({len(token.children)})"
    parts = [token.name]
    if token.label is not None:
        parts.append(f"[{token.label}]")
    if token.args is not None:
        try:
            parts.append(canonical_json(token.args))
        except SerializationError:
            parts.append(repr(token.args))
    return " ".join(parts)


def render_token_tree(token: Token) -> list[str]:
    """Render a token and its descendants as box-drawing tree lines.

    Example:
        seq (2)
        ├── foo [ffx] {"arg":1}
        └── par (2)
            ├── foo [fx0]
            └── bar [bx]
    """
    lines = [_describe(token)]
    pending: list[tuple[Token, str, bool]] = []

    def push_children(node: Token, prefix: str) -> None:
        if isinstance(node, MethodToken):
            return
        last = len(node.children) - 1
        # Reversed so the leftmost child is popped first
        pending.extend((child, prefix, index == last) for index, child in reversed(list(enumerate(node.children))))

    push_children(token, "")
    while pending:
        node, prefix, is_last = pending.pop()
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{_describe(node)}")
        push_children(node, prefix + ("    " if is_last else "│   "))
    return lines
