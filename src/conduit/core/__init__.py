# src/conduit/core/__init__.py
"""Core infrastructure: persistent stack, tokens, builder, canonical form, config, logging."""

from conduit.core.canonical import FORMAT_VERSION, canonical_json, parse, serialize
from conduit.core.conduit import Conduit, new_instance
from conduit.core.config import (
    ConcurrencySettings,
    ConduitSettings,
    LoggingSettings,
    load_settings,
)
from conduit.core.logging import configure_logging, get_logger
from conduit.core.stack import PersistentStack
from conduit.core.tokens import (
    MethodToken,
    ParallelToken,
    SequenceToken,
    Token,
    find_duplicate_labels,
    iter_methods,
    task_names_used,
    walk_postfix,
)

__all__ = [
    "FORMAT_VERSION",
    "ConcurrencySettings",
    "Conduit",
    "ConduitSettings",
    "LoggingSettings",
    "MethodToken",
    "ParallelToken",
    "PersistentStack",
    "SequenceToken",
    "Token",
    "canonical_json",
    "configure_logging",
    "find_duplicate_labels",
    "get_logger",
    "iter_methods",
    "load_settings",
    "new_instance",
    "parse",
    "serialize",
    "task_names_used",
    "walk_postfix",
]
