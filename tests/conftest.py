# tests/conftest.py
"""Shared test fixtures and helpers.

Task Implementation Helpers:
- Recorder: records the order in which tasks start and finish
- make_behavior(): builds a behavior mapping of synchronous tasks that
  return their args, fail when args ask for it, and log into a Recorder

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from threading import Lock
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from conduit.contracts import Accumulator, Done, TaskImpl
from conduit.core.logging import configure_logging

# Keep library debug logging out of test output unless a test asks for it
configure_logging(level="WARNING")


class Recorder:
    """Thread-safe log of task events, e.g. ("start", "a"), ("end", "a")."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.events: list[tuple[str, str]] = []

    def record(self, kind: str, task_id: str) -> None:
        with self._lock:
            self.events.append((kind, task_id))

    def started(self) -> list[str]:
        return [task_id for kind, task_id in self.events if kind == "start"]


def make_behavior(names: Iterable[str], recorder: Recorder | None = None) -> dict[str, TaskImpl]:
    """Synchronous behavior for every name.

    Each task completes with {"task": name, "args": args}. Tasks whose args
    contain {"fail": <message>} complete with RuntimeError(message). The
    "id" key of args, when present, names the task in the recorder.
    """

    def make(name: str) -> TaskImpl:
        def impl(acc: Accumulator, args: Any, done: Done) -> None:
            task_id = args.get("id", name) if isinstance(args, dict) else name
            if recorder is not None:
                recorder.record("start", task_id)
            if isinstance(args, dict) and "fail" in args:
                done(RuntimeError(args["fail"]), None)
            else:
                done(None, {"task": name, "args": args})
            if recorder is not None:
                recorder.record("end", task_id)

        return impl

    return {name: make(name) for name in names}


@pytest.fixture(autouse=True)
def _quiet_logging() -> Any:
    """Reset logging after tests (and CLI runs) that reconfigure it."""
    yield
    configure_logging(level="WARNING")


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture(name="make_behavior")
def make_behavior_fixture() -> Any:
    return make_behavior


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
