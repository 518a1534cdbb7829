"""Accumulator entry recorded for every method token that ran."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    """What a task reported through its completion callback.

    Written to the accumulator before the task's completion is signalled
    upward, so later tasks in the same fold can read it by label.

    Attributes:
        error: Exception reported by the task, None on success
        result: Opaque payload produced by the task
    """

    error: BaseException | None = None
    result: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None
