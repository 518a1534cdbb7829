# src/conduit/engine/__init__.py
"""Execution engine: folds token trees through bound task implementations."""

from conduit.engine.fold import FoldExecutor, generate_task_id
from conduit.engine.tasks import TaskPool, sync_task

__all__ = [
    "FoldExecutor",
    "TaskPool",
    "generate_task_id",
    "sync_task",
]
