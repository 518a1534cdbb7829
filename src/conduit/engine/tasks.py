# src/conduit/engine/tasks.py
"""Adapters from plain functions to task implementations.

A task implementation has the callback shape impl(accumulator, args, done).
Most tasks are easier to write as fn(accumulator, args) -> result that
raise on failure; these adapters bridge the two:

- sync_task(fn): runs fn inline, inside the fold's call
- TaskPool.task(fn): runs fn "later" on a shared thread pool, so sibling
  branches of a parallel node really overlap
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from types import TracebackType
from typing import Any, Self, TypeAlias

from conduit.contracts.types import Accumulator, Done, TaskImpl
from conduit.core.config import ConcurrencySettings
from conduit.core.logging import get_logger

logger = get_logger(__name__)

TaskFunction: TypeAlias = Callable[[Accumulator, Any], Any]


def sync_task(fn: TaskFunction) -> TaskImpl:
    """Wrap fn so it runs inline and reports through done()."""

    def impl(accumulator: Accumulator, args: Any, done: Done) -> None:
        try:
            result = fn(accumulator, args)
        except Exception as exc:
            done(exc, None)
            return
        done(None, result)

    impl.__name__ = getattr(fn, "__name__", "task")
    return impl


class TaskPool:
    """Thread pool that runs wrapped task functions off the fold's thread.

    Usage:
        with TaskPool(settings.concurrency) as pool:
            behavior = {"fetch": pool.task(fetch), "resize": pool.task(resize)}
            accumulator = graph.bind_behavior(behavior).fold().result()
    """

    def __init__(self, settings: ConcurrencySettings | None = None) -> None:
        """Initialize the pool.

        Args:
            settings: Concurrency settings; defaults when None
        """
        self._settings = settings if settings is not None else ConcurrencySettings()
        self._executor = ThreadPoolExecutor(
            max_workers=self._settings.max_workers,
            thread_name_prefix="conduit-task",
        )

    @property
    def max_workers(self) -> int:
        return self._settings.max_workers

    def task(self, fn: TaskFunction) -> TaskImpl:
        """Wrap fn so each invocation is submitted to the pool."""
        run_inline = sync_task(fn)

        def impl(accumulator: Accumulator, args: Any, done: Done) -> None:
            self._executor.submit(run_inline, accumulator, args, done)

        impl.__name__ = getattr(fn, "__name__", "task")
        return impl

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the pool.

        Args:
            wait: If True, wait for submitted tasks to complete
        """
        logger.debug("task_pool_shutdown", wait=wait)
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown(wait=True)
