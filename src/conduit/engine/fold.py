# src/conduit/engine/fold.py
"""FoldExecutor: runs a token tree, folding task outcomes into an accumulator.

Traversal is non-blocking and never recurses. Each fold owns a work queue of
two kinds of items:

- _Start(token, parent): begin folding a token under a parent frame.
- _Finished(parent, error): a child of `parent` has completed.

Whichever thread posts into an idle queue drains it: the caller of run(), or
the thread on which a task calls done(). Posting while another thread drains
only enqueues, so tree depth never turns into call depth and frames are only
ever touched by the single draining thread.

- Method: resolves the implementation, claims the task id, invokes
  impl(accumulator, args, done). done() writes the TaskOutcome into the
  accumulator and only then posts completion to the parent.
- Sequence: starts child N+1 only after child N finished without error.
- Parallel: starts every child, then waits for all of them. The first error
  observed (in completion order) fails the node once the last child is done.

Tasks are never cancelled. An error only prevents children that have not
started yet from starting; every outcome already written stays in the
accumulator.
"""

from __future__ import annotations

import uuid
from collections import deque
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from threading import Lock
from typing import Any, TypeAlias

from conduit.contracts.errors import (
    DuplicateLabelError,
    TaskCompletionError,
    TaskError,
    UnboundTaskError,
)
from conduit.contracts.results import TaskOutcome
from conduit.contracts.types import Accumulator, Completion, TaskID, TaskImpl
from conduit.core.logging import get_logger
from conduit.core.tokens import MethodToken, ParallelToken, SequenceToken, Token, iter_methods

logger = get_logger(__name__)


def generate_task_id() -> str:
    """Process-unique id for a method token without a label."""
    return f"anon-{uuid.uuid4().hex}"


@dataclass(slots=True)
class _SequenceFrame:
    children: tuple[Token, ...]
    parent: _Frame | None
    next_index: int = 1


@dataclass(slots=True)
class _ParallelFrame:
    pending: int
    parent: _Frame | None
    first_error: BaseException | None = None


_Frame: TypeAlias = _SequenceFrame | _ParallelFrame


@dataclass(frozen=True, slots=True)
class _Start:
    token: Token
    parent: _Frame | None


@dataclass(frozen=True, slots=True)
class _Finished:
    parent: _Frame | None
    error: BaseException | None


class _Traversal:
    """State of one fold: the work queue, the accumulator and the claimed ids."""

    def __init__(
        self,
        behavior: Mapping[str, TaskImpl],
        accumulator: Accumulator,
        id_factory: Callable[[], str],
        on_finish: Callable[[BaseException | None], None],
    ) -> None:
        self._behavior = behavior
        self._accumulator = accumulator
        self._id_factory = id_factory
        self._on_finish = on_finish
        self._claimed: set[TaskID] = set()
        self._queue: deque[_Start | _Finished] = deque()
        self._draining = False
        # Guards the queue, the draining flag and done() bookkeeping
        self._lock = Lock()

    def start(self, root: Token) -> None:
        self._post(_Start(root, None))

    def _post(self, item: _Start | _Finished) -> None:
        with self._lock:
            self._queue.append(item)
            if self._draining:
                return
            self._draining = True
        self._drain()

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    self._draining = False
                    return
                item = self._queue.popleft()
            if isinstance(item, _Start):
                self._start(item.token, item.parent)
            else:
                self._finish(item.parent, item.error)

    def _start(self, token: Token, parent: _Frame | None) -> None:
        if isinstance(token, MethodToken):
            self._start_method(token, parent)
        elif isinstance(token, SequenceToken):
            self._post(_Start(token.children[0], _SequenceFrame(token.children, parent)))
        elif isinstance(token, ParallelToken):
            frame = _ParallelFrame(len(token.children), parent)
            # Every branch is queued before any completion can be handled.
            for child in token.children:
                self._post(_Start(child, frame))
        else:
            raise TypeError(f"Not a token: {token!r}")

    def _finish(self, frame: _Frame | None, error: BaseException | None) -> None:
        if frame is None:
            self._on_finish(error)
        elif isinstance(frame, _SequenceFrame):
            if error is None and frame.next_index < len(frame.children):
                child = frame.children[frame.next_index]
                frame.next_index += 1
                self._post(_Start(child, frame))
            else:
                self._post(_Finished(frame.parent, error))
        else:
            if error is not None and frame.first_error is None:
                frame.first_error = error
            frame.pending -= 1
            if not frame.pending:
                self._post(_Finished(frame.parent, frame.first_error))

    def _start_method(self, token: MethodToken, parent: _Frame | None) -> None:
        impl = self._behavior.get(token.name)
        if impl is None:
            self._post(_Finished(parent, UnboundTaskError(token.name)))
            return

        task_id = TaskID(token.label if token.label is not None else self._id_factory())
        # Claimed ids catch duplicates whose first occurrence is still running.
        if task_id in self._claimed or task_id in self._accumulator:
            self._post(_Finished(parent, DuplicateLabelError(task_id)))
            return
        self._claimed.add(task_id)

        completed = False

        def claim_completion() -> bool:
            nonlocal completed
            with self._lock:
                if completed:
                    return False
                completed = True
                return True

        def complete(error: Any, result: Any) -> None:
            if not isinstance(error, BaseException):
                error = TaskError(task_id, error) if error else None
            self._accumulator[task_id] = TaskOutcome(error=error, result=result)
            if error is None:
                logger.debug("task_completed", task=token.name, task_id=task_id)
            else:
                logger.warning("task_failed", task=token.name, task_id=task_id, error=str(error))
            self._post(_Finished(parent, error))

        def done(error: Any = None, result: Any = None) -> None:
            if not claim_completion():
                raise TaskCompletionError(task_id)
            complete(error, result)

        logger.debug("task_started", task=token.name, task_id=task_id)
        try:
            impl(self._accumulator, token.args, done)
        except Exception as exc:
            if claim_completion():
                complete(exc, None)
            else:
                # The outcome reported through done() stands.
                logger.warning("task_raised_after_done", task=token.name, task_id=task_id, error=str(exc))


class FoldExecutor:
    """Executes fully reduced token trees against a behavior mapping.

    Example:
        executor = FoldExecutor({"foo": foo_impl, "bar": bar_impl})
        future = executor.run(root, {}, lambda err, acc: print(err, acc))
        accumulator = future.result()  # blocks; run() itself never does
    """

    def __init__(
        self,
        behavior: Mapping[str, TaskImpl],
        *,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize with task implementations.

        Args:
            behavior: Task name to implementation mapping
            id_factory: Generates accumulator keys for unlabelled method tokens
        """
        self._behavior = behavior
        self._id_factory = id_factory if id_factory is not None else generate_task_id

    def run(
        self,
        root: Token,
        accumulator: Accumulator,
        completion: Completion | None = None,
    ) -> Future[Accumulator]:
        """Fold root into accumulator.

        completion(error, accumulator) is called exactly once, before the
        returned future resolves. The future holds the accumulator, or the
        first error that surfaced (the accumulator then still holds every
        outcome recorded before and alongside it).
        """
        log = logger.bind(fold_id=uuid.uuid4().hex[:12])
        log.info("fold_started", tasks=sum(1 for _ in iter_methods(root)))

        result: Future[Accumulator] = Future()

        def finish(error: BaseException | None) -> None:
            if error is None:
                log.info("fold_completed", results=len(accumulator))
            else:
                log.warning("fold_failed", error=str(error), error_type=type(error).__name__)
            if completion is not None:
                try:
                    completion(error, accumulator)
                except Exception as exc:
                    log.error("completion_callback_failed", error=str(exc))
                    result.set_exception(exc)
                    return
            if error is None:
                result.set_result(accumulator)
            else:
                result.set_exception(error)

        _Traversal(self._behavior, accumulator, self._id_factory, finish).start(root)
        return result
