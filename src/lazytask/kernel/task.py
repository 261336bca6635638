"""Task - a lazy, cancelable description of a deferred computation.

A Task is an immutable tree of variant nodes. Nothing runs until run() is
called; each call builds a fresh set of executions, so the same tree can be
run any number of times, sequentially or concurrently.

Running dispatches on the variant through a runner registry rather than by
overriding methods; every runner that needs settle-once semantics goes
through the settlement guard in lazytask.kernel.guard.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from lazytask.config import DEFAULT_CONFIG, RunConfig
from lazytask.kernel.errors import TaskConstructionError
from lazytask.kernel.guard import safe_run
from lazytask.kernel.handlers import (
    Cancel,
    Computation,
    Handler,
    Handlers,
    Hooks,
    LooseHandlers,
    noop,
    normalize_handlers,
)

S = TypeVar("S")
F = TypeVar("F")
S1 = TypeVar("S1")
F1 = TypeVar("F1")

Runner = Callable[["Task[Any, Any]", Handlers, RunConfig], Cancel]

_runners: dict[type, Runner] = {}


def runs(variant: type) -> Callable[[Runner], Runner]:
    """Register the runner for a task variant."""

    def register(fn: Runner) -> Runner:
        _runners[variant] = fn
        return fn

    return register


def _runner_for(variant: type) -> Runner:
    for cls in variant.__mro__:
        if cls in _runners:
            return _runners[cls]
    raise NotImplementedError(f"No runner registered for {variant.__name__}")


def _require_callable(fn: Any, what: str) -> None:
    if not callable(fn):
        raise TaskConstructionError(f"{what} expects a callable, got {type(fn).__name__}")


def _require_tasks(tasks: Iterable[Any], what: str) -> tuple[Task[Any, Any], ...]:
    collected = tuple(tasks)
    for index, task in enumerate(collected):
        if not isinstance(task, Task):
            raise TaskConstructionError(
                f"{what} expects tasks, got {type(task).__name__} at index {index}"
            )
    return collected


def _apply_pair(pair: list[Any]) -> Any:
    fn, value = pair
    return fn(value)


class Task(Generic[S, F]):
    """Base of every task variant.

    Build tasks with the factories (Task.create, Task.of, ...) and transform
    them with the combinator methods. Each combinator returns a new task and
    leaves the receiver untouched.
    """

    __slots__ = ()

    def __new__(cls, *args: Any, **kwargs: Any) -> Task[S, F]:
        if cls is Task:
            raise TaskConstructionError("Don't instantiate Task directly, use Task.create() instead")
        return super().__new__(cls)

    # Factories

    @staticmethod
    def create(computation: Computation) -> Task[Any, Any]:
        """Task from a computation taking (succeed, fail).

        The computation may return None, a cancel function, or Hooks.
        """
        _require_callable(computation, "create")
        return FromComputation(computation)

    @staticmethod
    def of(value: S) -> Task[S, Any]:
        return Of(value)

    @staticmethod
    def rejected(error: F) -> Task[Any, F]:
        return Rejected(error)

    @staticmethod
    def empty() -> Task[Any, Any]:
        """Task that never settles."""
        return Empty()

    @staticmethod
    def all(tasks: Iterable[Task[S, F]]) -> Task[list[S], F]:
        """Task of the list of results, in input order."""
        return All(_require_tasks(tasks, "all"))

    @staticmethod
    def race(tasks: Iterable[Task[S, F]]) -> Task[S, F]:
        """Task that settles like the first of tasks to settle."""
        return Race(_require_tasks(tasks, "race"))

    # Combinators

    def map(self, fn: Callable[[S], S1]) -> Task[S1, F]:
        _require_callable(fn, "map")
        return Map(self, fn)

    def map_rejected(self, fn: Callable[[F], F1]) -> Task[S, F1]:
        _require_callable(fn, "map_rejected")
        return MapRejected(self, fn)

    def chain(self, fn: Callable[[S], Task[S1, F1]]) -> Task[S1, F | F1]:
        """Run the task returned by fn(value) after this one succeeds."""
        _require_callable(fn, "chain")
        return Chain(self, fn)

    def or_else(self, fn: Callable[[F], Task[S1, F1]]) -> Task[S | S1, F1]:
        """Run the task returned by fn(error) after this one fails."""
        _require_callable(fn, "or_else")
        return OrElse(self, fn)

    def ap(self, other: Task[Any, F1]) -> Task[Any, F | F1]:
        """Apply the function this task yields to the value other yields."""
        return Task.all([self, other]).map(_apply_pair)

    def concat(self, other: Task[S1, F1]) -> Task[S | S1, F | F1]:
        """Select whichever of the two tasks settles first."""
        return Task.race([self, other])

    # Execution

    def run(self, handlers: LooseHandlers = None, *, config: RunConfig | None = None) -> Cancel:
        """Start the task.

        Args:
            handlers: A success callback, or a mapping / Handlers with
                optional success, failure and catch. A missing failure
                handler sends failures to config.on_unhandled.
            config: Run configuration; DEFAULT_CONFIG when omitted.

        Returns:
            Cancel handle. Calling it before settlement guarantees no
            handler fires afterwards; calling it again does nothing.
        """
        if config is None:
            config = DEFAULT_CONFIG
        return self._run(normalize_handlers(handlers, config.on_unhandled), config)

    def _run(self, handlers: Handlers, config: RunConfig) -> Cancel:
        return _runner_for(type(self))(self, handlers, config)


# Leaves


@dataclass(frozen=True)
class FromComputation(Task[S, F]):
    computation: Computation


@dataclass(frozen=True)
class Of(Task[S, Any]):
    value: S


@dataclass(frozen=True)
class Rejected(Task[Any, F]):
    error: F


@dataclass(frozen=True)
class Empty(Task[Any, Any]):
    pass


# Combinators


@dataclass(frozen=True)
class Map(Task[Any, F]):
    task: Task[Any, F]
    fn: Callable[[Any], Any]


@dataclass(frozen=True)
class MapRejected(Task[S, Any]):
    task: Task[S, Any]
    fn: Callable[[Any], Any]


@dataclass(frozen=True)
class Chain(Task[Any, Any]):
    task: Task[Any, Any]
    fn: Callable[[Any], Task[Any, Any]]


@dataclass(frozen=True)
class OrElse(Task[Any, Any]):
    task: Task[Any, Any]
    fn: Callable[[Any], Task[Any, Any]]


@dataclass(frozen=True)
class All(Task[list[Any], Any]):
    tasks: tuple[Task[Any, Any], ...]


@dataclass(frozen=True)
class Race(Task[Any, Any]):
    tasks: tuple[Task[Any, Any], ...]


def _continuation(fn: Callable[[Any], Any], value: Any, what: str) -> Task[Any, Any]:
    next_task = fn(value)
    if not isinstance(next_task, Task):
        raise TaskConstructionError(
            f"{what} continuation must return a Task, got {type(next_task).__name__}"
        )
    return next_task


# Runners


def _start_each(
    starts: list[tuple[Task[Any, Any], Handlers]], config: RunConfig
) -> list[Cancel]:
    """Start every sub-run; if one raises, cancel those already started."""
    cancels: list[Cancel] = []
    try:
        for sub, sub_handlers in starts:
            cancels.append(sub._run(sub_handlers, config))
    except BaseException:
        for cancel in cancels:
            cancel()
        raise
    return cancels


@runs(FromComputation)
def _run_from_computation(task: FromComputation, handlers: Handlers, config: RunConfig) -> Cancel:
    computation = task.computation

    def body(succeed: Handler, fail: Handler, raise_defect: Handler) -> Any:
        return computation(succeed, fail)

    return safe_run(body, handlers, config, variant="FromComputation")


@runs(Of)
def _run_of(task: Of, handlers: Handlers, config: RunConfig) -> Cancel:
    handlers.success(task.value)
    return noop


@runs(Rejected)
def _run_rejected(task: Rejected, handlers: Handlers, config: RunConfig) -> Cancel:
    handlers.failure(task.error)
    return noop


@runs(Empty)
def _run_empty(task: Empty, handlers: Handlers, config: RunConfig) -> Cancel:
    return noop


@runs(Map)
def _run_map(task: Map, handlers: Handlers, config: RunConfig) -> Cancel:
    fn, success = task.fn, handlers.success

    def on_success(value: Any) -> None:
        success(fn(value))

    return task.task._run(Handlers(success=on_success, failure=handlers.failure), config)


@runs(MapRejected)
def _run_map_rejected(task: MapRejected, handlers: Handlers, config: RunConfig) -> Cancel:
    fn, failure = task.fn, handlers.failure

    def on_failure(error: Any) -> None:
        failure(fn(error))

    return task.task._run(Handlers(success=handlers.success, failure=on_failure), config)


@runs(Chain)
def _run_chain(task: Chain, handlers: Handlers, config: RunConfig) -> Cancel:
    first, fn = task.task, task.fn

    def body(succeed: Handler, fail: Handler, raise_defect: Handler) -> Hooks:
        cancel_second: Cancel = noop

        def on_first(value: Any) -> None:
            nonlocal cancel_second
            try:
                second = _continuation(fn, value, "chain")
                cancel_second = second._run(Handlers(succeed, fail, raise_defect), config)
            except Exception as exc:
                raise_defect(exc)

        cancel_first = first._run(Handlers(on_first, fail, raise_defect), config)

        def on_cancel() -> None:
            cancel_first()
            cancel_second()

        return Hooks(on_cancel=on_cancel)

    return safe_run(body, handlers, config, variant="Chain")


@runs(OrElse)
def _run_or_else(task: OrElse, handlers: Handlers, config: RunConfig) -> Cancel:
    first, fn = task.task, task.fn

    def body(succeed: Handler, fail: Handler, raise_defect: Handler) -> Hooks:
        cancel_second: Cancel = noop

        def on_first_failure(error: Any) -> None:
            nonlocal cancel_second
            second = _continuation(fn, error, "or_else")
            cancel_second = second._run(Handlers(succeed, fail), config)

        cancel_first = first._run(Handlers(succeed, on_first_failure), config)

        def on_cancel() -> None:
            cancel_first()
            cancel_second()

        return Hooks(on_cancel=on_cancel)

    return safe_run(body, handlers, config, variant="OrElse")


@runs(All)
def _run_all(task: All, handlers: Handlers, config: RunConfig) -> Cancel:
    tasks = task.tasks

    def body(succeed: Handler, fail: Handler, raise_defect: Handler) -> Hooks | None:
        if not tasks:
            succeed([])
            return None

        values: list[Any] = [None] * len(tasks)
        completed = 0

        def record(index: int) -> Handler:
            def on_success(value: Any) -> None:
                nonlocal completed
                values[index] = value
                completed += 1
                if completed == len(tasks):
                    succeed(list(values))

            return on_success

        cancels = _start_each(
            [(sub, Handlers(record(i), fail)) for i, sub in enumerate(tasks)], config
        )

        def cancel_all() -> None:
            for cancel in cancels:
                cancel()

        return Hooks(on_close=cancel_all)

    return safe_run(body, handlers, config, variant="All")


@runs(Race)
def _run_race(task: Race, handlers: Handlers, config: RunConfig) -> Cancel:
    tasks = task.tasks

    def body(succeed: Handler, fail: Handler, raise_defect: Handler) -> Hooks:
        shared = Handlers(succeed, fail)
        cancels = _start_each([(sub, shared) for sub in tasks], config)

        def cancel_all() -> None:
            for cancel in cancels:
                cancel()

        return Hooks(on_close=cancel_all)

    return safe_run(body, handlers, config, variant="Race")
