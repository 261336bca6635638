"""Combinator primitives: create, of, rejected, empty, all_of, race, ap, concat."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from lazytask.kernel import Computation, Task

S = TypeVar("S")
F = TypeVar("F")


def create(computation: Computation) -> Task[Any, Any]:
    """Wrap an external computation.

    Semantics:
        - computation receives (succeed, fail) on every run
        - It may return None, a cancel function, or Hooks
        - Only the first succeed/fail call of a run is observed

    Args:
        computation: The function doing the actual work.

    Returns:
        Task[Any, Any]: A task running computation each time it is run.
    """
    return Task.create(computation)


def of(value: S) -> Task[S, Any]:
    return Task.of(value)


def rejected(error: F) -> Task[Any, F]:
    return Task.rejected(error)


def empty() -> Task[Any, Any]:
    return Task.empty()


def all_of(tasks: Iterable[Task[S, F]]) -> Task[list[S], F]:
    """Join: wait for every task.

    Semantics:
        - Start every task at once, not one after another
        - Succeed with the list of values in input order, whatever the
          completion order
        - Fail with the first failure and cancel every other task
        - An empty input succeeds with [] without starting anything

    Args:
        tasks: Tasks to run together.

    Returns:
        Task[list[S], F]: The joined task.
    """
    return Task.all(tasks)


def race(tasks: Iterable[Task[S, F]]) -> Task[S, F]:
    """Select: settle like the first task to settle.

    Semantics:
        - Start every task at once
        - The first success or failure wins
        - Every loser is canceled once the race settles
        - An empty input never settles

    Args:
        tasks: Competing tasks.

    Returns:
        Task[S, F]: The racing task.
    """
    return Task.race(tasks)


def ap(task_fn: Task[Callable[[Any], S], F], task_value: Task[Any, F]) -> Task[S, F]:
    """Apply the function task_fn yields to the value task_value yields."""
    return task_fn.ap(task_value)


def concat(first: Task[S, F], second: Task[S, F]) -> Task[S, F]:
    """The earlier of two tasks, success or failure alike."""
    return first.concat(second)
