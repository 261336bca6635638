"""Combinator laws and checks that witness them."""

# Tasks satisfy the following algebraic laws:
#
# 1. Functor identity: task.map(lambda x: x) == task
#
# 2. Functor composition: task.map(f).map(g) == task.map(lambda x: g(f(x)))
#
# 3. Left identity: Task.of(a).chain(f) == f(a)
#
# 4. Right identity: task.chain(Task.of) == task
#
# 5. Associativity: task.chain(f).chain(g) == task.chain(lambda x: f(x).chain(g))
#    Chaining continuations is associative
#
# 6. Concat identity: task.concat(Task.empty()) == task
#    A race against a task that never settles is the task itself
#
# Here "==" means both sides settle with the same outcome when run. The
# checks below run tasks that settle synchronously; a task still pending
# after run() returns is reported as ("pending", None) and canceled.

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from lazytask.kernel import Task

Outcome = tuple[str, Any]


def outcome(task: Task[Any, Any]) -> Outcome:
    """Run task once and report how it settled."""
    settled: list[Outcome] = []
    cancel = task.run(
        {
            "success": lambda value: settled.append(("success", value)),
            "failure": lambda error: settled.append(("failure", error)),
        }
    )
    if not settled:
        cancel()
        return ("pending", None)
    return settled[0]


def same_outcome(left: Task[Any, Any], right: Task[Any, Any]) -> bool:
    return outcome(left) == outcome(right)


def functor_identity(task: Task[Any, Any]) -> bool:
    return same_outcome(task.map(lambda x: x), task)


def functor_composition(
    task: Task[Any, Any],
    f: Callable[[Any], Any],
    g: Callable[[Any], Any],
) -> bool:
    return same_outcome(task.map(f).map(g), task.map(lambda x: g(f(x))))


def left_identity(value: Any, f: Callable[[Any], Task[Any, Any]]) -> bool:
    return same_outcome(Task.of(value).chain(f), f(value))


def right_identity(task: Task[Any, Any]) -> bool:
    return same_outcome(task.chain(Task.of), task)


def associativity(
    task: Task[Any, Any],
    f: Callable[[Any], Task[Any, Any]],
    g: Callable[[Any], Task[Any, Any]],
) -> bool:
    return same_outcome(task.chain(f).chain(g), task.chain(lambda x: f(x).chain(g)))


def concat_identity(task: Task[Any, Any]) -> bool:
    return same_outcome(task.concat(Task.empty()), task)
