"""asyncio bridge - timers, awaitables and futures as tasks.

The engine itself knows nothing about event loops. These helpers wrap loop
primitives as computations, so the loop decides when succeed/fail fire and
cancellation maps onto the loop's own cancel operations. Every computation
looks up the running loop when it is run, not when the task is built.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from lazytask.config import RunConfig
from lazytask.kernel import Handler, Handlers, Task, UnhandledFailure

S = TypeVar("S")
F = TypeVar("F")

logger = logging.getLogger(__name__)


def after(delay: float, value: S) -> Task[S, Any]:
    """Task succeeding with value after delay seconds."""

    def computation(succeed: Handler, fail: Handler) -> Callable[[], None]:
        handle = asyncio.get_running_loop().call_later(delay, succeed, value)
        return handle.cancel

    return Task.create(computation)


def rejected_after(delay: float, error: F) -> Task[Any, F]:
    """Task failing with error after delay seconds."""

    def computation(succeed: Handler, fail: Handler) -> Callable[[], None]:
        handle = asyncio.get_running_loop().call_later(delay, fail, error)
        return handle.cancel

    return Task.create(computation)


def from_awaitable(factory: Callable[[], Awaitable[S]]) -> Task[S, BaseException]:
    """Task running factory() on the loop each time it is run.

    The awaited result becomes the success value and a raised exception the
    failure value. Canceling the run cancels the underlying asyncio task.
    """

    def computation(succeed: Handler, fail: Handler) -> Callable[[], bool]:
        future = asyncio.ensure_future(factory())

        def on_done(fut: asyncio.Future[S]) -> None:
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                fail(exc)
            else:
                succeed(fut.result())

        future.add_done_callback(on_done)
        return future.cancel

    return Task.create(computation)


def to_future(task: Task[S, Any], *, config: RunConfig | None = None) -> asyncio.Future[S]:
    """Run task and expose its outcome as an asyncio future.

    Failure values that are not exceptions are wrapped in UnhandledFailure.
    Canceling the future cancels the run.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[S] = loop.create_future()

    def on_success(value: S) -> None:
        if not future.done():
            future.set_result(value)

    def on_failure(error: Any) -> None:
        if future.done():
            return
        future.set_exception(error if isinstance(error, BaseException) else UnhandledFailure(error))

    def on_defect(defect: BaseException) -> None:
        if not future.done():
            future.set_exception(defect)

    cancel = task.run(Handlers(on_success, on_failure, on_defect), config=config)

    def on_done(fut: asyncio.Future[S]) -> None:
        if fut.cancelled():
            logger.debug("future canceled, canceling task run")
            cancel()

    future.add_done_callback(on_done)
    return future


def timeout(task: Task[S, F], delay: float, error: Any = None) -> Task[S, Any]:
    """Race task against a timer failing after delay seconds.

    Args:
        task: The task to bound.
        delay: Seconds to wait before failing.
        error: Failure value on timeout. By default each run fails with
            its own TimeoutError.
    """

    def computation(succeed: Handler, fail: Handler) -> Callable[[], None]:
        failure = error
        if failure is None:
            failure = TimeoutError(f"Task did not settle within {delay}s")
        handle = asyncio.get_running_loop().call_later(delay, fail, failure)
        return handle.cancel

    return Task.race([task, Task.create(computation)])
