"""asyncio bridge: timers, awaitables, futures and timeouts."""

import asyncio

import pytest

from lazytask import UnhandledFailure, create, of, rejected
from lazytask.runtime import after, from_awaitable, rejected_after, timeout, to_future
from fakes import Recorder


@pytest.mark.asyncio
async def test_after_succeeds_later() -> None:
    rec = Recorder()
    after(0.01, "tick").run(rec.handlers())

    assert rec.calls == []
    await asyncio.sleep(0.03)
    assert rec.calls == [("success", "tick")]


@pytest.mark.asyncio
async def test_rejected_after_fails_later() -> None:
    rec = Recorder()
    rejected_after(0.01, "late").run(rec.handlers())

    await asyncio.sleep(0.03)
    assert rec.calls == [("failure", "late")]


def test_cancel_before_settlement_never_fires() -> None:
    rec = Recorder()

    async def run_flow():
        cancel = after(0.1, "value").run(rec.handlers())
        await asyncio.sleep(0.01)
        cancel()
        await asyncio.sleep(0.12)

    asyncio.run(run_flow())
    assert rec.calls == []


@pytest.mark.asyncio
async def test_to_future_resolves_with_success() -> None:
    assert await to_future(of(1).chain(lambda v: after(0.01, v + 1))) == 2


@pytest.mark.asyncio
async def test_to_future_wraps_plain_failure() -> None:
    with pytest.raises(UnhandledFailure) as info:
        await to_future(rejected("nope"))
    assert info.value.failure == "nope"


@pytest.mark.asyncio
async def test_to_future_raises_exception_failure() -> None:
    with pytest.raises(KeyError):
        await to_future(rejected(KeyError("k")))


@pytest.mark.asyncio
async def test_to_future_surfaces_defects() -> None:
    def explode(value):
        raise RuntimeError("defect")

    with pytest.raises(RuntimeError, match="defect"):
        await to_future(after(0.01, 1).chain(explode))


@pytest.mark.asyncio
async def test_cancelling_future_cancels_run() -> None:
    cleanups: list = []

    def computation(succeed, fail):
        handle = asyncio.get_running_loop().call_later(0.05, succeed, "x")

        def on_cancel():
            handle.cancel()
            cleanups.append("canceled")

        return on_cancel

    future = to_future(create(computation))
    future.cancel()
    await asyncio.sleep(0)

    assert cleanups == ["canceled"]


@pytest.mark.asyncio
async def test_from_awaitable_success() -> None:
    async def fetch():
        await asyncio.sleep(0.01)
        return "payload"

    assert await to_future(from_awaitable(fetch)) == "payload"


@pytest.mark.asyncio
async def test_from_awaitable_exception_becomes_failure() -> None:
    error = ValueError("broken")

    async def fetch():
        raise error

    rec = Recorder()
    from_awaitable(fetch).run(rec.handlers())
    await asyncio.sleep(0.01)

    assert rec.calls == [("failure", error)]


@pytest.mark.asyncio
async def test_from_awaitable_cancel_cancels_asyncio_task() -> None:
    started = asyncio.Event()
    cancelled: list = []

    async def work():
        started.set()
        try:
            await asyncio.sleep(1)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    rec = Recorder()
    cancel = from_awaitable(work).run(rec.handlers())
    await started.wait()
    cancel()
    await asyncio.sleep(0.01)

    assert cancelled == [True]
    assert rec.calls == []


@pytest.mark.asyncio
async def test_from_awaitable_is_rerun_per_run() -> None:
    calls: list = []

    async def work():
        calls.append(1)
        return len(calls)

    task = from_awaitable(work)
    assert await to_future(task) == 1
    assert await to_future(task) == 2


@pytest.mark.asyncio
async def test_timeout_fails_slow_task() -> None:
    with pytest.raises(TimeoutError):
        await to_future(timeout(after(0.2, "slow"), 0.01))


@pytest.mark.asyncio
async def test_timeout_passes_fast_task() -> None:
    assert await to_future(timeout(after(0.01, "fast"), 0.2, error="timed out")) == "fast"


@pytest.mark.asyncio
async def test_timeout_builds_a_fresh_error_per_run() -> None:
    bounded = timeout(after(0.2, "slow"), 0.01)

    with pytest.raises(TimeoutError) as first:
        await to_future(bounded)
    with pytest.raises(TimeoutError) as second:
        await to_future(bounded)

    assert first.value is not second.value
