"""chain / or_else sequencing, defect routing and cancellation."""

import pytest

from lazytask import TaskConstructionError, create, of, rejected
from fakes import Manual, Recorder


def test_chain_runs_continuation_with_value() -> None:
    rec = Recorder()
    of(2).chain(lambda v: of(v * 3)).run(rec.handlers())
    assert rec.calls == [("success", 6)]


def test_chain_failure_skips_continuation() -> None:
    rec = Recorder()
    called: list = []

    def fn(value):
        called.append(value)
        return of(value)

    rejected("e").chain(fn).run(rec.handlers())

    assert rec.calls == [("failure", "e")]
    assert called == []


def test_chain_second_failure_reaches_outer_handler() -> None:
    rec = Recorder()
    of(1).chain(lambda v: rejected(f"failed-{v}")).run(rec.handlers())
    assert rec.calls == [("failure", "failed-1")]


def test_chain_continuation_error_goes_to_catch() -> None:
    rec = Recorder()
    error = RuntimeError("bad continuation")

    def fn(value):
        raise error

    of(1).chain(fn).run(rec.handlers())

    assert rec.calls == [("catch", error)]


def test_chain_first_task_defect_goes_to_catch() -> None:
    rec = Recorder()
    error = RuntimeError("broken computation")

    def computation(succeed, fail):
        raise error

    create(computation).chain(of).run(rec.handlers())

    assert rec.calls == [("catch", error)]


def test_chain_continuation_error_propagates_without_catch() -> None:
    rec = Recorder()

    def fn(value):
        raise RuntimeError("bad continuation")

    with pytest.raises(RuntimeError, match="bad continuation"):
        of(1).chain(fn).run(rec.handlers(with_catch=False))

    assert rec.calls == []


def test_chain_continuation_must_return_task() -> None:
    rec = Recorder()
    of(1).chain(lambda v: v).run(rec.handlers())

    assert len(rec.calls) == 1
    kind, defect = rec.calls[0]
    assert kind == "catch"
    assert isinstance(defect, TaskConstructionError)


def test_chain_async_continuation_error_goes_to_catch() -> None:
    rec = Recorder()
    manual = Manual()
    error = RuntimeError("late")

    def fn(value):
        raise error

    manual.task().chain(fn).run(rec.handlers())
    manual.succeed(1)

    assert rec.calls == [("catch", error)]


def test_chain_cancel_during_first_task() -> None:
    rec = Recorder()
    first, second = Manual(), Manual()
    cancel = first.task().chain(lambda v: second.task()).run(rec.handlers())

    cancel()
    first.succeed(1)

    assert first.canceled == 1
    assert second.runs == 0
    assert rec.calls == []


def test_chain_cancel_during_second_task() -> None:
    rec = Recorder()
    first, second = Manual(), Manual()
    cancel = first.task().chain(lambda v: second.task()).run(rec.handlers())

    first.succeed(1)
    assert second.runs == 1

    cancel()
    second.succeed(2)

    assert first.canceled == 0
    assert second.canceled == 1
    assert rec.calls == []


def test_chain_settles_through_second_task() -> None:
    rec = Recorder()
    first, second = Manual(), Manual()
    cancel = first.task().chain(lambda v: second.task().map(lambda w: (v, w))).run(rec.handlers())

    first.succeed("a")
    second.succeed("b")
    cancel()

    assert rec.calls == [("success", ("a", "b"))]
    assert second.canceled == 0


def test_or_else_recovers_from_failure() -> None:
    rec = Recorder()
    rejected("e").or_else(lambda e: of(f"recovered from {e}")).run(rec.handlers())
    assert rec.calls == [("success", "recovered from e")]


def test_or_else_skips_on_success() -> None:
    rec = Recorder()
    of(1).or_else(lambda e: of("unused")).run(rec.handlers())
    assert rec.calls == [("success", 1)]


def test_or_else_second_failure_reaches_outer_handler() -> None:
    rec = Recorder()
    rejected(1).or_else(lambda e: rejected(e + 1)).run(rec.handlers())
    assert rec.calls == [("failure", 2)]


def test_or_else_cancel_covers_both_tasks() -> None:
    rec = Recorder()
    first, second = Manual(), Manual()
    cancel = first.task().or_else(lambda e: second.task()).run(rec.handlers())

    first.fail("e")
    cancel()
    second.succeed("late")

    assert second.canceled == 1
    assert rec.calls == []


def test_chain_is_reusable_across_runs() -> None:
    task = of(1).chain(lambda v: of(v + 1))
    first, second = Recorder(), Recorder()

    task.run(first.handlers())
    task.run(second.handlers())

    assert first.calls == second.calls == [("success", 2)]
