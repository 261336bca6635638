"""Handler contract shared by every task variant."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar, Union

from lazytask.kernel.errors import UnhandledFailure

S = TypeVar("S")
F = TypeVar("F")

Handler = Callable[[Any], None]
Cancel = Callable[[], None]
Computation = Callable[[Handler, Handler], Any]


def noop(*_: Any) -> None:
    return None


def propagate(defect: BaseException) -> None:
    """Default defect channel: re-raise in the current frame."""
    raise defect


def raise_unhandled(failure: Any) -> None:
    """Default sink for failures nobody asked to handle.

    Exceptions are raised as they are; any other value is wrapped in
    UnhandledFailure so it never disappears silently.
    """
    if isinstance(failure, BaseException):
        raise failure
    raise UnhandledFailure(failure)


@dataclass(frozen=True)
class Handlers(Generic[S, F]):
    """The three outcome channels of a run.

    Attributes:
        success: Receives the success value.
        failure: Receives a domain failure value. None means the run's
            unhandled-failure sink decides.
        catch: Receives a defect raised synchronously by composition code.
    """

    success: Handler = noop
    failure: Handler | None = None
    catch: Handler = propagate


@dataclass(frozen=True)
class Hooks:
    """Lifecycle hooks a body may hand back to the settlement guard.

    Attributes:
        on_cancel: Called only when the caller cancels before settlement.
        on_close: Called on every termination path, exactly once.
    """

    on_cancel: Cancel | None = None
    on_close: Cancel | None = None


LooseHandlers = Union[Handler, Mapping[str, Handler | None], Handlers, None]


def normalize_handlers(
    loose: LooseHandlers,
    on_unhandled: Handler = raise_unhandled,
) -> Handlers:
    """Turn whatever the caller passed to run() into a full Handlers record."""
    if loose is None:
        return Handlers(failure=on_unhandled)
    if isinstance(loose, Handlers):
        if loose.failure is None:
            return replace(loose, failure=on_unhandled)
        return loose
    if callable(loose):
        return Handlers(success=loose, failure=on_unhandled)
    if isinstance(loose, Mapping):
        unknown = set(loose) - {"success", "failure", "catch"}
        if unknown:
            raise TypeError(f"Unknown handler keys: {', '.join(sorted(unknown))}")
        return Handlers(
            success=loose.get("success") or noop,
            failure=loose.get("failure") or on_unhandled,
            catch=loose.get("catch") or propagate,
        )
    raise TypeError(f"Expected a callable or a mapping of handlers, got {type(loose).__name__}")


def as_hooks(returned: Any) -> Hooks:
    """Interpret a body's return value as cancellation hooks."""
    if returned is None:
        return Hooks()
    if isinstance(returned, Hooks):
        return returned
    if callable(returned):
        return Hooks(on_cancel=returned)
    if isinstance(returned, Mapping):
        return Hooks(
            on_cancel=returned.get("on_cancel"),
            on_close=returned.get("on_close"),
        )
    raise TypeError(
        f"A computation must return None, a cancel function or hooks, got {type(returned).__name__}"
    )
