"""Settlement guard - the one place where a run settles, closes and cancels.

Every guarded variant routes its body through safe_run(). The guard owns an
Execution, a small state machine:

    PENDING --succeed/fail/defect--> SETTLED
    PENDING --cancel---------------> CANCELED

Leaving PENDING drops every reference the execution holds to handlers and
hooks, so nothing user supplied stays reachable from a finished run and late
callbacks from the wrapped computation fall on the floor.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from lazytask.kernel.handlers import (
    Cancel,
    Handler,
    Handlers,
    as_hooks,
    noop,
    propagate,
    raise_unhandled,
)

if TYPE_CHECKING:
    from lazytask.config import RunConfig
    from lazytask.kernel.trace import Trace

logger = logging.getLogger(__name__)

Body = Callable[[Handler, Handler, Handler], Any]


class RunState(Enum):
    PENDING = "pending"
    SETTLED = "settled"
    CANCELED = "canceled"


class Execution:
    """Mutable state for one invocation of a guarded task.

    Attributes:
        state: Current RunState.
        variant: Name of the task variant being run, for logs and traces.
    """

    def __init__(
        self,
        handlers: Handlers,
        variant: str,
        config: RunConfig | None = None,
    ) -> None:
        self.state = RunState.PENDING
        self.variant = variant
        self._label = config.label if config is not None else "task"
        self._handlers: Handlers | None = handlers
        self._on_cancel: Cancel | None = None
        self._on_close: Cancel | None = None
        self._trace: Trace | None = config.trace if config is not None else None
        self._event_id: int | None = None
        self._started = time.perf_counter()

    @property
    def pending(self) -> bool:
        return self.state is RunState.PENDING

    @property
    def severed(self) -> bool:
        """True once no handler or hook is reachable from this execution."""
        return self._handlers is None and self._on_cancel is None and self._on_close is None

    def succeed(self, value: Any) -> None:
        self._settle("success", value)

    def fail(self, error: Any) -> None:
        self._settle("failure", error)

    def raise_defect(self, defect: BaseException) -> None:
        """Route a defect to the catch channel.

        A defect surfacing after the run already finished has nowhere left
        to go, so it is re-raised instead of being dropped.
        """
        if not self.pending:
            raise defect
        self._settle("defect", defect)

    def cancel(self) -> None:
        if not self.pending:
            return
        self.state = RunState.CANCELED
        on_cancel = self._on_cancel
        self._record("cancel")
        logger.debug("%s: %s canceled", self._label, self.variant)
        try:
            if on_cancel is not None:
                on_cancel()
        finally:
            self._close()

    def attach(self, on_cancel: Cancel | None, on_close: Cancel | None) -> None:
        self._on_cancel = on_cancel
        self._on_close = on_close

    def _settle(self, outcome: str, payload: Any) -> None:
        if not self.pending:
            return
        # Flip state before calling out so re-entrant calls are absorbed.
        self.state = RunState.SETTLED
        handlers = self._handlers
        if outcome == "defect":
            routed = handlers is not None and handlers.catch is not propagate
            self._record("settle", outcome=outcome, routed=routed)
            if routed:
                logger.debug("%s: %s routed defect %r", self._label, self.variant, payload)
            else:
                logger.debug("%s: %s raising defect %r", self._label, self.variant, payload)
        else:
            self._record("settle", outcome=outcome)
            logger.debug("%s: %s settled with %s", self._label, self.variant, outcome)
        try:
            if handlers is None:
                return
            if outcome == "success":
                handlers.success(payload)
            elif outcome == "failure":
                (handlers.failure or raise_unhandled)(payload)
            else:
                handlers.catch(payload)
        finally:
            self._close()

    def _close(self) -> None:
        on_close = self._on_close
        self._handlers = None
        self._on_cancel = None
        self._on_close = None
        if on_close is not None:
            on_close()

    def _begin(self) -> None:
        if self._trace is None:
            return
        self._event_id = self._trace.record(
            "run_begin", info={"variant": self.variant, "label": self._label}
        )
        if self._event_id is not None:
            self._trace.push(self._event_id)

    def _end_begin(self) -> None:
        if self._trace is not None and self._event_id is not None:
            self._trace.pop()

    def _record(self, action: str, **info: Any) -> None:
        if self._trace is None:
            return
        self._trace.record(
            action,
            info={"variant": self.variant, **info},
            parent_id=self._event_id,
            duration_ms=(time.perf_counter() - self._started) * 1000,
        )


def safe_run(
    body: Body,
    handlers: Handlers,
    config: RunConfig | None = None,
    variant: str = "computation",
) -> Cancel:
    """Run body under settle-once, close-once semantics.

    Args:
        body: Receives (succeed, fail, raise_defect) and returns None, a
            cancel function, or Hooks / a mapping with on_cancel and on_close.
        handlers: Outcome channels of the caller.
        config: Run configuration, used for logging and tracing.
        variant: Name of the calling variant.

    Returns:
        Cancel handle for this execution. It is a no-op once the run is over.
    """
    execution = Execution(handlers, variant, config)
    execution._begin()
    try:
        hooks = as_hooks(body(execution.succeed, execution.fail, execution.raise_defect))
    except Exception as exc:
        execution._end_begin()
        # raise_defect re-raises when the run has already finished
        execution.raise_defect(exc)
        return noop
    execution._end_begin()

    if not execution.pending:
        # Settled while the body was still running: nothing is left to cancel.
        logger.debug("%s: %s settled synchronously", execution._label, variant)
        if hooks.on_close is not None:
            hooks.on_close()
        return noop

    execution.attach(hooks.on_cancel, hooks.on_close)
    return execution.cancel
