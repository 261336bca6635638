"""Kernel layer - tasks, handlers and the settlement guard."""

from lazytask.kernel.errors import TaskConstructionError, UnhandledFailure
from lazytask.kernel.guard import Execution, RunState, safe_run
from lazytask.kernel.handlers import (
    Cancel,
    Computation,
    Handler,
    Handlers,
    Hooks,
    noop,
    normalize_handlers,
    propagate,
    raise_unhandled,
)
from lazytask.kernel.task import (
    All,
    Chain,
    Empty,
    FromComputation,
    Map,
    MapRejected,
    Of,
    OrElse,
    Race,
    Rejected,
    Task,
)
from lazytask.kernel.trace import Evidence, Trace

__all__ = [
    "Task",
    # Variants
    "FromComputation",
    "Of",
    "Rejected",
    "Empty",
    "Map",
    "MapRejected",
    "Chain",
    "OrElse",
    "All",
    "Race",
    # Handlers
    "Cancel",
    "Computation",
    "Handler",
    "Handlers",
    "Hooks",
    "noop",
    "normalize_handlers",
    "propagate",
    "raise_unhandled",
    # Guard
    "Execution",
    "RunState",
    "safe_run",
    # Errors
    "UnhandledFailure",
    "TaskConstructionError",
    # Tracing
    "Evidence",
    "Trace",
]
