from .combinators import all_of, ap, concat, create, empty, of, race, rejected
from .config import DEFAULT_CONFIG, RunConfig
from .kernel import (
    Cancel,
    Evidence,
    Handlers,
    Hooks,
    Task,
    TaskConstructionError,
    Trace,
    UnhandledFailure,
)

__all__ = [
    # Core
    "Task",
    "Handlers",
    "Hooks",
    "Cancel",
    # Construction
    "create",
    "of",
    "rejected",
    "empty",
    "all_of",
    "race",
    # Derived
    "ap",
    "concat",
    # Configuration
    "RunConfig",
    "DEFAULT_CONFIG",
    # Errors
    "UnhandledFailure",
    "TaskConstructionError",
    # Tracing
    "Trace",
    "Evidence",
]
