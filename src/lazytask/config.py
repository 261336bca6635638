"""Run configuration shared by every execution of a task tree."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lazytask.kernel.handlers import raise_unhandled
from lazytask.kernel.trace import Trace


class RunConfig(BaseModel):
    """Settings for one call to Task.run().

    The same config object is handed to every sub-run of the tree.

    Attributes:
        on_unhandled: Sink for failures when the caller gave no failure
            handler. Defaults to raising.
        trace: Optional trace collecting lifecycle evidence.
        label: Name used for log records and the root trace event.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    on_unhandled: Callable[[Any], None] = Field(default=raise_unhandled)
    trace: Trace | None = None
    label: str = Field(default="task", min_length=1)


DEFAULT_CONFIG = RunConfig()
