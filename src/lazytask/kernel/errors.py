"""Error types raised by the task runtime."""

from __future__ import annotations


class UnhandledFailure(Exception):
    """Raised when a task fails and the caller supplied no failure handler.

    The original failure value is preserved so that callers catching this
    error can still inspect what went wrong.
    """

    def __init__(self, failure: object) -> None:
        self.failure = failure
        super().__init__(str(failure))

    def __repr__(self) -> str:
        return f"UnhandledFailure({self.failure!r})"


class TaskConstructionError(TypeError):
    """Error raised when a task tree is built from invalid parts."""
