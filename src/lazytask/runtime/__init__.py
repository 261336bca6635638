"""Runtime module - event loop integrations for tasks."""

from lazytask.runtime.aio import after, from_awaitable, rejected_after, timeout, to_future

__all__ = [
    "after",
    "rejected_after",
    "from_awaitable",
    "to_future",
    "timeout",
]
