"""Runtime trace of task executions - separate from task values.

Trace is runtime infrastructure: it observes runs, it never changes their
outcome. Tree relationships are reconstructed only on demand via as_tree().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Evidence:
    """A single execution event captured at runtime.

    Attributes:
        action: What happened ("run_begin", "settle", "cancel").
        id: Sequential event id, unique within one Trace.
        parent_id: Id of the enclosing event, if any.
        timestamp: When the event was recorded.
        info: Extra context (variant name, outcome, ...).
        duration_ms: Time since the matching run_begin, for terminal events.
    """

    action: str
    id: int = 0
    parent_id: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    info: dict[str, Any] = field(default_factory=dict)
    duration_ms: float | None = None

    def __str__(self) -> str:
        duration = f" took {self.duration_ms:.3f}ms" if self.duration_ms is not None else ""
        return f"{self.action}{duration}"


class Trace:
    """Collects Evidence for every guarded execution of a run.

    Uses stack-based nesting via push/pop so that executions started while
    another one is starting become its children. Meant for the single
    threaded runtime; it takes no locks.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._events: list[Evidence] = []
        self._next_id: int = 0
        self._stack: list[int] = []

    def push(self, event_id: int) -> None:
        """Make event_id the implicit parent of events recorded next."""
        self._stack.append(event_id)

    def pop(self) -> int | None:
        if self._stack:
            return self._stack.pop()
        return None

    def record(
        self,
        action: str,
        info: dict[str, Any] | None = None,
        parent_id: int | None = None,
        duration_ms: float | None = None,
    ) -> int | None:
        """Record an evidence event.

        Args:
            action: What happened
            info: Additional context
            parent_id: Explicit parent event id; defaults to the stack top
            duration_ms: Execution duration

        Returns:
            Event id for linking child events, or None if tracing is disabled
        """
        if not self.enabled:
            return None

        if parent_id is not None:
            effective_parent = parent_id
        elif self._stack:
            effective_parent = self._stack[-1]
        else:
            effective_parent = None

        event_id = self._next_id
        self._next_id += 1

        self._events.append(
            Evidence(
                action=action,
                id=event_id,
                parent_id=effective_parent,
                timestamp=datetime.now(UTC),
                info=info or {},
                duration_ms=duration_ms,
            )
        )
        return event_id

    def get_events(self) -> list[Evidence]:
        return list(self._events)

    def find_all(self, **criteria: Any) -> list[Evidence]:
        """Events whose attributes or info entries match every criterion."""
        return [
            e
            for e in self._events
            if all(getattr(e, k, None) == v or e.info.get(k) == v for k, v in criteria.items())
        ]

    def as_tree(self) -> dict[int | None, list[int]]:
        """Map each parent id to the ids of its child events."""
        tree: dict[int | None, list[int]] = {}
        for ev in self._events:
            tree.setdefault(ev.parent_id, []).append(ev.id)
        return tree

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
        self._next_id = 0
        self._stack.clear()
