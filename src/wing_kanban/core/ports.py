# src/wing_kanban/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

TaskStore and ChangeFeed depend on these Protocols instead of concrete backends,
so the remote store, the local SQLite store and the in-memory test fake are swappable.
"""

from collections.abc import Callable
from typing import Any, Awaitable, Protocol

from ..tasks.task_models import ChangeEvent, TaskId

TaskRecord = dict[str, Any]
# Wire/snapshot shape: {"id": ..., "title": ..., "status": ..., "created_at": ...}.

ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    """Handle returned by TaskBackend.subscribe; releasing it stops delivery."""

    def unsubscribe(self) -> Awaitable[None]: ...


class TaskBackend(Protocol):
    """
    Collection-level CRUD + change notification.

    Every method raises BackendError on failure; callers decide how to recover.
    """

    def select_all(self, *, order_by: str = "created_at") -> Awaitable[list[TaskRecord]]: ...

    def insert(self, values: TaskRecord) -> Awaitable[TaskRecord]: ...

    def update(self, record_id: TaskId, values: TaskRecord) -> Awaitable[None]: ...

    def delete(self, record_id: TaskId) -> Awaitable[None]: ...

    def subscribe(
            self,
            collection: str,
            event: str,
            callback: ChangeCallback,
    ) -> Awaitable[Subscription]: ...

    def close(self) -> Awaitable[None]: ...


class SnapshotRepo(Protocol):
    """Key-value store holding the last known collection, read when the remote is unreachable."""

    def read(self, key: str) -> list[TaskRecord] | None: ...
    def write(self, key: str, records: list[TaskRecord]) -> None: ...


class UserNotifier(Protocol):
    """
    Presentation-side port for failures the user has to acknowledge.

    Only add_task uses it: nothing was applied locally, so the user must retry.
    """

    def alert(self, text: str) -> None: ...
