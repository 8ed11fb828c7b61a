# src/wing_kanban/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.change_feed import ChangeFeed
from ..tasks.reminders import ReminderBook
from ..tasks.snapshot import SnapshotStore
from ..tasks.task_store import TaskStore
from .ports import TaskBackend


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: Any

    backend: TaskBackend
    snapshots: SnapshotStore
    task_store: TaskStore
    change_feed: ChangeFeed
    reminders: ReminderBook
