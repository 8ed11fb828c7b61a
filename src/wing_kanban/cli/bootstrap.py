# src/wing_kanban/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task backend (local SQLite or hosted REST store),
- wires snapshot store, TaskStore, ChangeFeed and reminders into AppState.
"""

from __future__ import annotations

import logging

from ..backends.rest_backend import RestTaskBackend
from ..backends.sqlite_backend import SqliteTaskBackend
from ..config import BACKENDS, get_settings
from ..core.errors import ConfigError
from ..core.ports import TaskBackend, UserNotifier
from ..core.state import AppState
from ..tasks.change_feed import ChangeFeed
from ..tasks.reminders import ReminderBook
from ..tasks.snapshot import SnapshotStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.snapshot_path.parent.mkdir(parents=True, exist_ok=True)


def create_backend(settings) -> tuple[TaskBackend, str]:
    """Build the configured backend. Returns (backend, collection name)."""
    kind = str(getattr(settings, "backend", "sqlite")).strip().lower()
    if kind not in BACKENDS:
        raise ConfigError(f"Unknown backend {kind!r}; expected one of {', '.join(BACKENDS)}")

    interval = float(getattr(settings, "realtime_interval_seconds", 2.0))

    if kind == "rest":
        url = (getattr(settings, "rest_url", "") or "").strip()
        key = getattr(settings, "rest_api_key", None)
        if not url or not key:
            raise ConfigError("backend=rest needs WING_REST_URL and WING_REST_API_KEY")
        table = getattr(settings, "rest_table", "tasks") or "tasks"
        backend = RestTaskBackend(
            url,
            key,
            table=table,
            timeout_seconds=float(getattr(settings, "rest_timeout_seconds", 10.0)),
            poll_interval_seconds=interval,
        )
        return backend, table

    backend = SqliteTaskBackend(settings.tasks_db_path, poll_interval_seconds=interval)
    return backend, "tasks"


def create_initial_state(*, settings=None, notifier: UserNotifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    backend, collection = create_backend(settings)
    snapshots = SnapshotStore(settings.snapshot_path)
    store = TaskStore(backend, snapshots=snapshots, notifier=notifier)
    feed = ChangeFeed(backend, store, collection=collection)

    logger.info("Board wired backend=%s collection=%s", settings.backend, collection)
    return AppState(
        settings=settings,
        backend=backend,
        snapshots=snapshots,
        task_store=store,
        change_feed=feed,
        reminders=ReminderBook(snapshots),
    )
