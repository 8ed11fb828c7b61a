# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from wing_kanban.cli.bootstrap import create_initial_state
from wing_kanban.core.state import AppState
from wing_kanban.tasks.task_store import TaskStore

from .fakes import FakeBackend, FakeNotifier, MemorySnapshots


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any .env file.
    """
    return SimpleNamespace(
        app_name="Wing Kanban (test)",
        log_level="DEBUG",
        backend="sqlite",
        rest_url="",
        rest_api_key=None,
        rest_table="tasks",
        rest_timeout_seconds=5.0,
        realtime_enabled=True,
        realtime_interval_seconds=0.05,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        snapshot_path=tmp_path / "snapshot.json",
        seed_demo_tasks=False,
    )


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(
        [
            {"id": 1, "title": "A", "status": "To Do", "created_at": 100.0},
        ]
    )


@pytest.fixture()
def snapshots() -> MemorySnapshots:
    return MemorySnapshots()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def store(backend: FakeBackend, snapshots: MemorySnapshots, notifier: FakeNotifier) -> TaskStore:
    return TaskStore(backend, snapshots=snapshots, notifier=notifier)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired by the real bootstrap.

    NOTE: We keep the real SQLite backend and JSON snapshot here because
    their correctness is part of what we want to test.
    """
    return create_initial_state(settings=settings, notifier=FakeNotifier())
