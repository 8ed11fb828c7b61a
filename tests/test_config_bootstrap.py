# tests/test_config_bootstrap.py

from __future__ import annotations

from pathlib import Path

import pytest

from wing_kanban.backends.rest_backend import RestTaskBackend
from wing_kanban.backends.sqlite_backend import SqliteTaskBackend
from wing_kanban.cli.bootstrap import create_backend
from wing_kanban.config import Settings
from wing_kanban.core.errors import ConfigError
from wing_kanban.tasks.task_api import DEMO_TASKS, render_board, seed_demo_tasks
from wing_kanban.tasks.task_models import Stage
from wing_kanban.tasks.task_store import TaskStore

from .fakes import FakeBackend


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WING_BACKEND", " REST ")
    monkeypatch.delenv("WING_REST_URL", raising=False)
    monkeypatch.delenv("WING_REST_API_KEY", raising=False)
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("WING_REALTIME_ENABLED", "no")
    monkeypatch.setenv("WING_REALTIME_INTERVAL_SECONDS", "0.01")
    monkeypatch.setenv("WING_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("WING_TASKS_DB_PATH", raising=False)
    monkeypatch.delenv("WING_SNAPSHOT_PATH", raising=False)

    s = Settings.from_env()

    assert s.backend == "rest"
    assert s.rest_url == "https://demo.supabase.co"
    assert s.rest_api_key == "anon"
    assert s.realtime_enabled is False
    assert s.realtime_interval_seconds == 0.5
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.snapshot_path == tmp_path / "snapshot.json"


def test_create_backend_picks_implementation(settings) -> None:
    backend, collection = create_backend(settings)
    assert isinstance(backend, SqliteTaskBackend)
    assert collection == "tasks"

    settings.backend = "rest"
    settings.rest_url = "https://demo.supabase.co"
    settings.rest_api_key = "anon"
    settings.rest_table = "board_tasks"
    backend, collection = create_backend(settings)
    assert isinstance(backend, RestTaskBackend)
    assert collection == "board_tasks"


def test_create_backend_rejects_bad_config(settings) -> None:
    settings.backend = "mongo"
    with pytest.raises(ConfigError):
        create_backend(settings)

    settings.backend = "rest"
    settings.rest_url = "https://demo.supabase.co"
    settings.rest_api_key = None
    with pytest.raises(ConfigError):
        create_backend(settings)


def test_state_wiring(state) -> None:
    assert state.task_store.loading
    assert not state.change_feed.subscribed
    assert state.reminders.reminders == []
    assert state.settings.snapshot_path.parent.is_dir()


@pytest.mark.asyncio
async def test_seed_demo_tasks_only_on_empty_board() -> None:
    store = TaskStore(FakeBackend())
    await store.load()

    assert await seed_demo_tasks(store) == len(DEMO_TASKS)
    assert [(t.title, t.status) for t in store.tasks] == list(DEMO_TASKS)
    assert await seed_demo_tasks(store) == 0


@pytest.mark.asyncio
async def test_render_board(store: TaskStore) -> None:
    assert render_board(store) == "Loading..."
    await store.load()

    text = render_board(store)
    assert text.splitlines() == [
        f"{Stage.TODO.value} (1)",
        "  [1] A",
        f"{Stage.IN_PROGRESS.value} (0)",
        "  No tasks",
        f"{Stage.DONE.value} (0)",
        "  No tasks",
    ]
