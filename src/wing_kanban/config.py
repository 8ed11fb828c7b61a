# src/wing_kanban/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the REST key is only needed for backend=rest).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "WING"

BACKENDS = ("sqlite", "rest")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Backend selection ----
    backend: str

    # ---- Hosted store (PostgREST / Supabase) ----
    rest_url: str
    rest_api_key: str | None
    rest_table: str
    rest_timeout_seconds: float

    # ---- Realtime ----
    realtime_enabled: bool
    realtime_interval_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    snapshot_path: Path

    # ---- Demo ----
    seed_demo_tasks: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Wing Kanban")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        backend = _env(_k("BACKEND"), "sqlite").strip().lower()

        # Accept the usual Supabase variable names as a fallback.
        rest_url = (_first_env(_k("REST_URL"), "SUPABASE_URL", default="") or "").strip()
        rest_api_key = _first_env(_k("REST_API_KEY"), "SUPABASE_ANON_KEY", "SUPABASE_KEY", default=None)
        rest_table = _env(_k("REST_TABLE"), "tasks").strip() or "tasks"
        rest_timeout_seconds = _env_float(_k("REST_TIMEOUT_SECONDS"), 10.0)

        realtime_enabled = _env_bool(_k("REALTIME_ENABLED"), True)
        realtime_interval_seconds = max(0.5, _env_float(_k("REALTIME_INTERVAL_SECONDS"), 2.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/wing"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        snapshot_path = _env_path(_k("SNAPSHOT_PATH"), data_dir / "snapshot.json")

        seed_demo_tasks = _env_bool(_k("SEED_DEMO_TASKS"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            backend=backend,
            rest_url=rest_url,
            rest_api_key=rest_api_key,
            rest_table=rest_table,
            rest_timeout_seconds=rest_timeout_seconds,
            realtime_enabled=realtime_enabled,
            realtime_interval_seconds=realtime_interval_seconds,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            snapshot_path=snapshot_path,
            seed_demo_tasks=seed_demo_tasks,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load .env (without overriding real env vars) once and cache the Settings."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
