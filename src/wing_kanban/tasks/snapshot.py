# src/wing_kanban/tasks/snapshot.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TASKS_SNAPSHOT_KEY = "wing-kanban-tasks"
REMINDERS_SNAPSHOT_KEY = "wing-kanban-reminders"


class SnapshotStore:
    """
    JSON key-value file used as the local fallback for the board.

    Layout on disk: {"<key>": [<record>, ...], ...}

    Best-effort by contract:
    - read() never raises; a missing or corrupt file reads as "no snapshot"
    - write() logs failures instead of raising (the remote store stays the source of truth)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Snapshot file unreadable, ignoring: %s", self._path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, key: str) -> list[dict[str, Any]] | None:
        with self._lock:
            raw = self._read_all().get(key)
        if not isinstance(raw, list):
            return None
        return [r for r in raw if isinstance(r, dict)]

    def write(self, key: str, records: list[dict[str, Any]]) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = list(records)
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp = self._path.with_suffix(".tmp")
                tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
                os.replace(tmp, self._path)
                with contextlib.suppress(OSError):
                    os.chmod(self._path, 0o600)
            except OSError:
                logger.exception("Failed to write snapshot key=%s to %s", key, self._path)
                return
        logger.debug("Snapshot written key=%s records=%d", key, len(records))
