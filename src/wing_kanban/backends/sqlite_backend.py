# src/wing_kanban/backends/sqlite_backend.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..core.errors import BackendError
from ..core.ports import ChangeCallback, TaskRecord
from ..tasks.task_models import Stage, TaskId
from .polling import PollingSubscription

logger = logging.getLogger(__name__)

_ORDERABLE = {"created_at", "id", "title", "status"}


class SqliteTaskBackend:
    """
    Local SQLite task collection (offline / local-only mode).

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Each call opens its own short-lived connection and runs in a worker thread,
    so the event loop never blocks on disk I/O.
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        table: str = "tasks",
        poll_interval_seconds: float = 2.0,
    ) -> None:
        if not table.isidentifier():
            raise ValueError(f"invalid table name: {table!r}")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._table = table
        self._poll_interval = poll_interval_seconds
        self._subscriptions: list[PollingSubscription] = []
        self._ensure_schema()
        logger.info("SqliteTaskBackend ready db=%s table=%s", self._db_path, self._table)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT '{Stage.first().value}',
                    created_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute(f"PRAGMA table_info({self._table})")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE {self._table} ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskBackend migration: added column %s", name)

            add_col("status", f"TEXT NOT NULL DEFAULT '{Stage.first().value}'")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")

            cur.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self._table}_created ON {self._table}(created_at)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> TaskRecord:
        return {
            "id": int(row["id"]),
            "title": str(row["title"] or ""),
            "status": Stage.from_raw(row["status"]).value,
            "created_at": float(row["created_at"] or 0.0),
        }

    async def _run(self, operation: str, fn, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            raise BackendError(operation, str(e)) from e

    # ---- sync implementations ----

    def _select_all_sync(self, order_by: str) -> list[TaskRecord]:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"SELECT * FROM {self._table} ORDER BY {order_by} ASC, id ASC")
            return [self._row_to_record(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _insert_sync(self, title: str, status: str) -> TaskRecord:
        now = time.time()
        conn = self._get_conn()
        try:
            cur = conn.execute(
                f"INSERT INTO {self._table}(title, status, created_at) VALUES (?, ?, ?)",
                (title, status, now),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise sqlite3.DatabaseError("SQLite did not return lastrowid for task insert")
            row = conn.execute(f"SELECT * FROM {self._table} WHERE id = ?", (rowid,)).fetchone()
            return self._row_to_record(row)
        finally:
            conn.close()

    def _update_sync(self, record_id: int, fields: dict[str, Any]) -> None:
        sets = ", ".join(f"{k} = ?" for k in fields)
        conn = self._get_conn()
        try:
            conn.execute(
                f"UPDATE {self._table} SET {sets} WHERE id = ?",
                (*fields.values(), record_id),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete_sync(self, record_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(f"DELETE FROM {self._table} WHERE id = ?", (record_id,))
            conn.commit()
        finally:
            conn.close()

    # ---- public API (TaskBackend) ----

    async def select_all(self, *, order_by: str = "created_at") -> list[TaskRecord]:
        if order_by not in _ORDERABLE:
            raise BackendError("select", f"cannot order by {order_by!r}")
        return await self._run("select", self._select_all_sync, order_by)

    async def insert(self, values: TaskRecord) -> TaskRecord:
        title = str(values.get("title") or "").strip()
        if not title:
            raise BackendError("insert", "title is required")
        status = Stage.from_raw(values.get("status")).value
        record = await self._run("insert", self._insert_sync, title, status)
        logger.debug("Task inserted id=%s status=%s", record["id"], status)
        return record

    async def update(self, record_id: TaskId, values: TaskRecord) -> None:
        fields: dict[str, Any] = {}
        if "status" in values:
            fields["status"] = Stage.from_raw(values["status"]).value
        if "title" in values:
            fields["title"] = str(values["title"] or "").strip()
        if not fields:
            return
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            raise BackendError("update", f"invalid id {record_id!r}") from None
        await self._run("update", self._update_sync, rid, fields)

    async def delete(self, record_id: TaskId) -> None:
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            raise BackendError("delete", f"invalid id {record_id!r}") from None
        await self._run("delete", self._delete_sync, rid)

    async def subscribe(self, collection: str, event: str, callback: ChangeCallback) -> PollingSubscription:
        if collection != self._table:
            raise BackendError("subscribe", f"unknown collection {collection!r}")
        sub = PollingSubscription(
            self.select_all,
            collection=collection,
            event=event,
            callback=callback,
            interval_seconds=self._poll_interval,
            on_unsubscribe=self._forget,
        )
        await sub.start()
        self._subscriptions.append(sub)
        return sub

    def _forget(self, sub: PollingSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def close(self) -> None:
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            await sub.unsubscribe()
