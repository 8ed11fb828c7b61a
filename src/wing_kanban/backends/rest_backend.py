# src/wing_kanban/backends/rest_backend.py

from __future__ import annotations

"""
Hosted relational store over a PostgREST-compatible HTTP API (e.g. a Supabase project).

Endpoints used (table "tasks" by default):
- GET    /rest/v1/tasks?select=*&order=created_at.asc
- POST   /rest/v1/tasks            (Prefer: return=representation)
- PATCH  /rest/v1/tasks?id=eq.<id>
- DELETE /rest/v1/tasks?id=eq.<id>

Change notification is a PollingSubscription over select_all().
"""

import logging
from typing import Any

import httpx

from ..core.errors import BackendError
from ..core.ports import ChangeCallback, TaskRecord
from ..tasks.task_models import TaskId
from .polling import PollingSubscription

logger = logging.getLogger(__name__)


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


class RestTaskBackend:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = "tasks",
        timeout_seconds: float = 10.0,
        poll_interval_seconds: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._table = table
        self._poll_interval = poll_interval_seconds
        self._subscriptions: list[PollingSubscription] = []

        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers=headers,
            timeout=_make_timeout(min(5.0, timeout_seconds), timeout_seconds),
            transport=transport,
        )
        logger.info("RestTaskBackend ready url=%s table=%s", base_url, table)

    @property
    def _path(self) -> str:
        return f"/{self._table}"

    async def _request(
        self,
        operation: str,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, self._path, params=params, json=json, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(operation, e.response.text[:200], status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise BackendError(operation, f"{e.__class__.__name__}: {e}") from e
        return resp

    @staticmethod
    def _decode(operation: str, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(operation, "response is not JSON") from e

    # ---- public API (TaskBackend) ----

    async def select_all(self, *, order_by: str = "created_at") -> list[TaskRecord]:
        resp = await self._request(
            "select", "GET", params={"select": "*", "order": f"{order_by}.asc"}
        )
        data = self._decode("select", resp)
        if not isinstance(data, list):
            raise BackendError("select", "expected a JSON array")
        return [r for r in data if isinstance(r, dict)]

    async def insert(self, values: TaskRecord) -> TaskRecord:
        resp = await self._request(
            "insert",
            "POST",
            json=values,
            headers={"Prefer": "return=representation"},
        )
        data = self._decode("insert", resp)
        # PostgREST returns the inserted rows as an array.
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0]
        if isinstance(data, dict):
            return data
        raise BackendError("insert", "server did not return the inserted record")

    async def update(self, record_id: TaskId, values: TaskRecord) -> None:
        await self._request("update", "PATCH", params={"id": f"eq.{record_id}"}, json=values)

    async def delete(self, record_id: TaskId) -> None:
        await self._request("delete", "DELETE", params={"id": f"eq.{record_id}"})

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
        await self._client.aclose()
