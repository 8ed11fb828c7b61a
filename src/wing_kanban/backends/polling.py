# src/wing_kanban/backends/polling.py

from __future__ import annotations

"""
Polling change subscription.

A small loop that:
- re-reads the collection every interval,
- diffs it against the previous read,
- delivers INSERT / UPDATE / DELETE events matching the filter.

Failed polls are logged and retried on the next tick. To stop it, call unsubscribe().
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.errors import BackendError, SubscriptionError
from ..core.ports import ChangeCallback, TaskRecord
from ..tasks.task_models import ChangeEvent, ChangeType

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[TaskRecord]]]


def _index(records: list[TaskRecord]) -> dict[Any, tuple[Any, ...]]:
    out: dict[Any, tuple[Any, ...]] = {}
    for r in records:
        if "id" not in r:
            continue
        out[r["id"]] = tuple(sorted((k, str(v)) for k, v in r.items()))
    return out


def diff_records(
    collection: str,
    before: list[TaskRecord],
    after: list[TaskRecord],
) -> list[ChangeEvent]:
    old = _index(before)
    new = _index(after)

    events: list[ChangeEvent] = []
    for rid, row in new.items():
        if rid not in old:
            events.append(ChangeEvent(collection, ChangeType.INSERT, rid))
        elif old[rid] != row:
            events.append(ChangeEvent(collection, ChangeType.UPDATE, rid))
    for rid in old:
        if rid not in new:
            events.append(ChangeEvent(collection, ChangeType.DELETE, rid))
    return events


class PollingSubscription:
    def __init__(
        self,
        fetch: Fetcher,
        *,
        collection: str,
        event: str,
        callback: ChangeCallback,
        interval_seconds: float = 2.0,
        on_unsubscribe: Callable[[PollingSubscription], None] | None = None,
    ) -> None:
        try:
            self._filter = ChangeType(event)
        except ValueError:
            raise SubscriptionError(f"unsupported event filter: {event!r}") from None

        self._fetch = fetch
        self._collection = collection
        self._callback = callback
        self._interval = max(0.01, float(interval_seconds))
        self._last: list[TaskRecord] = []
        self._runner: asyncio.Task[None] | None = None
        self._on_unsubscribe = on_unsubscribe

    @property
    def active(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def start(self) -> None:
        """Take the baseline read and start polling. Raises SubscriptionError if the baseline fails."""
        try:
            self._last = await self._fetch()
        except BackendError as e:
            raise SubscriptionError(str(e)) from e
        self._runner = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                current = await self._fetch()
            except BackendError:
                logger.warning("Change poll failed collection=%s", self._collection, exc_info=True)
                continue
            except Exception:
                logger.exception("Change poll crashed collection=%s; retrying", self._collection)
                continue

            events = diff_records(self._collection, self._last, current)
            self._last = current

            for ev in events:
                if not self._filter.matches(ev.change_type):
                    continue
                try:
                    self._callback(ev)
                except Exception:
                    logger.exception("Change callback failed collection=%s", self._collection)

    async def unsubscribe(self) -> None:
        runner, self._runner = self._runner, None
        on_unsubscribe, self._on_unsubscribe = self._on_unsubscribe, None
        if on_unsubscribe is not None:
            on_unsubscribe(self)
        if runner is None:
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
