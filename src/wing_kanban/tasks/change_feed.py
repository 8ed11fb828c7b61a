# src/wing_kanban/tasks/change_feed.py

from __future__ import annotations

"""
ChangeFeed: keeps a TaskStore fresh when other sessions change the collection.

Every notification, whatever its payload, triggers a full TaskStore.load().
A failed subscribe is not fatal: the board keeps working on manual loads only.
"""

import asyncio
import contextlib
import logging

from ..core.errors import BackendError
from ..core.ports import Subscription, TaskBackend
from .task_models import ChangeEvent, ChangeType
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class ChangeFeed:
    def __init__(
        self,
        backend: TaskBackend,
        store: TaskStore,
        *,
        collection: str = "tasks",
        event: str = ChangeType.ALL.value,
    ) -> None:
        self._backend = backend
        self._store = store
        self._collection = collection
        self._event = event
        self._subscription: Subscription | None = None
        self._reloads: set[asyncio.Task[None]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    async def subscribe(self) -> bool:
        """Open the standing subscription. Returns False (and stays unsubscribed) on failure."""
        if self._subscription is not None:
            return True

        self._loop = asyncio.get_running_loop()
        try:
            self._subscription = await self._backend.subscribe(
                self._collection, self._event, self._on_change
            )
        except BackendError as e:
            logger.warning("Change feed unavailable for %s (%s); realtime disabled", self._collection, e)
            self._subscription = None
            return False

        logger.info("Change feed subscribed collection=%s event=%s", self._collection, self._event)
        return True

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug(
            "Change received collection=%s type=%s id=%s",
            event.collection,
            event.change_type,
            event.record_id,
        )
        if self._subscription is None or self._loop is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._spawn_reload()
        else:
            # Delivered from a transport thread.
            self._loop.call_soon_threadsafe(self._spawn_reload)

    def _spawn_reload(self) -> None:
        if self._subscription is None:
            return
        task = asyncio.ensure_future(self._store.load())
        self._reloads.add(task)
        task.add_done_callback(self._reloads.discard)

    async def unsubscribe(self) -> None:
        """Release the subscription and wait for reloads it started. Safe to call twice."""
        sub, self._subscription = self._subscription, None
        if sub is not None:
            try:
                await sub.unsubscribe()
            except BackendError:
                logger.warning("Change feed unsubscribe failed", exc_info=True)
            logger.info("Change feed unsubscribed collection=%s", self._collection)

        pending = list(self._reloads)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._reloads.clear()

    async def __aenter__(self) -> ChangeFeed:
        await self.subscribe()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unsubscribe()
