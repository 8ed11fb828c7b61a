# src/wing_kanban/tasks/task_store.py

from __future__ import annotations

"""
TaskStore: the client-side view of the task collection.

Protocol:
- load() is the only full read; it replaces the whole collection (never merges)
- add_task() is NOT optimistic: the local view only grows from the server's response
- move_task() / delete_task() are optimistic: applied locally first, then sent
- any failed optimistic write is repaired by load(), never by a per-field rollback

The backend is the source of truth. The local snapshot is only read when a load fails.
"""

import asyncio
import logging
from collections.abc import Callable

from ..core.errors import BackendError
from ..core.ports import SnapshotRepo, TaskBackend, UserNotifier
from .snapshot import TASKS_SNAPSHOT_KEY
from .task_models import Direction, Stage, Task, TaskId

logger = logging.getLogger(__name__)

StoreListener = Callable[["TaskStore"], None]


class TaskStore:
    def __init__(
        self,
        backend: TaskBackend,
        *,
        snapshots: SnapshotRepo | None = None,
        notifier: UserNotifier | None = None,
        snapshot_key: str = TASKS_SNAPSHOT_KEY,
    ) -> None:
        self._backend = backend
        self._snapshots = snapshots
        self._notifier = notifier
        self._snapshot_key = snapshot_key

        self._tasks: list[Task] = []
        # Last loaded collection plus only the writes the backend accepted. This is what the snapshot holds.
        self._confirmed: list[Task] = []
        self._listeners: list[StoreListener] = []

        self._loading = True
        self._writes_in_flight = 0

        # load() coalescing: a request is satisfied by the first fetch that starts after it.
        self._load_lock = asyncio.Lock()
        self._load_requested = 0
        self._load_served = 0

    # ---- read API ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def loading(self) -> bool:
        """True until the first load() attempt has finished."""
        return self._loading

    @property
    def syncing(self) -> bool:
        """True while at least one write is waiting for the backend."""
        return self._writes_in_flight > 0

    def get(self, task_id: TaskId) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def tasks_by_status(self, status: Stage) -> list[Task]:
        return [t for t in self._tasks if t.status == status]

    def board(self) -> dict[Stage, list[Task]]:
        return {stage: self.tasks_by_status(stage) for stage in Stage.ordered()}

    # ---- listeners ----

    def add_listener(self, callback: StoreListener) -> Callable[[], None]:
        """Register a change callback. Returns a function that removes it."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _changed(self) -> None:
        for cb in list(self._listeners):
            try:
                cb(self)
            except Exception:
                logger.exception("TaskStore listener failed")

    # ---- helpers ----

    def _replace_all(self, tasks: list[Task]) -> None:
        seen: set[TaskId] = set()
        unique: list[Task] = []
        for t in tasks:
            if t.id in seen:
                logger.warning("Duplicate task id=%s in collection; keeping first", t.id)
                continue
            seen.add(t.id)
            unique.append(t)
        self._tasks = unique
        self._confirmed = list(unique)
        self._changed()

    def _save_snapshot(self) -> None:
        if self._snapshots is None:
            return
        try:
            self._snapshots.write(self._snapshot_key, [t.to_record() for t in self._confirmed])
        except Exception:
            logger.exception("Snapshot write failed")

    def _restore_snapshot(self) -> bool:
        if self._snapshots is None:
            return False
        try:
            records = self._snapshots.read(self._snapshot_key)
        except Exception:
            logger.exception("Snapshot read failed")
            return False
        if records is None:
            return False

        tasks: list[Task] = []
        for rec in records:
            try:
                tasks.append(Task.from_record(rec))
            except (KeyError, ValueError, TypeError):
                logger.debug("Skipping malformed snapshot record: %r", rec)
        tasks.sort(key=lambda t: t.created_at)
        self._replace_all(tasks)
        logger.info("Restored %d tasks from local snapshot", len(tasks))
        return True

    def _begin_write(self) -> None:
        self._writes_in_flight += 1
        self._changed()

    def _end_write(self) -> None:
        self._writes_in_flight = max(0, self._writes_in_flight - 1)
        self._changed()

    # ---- operations ----

    async def load(self) -> None:
        """
        Re-fetch the whole collection (ordered by created_at ascending) and replace the local view.

        On failure: fall back to the local snapshot if there is one; never raises.
        Calls made while a fetch is running are served by one trailing fetch.
        """
        self._load_requested += 1
        ticket = self._load_requested

        async with self._load_lock:
            if self._load_served >= ticket:
                return

            covers = self._load_requested
            try:
                records = await self._backend.select_all(order_by="created_at")
                tasks = [Task.from_record(r) for r in records]
            except (BackendError, KeyError, ValueError, TypeError):
                logger.warning("Task load failed; trying local snapshot", exc_info=True)
                self._restore_snapshot()
            else:
                self._replace_all(tasks)
                self._save_snapshot()
                logger.debug("Loaded %d tasks", len(tasks))

            # Not reached when cancelled mid-fetch: waiting callers still need a fetch.
            self._load_served = covers
            if self._loading:
                self._loading = False
                self._changed()

    async def add_task(self, title: str) -> Task | None:
        clean = (title or "").strip()
        if not clean:
            return None

        self._begin_write()
        try:
            record = await self._backend.insert({"title": clean, "status": Stage.first().value})
            task = Task.from_record(record)
        except (BackendError, KeyError, ValueError, TypeError) as e:
            logger.warning("add_task failed title=%r: %s", clean, e)
            if self._notifier is not None:
                try:
                    self._notifier.alert(f"Could not add task {clean!r}. Please try again.")
                except Exception:
                    logger.exception("User notifier failed")
            return None
        finally:
            self._end_write()

        if self.get(task.id) is None:
            self._tasks.append(task)
        if all(t.id != task.id for t in self._confirmed):
            self._confirmed.append(task)
        self._save_snapshot()
        self._changed()
        logger.info("Task added id=%s title=%r", task.id, task.title)
        return task

    async def move_task(self, task_id: TaskId, direction: Direction | str) -> None:
        direction = Direction.parse(direction) if isinstance(direction, str) else direction

        current = self.get(task_id)
        if current is None:
            return

        new_status = current.status.shifted(direction.step)
        if new_status == current.status:
            return

        # optimistic
        self._tasks = [t.with_status(new_status) if t.id == task_id else t for t in self._tasks]
        self._changed()

        self._begin_write()
        try:
            await self._backend.update(task_id, {"status": new_status.value})
        except BackendError as e:
            logger.warning("move_task failed id=%s -> %s: %s; reloading", task_id, new_status, e)
            ok = False
        else:
            ok = True
        finally:
            self._end_write()

        if ok:
            self._confirmed = [t.with_status(new_status) if t.id == task_id else t for t in self._confirmed]
            self._save_snapshot()
            logger.info("Task %s -> %s", task_id, new_status.value)
        else:
            await self.load()

    async def delete_task(self, task_id: TaskId) -> None:
        if self.get(task_id) is None:
            return

        # optimistic
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._changed()

        self._begin_write()
        try:
            await self._backend.delete(task_id)
        except BackendError as e:
            logger.warning("delete_task failed id=%s: %s; reloading", task_id, e)
            ok = False
        else:
            ok = True
        finally:
            self._end_write()

        if ok:
            self._confirmed = [t for t in self._confirmed if t.id != task_id]
            self._save_snapshot()
            logger.info("Task %s deleted", task_id)
        else:
            await self.load()
