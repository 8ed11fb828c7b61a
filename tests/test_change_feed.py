# tests/test_change_feed.py

from __future__ import annotations

import asyncio
import threading

import pytest

from wing_kanban.tasks.change_feed import ChangeFeed
from wing_kanban.tasks.task_models import ChangeEvent, ChangeType, Stage
from wing_kanban.tasks.task_store import TaskStore

from .fakes import FakeBackend


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_any_event_triggers_full_reload(store: TaskStore, backend: FakeBackend) -> None:
    await store.load()
    feed = ChangeFeed(backend, store)
    assert await feed.subscribe()
    assert backend.calls[-1] == ("subscribe", ("tasks", "*"))

    # Another session inserts and updates rows; the payload is deliberately useless.
    backend.rows.append({"id": 9, "title": "remote", "status": "Done", "created_at": 500.0})
    backend.rows[0]["status"] = "In Progress"
    backend.push(ChangeType.INSERT, record_id=None)
    await _settle()

    assert [t.id for t in store.tasks] == [1, 9]
    assert store.get(1).status is Stage.IN_PROGRESS

    backend.rows = []
    backend.push(ChangeType.DELETE, record_id=1)
    await _settle()
    assert store.tasks == ()

    await feed.unsubscribe()


@pytest.mark.asyncio
async def test_unsubscribe_releases_handle_and_is_idempotent(store: TaskStore, backend: FakeBackend) -> None:
    feed = ChangeFeed(backend, store)
    await feed.subscribe()
    sub = backend.subscriptions[0]

    await feed.unsubscribe()
    await feed.unsubscribe()

    assert sub.released
    assert not feed.subscribed
    assert backend.subscriptions == []


@pytest.mark.asyncio
async def test_events_after_unsubscribe_are_ignored(store: TaskStore, backend: FakeBackend) -> None:
    feed = ChangeFeed(backend, store)
    await feed.subscribe()
    callback = backend.subscriptions[0].callback
    await feed.unsubscribe()

    selects_before = sum(1 for c in backend.calls if c[0] == "select")
    callback(ChangeEvent("tasks", ChangeType.UPDATE, 1))  # late delivery from the transport
    await _settle()
    assert sum(1 for c in backend.calls if c[0] == "select") == selects_before


@pytest.mark.asyncio
async def test_subscribe_failure_degrades_to_manual_loads(store: TaskStore, backend: FakeBackend) -> None:
    backend.fail.add("subscribe")
    feed = ChangeFeed(backend, store)

    assert await feed.subscribe() is False
    assert not feed.subscribed

    # Manual operations keep working.
    await store.load()
    task = await store.add_task("still works")
    assert task is not None


@pytest.mark.asyncio
async def test_context_manager_releases_subscription(store: TaskStore, backend: FakeBackend) -> None:
    async with ChangeFeed(backend, store) as feed:
        assert feed.subscribed
        sub = backend.subscriptions[0]
    assert sub.released


@pytest.mark.asyncio
async def test_burst_of_events_is_coalesced(store: TaskStore, backend: FakeBackend) -> None:
    gate = asyncio.Event()
    backend.select_gate = gate
    feed = ChangeFeed(backend, store)
    await feed.subscribe()

    for _ in range(10):
        backend.push()
    await _settle()
    gate.set()
    await asyncio.sleep(0.05)

    selects = [c for c in backend.calls if c[0] == "select"]
    assert 1 <= len(selects) <= 2
    await feed.unsubscribe()


@pytest.mark.asyncio
async def test_event_from_another_thread_reloads_on_the_loop(store: TaskStore, backend: FakeBackend) -> None:
    await store.load()
    feed = ChangeFeed(backend, store)
    await feed.subscribe()

    backend.rows.append({"id": 2, "title": "from elsewhere", "status": "To Do", "created_at": 300.0})
    pusher = threading.Thread(target=backend.push, args=(ChangeType.INSERT, 2))
    pusher.start()
    pusher.join()

    for _ in range(20):
        if [t.id for t in store.tasks] == [1, 2]:
            break
        await asyncio.sleep(0.01)

    assert [t.id for t in store.tasks] == [1, 2]
    await feed.unsubscribe()
