# tests/test_polling.py

from __future__ import annotations

import asyncio

import pytest

from wing_kanban.backends.polling import PollingSubscription, diff_records
from wing_kanban.core.errors import BackendError, SubscriptionError
from wing_kanban.tasks.task_models import ChangeEvent, ChangeType


def test_diff_records_classifies_changes() -> None:
    before = [
        {"id": 1, "title": "a", "status": "To Do"},
        {"id": 2, "title": "b", "status": "To Do"},
    ]
    after = [
        {"id": 1, "title": "a", "status": "Done"},
        {"id": 3, "title": "c", "status": "To Do"},
    ]
    events = diff_records("tasks", before, after)
    assert {(e.change_type, e.record_id) for e in events} == {
        (ChangeType.UPDATE, 1),
        (ChangeType.INSERT, 3),
        (ChangeType.DELETE, 2),
    }


def test_diff_records_no_change() -> None:
    rows = [{"id": 1, "title": "a", "status": "To Do"}]
    assert diff_records("tasks", rows, [dict(rows[0])]) == []


class ScriptedFetch:
    """Returns queued results in order; the last one repeats. Exceptions are raised."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        item = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.mark.asyncio
async def test_event_filter_and_poll_error_recovery() -> None:
    fetch = ScriptedFetch(
        [{"id": 1, "title": "a", "status": "To Do"}],
        BackendError("select", "flaky"),
        [{"id": 1, "title": "a", "status": "Done"}, {"id": 2, "title": "b", "status": "To Do"}],
    )
    events: list[ChangeEvent] = []
    sub = PollingSubscription(
        fetch, collection="tasks", event="INSERT", callback=events.append, interval_seconds=0.01
    )
    await sub.start()
    assert sub.active
    await asyncio.sleep(0.1)
    await sub.unsubscribe()

    assert not sub.active
    assert [(e.change_type, e.record_id) for e in events] == [(ChangeType.INSERT, 2)]
    assert fetch.calls >= 3


@pytest.mark.asyncio
async def test_baseline_failure_raises_subscription_error() -> None:
    fetch = ScriptedFetch(BackendError("select", "down"))
    sub = PollingSubscription(fetch, collection="tasks", event="*", callback=lambda e: None)
    with pytest.raises(SubscriptionError):
        await sub.start()
    assert not sub.active


def test_unknown_event_filter_rejected() -> None:
    with pytest.raises(SubscriptionError):
        PollingSubscription(ScriptedFetch([]), collection="tasks", event="TRUNCATE", callback=lambda e: None)


@pytest.mark.asyncio
async def test_unexpected_poll_error_does_not_stop_polling() -> None:
    fetch = ScriptedFetch(
        [],
        ValueError("could not convert string to float: 'yesterday'"),
        [{"id": 1, "title": "a", "status": "To Do"}],
    )
    events: list[ChangeEvent] = []
    sub = PollingSubscription(fetch, collection="tasks", event="*", callback=events.append, interval_seconds=0.01)
    await sub.start()
    await asyncio.sleep(0.1)

    assert sub.active
    assert [(e.change_type, e.record_id) for e in events] == [(ChangeType.INSERT, 1)]
    await sub.unsubscribe()


@pytest.mark.asyncio
async def test_unsubscribe_notifies_owner_once() -> None:
    released: list[PollingSubscription] = []
    sub = PollingSubscription(
        ScriptedFetch([]), collection="tasks", event="*", callback=lambda e: None, on_unsubscribe=released.append
    )
    await sub.start()
    await sub.unsubscribe()
    await sub.unsubscribe()
    assert released == [sub]
