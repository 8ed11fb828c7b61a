# src/wing_kanban/tasks/reminders.py

from __future__ import annotations

import logging

from ..core.ports import SnapshotRepo
from .snapshot import REMINDERS_SNAPSHOT_KEY
from .task_models import Reminder

logger = logging.getLogger(__name__)


class ReminderBook:
    """
    Local-only reminders list.

    Reminders are never synchronized with the backend and never executed:
    `schedule` is free text shown next to the label.
    """

    def __init__(self, snapshots: SnapshotRepo | None, *, key: str = REMINDERS_SNAPSHOT_KEY) -> None:
        self._snapshots = snapshots
        self._key = key
        self._items: list[Reminder] = self._load()

    def _load(self) -> list[Reminder]:
        if self._snapshots is None:
            return []
        out: list[Reminder] = []
        for rec in self._snapshots.read(self._key) or []:
            try:
                out.append(Reminder.from_record(rec))
            except (KeyError, ValueError, TypeError):
                logger.debug("Skipping malformed reminder record: %r", rec)
        return out

    def _save(self) -> None:
        if self._snapshots is None:
            return
        self._snapshots.write(self._key, [r.to_record() for r in self._items])

    @property
    def reminders(self) -> list[Reminder]:
        return list(self._items)

    def get(self, reminder_id: int) -> Reminder | None:
        for r in self._items:
            if r.id == reminder_id:
                return r
        return None

    def add(self, label: str, schedule: str = "") -> Reminder | None:
        clean = (label or "").strip()
        if not clean:
            return None
        next_id = max((r.id for r in self._items), default=0) + 1
        reminder = Reminder(id=next_id, label=clean, schedule=(schedule or "").strip())
        self._items.append(reminder)
        self._save()
        return reminder

    def remove(self, reminder_id: int) -> bool:
        before = len(self._items)
        self._items = [r for r in self._items if r.id != reminder_id]
        if len(self._items) == before:
            return False
        self._save()
        return True

    def set_enabled(self, reminder_id: int, enabled: bool) -> Reminder | None:
        reminder = self.get(reminder_id)
        if reminder is None:
            return None
        reminder.enabled = bool(enabled)
        self._save()
        return reminder

    def toggle(self, reminder_id: int) -> Reminder | None:
        reminder = self.get(reminder_id)
        if reminder is None:
            return None
        return self.set_enabled(reminder_id, not reminder.enabled)
