# src/wing_kanban/tasks/task_models.py

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

TaskId = int | str


class Stage(StrEnum):
    """
    Board column a task sits in.

    Declaration order is the board order: moving "forward" means one position to the right.
    """

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    @classmethod
    def ordered(cls) -> list[Stage]:
        return list(cls)

    @classmethod
    def first(cls) -> Stage:
        return cls.ordered()[0]

    @classmethod
    def last(cls) -> Stage:
        return cls.ordered()[-1]

    @classmethod
    def from_raw(cls, raw: str | None) -> Stage:
        if not raw:
            return cls.first()
        try:
            return cls(raw)
        except ValueError:
            return cls.first()

    @property
    def position(self) -> int:
        return Stage.ordered().index(self)

    def shifted(self, step: int) -> Stage:
        stages = Stage.ordered()
        idx = max(0, min(len(stages) - 1, self.position + step))
        return stages[idx]


class Direction(StrEnum):
    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def step(self) -> int:
        return 1 if self is Direction.FORWARD else -1

    @classmethod
    def parse(cls, raw: str) -> Direction:
        s = (raw or "").strip().lower()
        if s in ("forward", "right", "next"):
            return cls.FORWARD
        if s in ("backward", "left", "back"):
            return cls.BACKWARD
        raise ValueError(f"unknown direction: {raw!r}")


class ChangeType(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "*"

    def matches(self, other: ChangeType) -> bool:
        return self is ChangeType.ALL or self is other


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    """Opaque "something changed" notice. Consumers must not rely on record_id."""

    collection: str
    change_type: ChangeType
    record_id: TaskId | None = None


def _parse_ts(raw: Any) -> float:
    """
    Accept epoch seconds, epoch milliseconds, or an ISO-8601 string.
    Missing/unparseable values fall back to "now".
    """
    if raw is None or raw == "":
        return time.time()
    if isinstance(raw, (int, float)):
        val = float(raw)
        # Browser-style Date.now() values are in milliseconds.
        return val / 1000.0 if val > 1e11 else val
    try:
        s = str(raw).strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        return datetime.fromisoformat(s).timestamp()
    except ValueError:
        return time.time()


@dataclass(slots=True, frozen=True)
class Task:
    id: TaskId
    title: str
    status: Stage
    created_at: float

    def with_status(self, status: Stage) -> Task:
        return Task(id=self.id, title=self.title, status=status, created_at=self.created_at)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Task:
        if "id" not in data or data["id"] is None:
            raise ValueError("task record without id")
        status = data.get("status", data.get("column"))
        created = data.get("created_at", data.get("createdAt"))
        return cls(
            id=data["id"],
            title=str(data.get("title") or "").strip(),
            status=Stage.from_raw(status),
            created_at=_parse_ts(created),
        )


@dataclass(slots=True)
class Reminder:
    id: int
    label: str
    schedule: str = ""
    enabled: bool = True

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "schedule": self.schedule,
            "enabled": self.enabled,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Reminder:
        return cls(
            id=int(data["id"]),
            label=str(data.get("label") or ""),
            schedule=str(data.get("schedule") or ""),
            enabled=bool(data.get("enabled", True)),
        )
