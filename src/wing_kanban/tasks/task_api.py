# src/wing_kanban/tasks/task_api.py

from __future__ import annotations

import logging

from .task_models import Direction, Stage
from .task_store import TaskStore

logger = logging.getLogger(__name__)

# The board a fresh install starts with.
DEMO_TASKS: list[tuple[str, Stage]] = [
    ("Set up GitHub auth", Stage.DONE),
    ("Set up Gmail/Calendar (gog CLI)", Stage.TODO),
    ("Port mahjong app to GitHub", Stage.TODO),
    ("Build kanban board", Stage.IN_PROGRESS),
]


async def seed_demo_tasks(store: TaskStore) -> int:
    """
    Insert the demo board if the collection is empty.

    Goes through the normal add/move operations, so the backend assigns ids and
    timestamps exactly as for user-created tasks. Returns the number of tasks created.
    """
    if store.tasks:
        return 0

    created = 0
    for title, stage in DEMO_TASKS:
        task = await store.add_task(title)
        if task is None:
            logger.warning("Demo seeding stopped at %r", title)
            break
        created += 1
        for _ in range(stage.position):
            await store.move_task(task.id, Direction.FORWARD)

    logger.info("Seeded %d demo tasks", created)
    return created


def render_board(store: TaskStore) -> str:
    """Plain-text board: one block per stage, tasks in collection order."""
    if store.loading:
        return "Loading..."

    lines: list[str] = []
    for stage, tasks in store.board().items():
        lines.append(f"{stage.value} ({len(tasks)})")
        if not tasks:
            lines.append("  No tasks")
        for t in tasks:
            lines.append(f"  [{t.id}] {t.title}")
    if store.syncing:
        lines.append("(syncing...)")
    return "\n".join(lines)
