# src/wing_kanban/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Coroutine
from typing import Any, cast

from ..core.state import AppState
from ..tasks.task_api import render_board
from ..tasks.task_models import Direction, Task, TaskId

CommandEmitter = Callable[[str], None]
# Runs a coroutine on the board loop and returns its result (BoardBackgroundRunner.run).
CoroutineRunner = Callable[[Coroutine[Any, Any, Any]], Any]
CommandHandler3 = Callable[[AppState, CoroutineRunner, list[str]], str]
CommandHandler4 = Callable[[AppState, CoroutineRunner, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler3 | CommandHandler4

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console board (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        run: CoroutineRunner,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 4

        if nparams >= 4:
            h4 = cast(CommandHandler4, handler)
            return h4(state, run, args, emit)

        h3 = cast(CommandHandler3, handler)
        return h3(state, run, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_task_id(state: AppState, raw: str) -> TaskId | None:
    """Resolve user input to an id present on the board (ids may be ints or strings)."""
    for t in state.task_store.tasks:
        if str(t.id) == raw:
            return t.id
    return None


def _describe(task: Task | None) -> str:
    if task is None:
        return "(gone)"
    return f"[{task.id}] {task.title} -> {task.status.value}"


def cmd_help(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    return registry.build_help()


def cmd_board(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    return render_board(state.task_store)


def cmd_add(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add <title>"
    task = run(state.task_store.add_task(title))
    if task is None:
        # The notifier already told the user; nothing changed locally.
        return "Task not added."
    return f"Added [{task.id}] {task.title}"


def _move(state: AppState, run: CoroutineRunner, args: list[str], direction: Direction) -> str:
    if not args:
        return f"Usage: /{'next' if direction is Direction.FORWARD else 'back'} <id>"
    task_id = _parse_task_id(state, args[0])
    if task_id is None:
        return f"No task with id {args[0]}."
    run(state.task_store.move_task(task_id, direction))
    return _describe(state.task_store.get(task_id))


def cmd_next(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    return _move(state, run, args, Direction.FORWARD)


def cmd_back(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    return _move(state, run, args, Direction.BACKWARD)


def cmd_rm(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    task_id = _parse_task_id(state, args[0])
    if task_id is None:
        return f"No task with id {args[0]}."
    run(state.task_store.delete_task(task_id))
    if state.task_store.get(task_id) is not None:
        return f"Delete of [{task_id}] did not go through; board reloaded."
    return f"Deleted [{task_id}]"


def cmd_reload(
    state: AppState,
    run: CoroutineRunner,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if emit:
        emit("Reloading board...")
    run(state.task_store.load())
    return render_board(state.task_store)


def cmd_status(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    store = state.task_store
    backend = str(getattr(state.settings, "backend", "?"))
    realtime = "ON" if state.change_feed.subscribed else "OFF"
    return (
        "Status:\n"
        f"  Backend: {backend}\n"
        f"  Realtime: {realtime}\n"
        f"  Tasks: {len(store.tasks)}\n"
        f"  Loading: {store.loading}  Syncing: {store.syncing}"
    )


def cmd_remind(state: AppState, run: CoroutineRunner, args: list[str]) -> str:
    """
    /remind list                       -> show reminders
    /remind add <label> [| schedule]   -> add a reminder (schedule is display text)
    /remind toggle <id>                -> enable/disable
    /remind rm <id>                    -> remove
    """
    book = state.reminders
    usage = (
        "Reminders:\n"
        "  /remind list\n"
        "  /remind add <label> [| schedule]\n"
        "  /remind toggle <id>\n"
        "  /remind rm <id>"
    )
    if not args:
        return usage

    sub = args[0].lower()
    rest = args[1:]

    if sub in ("list", "ls"):
        items = book.reminders
        if not items:
            return "No reminders."
        lines = ["Reminders:"]
        for r in items:
            mark = "on " if r.enabled else "off"
            sched = f" ({r.schedule})" if r.schedule else ""
            lines.append(f"  [{r.id}] {mark} {r.label}{sched}")
        return "\n".join(lines)

    if sub == "add":
        label, _, schedule = " ".join(rest).partition("|")
        reminder = book.add(label, schedule)
        if reminder is None:
            return "Usage: /remind add <label> [| schedule]"
        return f"Reminder [{reminder.id}] added."

    if sub in ("toggle", "rm") and rest:
        try:
            rid = int(rest[0])
        except ValueError:
            return f"Invalid reminder id: {rest[0]}"
        if sub == "toggle":
            r = book.toggle(rid)
            if r is None:
                return f"No reminder with id {rid}."
            return f"Reminder [{rid}] {'enabled' if r.enabled else 'disabled'}."
        if book.remove(rid):
            return f"Reminder [{rid}] removed."
        return f"No reminder with id {rid}."

    return usage


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("board", cmd_board, help_text="Show the board.", aliases=["b", "ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title>.", aliases=["a"])
registry.register("next", cmd_next, help_text="Move a task forward: /next <id>.", aliases=["n"])
registry.register("back", cmd_back, help_text="Move a task backward: /back <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("reload", cmd_reload, help_text="Re-fetch the board from the backend.")
registry.register("status", cmd_status, help_text="Show backend/realtime/sync status.")
registry.register(
    "remind", cmd_remind, help_text="Reminders: /remind list | add | toggle | rm."
)
