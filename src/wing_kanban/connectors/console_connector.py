# src/wing_kanban/connectors/console_connector.py

from __future__ import annotations

import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import render_board
from .board_runner import BoardBackgroundRunner

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


class ConsoleNotifier:
    """
    UserNotifier for the console.

    alert() may be called from the board loop thread, so alerts are queued and the
    REPL shows them (and waits for Enter) between commands.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: list[str] = []

    def alert(self, text: str) -> None:
        with self._lock:
            self._pending.append(text)

    def drain(self) -> list[str]:
        with self._lock:
            out, self._pending = self._pending, []
        return out


def _acknowledge(alerts: list[str]) -> None:
    for text in alerts:
        print(f"[{_ts_local()}] [ERROR] {text}", flush=True)
        try:
            input("Press Enter to continue...")
        except (EOFError, KeyboardInterrupt):
            print()
            return


def run_console_loop(
    state: AppState,
    runner: BoardBackgroundRunner,
    notifier: ConsoleNotifier | None = None,
) -> None:
    logger.info("Console board started.")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")
    print(render_board(state.task_store) + "\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Bare text is a shortcut for /add.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            reply = command_registry.handle(state, runner.run, line, emit=emit)
        except TimeoutError:
            logger.warning("Board operation timed out: %r", line)
            reply = "Backend did not answer in time; try /reload."
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if notifier is not None:
            _acknowledge(notifier.drain())

        if reply is not None:
            print(f"[{_ts_local()}] {reply}\n")

    logger.info("Console board finished.")
