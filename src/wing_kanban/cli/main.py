# src/wing_kanban/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the board loop in a background
thread (initial load + change feed), then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.board_runner import start_board_in_background
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..core.errors import ConfigError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    notifier = ConsoleNotifier()
    try:
        state = create_initial_state(settings=settings, notifier=notifier)
    except (ConfigError, ValueError) as e:
        logger.error("Configuration error: %s", e)
        sys.exit(2)

    runner = start_board_in_background(state)
    if runner is None:
        logger.error("Board loop failed to start.")
        sys.exit(1)

    if not runner.ready.wait(timeout=30.0):
        logger.warning("Initial load is taking long; the board will fill in when it completes.")

    try:
        run_console_loop(state, runner, notifier)
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
