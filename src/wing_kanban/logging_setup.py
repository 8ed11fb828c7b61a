# src/wing_kanban/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Minimum level a record needs to reach the console, by logger prefix (longest prefix wins).
# The REPL prints its own replies, so routine store/backend traffic goes to the file only;
# failed writes, failed loads and a lost change feed still show up on screen.
CONSOLE_LEVELS: dict[str, int] = {
    "wing_kanban": logging.INFO,
    "wing_kanban.tasks": logging.WARNING,
    "wing_kanban.backends": logging.WARNING,
    "wing_kanban.connectors.console_connector": logging.WARNING,
}
OTHER_CONSOLE_LEVEL = logging.ERROR

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def console_threshold(logger_name: str) -> int:
    best, level = "", OTHER_CONSOLE_LEVEL
    for prefix, lvl in CONSOLE_LEVELS.items():
        if (logger_name == prefix or logger_name.startswith(prefix + ".")) and len(prefix) > len(best):
            best, level = prefix, lvl
    return level


class _BoardConsoleFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/wing",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Stderr gets a filtered view (see CONSOLE_LEVELS); <log_dir>/wing.log gets everything
    at file_level. Replaces any handlers already on the root logger. Returns the log file path.
    """
    log_file = Path(log_dir) / "wing.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_BoardConsoleFilter())

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(fmt)

    root.addHandler(console)
    root.addHandler(to_file)

    # Per-request lines from the REST client are too chatty even for the file.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
