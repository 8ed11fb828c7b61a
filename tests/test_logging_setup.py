# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from wing_kanban.logging_setup import console_threshold, setup_logging


@pytest.fixture()
def clean_root() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_console_threshold_by_component() -> None:
    assert console_threshold("wing_kanban.cli.main") == logging.INFO
    assert console_threshold("wing_kanban.tasks.task_store") == logging.WARNING
    assert console_threshold("wing_kanban.backends.polling") == logging.WARNING
    assert console_threshold("wing_kanban.connectors.console_connector") == logging.WARNING
    assert console_threshold("wing_kanban.connectors.board_runner") == logging.INFO
    assert console_threshold("wing_kanban_other") == logging.ERROR
    assert console_threshold("httpx") == logging.ERROR


def test_console_shows_failures_but_not_routine_writes(
    clean_root: logging.Logger, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")

    store_log = logging.getLogger("wing_kanban.tasks.task_store")
    store_log.info("Task added id=1")
    store_log.warning("move_task failed id=1")
    logging.getLogger("wing_kanban.cli.main").info("Starting board")

    err = capsys.readouterr().err
    assert "move_task failed id=1" in err
    assert "Starting board" in err
    assert "Task added id=1" not in err

    for h in clean_root.handlers:
        h.flush()
    text = log_file.read_text("utf-8")
    assert "Task added id=1" in text
    assert "move_task failed id=1" in text
