# src/wing_kanban/core/errors.py

from __future__ import annotations


class WingKanbanError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(WingKanbanError):
    """Settings are present but unusable (unknown backend, missing URL, ...)."""


class BackendError(WingKanbanError):
    """A remote (or local) collection call failed. Always treated as recoverable."""

    def __init__(self, operation: str, message: str = "", *, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        detail = message or "backend call failed"
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(f"{operation}: {detail}")


class SubscriptionError(BackendError):
    """Opening a change subscription failed."""

    def __init__(self, message: str = "") -> None:
        super().__init__("subscribe", message)
