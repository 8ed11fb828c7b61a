"""Wing Kanban: a small personal task board with optimistic sync and a change feed."""

__version__ = "0.1.0"
