"""Hearth: event-sourced, depth-first task orchestration."""

from __future__ import annotations

from hearth.config import VERSION as __version__
from hearth.errors import (
    EventRejected,
    ExecutionError,
    HearthError,
    LockTimeout,
    PersistenceError,
    ReplayError,
)
from hearth.hearth import Hearth
from hearth.tasks.model import HearthState, Task, TaskStatus

__all__ = [
    "__version__",
    "EventRejected",
    "ExecutionError",
    "Hearth",
    "HearthError",
    "HearthState",
    "LockTimeout",
    "PersistenceError",
    "ReplayError",
    "Task",
    "TaskStatus",
]
