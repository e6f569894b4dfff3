"""Exception taxonomy for the orchestration engine."""

from __future__ import annotations


class HearthError(Exception):
    """Base class for every error Hearth raises on purpose."""


class EventRejected(HearthError):
    """A validator refused an event; nothing was recorded."""

    def __init__(self, event_type: str, reason: str, task_id: str = "") -> None:
        self.event_type = event_type
        self.reason = reason
        self.task_id = task_id
        super().__init__(
            f"event rejected: {event_type}"
            + (f" ({task_id})" if task_id else "")
            + f": {reason}"
        )


class PersistenceError(HearthError):
    """Lock acquisition, read, or write of the event file failed."""


class LockTimeout(PersistenceError):
    """Workspace lock acquisition timed out."""


class ReplayError(HearthError):
    """On-disk event data could not be decoded."""


class ExecutionError(HearthError):
    """The execution capability failed to produce a result."""
