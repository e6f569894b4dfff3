"""Domain events and their JSON wire format.

Events are immutable facts. The on-disk log is a JSON array of objects, each
carrying a ``"type"`` discriminator, the event's own fields and an ISO-8601
``"time"``::

    [
      {"type": "task_created", "task_id": "T-1a2b3c4d", "title": "...",
       "description": "", "parent_id": null, "depends_on": null,
       "time": "2025-01-01T09:30:00.000001+00:00"},
      {"type": "task_completed", "task_id": "T-1a2b3c4d", "time": "..."}
    ]
"""

from __future__ import annotations

import json
import threading
from dataclasses import MISSING, dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Union

from hearth.errors import ReplayError

_clock_lock = threading.Lock()
_last_time: datetime | None = None


def now() -> datetime:
    """Current UTC time, strictly increasing within this process.

    Merge deduplication keys on ``(type, time)``; two events minted in the
    same microsecond would otherwise collide.
    """
    global _last_time
    with _clock_lock:
        current = datetime.now(timezone.utc)
        if _last_time is not None and current <= _last_time:
            current = _last_time + timedelta(microseconds=1)
        _last_time = current
        return current


@dataclass(frozen=True)
class TaskCreated:
    type: ClassVar[str] = "task_created"

    task_id: str
    title: str = ""
    description: str = ""
    parent_id: str | None = None
    depends_on: str | None = None
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class TaskStarted:
    type: ClassVar[str] = "task_started"

    task_id: str
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class TaskCompleted:
    type: ClassVar[str] = "task_completed"

    task_id: str
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class ExecuteTasksRequested:
    type: ClassVar[str] = "execute_tasks_requested"

    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class NextTaskSelected:
    """Scheduler verdict. An empty ``task_id`` means nothing is eligible."""

    type: ClassVar[str] = "next_task_selected"

    task_id: str = ""
    reason: str = ""
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class TaskExecuted:
    type: ClassVar[str] = "task_executed"

    task_id: str
    result_path: str = ""
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class SummaryRequested:
    type: ClassVar[str] = "summary_requested"

    parent_task_id: str
    time: datetime = field(default_factory=now)


@dataclass(frozen=True)
class SummaryGenerated:
    type: ClassVar[str] = "summary_generated"

    parent_task_id: str
    summary_path: str = ""
    time: datetime = field(default_factory=now)


Event = Union[
    TaskCreated,
    TaskStarted,
    TaskCompleted,
    ExecuteTasksRequested,
    NextTaskSelected,
    TaskExecuted,
    SummaryRequested,
    SummaryGenerated,
]

EVENT_TYPES: dict[str, type] = {
    cls.type: cls
    for cls in (
        TaskCreated,
        TaskStarted,
        TaskCompleted,
        ExecuteTasksRequested,
        NextTaskSelected,
        TaskExecuted,
        SummaryRequested,
        SummaryGenerated,
    )
}


def event_key(event: Event) -> tuple[str, datetime]:
    """Identity used when merging logs: ``(kind, timestamp)``."""
    return (event.type, event.time)


# ── Serialization ────────────────────────────────────────────────────


def event_to_dict(event: Event) -> dict[str, Any]:
    data: dict[str, Any] = {"type": event.type}
    for f in fields(event):
        value = getattr(event, f.name)
        data[f.name] = value.isoformat() if isinstance(value, datetime) else value
    return data


def _parse_time(raw: Any, kind: str) -> datetime:
    if not isinstance(raw, str):
        raise ReplayError(f"{kind}: missing or non-string 'time'")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ReplayError(f"{kind}: bad timestamp {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def event_from_dict(data: Any) -> Event:
    """Decode one record, raising :class:`ReplayError` on any malformation."""
    if not isinstance(data, dict):
        raise ReplayError(f"event record must be an object, got {type(data).__name__}")

    kind = data.get("type")
    cls = EVENT_TYPES.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ReplayError(f"unknown event type: {kind!r}")

    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name == "time":
            kwargs["time"] = _parse_time(data.get("time"), kind)
            continue
        required = f.default is MISSING and f.default_factory is MISSING
        if f.name not in data:
            if required:
                raise ReplayError(f"{kind}: missing field {f.name!r}")
            continue
        value = data[f.name]
        if value is None and f.default is None:
            kwargs[f.name] = None
            continue
        if not isinstance(value, str):
            raise ReplayError(f"{kind}: field {f.name!r} must be a string")
        kwargs[f.name] = value
    return cls(**kwargs)


def dumps_events(events: list[Event]) -> str:
    return json.dumps([event_to_dict(e) for e in events], indent=2) + "\n"


def loads_events(text: str) -> list[Event]:
    """Decode a whole log. An empty or blank document is an empty log."""
    if not text.strip():
        return []
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReplayError(f"event log is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise ReplayError("event log must be a JSON array")
    return [event_from_dict(item) for item in raw]

