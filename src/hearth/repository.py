"""Event stores: in-memory and file-backed with locking and merge-on-write."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol, TypeVar

from hearth import log
from hearth.config import EVENTS_FILE, LOCK_FILE, hearth_dir
from hearth.errors import PersistenceError
from hearth.events import Event, dumps_events, event_key, loads_events
from hearth.locking import exclusive_lock

T = TypeVar("T")
Check = Callable[[list[Event]], None]


class EventRepository(Protocol):
    """Ordered, append-only event log."""

    def add(self, event: Event, check: Check | None = None) -> None:
        """Append *event*. *check* sees the log it is appended to and may raise."""
        ...

    def get_all(self) -> list[Event]: ...

    def set_all(self, events: list[Event]) -> None: ...


class MemoryRepository:
    """Process-local log, used for ephemeral engines and tests."""

    def __init__(self, events: list[Event] | None = None) -> None:
        self._events: list[Event] = list(events or [])

    def add(self, event: Event, check: Check | None = None) -> None:
        if check is not None:
            check(list(self._events))
        self._events.append(event)

    def get_all(self) -> list[Event]:
        return list(self._events)

    def set_all(self, events: list[Event]) -> None:
        self._events = list(events)


def merge_events(existing: list[Event], current: list[Event]) -> list[Event]:
    """Union of two logs keyed by ``(kind, timestamp)``.

    *existing* keeps its order; events from *current* not already present are
    appended in their own order.
    """
    seen = {event_key(e) for e in existing}
    merged = list(existing)
    for event in current:
        key = event_key(event)
        if key in seen:
            continue
        seen.add(key)
        merged.append(event)
    return merged


class FileRepository:
    """``<workspace>/.hearth/events.json`` guarded by an exclusive lock.

    No caching: every call is lock -> read -> operate -> rewrite -> unlock.
    """

    def __init__(self, workspace_dir: Path | str, *, lock_timeout: float | None = None) -> None:
        self.dir = hearth_dir(workspace_dir)
        self.path = self.dir / EVENTS_FILE
        self.lock_path = self.dir / LOCK_FILE
        self.lock_timeout = lock_timeout
        try:
            self.dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"failed to create {self.dir}: {exc}") from exc

    # ── contract ─────────────────────────────────────────────────

    def add(self, event: Event, check: Check | None = None) -> None:
        """Append *event* in one locked read-modify-write.

        *check* runs on the freshly read log while the lock is held; if it
        raises, nothing is written.
        """
        def _append(events: list[Event]) -> list[Event]:
            if check is not None:
                check(list(events))
            events.append(event)
            return events

        self._locked(_append, write=True)

    def get_all(self) -> list[Event]:
        return self._locked(lambda events: events, write=False)

    def set_all(self, events: list[Event]) -> None:
        self._locked(lambda _on_disk: list(events), write=True)

    def merge(self, events: list[Event]) -> list[Event]:
        """Write the union of the on-disk log and *events*; return it."""
        return self._locked(lambda on_disk: merge_events(on_disk, events), write=True)

    # ── internals ────────────────────────────────────────────────

    def _locked(self, op: Callable[[list[Event]], T], *, write: bool) -> T:
        with exclusive_lock(self.lock_path, self.lock_timeout):
            events = self._read()
            result = op(events)
            if write:
                self._write(result)  # type: ignore[arg-type]
            return result

    def _read(self) -> list[Event]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise PersistenceError(f"failed to read {self.path}: {exc}") from exc
        return loads_events(text)

    def _write(self, events: list[Event]) -> None:
        data = dumps_events(events)
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                fh.write(data)
                fh.flush()
        except OSError as exc:
            raise PersistenceError(f"failed to write {self.path}: {exc}") from exc
        log.debug(f"wrote {len(events)} events to {self.path}")
