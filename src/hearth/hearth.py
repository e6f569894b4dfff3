"""Hearth engine: the single mutation entry point plus read-only queries."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable

from hearth import log
from hearth.events import Event, now
from hearth.execution import TaskExecutor
from hearth.orchestration import Controller
from hearth.reducers import replay
from hearth.repository import EventRepository, FileRepository, MemoryRepository
from hearth.scheduler import find_next_task
from hearth.tasks.model import HearthState, Task
from hearth.validation import validate


class Hearth:
    """Event-sourced task tree.

    State is never stored; it is projected from the repository's log, which is
    re-read before every step so events written by other processes sharing the
    workspace are seen.

    Usage::

        h = Hearth.open(workspace)
        h.process(TaskCreated(task_id="T1", title="Analyze codebase"))
        h.process(ExecuteTasksRequested())   # runs until nothing is eligible
    """

    def __init__(
        self,
        repository: EventRepository | None = None,
        executor: TaskExecutor | None = None,
    ) -> None:
        self.repository: EventRepository = repository if repository is not None else MemoryRepository()
        self.controller = Controller(executor)
        self._events: list[Event] = []
        self._state = HearthState()

    @classmethod
    def open(
        cls,
        workspace_dir: Path | str,
        executor: TaskExecutor | None = None,
        *,
        lock_timeout: float | None = None,
    ) -> Hearth:
        """Engine backed by ``<workspace_dir>/.hearth/events.json``.

        The existing log is replayed immediately, so a malformed file fails
        here rather than on first use.
        """
        h = cls(FileRepository(workspace_dir, lock_timeout=lock_timeout), executor)
        h._refresh()
        return h

    # ── mutation ─────────────────────────────────────────────────

    def process(self, event: Event) -> None:
        """Validate, record, project and react to *event* and its follow-ups.

        Raises :class:`~hearth.errors.EventRejected` if a validator refuses an
        event; that event is not recorded. Validation runs inside the
        repository write, against the log as it stands at that moment. Every
        accepted event is persisted before this returns.
        """
        pending: list[Event] = [event]
        first = True
        while pending:
            current = pending.pop()
            if not first:
                current = replace(current, time=now())
            first = False

            current = self.controller.prepare(current, self._refresh())
            self.repository.add(current, check=self._validator(current))
            state = self._refresh()
            log.debug(f"recorded {current.type}")

            follow_ups = self.controller.react(current, state, self._events)
            pending.extend(reversed(follow_ups))

    def set_events(self, events: list[Event]) -> None:
        """Replace the whole log. No validation or reactions run."""
        self.repository.set_all(list(events))
        self._refresh()

    # ── queries ──────────────────────────────────────────────────

    @property
    def state(self) -> HearthState:
        return self._refresh()

    def get_events(self) -> list[Event]:
        self._refresh()
        return list(self._events)

    def get_task(self, task_id: str) -> Task | None:
        return self._refresh().get(task_id)

    def get_tasks(self) -> dict[str, Task]:
        return dict(self._refresh().tasks)

    def get_child_tasks(self, parent_id: str) -> list[Task]:
        return self._refresh().children_of(parent_id)

    def get_next_task(self) -> Task | None:
        return find_next_task(self._refresh())

    # ── projection ───────────────────────────────────────────────

    def _validator(self, event: Event) -> Callable[[list[Event]], None]:
        """Guard run by the repository against the log *event* is appended to."""
        def check(events: list[Event]) -> None:
            validate(self._project(events), event)
        return check

    def _refresh(self) -> HearthState:
        return self._project(self.repository.get_all())

    def _project(self, events: list[Event]) -> HearthState:
        seen = len(self._events)
        if len(events) >= seen and events[:seen] == self._events:
            self._state = replay(events[seen:], self._state)
        else:
            # Log was rewritten underneath us; rebuild from scratch.
            self._state = replay(events)
        self._events = events
        return self._state
