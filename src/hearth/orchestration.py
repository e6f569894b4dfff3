"""Orchestration controller: the event chain that drives execution.

Each event passes through two hooks:

``prepare``
    Runs before the event is validated and recorded. Fills in fields that
    depend on work done now: the scheduler's pick for ``NextTaskSelected``,
    the result location for ``TaskExecuted``, the summary location for
    ``SummaryGenerated``.
``react``
    Runs after the event is recorded and projected. Returns the follow-up
    events, which the engine processes depth-first in the order returned.

The chain::

    ExecuteTasksRequested -> NextTaskSelected -> TaskExecuted -> TaskCompleted
                                   ^                  |               |
                                   +---- has children +   all siblings done?
                                   |                                  v
                                   +---- (orchestrated)    SummaryRequested
                                                                      v
                           TaskCompleted(parent) <----------- SummaryGenerated

A summary that added subtasks to its parent completes nothing; the selection
already queued runs them and the last one requests a fresh summary.
"""

from __future__ import annotations

from dataclasses import replace

from hearth import log
from hearth.artifacts import result_ref
from hearth.errors import ExecutionError
from hearth.events import (
    Event,
    ExecuteTasksRequested,
    NextTaskSelected,
    SummaryGenerated,
    SummaryRequested,
    TaskCompleted,
    TaskCreated,
    TaskExecuted,
    TaskStarted,
)
from hearth.execution import TaskExecutor
from hearth.scheduler import find_next_task, selection_reason, unfinished_tasks
from hearth.tasks.model import HearthState


class Controller:
    """Stateless apart from the execution capability it delegates to."""

    def __init__(self, executor: TaskExecutor | None = None) -> None:
        self.executor = executor

    # ── prepare ──────────────────────────────────────────────────

    def prepare(self, event: Event, state: HearthState) -> Event:
        match event:
            case NextTaskSelected():
                return self._select(event, state)
            case TaskExecuted():
                return self._execute(event, state)
            case SummaryGenerated():
                return self._summarize(event, state)
            case _:
                return event

    def _select(self, event: NextTaskSelected, state: HearthState) -> NextTaskSelected:
        task = find_next_task(state)
        if task is None:
            return replace(event, task_id="", reason=selection_reason(None))
        log.task_header(task.id, task.title, task.description)
        return replace(event, task_id=task.id, reason=selection_reason(task))

    def _execute(self, event: TaskExecuted, state: HearthState) -> TaskExecuted:
        task = state.get(event.task_id)
        if task is None:
            log.warn(f"Cannot execute unknown task {event.task_id}")
            return event
        if self.executor is None:
            return replace(event, result_path=result_ref(task.id))
        try:
            path = self.executor.execute(task, state)
        except ExecutionError as exc:
            log.error(f"Task {task.id} failed: {exc}")
            path = ""
        return replace(event, result_path=path)

    def _summarize(self, event: SummaryGenerated, state: HearthState) -> SummaryGenerated:
        parent = state.get(event.parent_task_id)
        if parent is None or self.executor is None:
            return replace(event, summary_path="")
        try:
            path = self.executor.summarize(parent, state)
        except ExecutionError as exc:
            log.error(f"Summary for {parent.id} failed: {exc}")
            path = ""
        return replace(event, summary_path=path)

    # ── react ────────────────────────────────────────────────────

    def react(self, event: Event, state: HearthState, history: list[Event]) -> list[Event]:
        """Follow-up events for *event*, which is already the tail of *history*."""
        match event:
            case ExecuteTasksRequested():
                return [NextTaskSelected()]
            case NextTaskSelected():
                return self._on_selected(event, state)
            case TaskExecuted():
                return self._on_executed(event, state)
            case TaskCompleted():
                return self._on_completed(event, state, history)
            case SummaryRequested():
                return [SummaryGenerated(parent_task_id=event.parent_task_id)]
            case SummaryGenerated():
                return self._on_summarized(event, state)
            case TaskCreated() | TaskStarted():
                return []
            case _:
                raise TypeError(f"unhandled event kind: {type(event).__name__}")

    def _on_selected(self, event: NextTaskSelected, state: HearthState) -> list[Event]:
        if event.task_id:
            return [TaskExecuted(task_id=event.task_id)]

        unfinished = unfinished_tasks(state)
        if not unfinished:
            log.success("All tasks completed!")
            return []
        log.warn(f"No eligible tasks, but {len(unfinished)} task(s) are not completed:")
        for task, reason in unfinished:
            log.warn(f"  {task.id}: {reason}")
        return []

    def _on_executed(self, event: TaskExecuted, state: HearthState) -> list[Event]:
        if state.get(event.task_id) is None:
            return []
        if state.has_children(event.task_id):
            # The run spawned subtasks: descend into them before completing.
            count = len(state.child_ids(event.task_id))
            log.info(f"Task {event.task_id} spawned {count} subtasks (will auto-complete when subtasks finish)")
            return [NextTaskSelected()]
        return [TaskCompleted(task_id=event.task_id)]

    def _on_summarized(self, event: SummaryGenerated, state: HearthState) -> list[Event]:
        parent_id = event.parent_task_id
        open_kids = state.open_children(parent_id)
        if not open_kids:
            return [TaskCompleted(task_id=parent_id)]
        # Subtasks added while summarizing; the last of them requests a new summary.
        ids = " ".join(t.id for t in open_kids)
        log.info(f"Summary of {parent_id} added subtasks ({ids}), completing it later")
        return []

    def _on_completed(self, event: TaskCompleted, state: HearthState, history: list[Event]) -> list[Event]:
        task = state.get(event.task_id)
        if task is None:
            return []
        log.success(f"Task {task.id} completed")

        follow_ups: list[Event] = []
        if task.parent_id is not None:
            parent = state.get(task.parent_id)
            if parent is not None and not parent.is_completed and not state.open_children(parent.id):
                log.info(f"All subtasks of {parent.id} done, requesting summary")
                follow_ups.append(SummaryRequested(parent_task_id=parent.id))

        if _follows_own_execution(event, history):
            follow_ups.append(NextTaskSelected())
        return follow_ups


def _follows_own_execution(event: TaskCompleted, history: list[Event]) -> bool:
    """True when the entry just before *event* is a TaskExecuted for the same task.

    Manual completions (outside the loop) fail this check and do not
    restart scheduling.
    """
    for idx in range(len(history) - 1, -1, -1):
        if history[idx] == event:
            if idx == 0:
                return False
            previous = history[idx - 1]
            return isinstance(previous, TaskExecuted) and previous.task_id == event.task_id
    return False
