"""State projection: pure reducers folding events into a HearthState."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

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
from hearth.tasks.model import HearthState, Task, TaskStatus


def _with_task(state: HearthState, task: Task) -> HearthState:
    tasks = dict(state.tasks)
    tasks[task.id] = task
    return replace(state, tasks=tasks)


def reduce_task_created(state: HearthState, event: TaskCreated) -> HearthState:
    if event.task_id in state.tasks:
        return state

    task = Task(
        id=event.task_id,
        title=event.title,
        description=event.description,
        parent_id=event.parent_id,
        depends_on=event.depends_on,
        status=TaskStatus.TODO,
        created_at=event.time,
    )
    new_state = _with_task(state, task)
    if event.parent_id is not None:
        children = dict(new_state.children)
        children[event.parent_id] = children.get(event.parent_id, ()) + (event.task_id,)
        new_state = replace(new_state, children=children)
    return new_state


def _start(state: HearthState, task_id: str) -> HearthState:
    task = state.tasks.get(task_id)
    if task is None or task.status != TaskStatus.TODO:
        return state
    return _with_task(state, replace(task, status=TaskStatus.IN_PROGRESS))


def reduce_task_started(state: HearthState, event: TaskStarted) -> HearthState:
    return _start(state, event.task_id)


def reduce_task_completed(state: HearthState, event: TaskCompleted) -> HearthState:
    task = state.tasks.get(event.task_id)
    if task is None or task.is_completed:
        return state
    # Ancestors are not touched here; the orchestration controller cascades.
    return _with_task(
        state,
        replace(task, status=TaskStatus.COMPLETED, completed_at=event.time),
    )


def reduce_next_task_selected(state: HearthState, event: NextTaskSelected) -> HearthState:
    if not event.task_id:
        return state
    return _start(state, event.task_id)


def reduce(state: HearthState, event: Event) -> HearthState:
    """Apply one event. Every event kind must be listed here."""
    match event:
        case TaskCreated():
            return reduce_task_created(state, event)
        case TaskStarted():
            return reduce_task_started(state, event)
        case TaskCompleted():
            return reduce_task_completed(state, event)
        case NextTaskSelected():
            return reduce_next_task_selected(state, event)
        case TaskExecuted() | ExecuteTasksRequested() | SummaryRequested() | SummaryGenerated():
            # Audit-only: kept in the log for replay context.
            return state
        case _:
            raise TypeError(f"unhandled event kind: {type(event).__name__}")


def replay(events: Iterable[Event], state: HearthState | None = None) -> HearthState:
    """Fold *events* over *state* (empty by default)."""
    current = state if state is not None else HearthState()
    for event in events:
        current = reduce(current, event)
    return current
