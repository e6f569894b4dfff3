"""Guards evaluated against current state before an event is recorded."""

from __future__ import annotations

from hearth.errors import EventRejected
from hearth.events import Event, TaskCompleted, TaskCreated
from hearth.tasks.model import HearthState


def validate_task_completed(state: HearthState, event: TaskCompleted) -> None:
    """Refuse to complete a task that still has open subtasks.

    The cascade path only completes a parent after every child is done, so
    this never fires for orchestration-driven completions.
    """
    open_kids = state.open_children(event.task_id)
    if open_kids:
        ids = ", ".join(t.id for t in open_kids)
        raise EventRejected(
            event.type,
            f"{len(open_kids)} subtask(s) still open: {ids}",
            task_id=event.task_id,
        )


def validate_task_created(state: HearthState, event: TaskCreated) -> None:
    if not event.task_id:
        raise EventRejected(event.type, "task id is empty")
    if event.task_id in state.tasks:
        raise EventRejected(event.type, "task id already exists", task_id=event.task_id)

    for label, ref in (("parent", event.parent_id), ("dependency", event.depends_on)):
        if ref is None:
            continue
        if ref == event.task_id:
            raise EventRejected(event.type, f"{label} refers to the task itself", task_id=event.task_id)
        if ref not in state.tasks:
            raise EventRejected(event.type, f"{label} {ref} does not exist", task_id=event.task_id)


def validate(state: HearthState, event: Event) -> None:
    """Raise :class:`EventRejected` if *event* may not be recorded."""
    match event:
        case TaskCompleted():
            validate_task_completed(state, event)
        case TaskCreated():
            validate_task_created(state, event)
        case _:
            pass
