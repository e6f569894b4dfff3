"""Task and HearthState data models shared by the projector, scheduler and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Task:
    id: str
    title: str = ""
    description: str = ""
    parent_id: str | None = None
    depends_on: str | None = None
    status: TaskStatus = TaskStatus.TODO
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def sort_key(self) -> tuple[datetime, str]:
        """Creation order, with the id as a stable tiebreak."""
        return (self.created_at or _EPOCH, self.id)


@dataclass(frozen=True)
class HearthState:
    """Projected task set.

    ``children`` maps a parent id to its child ids in log order. It is
    maintained by the projector alongside ``tasks`` so tree walks never
    rescan the whole map.
    """

    tasks: dict[str, Task] = field(default_factory=dict)
    children: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def get(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def child_ids(self, parent_id: str) -> tuple[str, ...]:
        return self.children.get(parent_id, ())

    def children_of(self, parent_id: str) -> list[Task]:
        """Direct children of *parent_id* sorted by creation order."""
        kids = [self.tasks[cid] for cid in self.child_ids(parent_id) if cid in self.tasks]
        return sorted(kids, key=Task.sort_key)

    def has_children(self, task_id: str) -> bool:
        return bool(self.child_ids(task_id))

    def roots(self) -> list[Task]:
        return sorted(
            (t for t in self.tasks.values() if t.parent_id is None),
            key=Task.sort_key,
        )

    def open_children(self, parent_id: str) -> list[Task]:
        return [t for t in self.children_of(parent_id) if not t.is_completed]

    def ancestors(self, task_id: str) -> list[Task]:
        """Chain from the immediate parent up to the root."""
        chain: list[Task] = []
        task = self.tasks.get(task_id)
        seen = {task_id}
        while task is not None and task.parent_id is not None:
            parent = self.tasks.get(task.parent_id)
            if parent is None or parent.id in seen:
                break
            chain.append(parent)
            seen.add(parent.id)
            task = parent
        return chain

    def count(self, status: TaskStatus) -> int:
        return sum(1 for t in self.tasks.values() if t.status == status)
