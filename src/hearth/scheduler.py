"""Depth-first scheduler over the projected task forest.

Everything here is a pure function of a :class:`HearthState`.

Usage::

    task = find_next_task(state)         # first eligible leaf, or None
    for task, depth in depth_first_order(state):
        ...                              # full traversal, for listings
"""

from __future__ import annotations

from typing import Iterable, Iterator

from hearth.tasks.model import HearthState, Task, TaskStatus

REASON_NEXT = "depth-first-next"
REASON_NONE = "no eligible tasks"


# ── eligibility ──────────────────────────────────────────────────────

def deps_satisfied(state: HearthState, task: Task) -> bool:
    if task.depends_on is None:
        return True
    dep = state.get(task.depends_on)
    return dep is not None and dep.is_completed


def is_eligible(state: HearthState, task: Task) -> bool:
    """A leaf is runnable when it is todo and its dependency is completed."""
    if state.has_children(task.id):
        return False
    return task.status == TaskStatus.TODO and deps_satisfied(state, task)


# ── selection ────────────────────────────────────────────────────────

def _search(state: HearthState, node: Task) -> Task | None:
    children = state.children_of(node.id)
    if not children:
        return node if is_eligible(state, node) else None
    # Inner nodes are never returned: their work is their descendants'.
    for child in children:
        found = _search(state, child)
        if found is not None:
            return found
    return None


def find_next_task(state: HearthState) -> Task | None:
    """Return the first eligible leaf in creation-ordered depth-first order."""
    for root in state.roots():
        found = _search(state, root)
        if found is not None:
            return found
    return None


def selection_reason(task: Task | None) -> str:
    return REASON_NEXT if task is not None else REASON_NONE


# ── ordering ─────────────────────────────────────────────────────────

def depth_first_order(
    state: HearthState,
    only: Iterable[str] | None = None,
) -> Iterator[tuple[Task, int]]:
    """Yield ``(task, depth)`` for every task, parents before children.

    When *only* is given, tasks outside it are skipped but their subtrees
    are still walked, so a filtered child keeps its true depth.
    """
    allowed = set(only) if only is not None else None
    stack: list[tuple[Task, int]] = [(root, 0) for root in reversed(state.roots())]
    while stack:
        task, depth = stack.pop()
        if allowed is None or task.id in allowed:
            yield task, depth
        for child in reversed(state.children_of(task.id)):
            stack.append((child, depth + 1))


# ── diagnostics ──────────────────────────────────────────────────────

def unfinished_tasks(state: HearthState) -> list[tuple[Task, str]]:
    """Tasks the scheduler will never pick on its own, each with a hint.

    Covers leaves left in progress by an interrupted run, parents whose
    subtasks are all done but which were never completed, and leaves blocked
    on a dependency. Parents that still have open subtasks are left out:
    their descendants are listed instead. Eligible leaves are left out too.
    """
    found: list[tuple[Task, str]] = []
    for task, _depth in depth_first_order(state):
        if task.is_completed:
            continue
        if state.has_children(task.id):
            if not state.open_children(task.id):
                found.append((task, f"subtasks done; finish with `hearth complete {task.id}`"))
        elif task.status == TaskStatus.IN_PROGRESS:
            found.append((task, f"interrupted; finish with `hearth complete {task.id}`"))
        elif not is_eligible(state, task):
            found.append((task, explain_block(state, task.id)))
    return found


def explain_block(state: HearthState, task_id: str) -> str:
    """Human-readable explanation of why *task_id* is not runnable."""
    task = state.get(task_id)
    if task is None:
        return "unknown task"

    reasons: list[str] = []
    if task.status != TaskStatus.TODO:
        reasons.append(f"status {task.status.value}")
    open_kids = state.open_children(task_id)
    if open_kids:
        reasons.append(f"waiting on subtasks: {' '.join(t.id for t in open_kids)}")
    if task.depends_on is not None and not deps_satisfied(state, task):
        dep = state.get(task.depends_on)
        dep_status = dep.status.value if dep is not None else "missing"
        reasons.append(f"dependsOn: {task.depends_on} ({dep_status})")
    return " ".join(reasons)
