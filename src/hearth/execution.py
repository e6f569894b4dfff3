"""Task execution: context building, prompt assembly and result storage.

The orchestration controller only knows the :class:`TaskExecutor` protocol.
:class:`AgentExecutor` implements it on top of an engine adapter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from hearth import log
from hearth.artifacts import result_ref, store_task_result
from hearth.engines.base import EngineBase
from hearth.prompts import SUMMARY_SYSTEM_INSTRUCTIONS, TASK_SYSTEM_INSTRUCTIONS
from hearth.tasks.model import HearthState, Task


class TaskExecutor(Protocol):
    """External execution capability. Both methods raise ExecutionError."""

    def execute(self, task: Task, state: HearthState) -> str:
        """Run *task* and return the stored result location."""
        ...

    def summarize(self, parent: Task, state: HearthState) -> str:
        """Synthesize *parent*'s completed children and return the location."""
        ...


def build_task_context(task_id: str, state: HearthState) -> str:
    """Root goal, parent chain and completed sibling results for *task_id*."""
    task = state.get(task_id)
    if task is None:
        return ""

    parts: list[str] = []

    chain = state.ancestors(task_id)
    if chain:
        root = chain[-1]
        parts.append(f"ROOT TASK: {root.title}\n")
        if root.description:
            parts.append(f"ROOT GOAL: {root.description}\n")
        parts.append("\n")

        if len(chain) > 1:
            parts.append("PARENT CHAIN:\n")
            for depth, parent in enumerate(reversed(chain)):
                parts.append(f'{"  " * depth}└─ {parent.id} "{parent.title}"\n')
            parts.append("\n")

    if task.parent_id is not None:
        done = [
            t for t in state.children_of(task.parent_id)
            if t.id != task.id and t.is_completed
        ]
        if done:
            parts.append("PREVIOUS SIBLING RESULTS:\n")
            parts.append("Your siblings have already completed work. You can reference their findings:\n\n")
            for sibling in done:
                parts.append(f'- {sibling.id} "{sibling.title}" → Result: {result_ref(sibling.id)}\n')
            parts.append("\nYou can read these files to avoid duplicating work and build on their findings.\n\n")

    if not parts:
        return ""
    return "".join(parts) + "---\n\n"


def _task_body(task: Task) -> str:
    return task.description or task.title


def build_task_prompt(task: Task, state: HearthState) -> str:
    header = (
        f"\nCURRENT TASK: {task.title}\n"
        f"CURRENT TASK ID: {task.id}\n\n"
        "IMPORTANT: Before starting work, assess if this task should be broken into subtasks.\n"
        "If this task involves multiple steps or can be parallelized, you MUST create subtasks first.\n\n"
    )
    return build_task_context(task.id, state) + header + _task_body(task) + "\n" + TASK_SYSTEM_INSTRUCTIONS


def build_summary_prompt(parent: Task, state: HearthState) -> str:
    header = f"\nORIGINAL TASK: {parent.title}\nTASK ID: {parent.id}\n\n"

    lines = ["\n\nYour subtasks have completed. Here are the results:\n\n"]
    for child in state.children_of(parent.id):
        if child.is_completed:
            lines.append(f'- {child.id} "{child.title}" → Result: {result_ref(child.id)}\n')
    lines.append("\nPlease read these result files and synthesize them into a final answer for the original task.\n")

    return header + _task_body(parent) + "".join(lines) + "\n" + SUMMARY_SYSTEM_INSTRUCTIONS


class AgentExecutor:
    """Runs prompts through an engine inside the workspace directory."""

    def __init__(
        self,
        engine: EngineBase,
        workspace_dir: Path | str,
        *,
        timeout: int | None = None,
    ) -> None:
        self.engine = engine
        self.workspace_dir = Path(workspace_dir)
        self.timeout = timeout

    def execute(self, task: Task, state: HearthState) -> str:
        log.info(f"Calling {self.engine.name}…")
        response = self.engine.call(build_task_prompt(task, state), self.workspace_dir, timeout=self.timeout)
        path = store_task_result(self.workspace_dir, task.id, response)
        log.success(f"Task {task.id} executed")
        log.debug(f"Result stored: {path}")
        return path

    def summarize(self, parent: Task, state: HearthState) -> str:
        log.info(f"Summarizing subtasks of {parent.id}…")
        response = self.engine.call(build_summary_prompt(parent, state), self.workspace_dir, timeout=self.timeout)
        # The summary replaces the parent's own earlier result.
        return store_task_result(self.workspace_dir, parent.id, response)
