"""Shared fixtures for hearth tests.

File handling in tests:
- Use tmp_path for any workspace so tests are isolated and cleaned up.
- Use the executor fixture wherever orchestration needs an execution capability.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from hearth.errors import ExecutionError
from hearth.tasks.model import HearthState, Task


class FakeExecutor:
    """Records calls and can spawn subtasks or fail on demand.

    ``spawn`` maps a task id to a callable run during its execution, and
    ``spawn_on_summary`` does the same for a parent being summarized. The
    callable receives the executing Hearth so it can add subtasks the way an
    agent would from another process.
    """

    def __init__(self) -> None:
        self.hearth = None
        self.executed: list[str] = []
        self.summarized: list[str] = []
        self.spawn: dict[str, object] = {}
        self.spawn_on_summary: dict[str, object] = {}
        self.fail: set[str] = set()

    def execute(self, task: Task, state: HearthState) -> str:
        self.executed.append(task.id)
        if task.id in self.fail:
            raise ExecutionError(f"boom on {task.id}")
        hook = self.spawn.pop(task.id, None)
        if hook is not None:
            hook(self.hearth)
        return f"results/{task.id}.md"

    def summarize(self, parent: Task, state: HearthState) -> str:
        self.summarized.append(parent.id)
        hook = self.spawn_on_summary.pop(parent.id, None)
        if hook is not None:
            hook(self.hearth)
        return f"results/{parent.id}.md"


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory."""
    ws = tmp_path / "ws"
    ws.mkdir()
    return ws
