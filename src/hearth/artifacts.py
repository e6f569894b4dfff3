"""Result artifacts: one markdown file per task under ``.hearth/results``."""

from __future__ import annotations

from pathlib import Path

from hearth import log
from hearth.config import HEARTH_DIR, RESULTS_DIR, hearth_dir
from hearth.errors import ExecutionError


def results_dir(workspace_dir: Path | str) -> Path:
    return hearth_dir(workspace_dir) / RESULTS_DIR


def result_ref(task_id: str) -> str:
    """Workspace-relative location agents are told to read."""
    return f"{HEARTH_DIR}/{RESULTS_DIR}/{task_id}.md"


def result_path(workspace_dir: Path | str, task_id: str) -> Path:
    return results_dir(workspace_dir) / f"{task_id}.md"


def store_task_result(workspace_dir: Path | str, task_id: str, content: str) -> str:
    """Write *content* as the result of *task_id*, replacing any earlier one."""
    path = result_path(workspace_dir, task_id)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ExecutionError(f"failed to store result for {task_id}: {exc}") from exc
    log.debug(f"Result stored: {path}")
    return str(path)


def read_task_result(workspace_dir: Path | str, task_id: str) -> str | None:
    path = result_path(workspace_dir, task_id)
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8", errors="replace")
