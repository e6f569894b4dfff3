"""Hearth CLI.

Installed as ``hearth`` console_script via pipx / pip.
"""

from __future__ import annotations

import sys
import uuid

import click
from rich.markup import escape

from hearth import __version__
from hearth import log as glog
from hearth.config import Config, resolve_workspace
from hearth.engines.registry import ENGINE_NAMES, get_engine
from hearth.errors import EventRejected, HearthError
from hearth.events import ExecuteTasksRequested, TaskCompleted, TaskCreated
from hearth.execution import AgentExecutor
from hearth.hearth import Hearth
from hearth.prompts import PRESETS
from hearth.scheduler import depth_first_order, unfinished_tasks
from hearth.tasks.model import Task, TaskStatus

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

STATUS_ICONS: dict[TaskStatus, str] = {
    TaskStatus.TODO: "○",
    TaskStatus.IN_PROGRESS: "[yellow]→[/yellow]",
    TaskStatus.COMPLETED: "[green]✓[/green]",
}

# ``pending`` is accepted as an alias for ``todo``.
STATUS_CHOICES = ("todo", "pending", "in-progress", "completed")


def generate_task_id() -> str:
    return "T-" + uuid.uuid4().hex[:8]


def _open(cfg: Config, executor: AgentExecutor | None = None) -> Hearth:
    try:
        return Hearth.open(cfg.workspace_dir, executor, lock_timeout=cfg.lock_timeout)
    except HearthError as exc:
        glog.error(f"Failed to load hearth: {exc}")
        sys.exit(1)


def _executor(cfg: Config) -> AgentExecutor:
    try:
        engine = get_engine(cfg.engine)
    except ValueError as exc:
        glog.error(str(exc))
        sys.exit(1)
    err = engine.check_available()
    if err:
        glog.error(err)
        sys.exit(1)
    return AgentExecutor(engine, cfg.workspace_dir, timeout=cfg.engine_timeout)


def _format_task_line(task: Task, depth: int) -> str:
    icon = STATUS_ICONS[task.status]
    return f"{'  ' * depth}{icon} \\[{escape(task.id)}] {escape(task.title)}"


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-w", "--workspace", default="", help="Workspace directory (default: $HEARTH_WORKSPACE or cwd)")
@click.option("--lock-timeout", type=float, default=None, help="Seconds to wait for the workspace lock")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="hearth")
@click.pass_context
def main(ctx: click.Context, workspace: str, lock_timeout: float | None, verbose: bool) -> None:
    """HEARTH — depth-first task orchestration for AI agents.

    Tasks form a tree. ``hearth run`` executes the first eligible leaf,
    descends into any subtasks the agent creates, and summarizes a parent
    once all of its subtasks are done.

    \b
    EXAMPLES:
      hearth add -t "Analyze codebase"               # Add a root task
      hearth add -t "Check tests" -p T-1a2b3c4d      # Add a subtask
      hearth list                                    # Show the task tree
      hearth run                                     # Work until nothing is eligible
      hearth run --preset hello --engine echo        # Offline smoke run
    """
    glog.set_verbose(verbose)
    ctx.obj = Config(
        workspace_dir=resolve_workspace(workspace or None),
        lock_timeout=lock_timeout,
        verbose=verbose,
    )


@main.command()
@click.option("-t", "--title", required=True, help="Task title")
@click.option("-d", "--description", default="", help="Task description")
@click.option("-p", "--parent", default="", help="Parent task ID (for hierarchical tasks)")
@click.option("-D", "--depends-on", default="", help="Task ID this task depends on")
@click.pass_obj
def add(cfg: Config, title: str, description: str, parent: str, depends_on: str) -> None:
    """Add a new task."""
    h = _open(cfg)
    task_id = generate_task_id()

    try:
        h.process(TaskCreated(
            task_id=task_id,
            title=title,
            description=description,
            parent_id=parent or None,
            depends_on=depends_on or None,
        ))
    except HearthError as exc:
        glog.error(f"Failed to create task: {exc}")
        sys.exit(1)

    glog.success(f"Task created: {task_id}")
    glog.console.print(f"  Title: {title}", markup=False)
    if description:
        glog.console.print(f"  Description: {description}", markup=False)
    if parent:
        glog.console.print(f"  Parent: {parent}", markup=False)
    if depends_on:
        glog.console.print(f"  Depends on: {depends_on}", markup=False)


@main.command(name="list")
@click.option("-s", "--status", "status_filter", type=click.Choice(STATUS_CHOICES), default=None,
              help="Filter tasks by status")
@click.pass_obj
def list_tasks(cfg: Config, status_filter: str | None) -> None:
    """List all tasks as a tree, in execution order."""
    state = _open(cfg).state
    if not state.tasks:
        glog.console.print("No tasks found.")
        return

    only = None
    if status_filter:
        wanted = TaskStatus.TODO if status_filter == "pending" else TaskStatus(status_filter)
        only = [t.id for t in state.tasks.values() if t.status == wanted]
        if not only:
            glog.console.print(f"No tasks found with status: {status_filter}")
            return

    glog.console.print("[bold]Tasks:[/bold]")
    for task, depth in depth_first_order(state, only):
        glog.console.print(_format_task_line(task, depth))


@main.command()
@click.argument("task_id")
@click.option("--engine", type=click.Choice(ENGINE_NAMES), default=None,
              help="Engine used to summarize a parent that this completion finishes")
@click.pass_obj
def complete(cfg: Config, task_id: str, engine: str | None) -> None:
    """Mark a task as completed."""
    executor = None
    if engine:
        cfg.engine = engine
        executor = _executor(cfg)
    h = _open(cfg, executor)

    task = h.get_task(task_id)
    if task is None:
        glog.error(f"Task not found: {task_id}")
        sys.exit(1)
    if task.is_completed:
        glog.console.print(f"Task {task_id} is already completed.")
        return

    try:
        h.process(TaskCompleted(task_id=task_id))
    except EventRejected as exc:
        glog.error(f"Cannot complete {task_id}: {exc.reason}")
        sys.exit(1)
    except HearthError as exc:
        glog.error(f"Failed to complete task: {exc}")
        sys.exit(1)

    glog.console.print(f"  {task.title}", markup=False)
    if task.parent_id is not None:
        parent = h.get_task(task.parent_id)
        if parent is not None and parent.is_completed:
            glog.success(f"Parent task also completed: {parent.id} ({escape(parent.title)})")


@main.command(name="next")
@click.pass_obj
def next_task(cfg: Config) -> None:
    """Show the task that would run next."""
    h = _open(cfg)
    task = h.get_next_task()
    if task is not None:
        glog.console.print(_format_task_line(task, 0))
        return

    unfinished = unfinished_tasks(h.state)
    if not unfinished:
        glog.console.print("No eligible tasks. All tasks completed.")
        return
    glog.console.print("No eligible tasks.")
    for t, reason in unfinished:
        glog.console.print(f"  {escape(t.id)}: {escape(reason)}")


@main.command()
@click.option("--preset", type=click.Choice(sorted(PRESETS)), default=None,
              help="Create a preset root task before running")
@click.option("--engine", type=click.Choice(ENGINE_NAMES), default=None,
              help="AI engine (default: $HEARTH_ENGINE or claude)")
@click.option("--timeout", "engine_timeout", type=int, default=None,
              help="Seconds before an engine call is abandoned")
@click.pass_obj
def run(cfg: Config, preset: str | None, engine: str | None, engine_timeout: int | None) -> None:
    """Run the task loop until no task is eligible."""
    if not cfg.workspace_dir.is_dir():
        glog.error(f"Workspace directory does not exist: {cfg.workspace_dir}")
        sys.exit(1)
    if engine:
        cfg.engine = engine
    cfg.engine_timeout = engine_timeout

    glog.info("Hearth - Task Orchestration")
    glog.info(f"Workspace: {cfg.workspace_dir}")

    h = _open(cfg, _executor(cfg))

    try:
        if preset:
            title, description = PRESETS[preset]
            task_id = generate_task_id()
            h.process(TaskCreated(task_id=task_id, title=title, description=description))
            glog.success(f"Created task {task_id} from preset '{preset}'")

        h.process(ExecuteTasksRequested())
    except KeyboardInterrupt:
        glog.warn("Interrupted by user.")
        raise click.Abort() from None
    except HearthError as exc:
        glog.error(f"Task execution failed: {exc}")
        sys.exit(1)

    state = h.state
    glog.info(
        f"Done: {state.count(TaskStatus.COMPLETED)} completed, "
        f"{state.count(TaskStatus.IN_PROGRESS)} in progress, "
        f"{state.count(TaskStatus.TODO)} todo"
    )
