"""Console output for hearth commands and the run loop, colored via Rich.

Messages go to stdout except errors, which go to stderr so ``hearth list``
and ``hearth next`` output stays clean when piped.
"""

from __future__ import annotations

from rich.console import Console

console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

_verbose = False

DESCRIPTION_PREVIEW = 100

_TAGS = {
    "info": "[blue]\\[INFO][/blue]",
    "ok": "[green]\\[OK][/green]",
    "warn": "[yellow]\\[WARN][/yellow]",
    "error": "[red]\\[ERROR][/red]",
}


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def info(msg: str) -> None:
    console.print(f"{_TAGS['info']} {msg}")


def success(msg: str) -> None:
    console.print(f"{_TAGS['ok']} {msg}")


def warn(msg: str) -> None:
    console.print(f"{_TAGS['warn']} {msg}")


def error(msg: str) -> None:
    _err_console.print(f"{_TAGS['error']} {msg}")


def debug(msg: str) -> None:
    if not _verbose:
        return
    console.print(f"[dim]\\[DEBUG] {msg}[/dim]")


def task_header(task_id: str, title: str, description: str = "") -> None:
    """Announce the task the scheduler picked."""
    console.print(f"[bold cyan]>> Working on {task_id}[/bold cyan]")
    console.print(f"   Title: {title}", markup=False)
    if not description:
        return
    if len(description) > DESCRIPTION_PREVIEW:
        description = description[:DESCRIPTION_PREVIEW] + "..."
    console.print(f"   Description: {description}", markup=False)
