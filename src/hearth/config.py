"""Configuration defaults, env vars, and workspace layout for Hearth."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


VERSION = "0.3.0"

HEARTH_DIR = ".hearth"
EVENTS_FILE = "events.json"
LOCK_FILE = "events.lock"
RESULTS_DIR = "results"

WORKSPACE_ENV = "HEARTH_WORKSPACE"
ENGINE_ENV = "HEARTH_ENGINE"

DEFAULT_ENGINE = "claude"


@dataclass
class Config:
    """Runtime configuration for one workspace."""

    workspace_dir: Path = Path(".")

    # Execution
    engine: str = ""
    engine_timeout: int | None = None

    # Persistence
    lock_timeout: float | None = None

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        self.workspace_dir = Path(self.workspace_dir)
        if not self.engine:
            self.engine = os.environ.get(ENGINE_ENV) or DEFAULT_ENGINE

    @property
    def hearth_dir(self) -> Path:
        return hearth_dir(self.workspace_dir)

    @property
    def events_file(self) -> Path:
        return self.hearth_dir / EVENTS_FILE

    @property
    def results_dir(self) -> Path:
        return self.hearth_dir / RESULTS_DIR


def hearth_dir(workspace_dir: Path | str) -> Path:
    return Path(workspace_dir) / HEARTH_DIR


def resolve_workspace(explicit: str | Path | None = None) -> Path:
    """Return the absolute workspace directory.

    Precedence: explicit argument, then ``$HEARTH_WORKSPACE``, then cwd.
    """
    raw = explicit or os.environ.get(WORKSPACE_ENV) or ""
    if raw:
        return Path(raw).expanduser().resolve()
    return Path.cwd().resolve()
