"""Engine registry — get the right adapter by name."""

from __future__ import annotations

from hearth.engines.base import EngineBase
from hearth.engines.claude import ClaudeEngine
from hearth.engines.echo import EchoEngine


def get_engine(name: str) -> EngineBase:
    """Return an engine adapter for *name*."""
    match name:
        case "claude":
            return ClaudeEngine()
        case "echo":
            return EchoEngine()
        case _:
            raise ValueError(f"Unknown engine: {name}")


ENGINE_NAMES = ("claude", "echo")
