"""Offline engine that answers with the task line of its prompt.

Runs the current interpreter as the "agent", so the whole subprocess path is
exercised without a network or an installed AI CLI.
"""

from __future__ import annotations

import sys

from hearth.engines.base import EngineBase, EngineResult

_TASK_MARKERS = ("CURRENT TASK:", "ORIGINAL TASK:")

_ECHO_SCRIPT = "import sys; sys.stdout.write(sys.argv[1])"


class EchoEngine(EngineBase):
    name = "echo"

    def build_cmd(self, prompt: str) -> list[str]:
        return [sys.executable, "-c", _ECHO_SCRIPT, prompt]

    def parse_output(self, raw: str) -> EngineResult:
        for line in raw.splitlines():
            stripped = line.strip()
            if stripped.startswith(_TASK_MARKERS):
                return EngineResult(text=f"Echo: {stripped}\n")
        return EngineResult(text="Echo: (no task line)\n")

    def check_available(self) -> str | None:
        return None
