"""Claude Code adapter.

Runs ``claude -p`` headless with ``stream-json`` output; the final
``{"type": "result", ...}`` record carries the answer and token usage.
"""

from __future__ import annotations

import shutil

from hearth.engines.base import EngineBase, EngineResult, json_records

INSTALL_HINT = "Claude Code CLI not found. Install from https://github.com/anthropics/claude-code"
EMPTY_ANSWER = "Task completed"


def _as_int(value: object) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


class ClaudeEngine(EngineBase):
    name = "claude"

    def build_cmd(self, prompt: str) -> list[str]:
        # Agents edit files in the workspace unattended, so permissions are skipped.
        return [
            shutil.which("claude") or "claude",
            "--dangerously-skip-permissions",
            "--verbose",
            "-p",
            prompt,
            "--output-format",
            "stream-json",
        ]

    def parse_output(self, raw: str) -> EngineResult:
        result = EngineResult()
        for record in json_records(raw):
            if record.get("type") != "result":
                continue
            result.text = str(record.get("result") or "")
            usage = record.get("usage") or {}
            if isinstance(usage, dict):
                result.input_tokens = _as_int(usage.get("input_tokens", 0))
                result.output_tokens = _as_int(usage.get("output_tokens", 0))
        result.text = result.text or EMPTY_ANSWER
        return result

    def check_available(self) -> str | None:
        return None if shutil.which("claude") else INSTALL_HINT
