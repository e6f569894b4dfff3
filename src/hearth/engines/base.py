"""Engine adapters: run an agent CLI on one prompt inside a workspace.

An adapter only knows how to build its command line and read its stdout.
Process handling (environment, timeout, interrupts, error extraction) lives
here so every engine behaves the same way under ``hearth run``.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from hearth.config import WORKSPACE_ENV
from hearth.errors import ExecutionError

RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "rate limit",
    "rate_limit",
    "usage limit",
    "quota",
    "429",
    "too many requests",
)

# Seconds between interrupt checks while an engine runs with a timeout.
POLL_SLICE = 0.2
STOP_GRACE = 2


def looks_like_rate_limit(text: str) -> bool:
    lower = text.lower()
    return any(pattern in lower for pattern in RATE_LIMIT_PATTERNS)


def json_records(raw: str) -> Iterator[dict]:
    for line in raw.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            yield obj


def structured_error(raw: str) -> str:
    """First error reported as a JSON record on stdout, or ``""``."""
    for record in json_records(raw):
        err = record.get("error")
        if isinstance(err, dict):
            message = str(err.get("message", "")).strip()
            kind = str(err.get("type", "") or err.get("code", ""))
            if looks_like_rate_limit(kind):
                return message or "Rate limit exceeded"
            if message:
                return message
        elif isinstance(err, str) and err.strip():
            return "Rate limit exceeded" if looks_like_rate_limit(err) else err.strip()

        if record.get("type") == "result" and record.get("is_error"):
            return str(record.get("result") or "Unknown error").strip()
    return ""


@dataclass
class EngineResult:
    """What one engine invocation produced."""

    text: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0
    error: str = ""
    return_code: int = 0

    @property
    def ok(self) -> bool:
        return not self.error and self.return_code == 0


class EngineBase(ABC):
    """Subprocess-backed agent. Subclasses implement the two hooks below."""

    name: str = "base"

    @abstractmethod
    def build_cmd(self, prompt: str) -> list[str]:
        """Command line that runs *prompt* non-interactively."""
        ...

    @abstractmethod
    def parse_output(self, raw: str) -> EngineResult:
        """Turn the CLI's stdout into an :class:`EngineResult`."""
        ...

    def check_available(self) -> str | None:
        """Error message when the engine cannot run here, else None."""
        binary = self.build_cmd("")[0]
        if shutil.which(binary) is None:
            return f"{binary} not found in PATH"
        return None

    def call(self, prompt: str, work_dir: Path, *, timeout: int | None = None) -> str:
        """Run *prompt* in *work_dir* and return the answer text.

        Raises :class:`ExecutionError` when the engine fails for any reason.
        """
        result = self.run_sync(prompt, cwd=work_dir, timeout=timeout)
        if not result.ok:
            reason = result.error or f"exit code {result.return_code}"
            raise ExecutionError(f"{self.name} failed: {reason}")
        return result.text

    def run_sync(
        self,
        prompt: str,
        *,
        cwd: Path | None = None,
        timeout: int | None = None,
    ) -> EngineResult:
        cmd = self.build_cmd(prompt)
        started = time.monotonic()

        try:
            proc = self._spawn(cmd, cwd)
        except FileNotFoundError:
            return EngineResult(error=f"{cmd[0]} not found", return_code=-1)

        try:
            stdout, stderr = self._collect(proc, timeout)
        except subprocess.TimeoutExpired:
            self._stop(proc)
            return EngineResult(error="timeout", return_code=-1)
        except KeyboardInterrupt:
            self._stop(proc)
            raise

        result = self.parse_output(stdout or "")
        result.return_code = proc.returncode
        if not result.duration_ms:
            result.duration_ms = int((time.monotonic() - started) * 1000)
        if not result.error:
            result.error = structured_error(stdout or "")
        if proc.returncode != 0 and not result.error:
            lines = (stderr or "").strip().splitlines()
            result.error = lines[0] if lines else f"exit code {proc.returncode}"
        return result

    # ── process handling ─────────────────────────────────────────

    @staticmethod
    def _spawn(cmd: list[str], cwd: Path | None) -> subprocess.Popen[str]:
        env = dict(os.environ)
        if cwd is not None:
            # Agents that run ``hearth add`` must land in the same workspace.
            env[WORKSPACE_ENV] = str(cwd)
        return subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=cwd,
            env=env,
        )

    @staticmethod
    def _collect(proc: subprocess.Popen[str], timeout: int | None) -> tuple[str, str]:
        """Wait for output in short slices so Ctrl-C is handled promptly."""
        if timeout is None:
            return proc.communicate()

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise subprocess.TimeoutExpired(proc.args, timeout)
            try:
                return proc.communicate(timeout=min(POLL_SLICE, remaining))
            except subprocess.TimeoutExpired:
                continue

    @staticmethod
    def _stop(proc: subprocess.Popen[str]) -> None:
        """Terminate, then kill if the engine ignores SIGTERM."""
        for signal_proc in (proc.terminate, proc.kill):
            try:
                if proc.poll() is None:
                    signal_proc()
                proc.wait(timeout=STOP_GRACE)
                return
            except (OSError, subprocess.TimeoutExpired):
                continue
