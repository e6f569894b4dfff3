"""Tests for engine adapters and registry."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from hearth.engines.base import EngineResult, looks_like_rate_limit
from hearth.engines.claude import ClaudeEngine
from hearth.engines.echo import EchoEngine
from hearth.engines.registry import ENGINE_NAMES, get_engine
from hearth.errors import ExecutionError


def _proc(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    fake_proc = MagicMock()
    fake_proc.communicate.return_value = (stdout, stderr)
    fake_proc.returncode = returncode
    return fake_proc


class TestEngineRegistry:
    @pytest.mark.parametrize(
        ("name", "expected_cls"),
        [
            ("claude", ClaudeEngine),
            ("echo", EchoEngine),
        ],
    )
    def test_get_engine_returns_expected_adapter(self, name: str, expected_cls: type) -> None:
        assert isinstance(get_engine(name), expected_cls)

    def test_engine_names(self) -> None:
        assert set(ENGINE_NAMES) == {"claude", "echo"}

    def test_unknown_engine_raises(self) -> None:
        with pytest.raises(ValueError):
            get_engine("unknown-provider")


class TestEngineResult:
    def test_ok_requires_no_error_and_zero_exit(self) -> None:
        assert EngineResult(text="x").ok
        assert not EngineResult(error="boom").ok
        assert not EngineResult(return_code=1).ok

    def test_rate_limit_detection(self) -> None:
        assert looks_like_rate_limit("HTTP 429 Too Many Requests")
        assert not looks_like_rate_limit("syntax error")


class TestClaudeEngine:
    def test_build_cmd_uses_resolved_path_when_available(self) -> None:
        with patch("hearth.engines.claude.shutil.which", return_value="/usr/bin/claude"):
            engine = ClaudeEngine()
            cmd = engine.build_cmd("hello")

        assert cmd[0] == "/usr/bin/claude"
        assert cmd[cmd.index("-p") + 1] == "hello"
        assert "--output-format" in cmd
        assert "stream-json" in cmd

    def test_parse_output_extracts_result_and_usage(self) -> None:
        engine = ClaudeEngine()
        raw = (
            '{"type":"assistant","text":"thinking"}\n'
            '{"type":"result","result":"done","usage":{"input_tokens":12,"output_tokens":7}}'
        )
        result = engine.parse_output(raw)

        assert result.text == "done"
        assert result.input_tokens == 12
        assert result.output_tokens == 7

    def test_parse_output_falls_back_when_no_result_line(self) -> None:
        engine = ClaudeEngine()
        result = engine.parse_output('{"type":"assistant","text":"hi"}')
        assert result.text == "Task completed"

    def test_run_sync_surfaces_first_stderr_line_when_subprocess_fails(self) -> None:
        engine = ClaudeEngine()
        fake_proc = _proc(stderr="Permission denied\nmore details", returncode=2)

        with patch("hearth.engines.base.subprocess.Popen", return_value=fake_proc):
            result = engine.run_sync("prompt")

        assert result.return_code == 2
        assert result.error == "Permission denied"

    def test_run_sync_structured_error(self) -> None:
        engine = ClaudeEngine()
        fake_proc = _proc(stdout='{"type":"error","error":{"type":"rate_limit_error","message":""}}')

        with patch("hearth.engines.base.subprocess.Popen", return_value=fake_proc):
            result = engine.run_sync("prompt")

        assert result.error == "Rate limit exceeded"

    def test_run_sync_sets_workspace_env(self, tmp_path: Path) -> None:
        engine = ClaudeEngine()
        fake_proc = _proc(stdout='{"type":"result","result":"ok"}')

        with patch("hearth.engines.base.subprocess.Popen", return_value=fake_proc) as mock_popen:
            engine.run_sync("prompt", cwd=tmp_path)

        kwargs = mock_popen.call_args.kwargs
        assert kwargs["cwd"] == tmp_path
        assert kwargs["env"]["HEARTH_WORKSPACE"] == str(tmp_path)
        assert kwargs["stdin"] == subprocess.DEVNULL

    def test_run_sync_missing_binary(self) -> None:
        engine = ClaudeEngine()
        with patch("hearth.engines.base.subprocess.Popen", side_effect=FileNotFoundError):
            result = engine.run_sync("prompt")

        assert result.return_code == -1
        assert "not found" in result.error

    def test_run_sync_keyboard_interrupt_terminates_subprocess(self) -> None:
        engine = ClaudeEngine()
        fake_proc = MagicMock()
        fake_proc.communicate.side_effect = KeyboardInterrupt
        fake_proc.poll.return_value = None
        fake_proc.wait.return_value = 0

        with patch("hearth.engines.base.subprocess.Popen", return_value=fake_proc):
            with pytest.raises(KeyboardInterrupt):
                engine.run_sync("prompt")

        fake_proc.terminate.assert_called_once()

    def test_call_raises_execution_error(self, tmp_path: Path) -> None:
        engine = ClaudeEngine()
        fake_proc = _proc(stderr="bad things", returncode=1)

        with patch("hearth.engines.base.subprocess.Popen", return_value=fake_proc):
            with pytest.raises(ExecutionError, match="claude failed: bad things"):
                engine.call("prompt", tmp_path)

    def test_check_available_reports_missing_binary(self) -> None:
        with patch("hearth.engines.claude.shutil.which", return_value=None):
            engine = ClaudeEngine()
            assert engine.check_available() is not None


class TestEchoEngine:
    def test_always_available(self) -> None:
        assert EchoEngine().check_available() is None

    def test_parse_output_picks_task_line(self) -> None:
        raw = "ROOT TASK: x\n\nCURRENT TASK: Say hi\nCURRENT TASK ID: T-1\n"
        assert EchoEngine().parse_output(raw).text == "Echo: CURRENT TASK: Say hi\n"

    def test_parse_output_without_task_line(self) -> None:
        assert EchoEngine().parse_output("nothing here").text == "Echo: (no task line)\n"

    def test_call_runs_real_subprocess(self, tmp_path: Path) -> None:
        text = EchoEngine().call("\nORIGINAL TASK: Wrap up\nTASK ID: P\n", tmp_path)
        assert text == "Echo: ORIGINAL TASK: Wrap up\n"
