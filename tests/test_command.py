from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from conftest import completed

from markbuild import command
from markbuild.errors import CommandError, CommandNotFoundError


class RecordingRunner:
    def __init__(self, *, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.calls: list[tuple[list[str], dict[str, Any]]] = []
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    def __call__(self, argv: list[str], **kwargs: Any):
        self.calls.append((argv, kwargs))
        out = self.stdout if "stdout" in kwargs else None
        err = self.stderr if "stderr" in kwargs else None
        return completed(argv, returncode=self.returncode, stdout=out or "", stderr=err or "")


def test_capture_strips_trailing_whitespace() -> None:
    runner = RecordingRunner(stdout="v1.2.3\n\n  \n")
    out = command.run_command(True, None, "git-fake-tool", ["describe"], runner=runner)
    assert out == "v1.2.3"
    argv, kwargs = runner.calls[0]
    assert argv == ["git-fake-tool", "describe"]
    assert kwargs["stdout"] is not None
    assert "cwd" not in kwargs


def test_capture_keeps_leading_whitespace() -> None:
    runner = RecordingRunner(stdout="  indented\n")
    assert command.run_command(True, None, "tool-x", [], runner=runner) == "  indented"


def test_no_capture_returns_none_and_inherits_output() -> None:
    runner = RecordingRunner(stdout="ignored")
    assert command.run_command(False, None, "tool-x", ["a"], runner=runner) is None
    _argv, kwargs = runner.calls[0]
    assert "stdout" not in kwargs


def test_directory_sets_working_directory(tmp_path: Path) -> None:
    runner = RecordingRunner()
    command.run_command(False, tmp_path, "tool-x", [], runner=runner)
    _argv, kwargs = runner.calls[0]
    assert kwargs["cwd"] == str(tmp_path)


def test_nonzero_exit_raises_for_both_axes() -> None:
    runner = RecordingRunner(returncode=3)
    with pytest.raises(CommandError) as excinfo:
        command.run_command(True, None, "tool-x", ["--bad"], runner=runner)
    assert excinfo.value.returncode == 3
    assert excinfo.value.argv == ["tool-x", "--bad"]

    with pytest.raises(CommandError):
        command.run_command(False, None, "tool-x", [], runner=runner)


def test_missing_executable_raises_not_found() -> None:
    def missing(argv: list[str], **_kwargs: object):
        raise FileNotFoundError(argv[0])

    with pytest.raises(CommandNotFoundError, match="tool-x"):
        command.run_command(False, None, "tool-x", [], runner=missing)


def test_convenience_wrappers_cover_both_axes(tmp_path: Path) -> None:
    runner = RecordingRunner(stdout="out\n")
    command.cmd("tool-x", "a", runner=runner)
    assert command.cmd_out("tool-x", runner=runner) == "out"
    command.cmd_in(tmp_path, "tool-x", runner=runner)
    assert command.cmd_out_in(tmp_path, "tool-x", "b", runner=runner) == "out"

    cwds = [kwargs.get("cwd") for _argv, kwargs in runner.calls]
    assert cwds == [None, None, str(tmp_path), str(tmp_path)]


def test_real_subprocess_capture(tmp_path: Path) -> None:
    out = command.run_command(
        True,
        tmp_path,
        sys.executable,
        ["-c", "import os; print(os.getcwd()); print()"],
    )
    assert out is not None
    assert Path(out).resolve() == tmp_path.resolve()


def test_resolve_argv_keeps_explicit_paths() -> None:
    assert command.resolve_argv(["./tool", "x"]) == ["./tool", "x"]
    with pytest.raises(ValueError):
        command.resolve_argv([])


def test_captured_failure_carries_stderr_tail() -> None:
    runner = RecordingRunner(returncode=1, stderr="m4: version.txt.in:3: bad macro\n")
    with pytest.raises(CommandError) as excinfo:
        command.run_command(True, None, "m4", ["version.txt.in"], runner=runner)
    assert excinfo.value.stderr == "m4: version.txt.in:3: bad macro\n"
    assert "bad macro" in str(excinfo.value)
    _argv, kwargs = runner.calls[0]
    assert kwargs["stderr"] is not None


def test_uncaptured_run_leaves_stderr_on_the_terminal() -> None:
    runner = RecordingRunner(returncode=1, stderr="never piped")
    with pytest.raises(CommandError) as excinfo:
        command.run_command(False, None, "tool-x", [], runner=runner)
    assert excinfo.value.stderr is None
    _argv, kwargs = runner.calls[0]
    assert "stderr" not in kwargs


def test_output_wrappers_return_empty_string_for_silent_tools() -> None:
    runner = RecordingRunner(stdout="")
    assert command.cmd_out("tool-x", runner=runner) == ""
    assert command.cmd_out_in(Path("."), "tool-x", runner=runner) == ""
