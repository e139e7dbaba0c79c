"""
Single chokepoint for running external tools (compiler driver, formatter, linter, git, macro processor,
transfer tools).

Two independent axes: capture stdout or not, and run in the current directory or in a given one. Failures raise
`CommandError`; nothing here retries or recovers.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from markbuild.errors import CommandError, CommandNotFoundError

Runner = Callable[..., "subprocess.CompletedProcess[str]"]

_LOGGER = logging.getLogger("markbuild")


def resolve_argv(argv: list[str]) -> list[str]:
    """Resolve argv[0] via PATH for cross-platform execution.

    On Windows, toolchain entrypoints are often `.cmd` shims which `subprocess.run()` cannot execute directly, so
    they are invoked via `cmd.exe /c`.
    """

    if not argv:
        raise ValueError("Empty command")

    cmd = argv[0]
    if any(sep and sep in cmd for sep in ("/", "\\", os.path.sep, os.path.altsep)):
        return argv

    resolved = shutil.which(cmd)
    if resolved is None:
        return argv

    if os.name == "nt":
        suffix = Path(resolved).suffix.lower()
        if suffix in {".cmd", ".bat"}:
            comspec = os.environ.get("ComSpec", "cmd.exe")
            return [comspec, "/d", "/c", resolved, *argv[1:]]

    return [resolved, *argv[1:]]


def run_command(
    capture: bool,
    directory: Path | None,
    command: str,
    args: Sequence[str] = (),
    *,
    runner: Runner = subprocess.run,
    logger: logging.Logger | None = None,
) -> str | None:
    argv = [command, *[str(a) for a in args]]
    log = logger or _LOGGER
    where = str(directory) if directory is not None else "."
    log.info("+ (%s) %s", where, " ".join(argv))

    kwargs: dict[str, Any] = {"text": True, "check": False}
    if directory is not None:
        kwargs["cwd"] = str(directory)
    if capture:
        kwargs["stdout"] = subprocess.PIPE
        kwargs["stderr"] = subprocess.PIPE

    try:
        proc = runner(resolve_argv(argv), **kwargs)
    except FileNotFoundError as exc:
        raise CommandNotFoundError(
            argv,
            returncode=None,
            cwd=directory,
            message=f"Command not found: {command!r}",
        ) from exc
    except OSError as exc:
        raise CommandError(
            argv,
            returncode=None,
            cwd=directory,
            message=f"Failed to execute {command!r}: {exc}",
        ) from exc

    if proc.returncode != 0:
        raise CommandError(
            argv,
            returncode=proc.returncode,
            cwd=directory,
            stderr=proc.stderr if capture and isinstance(proc.stderr, str) else None,
        )

    if not capture:
        return None
    if proc.stderr:
        log.warning("%s", proc.stderr.rstrip())
    return (proc.stdout or "").rstrip()


def cmd(command: str, *args: str, runner: Runner = subprocess.run) -> None:
    run_command(False, None, command, args, runner=runner)


def cmd_out(command: str, *args: str, runner: Runner = subprocess.run) -> str:
    return run_command(True, None, command, args, runner=runner) or ""


def cmd_in(directory: Path, command: str, *args: str, runner: Runner = subprocess.run) -> None:
    run_command(False, directory, command, args, runner=runner)


def cmd_out_in(directory: Path, command: str, *args: str, runner: Runner = subprocess.run) -> str:
    return run_command(True, directory, command, args, runner=runner) or ""
