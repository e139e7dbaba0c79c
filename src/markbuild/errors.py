from __future__ import annotations

from pathlib import Path


class MarkbuildError(RuntimeError):
    pass


class ConfigError(MarkbuildError):
    pass


class DuplicateRuleError(MarkbuildError):
    pass


class InvalidDefineError(MarkbuildError, ValueError):
    pass


class CommandError(MarkbuildError):
    def __init__(
        self,
        argv: list[str],
        *,
        returncode: int | None,
        cwd: Path | None = None,
        stderr: str | None = None,
        message: str | None = None,
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.cwd = cwd
        self.stderr = stderr
        if message is None:
            message = f"{' '.join(self.argv)}: exited with status {returncode}"
            tail = (stderr or "").strip()
            if tail:
                message += f"\n{tail[-2000:]}"
        super().__init__(message)


class CommandNotFoundError(CommandError):
    pass
