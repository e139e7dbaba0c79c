from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from markbuild import paths
from markbuild.command import Runner, run_command
from markbuild.config import BuildConfig
from markbuild.globbing import resolve_patterns


@dataclass
class BuildContext:
    """State shared by every registrar, action and computation of one build invocation.

    The build-support directory is owned by this context: registrars derive marker paths from it, and `clean`
    asks for it to be removed through `request_wipe()` once the engine has released its database.
    """

    root: Path
    config: BuildConfig = field(default_factory=BuildConfig)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("markbuild"))
    runner: Runner = subprocess.run
    wipe_requested: bool = False

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # layout

    @property
    def build_dir(self) -> Path:
        return paths.build_support_dir(self.root, self.config.build_dir)

    @property
    def fake_dir(self) -> Path:
        return paths.fake_dir(self.root, self.config.build_dir)

    @property
    def meta_dir(self) -> Path:
        return paths.meta_dir(self.root, self.config.build_dir)

    @property
    def database_file(self) -> Path:
        return paths.database_file(self.root, self.config.build_dir)

    @property
    def generation_file(self) -> Path:
        return paths.generation_file(self.root, self.config.build_dir)

    def fake_file(self, name: str) -> Path:
        return paths.fake_file(self.root, name, self.config.build_dir)

    def meta_file(self, name: str) -> Path:
        return paths.meta_file(self.root, name, self.config.build_dir)

    def path(self, rel: str | Path) -> Path:
        return self.root / rel

    def relpath(self, path: Path) -> str:
        return paths.relpath(self.root, path)

    def glob(self, patterns: Sequence[str]) -> list[Path]:
        return resolve_patterns(self.root, patterns, exclude_dirs=[self.config.build_dir])

    def read_meta(self, name: str) -> str:
        marker = self.meta_file(name)
        if not marker.exists():
            return ""
        return marker.read_text(encoding="utf-8")

    def request_wipe(self) -> None:
        self.wipe_requested = True

    # commands

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        capture: bool = False,
        directory: Path | None = None,
    ) -> str | None:
        return run_command(capture, directory, command, args, runner=self.runner, logger=self.logger)

    def cmd(self, command: str, *args: str) -> None:
        self.run(command, args)

    def cmd_out(self, command: str, *args: str) -> str:
        return self.run(command, args, capture=True) or ""

    def cmd_in(self, directory: Path, command: str, *args: str) -> None:
        self.run(command, args, directory=directory)

    def cmd_out_in(self, directory: Path, command: str, *args: str) -> str:
        return self.run(command, args, capture=True, directory=directory) or ""
