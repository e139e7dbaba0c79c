from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from markbuild import BuildConfig, run
from markbuild.command import Runner
from markbuild.context import BuildContext
from markbuild.rules import RuleSet


def write_later(path: Path, text: str, *, seconds: float = 5.0) -> None:
    """Write `text` and push the mtime forward so the engine's timestamp check sees a change."""

    before = path.stat().st_mtime if path.exists() else None
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if before is not None:
        stamp = before + seconds
        os.utime(path, (stamp, stamp))


def completed(
    argv: list[str], *, returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=argv, returncode=returncode, stdout=stdout, stderr=stderr)


@dataclass
class Project:
    root: Path
    config: BuildConfig = field(default_factory=lambda: BuildConfig(jobs=1, verbosity=0))
    runner: Runner = subprocess.run

    @property
    def spec_file(self) -> Path:
        return self.root / "build.py"

    @property
    def build_dir(self) -> Path:
        return self.root / ".build"

    def write(self, rel: str, text: str) -> Path:
        path = self.root / rel
        write_later(path, text)
        return path

    def build(
        self,
        rules: Callable[[BuildContext, RuleSet], None] | None,
        argv: Sequence[str] = (),
    ) -> int:
        return run(
            rules,
            root=self.root,
            spec_files=[self.spec_file],
            argv=list(argv),
            config=self.config,
            runner=self.runner,
        )


@pytest.fixture
def project(tmp_path: Path) -> Project:
    root = tmp_path / "proj"
    root.mkdir()
    (root / "build.py").write_text("# build specification v1\n", encoding="utf-8")
    return Project(root=root)
