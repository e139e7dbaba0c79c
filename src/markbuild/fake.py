"""
Fake targets: side-effecting actions with file inputs and no file output.

The rule's output is an empty marker file under `<build dir>/fake/<name>`. The engine's own file-change detection
over the resolved inputs decides when the action runs again; nothing here adds staleness logic of its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from markbuild.context import BuildContext
from markbuild.rules import FakeAction, RuleSet


def _run_fake(ctx: BuildContext, files: list[Path], action: FakeAction, marker: Path) -> None:
    action(ctx, list(files))
    marker.parent.mkdir(parents=True, exist_ok=True)
    marker.write_bytes(b"")
    ctx.logger.debug("fake marker written: %s", ctx.relpath(marker))


def register_fake(
    rules: RuleSet,
    ctx: BuildContext,
    patterns: Sequence[str],
    name: str,
    action: FakeAction,
    *,
    doc: str | None = None,
) -> str:
    marker = ctx.fake_file(name)
    marker_rel = ctx.relpath(marker)
    files = ctx.glob(patterns)
    task: dict[str, Any] = {
        "basename": marker_rel,
        "actions": [(_run_fake, [ctx, files, action, marker])],
        "file_dep": [f.as_posix() for f in files],
        "targets": [marker_rel],
        # counts as a dependency: with no matching input the rule is fresh once its marker exists
        "uptodate": [True],
        "verbosity": ctx.config.verbosity,
    }
    if doc:
        task["doc"] = doc
    return rules.add(task)


def register_fake_aliased(
    rules: RuleSet,
    ctx: BuildContext,
    patterns: Sequence[str],
    name: str,
    action: FakeAction,
    *,
    doc: str | None = None,
) -> str:
    """Register a fake target plus a same-named alias whose only dependency is the marker file."""

    marker_rel = register_fake(rules, ctx, patterns, name, action, doc=doc)
    alias: dict[str, Any] = {
        "basename": name,
        "actions": [],
        "file_dep": [marker_rel],
        "doc": doc or f"alias for {marker_rel}",
    }
    rules.add(alias)
    return name
