"""
Meta targets: values recomputed on every build, stored in `<build dir>/meta/<name>`.

The marker is only rewritten when the value actually changes, so rules depending on it are not invalidated when
a recomputation yields the same answer.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from markbuild.context import BuildContext
from markbuild.rules import Computation, FunctionComputation, RuleSet, as_computation


def write_if_changed(path: Path, content: str) -> bool:
    """Atomically replace `path` with `content` unless it already holds exactly that; returns True on write."""

    data = content.encode("utf-8")
    try:
        if path.read_bytes() == data:
            return False
    except FileNotFoundError:
        pass

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return True


def _run_meta(ctx: BuildContext, compute: Computation[str], marker: Path) -> None:
    value = compute.compute(ctx)
    if not isinstance(value, str):
        raise TypeError(f"Meta computation for {ctx.relpath(marker)} returned {type(value).__name__}, expected str")
    if write_if_changed(marker, value):
        ctx.logger.info("meta %s updated", marker.name)
    else:
        ctx.logger.debug("meta %s unchanged", marker.name)


def register_meta(
    rules: RuleSet,
    ctx: BuildContext,
    name: str,
    compute: Computation[str] | Callable[[BuildContext], str],
    *,
    doc: str | None = None,
) -> str:
    computation = as_computation(compute)
    marker = ctx.meta_file(name)
    marker_rel = ctx.relpath(marker)
    task: dict[str, Any] = {
        "basename": marker_rel,
        "actions": [(_run_meta, [ctx, computation, marker])],
        "file_dep": list(computation.deps),
        "targets": [marker_rel],
        "uptodate": [False],
        "verbosity": ctx.config.verbosity,
    }
    if doc:
        task["doc"] = doc
    return rules.add(task)


def normalize_version(described: str) -> str:
    """Normalize a `git describe` result: PEP 440 versions (with an optional leading `v`) are canonicalized,
    anything else is returned stripped."""

    text = described.strip()
    candidate = text[1:] if text[:1] in {"v", "V"} else text
    try:
        return str(Version(candidate))
    except InvalidVersion:
        return text


def _describe(ctx: BuildContext) -> str:
    out = ctx.cmd_out("git", "describe", "--tags", "--always", "--dirty")
    return normalize_version(out)


def git_version() -> FunctionComputation[str]:
    """Computation reading the project version from the nearest version-control tag."""

    return FunctionComputation(fn=_describe)
