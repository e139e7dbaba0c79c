from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath

_EXCLUDED_DIR_NAMES = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    "__pycache__",
    "node_modules",
}


def _check_pattern(pattern: str) -> str:
    posix = pattern.replace("\\", "/")
    pure = PurePosixPath(posix)
    if pure.is_absolute() or (len(posix) > 1 and posix[1] == ":"):
        raise ValueError(f"Glob pattern must be relative to the project root: {pattern!r}")
    if ".." in pure.parts:
        raise ValueError(f"Glob pattern must not escape the project root: {pattern!r}")
    return posix


def _is_excluded(rel: PurePosixPath, excluded_dirs: set[str]) -> bool:
    return any(part in excluded_dirs for part in rel.parts[:-1])


def resolve_patterns(
    root: Path,
    patterns: Sequence[str],
    *,
    exclude_dirs: Iterable[str] = (),
) -> list[Path]:
    """Resolve glob patterns to a sorted, de-duplicated list of existing files, relative to `root`.

    Directories in `exclude_dirs` (typically the build-support directory) and common tool caches are never
    descended into. An empty result is valid.
    """

    excluded = set(_EXCLUDED_DIR_NAMES) | set(exclude_dirs)
    found: set[PurePosixPath] = set()
    for pattern in patterns:
        for match in root.glob(_check_pattern(pattern)):
            if not match.is_file():
                continue
            rel = PurePosixPath(match.relative_to(root).as_posix())
            if _is_excluded(rel, excluded):
                continue
            found.add(rel)
    return [Path(p) for p in sorted(found)]
