from __future__ import annotations

from pathlib import Path

DEFAULT_BUILD_DIR = ".build"
FAKE_DIR_NAME = "fake"
META_DIR_NAME = "meta"
DATABASE_FILE_NAME = "database.json"
GENERATION_FILE_NAME = "generation"


def build_support_dir(root: Path, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return root / build_dir


def fake_dir(root: Path, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return build_support_dir(root, build_dir) / FAKE_DIR_NAME


def fake_file(root: Path, name: str, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return fake_dir(root, build_dir) / check_marker_name(name)


def meta_dir(root: Path, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return build_support_dir(root, build_dir) / META_DIR_NAME


def meta_file(root: Path, name: str, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return meta_dir(root, build_dir) / check_marker_name(name)


def database_file(root: Path, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return build_support_dir(root, build_dir) / DATABASE_FILE_NAME


def generation_file(root: Path, build_dir: str = DEFAULT_BUILD_DIR) -> Path:
    return build_support_dir(root, build_dir) / GENERATION_FILE_NAME


def check_marker_name(name: str) -> str:
    """Marker files are named exactly as their target, so a name must be one plain path component."""

    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        raise ValueError(f"Invalid target name for a marker file: {name!r}")
    return name


def relpath(root: Path, path: Path) -> str:
    """Posix path of `path` relative to `root`; this is the form used for engine task names and targets."""

    if not path.is_absolute():
        return path.as_posix()
    return path.relative_to(root).as_posix()
