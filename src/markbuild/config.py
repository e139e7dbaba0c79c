from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from markbuild.errors import ConfigError
from markbuild.paths import DEFAULT_BUILD_DIR

CONFIG_FILE_NAME = "markbuild.yaml"
CONFIG_SCHEMA_VERSION = 1

_ARGV_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
    "minItems": 1,
}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "version": {"const": CONFIG_SCHEMA_VERSION},
        "build_dir": {"type": "string", "minLength": 1, "pattern": r"^[^/\\]+$"},
        "jobs": {
            "anyOf": [
                {"type": "integer", "minimum": 1},
                {"const": "auto"},
            ]
        },
        "verbosity": {"type": "integer", "minimum": 0, "maximum": 2},
        "macro_processor": _ARGV_SCHEMA,
        "toolchain": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"clean": _ARGV_SCHEMA},
        },
        "sources": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "patterns": {"type": "array", "items": {"type": "string", "minLength": 1}},
                "build": _ARGV_SCHEMA,
                "format": _ARGV_SCHEMA,
                "lint": _ARGV_SCHEMA,
            },
        },
    },
}


@dataclass(frozen=True)
class BuildConfig:
    build_dir: str = DEFAULT_BUILD_DIR
    jobs: int = 0
    verbosity: int = 2
    macro_processor: tuple[str, ...] = ("m4",)
    toolchain_clean: tuple[str, ...] | None = None
    source_patterns: tuple[str, ...] = ()
    build_command: tuple[str, ...] | None = None
    format_command: tuple[str, ...] | None = None
    lint_command: tuple[str, ...] | None = None
    path: Path | None = None

    @property
    def effective_jobs(self) -> int:
        """`0` means one worker per available CPU."""

        if self.jobs > 0:
            return self.jobs
        return os.cpu_count() or 1


def config_path(root: Path) -> Path:
    return root / CONFIG_FILE_NAME


def validate_config(raw: Any) -> list[str]:
    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(raw), key=lambda e: str(e.path))
    formatted: list[str] = []
    for error in errors:
        path = "$"
        for part in error.path:
            path += f"[{part!r}]" if isinstance(part, int) else f".{part}"
        formatted.append(f"{path}: {error.message}")
    return formatted


def _argv(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(str(v) for v in value)


def parse_config(raw: Any, *, path: Path | None = None) -> BuildConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config (expected mapping): {path}")
    errors = validate_config(raw)
    if errors:
        where = f" in {path}" if path is not None else ""
        raise ConfigError(f"Invalid markbuild config{where}:\n" + "\n".join(errors))

    jobs_raw = raw.get("jobs", "auto")
    toolchain = raw.get("toolchain") or {}
    sources = raw.get("sources") or {}
    return BuildConfig(
        build_dir=raw.get("build_dir", DEFAULT_BUILD_DIR),
        jobs=0 if jobs_raw == "auto" else int(jobs_raw),
        verbosity=int(raw.get("verbosity", 2)),
        macro_processor=_argv(raw.get("macro_processor")) or ("m4",),
        toolchain_clean=_argv(toolchain.get("clean")),
        source_patterns=tuple(sources.get("patterns") or ()),
        build_command=_argv(sources.get("build")),
        format_command=_argv(sources.get("format")),
        lint_command=_argv(sources.get("lint")),
        path=path,
    )


def apply_env_overrides(config: BuildConfig, env: Mapping[str, str]) -> BuildConfig:
    jobs_raw = env.get("MARKBUILD_JOBS")
    if jobs_raw is not None:
        jobs_raw = jobs_raw.strip().lower()
        if jobs_raw == "auto":
            config = replace(config, jobs=0)
        else:
            try:
                jobs = int(jobs_raw)
            except ValueError as e:
                raise ConfigError("MARKBUILD_JOBS must be a positive integer or 'auto'.") from e
            if jobs < 1:
                raise ConfigError("MARKBUILD_JOBS must be a positive integer or 'auto'.")
            config = replace(config, jobs=jobs)

    verbosity_raw = env.get("MARKBUILD_VERBOSITY")
    if verbosity_raw is not None:
        try:
            verbosity = int(verbosity_raw)
        except ValueError as e:
            raise ConfigError("MARKBUILD_VERBOSITY must be 0, 1 or 2.") from e
        if verbosity not in (0, 1, 2):
            raise ConfigError("MARKBUILD_VERBOSITY must be 0, 1 or 2.")
        config = replace(config, verbosity=verbosity)
    return config


def load_config(root: Path, env: Mapping[str, str] | None = None) -> BuildConfig:
    path = config_path(root)
    if path.exists():
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        config = parse_config(raw, path=path)
    else:
        config = BuildConfig()
    return apply_env_overrides(config, os.environ if env is None else env)
