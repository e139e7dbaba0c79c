from __future__ import annotations

from pathlib import Path

import pytest

from markbuild.config import BuildConfig, apply_env_overrides, load_config, parse_config, validate_config
from markbuild.errors import ConfigError


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path, env={})
    assert cfg == BuildConfig()
    assert cfg.build_dir == ".build"
    assert cfg.macro_processor == ("m4",)
    assert cfg.effective_jobs >= 1


def test_full_config_is_parsed(tmp_path: Path) -> None:
    (tmp_path / "markbuild.yaml").write_text(
        """
version: 1
build_dir: _build
jobs: 3
verbosity: 1
macro_processor: [cpp, -P]
toolchain:
  clean: [cargo, clean]
sources:
  patterns: ["src/**/*.rs"]
  build: [cargo, build]
  format: [rustfmt]
  lint: [cargo, clippy]
""".lstrip(),
        encoding="utf-8",
    )
    cfg = load_config(tmp_path, env={})
    assert cfg.build_dir == "_build"
    assert cfg.jobs == 3
    assert cfg.effective_jobs == 3
    assert cfg.verbosity == 1
    assert cfg.macro_processor == ("cpp", "-P")
    assert cfg.toolchain_clean == ("cargo", "clean")
    assert cfg.source_patterns == ("src/**/*.rs",)
    assert cfg.build_command == ("cargo", "build")
    assert cfg.format_command == ("rustfmt",)
    assert cfg.lint_command == ("cargo", "clippy")
    assert cfg.path == tmp_path / "markbuild.yaml"


def test_validation_errors_are_reported_with_paths() -> None:
    errors = validate_config({"version": 1, "jobs": 0, "sources": {"lint": []}})
    assert any(e.startswith("$.jobs") for e in errors)
    assert any(e.startswith("$.sources.lint") for e in errors)


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError, match="jobz"):
        parse_config({"jobz": 2})


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "markbuild.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path, env={})


def test_invalid_yaml_is_a_config_error(tmp_path: Path) -> None:
    (tmp_path / "markbuild.yaml").write_text("jobs: [1,\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(tmp_path, env={})


def test_env_overrides() -> None:
    cfg = apply_env_overrides(BuildConfig(jobs=2), {"MARKBUILD_JOBS": "7", "MARKBUILD_VERBOSITY": "0"})
    assert cfg.jobs == 7
    assert cfg.verbosity == 0
    assert apply_env_overrides(cfg, {"MARKBUILD_JOBS": "auto"}).jobs == 0


@pytest.mark.parametrize("env", [{"MARKBUILD_JOBS": "0"}, {"MARKBUILD_JOBS": "x"}, {"MARKBUILD_VERBOSITY": "5"}])
def test_bad_env_overrides(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        apply_env_overrides(BuildConfig(), env)
