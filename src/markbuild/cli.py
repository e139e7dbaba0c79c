#!/usr/bin/env python
from __future__ import annotations

import argparse
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from markbuild.config import config_path, load_config
from markbuild.entry import ExtraRules, configure_logging, run
from markbuild.errors import MarkbuildError

DEFAULT_BUILD_FILE = "build.py"


def _eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markbuild",
        description="Run the project's build rules. Arguments after the options are passed to the build engine "
        "(target names, `list`, `info TARGET`, `-n JOBS`, ...).",
    )
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        default=None,
        help=f"Build script defining `rules(ctx, rules)` (default: {DEFAULT_BUILD_FILE} in the project root).",
    )
    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        default=None,
        help="Project root (default: current directory).",
    )
    return parser


def load_build_script(path: Path) -> ModuleType:
    if not path.exists():
        raise FileNotFoundError(f"Missing build script: {path}")
    spec = importlib.util.spec_from_file_location("markbuild_build_script", path)
    if spec is None or spec.loader is None:
        raise MarkbuildError(f"Failed to load build script from {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def rules_from_script(module: ModuleType) -> ExtraRules:
    fn = getattr(module, "rules", None)
    if not callable(fn):
        raise MarkbuildError(f"Build script {module.__file__} must define a `rules(ctx, rules)` function")
    return fn


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args, engine_argv = parser.parse_known_args(sys.argv[1:] if argv is None else argv)

    root = (args.directory or Path.cwd()).resolve()
    script = args.file if args.file is not None else root / DEFAULT_BUILD_FILE
    if not script.is_absolute():
        script = (root / script) if args.directory is not None else script.resolve()

    try:
        config = load_config(root)
        configure_logging(config.verbosity)
        extra_rules = rules_from_script(load_build_script(script))
        spec_files = [script]
        if config_path(root).exists():
            spec_files.append(config_path(root))
        return run(extra_rules, root=root, spec_files=spec_files, argv=engine_argv, config=config)
    except (MarkbuildError, FileNotFoundError) as exc:
        _eprint(f"markbuild: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
