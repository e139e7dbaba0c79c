from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from markbuild.command import Runner
from markbuild.config import BuildConfig, config_path, load_config
from markbuild.context import BuildContext
from markbuild.engine import clear_markers, dispatch, ensure_generation
from markbuild.errors import MarkbuildError
from markbuild.fake import register_fake_aliased
from markbuild.fingerprint import compute_fingerprint
from markbuild.rules import RuleSet, phony

ExtraRules = Callable[[BuildContext, RuleSet], None]


def _eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def configure_logging(verbosity: int, *, name: str = "markbuild") -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(getattr(h, "_markbuild", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._markbuild = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(logging.WARNING if verbosity <= 0 else logging.INFO)
    logger.propagate = False
    return logger


def _clean(ctx: BuildContext) -> None:
    argv = ctx.config.toolchain_clean
    if argv:
        ctx.run(argv[0], argv[1:])
    ctx.request_wipe()


def register_housekeeping(rules: RuleSet, ctx: BuildContext) -> None:
    phony(rules, ctx, "clear", clear_markers, doc="delete every fake and meta marker file")
    phony(rules, ctx, "clean", _clean, doc="clean the toolchain, then delete the build-support directory")


@dataclass(frozen=True)
class ToolAction:
    """Fake-target action running a configured tool, optionally with the resolved files appended."""

    argv: tuple[str, ...]
    pass_files: bool

    def __call__(self, ctx: BuildContext, files: list[Path]) -> None:
        args = list(self.argv[1:])
        if self.pass_files:
            if not files:
                ctx.logger.info("%s: no matching files", self.argv[0])
                return
            args.extend(f.as_posix() for f in files)
        ctx.run(self.argv[0], args)


def register_source_rules(rules: RuleSet, ctx: BuildContext) -> None:
    cfg = ctx.config
    patterns = list(cfg.source_patterns)
    if cfg.build_command:
        register_fake_aliased(
            rules, ctx, patterns, "build", ToolAction(cfg.build_command, pass_files=False), doc="build the project"
        )
    if cfg.format_command:
        register_fake_aliased(
            rules, ctx, patterns, "format", ToolAction(cfg.format_command, pass_files=True), doc="format sources"
        )
    if cfg.lint_command:
        register_fake_aliased(
            rules, ctx, patterns, "lint", ToolAction(cfg.lint_command, pass_files=True), doc="lint sources"
        )


def _default_spec_files(root: Path, config: BuildConfig) -> list[Path]:
    files: list[Path] = []
    main_file = getattr(sys.modules.get("__main__"), "__file__", None)
    if main_file:
        files.append(Path(main_file).resolve())
    cfg_path = config.path or config_path(root)
    if cfg_path.exists():
        files.append(cfg_path)
    return files


def run(
    extra_rules: ExtraRules | None = None,
    *,
    root: Path | None = None,
    spec_files: Sequence[Path] | None = None,
    argv: Sequence[str] | None = None,
    config: BuildConfig | None = None,
    runner: Runner = subprocess.run,
    logger: logging.Logger | None = None,
) -> int:
    """Fingerprint the build specification, register every rule and hand control to the engine."""

    root = (root or Path.cwd()).resolve()
    config = config or load_config(root)
    files = list(spec_files) if spec_files is not None else _default_spec_files(root, config)
    fingerprint = compute_fingerprint([f if f.is_absolute() else root / f for f in files])

    ctx = BuildContext(
        root=root,
        config=config,
        logger=logger or logging.getLogger("markbuild"),
        runner=runner,
    )
    ensure_generation(ctx, fingerprint)

    rules = RuleSet()
    register_housekeeping(rules, ctx)
    register_source_rules(rules, ctx)
    if extra_rules is not None:
        extra_rules(ctx, rules)

    return dispatch(ctx, rules, sys.argv[1:] if argv is None else argv)


def main(
    extra_rules: ExtraRules | None = None,
    *,
    root: Path | None = None,
    spec_files: Sequence[Path] | None = None,
    argv: Sequence[str] | None = None,
) -> None:
    """Entry point for a build script: `if __name__ == "__main__": main(rules)`."""

    try:
        root_path = (root or Path.cwd()).resolve()
        config = load_config(root_path)
        configure_logging(config.verbosity)
        rc = run(extra_rules, root=root_path, spec_files=spec_files, argv=argv, config=config)
    except (MarkbuildError, FileNotFoundError) as exc:
        _eprint(f"markbuild: {exc}")
        raise SystemExit(2) from exc
    raise SystemExit(rc)
