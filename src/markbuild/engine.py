"""
Adapter to the doit build engine.

doit owns scheduling, staleness checks, the persistent database and the command-line front end. This module only
configures it (database location, parallelism, default targets), keeps the database tied to the current build
generation, and hands it the registered rules.
"""

from __future__ import annotations

import contextlib
import shutil
from collections.abc import Iterator, Sequence
from typing import Any

from doit.cmd_base import ModuleTaskLoader
from doit.doit_cmd import DoitMain

from markbuild.context import BuildContext
from markbuild.rules import RuleSet

HOUSEKEEPING_TARGETS = ("clear", "clean")


def default_targets(rules: RuleSet) -> list[str]:
    if rules.default is not None:
        return list(rules.default)
    if "build" in rules:
        return ["build"]
    return [name for name in rules.names() if name not in HOUSEKEEPING_TARGETS]


def doit_config(ctx: BuildContext, rules: RuleSet) -> dict[str, Any]:
    return {
        "dep_file": ctx.relpath(ctx.database_file),
        "backend": "json",
        "check_file_uptodate": "md5",
        "num_process": ctx.config.effective_jobs,
        "par_type": "thread",
        "verbosity": ctx.config.verbosity,
        "default_tasks": default_targets(rules),
    }


def clear_markers(ctx: BuildContext) -> None:
    for marker_dir in (ctx.fake_dir, ctx.meta_dir):
        if marker_dir.exists():
            shutil.rmtree(marker_dir)
            ctx.logger.info("removed %s", ctx.relpath(marker_dir))


def ensure_generation(ctx: BuildContext, fingerprint: str) -> bool:
    """Start a new build generation when the fingerprint differs from the stored one; returns True on reset.

    Both the engine database and the marker files go: a fake target with no inputs has no stored state, so only a
    missing marker makes it stale again.
    """

    generation = ctx.generation_file
    stored = generation.read_text(encoding="utf-8").strip() if generation.exists() else None
    if stored == fingerprint:
        return False

    ctx.build_dir.mkdir(parents=True, exist_ok=True)
    ctx.database_file.unlink(missing_ok=True)
    clear_markers(ctx)
    generation.write_text(fingerprint + "\n", encoding="utf-8")
    if stored is None:
        ctx.logger.debug("build generation %s", fingerprint[:12])
    else:
        ctx.logger.info("build specification changed (%s -> %s); all rules are stale", stored[:12], fingerprint[:12])
    return True


def engine_argv(rules: RuleSet, argv: Sequence[str]) -> list[str]:
    """Route target names to the engine's `run` command.

    Rule names such as `clean` are also engine subcommands; a leading rule name always means the rule.
    """

    args = list(argv)
    if args and args[0] in rules:
        return ["run", *args]
    return args


def _loader_namespace(ctx: BuildContext, rules: RuleSet) -> dict[str, Any]:
    def task_markbuild() -> Iterator[dict[str, Any]]:
        # the engine consumes keys of the dicts it is given
        for task in rules.tasks():
            yield dict(task)

    return {
        "DOIT_CONFIG": doit_config(ctx, rules),
        "task_markbuild": task_markbuild,
    }


def wipe_build_dir(ctx: BuildContext) -> None:
    if ctx.build_dir.exists():
        shutil.rmtree(ctx.build_dir)
        ctx.logger.info("removed %s", ctx.relpath(ctx.build_dir))
    ctx.wipe_requested = False


def dispatch(ctx: BuildContext, rules: RuleSet, argv: Sequence[str]) -> int:
    """Run the engine's command line with the project root as working directory."""

    ctx.build_dir.mkdir(parents=True, exist_ok=True)
    with contextlib.chdir(ctx.root):
        main = DoitMain(ModuleTaskLoader(_loader_namespace(ctx, rules)), config_filenames=())
        rc = main.run(engine_argv(rules, argv))
        # the database is written when the engine finishes, so `clean` removes it only now
        if ctx.wipe_requested:
            wipe_build_dir(ctx)
    return rc if isinstance(rc, int) else 0
