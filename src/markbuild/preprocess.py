from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from markbuild.context import BuildContext
from markbuild.errors import InvalidDefineError
from markbuild.meta import write_if_changed
from markbuild.rules import Computation, RuleSet, as_computation

Defines = Sequence[tuple[str, str]]

_DEFINE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def define_args(defines: Defines) -> list[str]:
    """One `-DKEY=VALUE` argument per pair, in order; duplicate keys are passed through for the processor to
    resolve."""

    args: list[str] = []
    for item in defines:
        if not isinstance(item, tuple) or len(item) != 2:
            raise InvalidDefineError(f"Define must be a (key, value) pair, got {item!r}")
        key, value = item
        if not isinstance(key, str) or not _DEFINE_KEY_RE.match(key):
            raise InvalidDefineError(f"Invalid macro name: {key!r}")
        args.append(f"-D{key}={value}")
    return args


def _run_preprocess(
    ctx: BuildContext,
    processor: tuple[str, ...],
    template: str,
    defines: Computation[Defines],
    output: Path,
) -> None:
    args = [*processor[1:], *define_args(list(defines.compute(ctx))), template]
    rendered = ctx.run(processor[0], args, capture=True) or ""
    if write_if_changed(output, rendered):
        ctx.logger.info("generated %s", ctx.relpath(output))


def register_preprocess(
    rules: RuleSet,
    ctx: BuildContext,
    outputs: str | Path | Sequence[str | Path],
    template: str | Path,
    defines: Computation[Defines] | Callable[[BuildContext], Defines],
    *,
    processor: Sequence[str] | None = None,
    doc: str | None = None,
) -> list[str]:
    """Generate each output from `template` through the macro processor, with `defines` as `-D` definitions.

    The rule depends on the template and on whatever `defines` declares in its `deps`.
    """

    if isinstance(outputs, (str, Path)):
        outputs = [outputs]
    computation = as_computation(defines)
    argv = tuple(processor) if processor is not None else ctx.config.macro_processor
    if not argv:
        raise ValueError("Macro processor command must not be empty")
    template_rel = Path(template).as_posix()

    names: list[str] = []
    for out in outputs:
        out_rel = Path(out).as_posix()
        task: dict[str, Any] = {
            "basename": out_rel,
            "actions": [(_run_preprocess, [ctx, argv, template_rel, computation, ctx.path(out_rel)])],
            "file_dep": [template_rel, *computation.deps],
            "targets": [out_rel],
            "verbosity": ctx.config.verbosity,
        }
        if doc:
            task["doc"] = doc
        names.append(rules.add(task))
    return names
