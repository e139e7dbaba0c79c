from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from markbuild.errors import DuplicateRuleError

if TYPE_CHECKING:
    from markbuild.context import BuildContext

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

FakeAction = Callable[["BuildContext", list[Path]], None]
PhonyAction = Callable[["BuildContext"], None]


@runtime_checkable
class Computation(Protocol[T_co]):
    """A value computed inside a rule, together with the files it reads.

    `deps` is declared up front so the dependency graph can be inspected without executing anything; marker files
    of other rules (e.g. `ctx.relpath(ctx.meta_file("version"))`) are valid entries.
    """

    deps: Sequence[str]

    def compute(self, ctx: BuildContext) -> T_co:  # pragma: no cover
        raise NotImplementedError


@dataclass(frozen=True)
class FunctionComputation(Generic[T]):
    fn: Callable[[BuildContext], T]
    deps: tuple[str, ...] = ()

    def compute(self, ctx: BuildContext) -> T:
        return self.fn(ctx)


def computation(fn: Callable[[BuildContext], T], deps: Sequence[str | Path] = ()) -> FunctionComputation[T]:
    return FunctionComputation(fn=fn, deps=tuple(Path(d).as_posix() for d in deps))


def as_computation(value: Computation[T] | Callable[[BuildContext], T]) -> Computation[T]:
    if isinstance(value, Computation):
        return value
    if callable(value):
        return computation(value)
    raise TypeError(f"Expected a Computation or a callable, got {type(value).__name__}")


class RuleSet:
    """Ordered registry of engine task dicts, keyed by task name."""

    def __init__(self) -> None:
        self._tasks: dict[str, dict[str, Any]] = {}
        self._targets: dict[str, str] = {}
        self.default: list[str] | None = None

    def add(self, task: dict[str, Any]) -> str:
        name = task.get("basename")
        if not isinstance(name, str) or not name:
            raise ValueError("Rule task dict requires a non-empty 'basename'")
        if name in self._tasks:
            raise DuplicateRuleError(f"Rule {name!r} is already registered")
        targets = [str(t) for t in task.get("targets", [])]
        for target in targets:
            owner = self._targets.get(target)
            if owner is not None:
                raise DuplicateRuleError(f"Target {target!r} is already produced by rule {owner!r}")
        self._tasks[name] = task
        for target in targets:
            self._targets[target] = name
        return name

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, name: str) -> dict[str, Any]:
        return self._tasks[name]

    def names(self) -> list[str]:
        return list(self._tasks)

    def producer_of(self, target: str) -> str | None:
        return self._targets.get(target)

    def set_default(self, *names: str) -> None:
        """Targets run when the command line names none."""

        self.default = list(names)

    def tasks(self) -> Iterator[dict[str, Any]]:
        yield from self._tasks.values()


def _run_phony(ctx: BuildContext, action: PhonyAction) -> None:
    action(ctx)


def phony(
    rules: RuleSet,
    ctx: BuildContext,
    name: str,
    action: PhonyAction,
    *,
    deps: Sequence[str | Path] = (),
    doc: str | None = None,
) -> str:
    """Register an always-run target that produces no file."""

    task: dict[str, Any] = {
        "basename": name,
        "actions": [(_run_phony, [ctx, action])],
        "file_dep": [Path(d).as_posix() for d in deps],
        "uptodate": [False],
        "verbosity": ctx.config.verbosity,
    }
    if doc:
        task["doc"] = doc
    return rules.add(task)
