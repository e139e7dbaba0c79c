from markbuild.command import run_command
from markbuild.config import BuildConfig, load_config
from markbuild.context import BuildContext
from markbuild.entry import main, run
from markbuild.errors import (
    CommandError,
    CommandNotFoundError,
    ConfigError,
    DuplicateRuleError,
    InvalidDefineError,
    MarkbuildError,
)
from markbuild.fake import register_fake, register_fake_aliased
from markbuild.meta import git_version, register_meta, write_if_changed
from markbuild.preprocess import register_preprocess
from markbuild.rules import Computation, RuleSet, computation, phony

__all__ = [
    "BuildConfig",
    "BuildContext",
    "CommandError",
    "CommandNotFoundError",
    "Computation",
    "ConfigError",
    "DuplicateRuleError",
    "InvalidDefineError",
    "MarkbuildError",
    "RuleSet",
    "computation",
    "git_version",
    "load_config",
    "main",
    "phony",
    "register_fake",
    "register_fake_aliased",
    "register_meta",
    "register_preprocess",
    "run",
    "run_command",
    "write_if_changed",
]
