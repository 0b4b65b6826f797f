"""gws.engine — Bounded-parallel command execution."""

from gws.engine.command import (
    RepoCommand, GitOp, ShellOp, CustomOp,
    git_command, shell_command, custom_command,
)
from gws.engine.result import Result, ExecuteResult, skip
from gws.engine.shell import CommandError, CommandTimeoutError, run_git, run_shell
from gws.engine.engine import (
    execute, execute_one, ExecuteOptions, EngineError, DEFAULT_PARALLEL,
)

__all__ = [
    "RepoCommand", "GitOp", "ShellOp", "CustomOp",
    "git_command", "shell_command", "custom_command",
    "Result", "ExecuteResult", "skip",
    "CommandError", "CommandTimeoutError", "run_git", "run_shell",
    "execute", "execute_one", "ExecuteOptions", "EngineError", "DEFAULT_PARALLEL",
]
