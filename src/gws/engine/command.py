"""
gws.engine.command — Units of work for the execution engine.

A RepoCommand binds one operation to one repository path. The operation
is one of three variants:

    GitOp(("pull", "--ff-only"))      → git <args> inside the repository
    ShellOp("make test")              → shell line inside the repository
    CustomOp(lambda: provider.fetch(path))
                                      → arbitrary callable, returns stdout
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Union

GIT = "git"
SHELL = "shell"
CUSTOM = "custom"


@dataclass(frozen=True)
class GitOp:
    args: tuple[str, ...]
    kind = GIT


@dataclass(frozen=True)
class ShellOp:
    line: str
    kind = SHELL


@dataclass(frozen=True)
class CustomOp:
    """Run a callable. Its return value (if any) becomes stdout;
    raising marks the command as failed."""
    action: Callable[[], str | None] | None
    kind = CUSTOM


Operation = Union[GitOp, ShellOp, CustomOp]


@dataclass(frozen=True)
class RepoCommand:
    """One operation bound to one repository."""
    repo_path: str
    repo_name: str
    op: Operation
    context: dict[str, Any] = field(default_factory=dict, compare=False)
    skip_reason: str | None = None
    order: int = -1  # assigned by the engine at submission

    @property
    def kind(self) -> str:
        return getattr(self.op, "kind", "unknown")

    @property
    def is_skipped(self) -> bool:
        return self.skip_reason is not None

    def skip(self, reason: str) -> RepoCommand:
        """Return a copy marked to be bypassed by the engine."""
        return replace(self, skip_reason=reason)

    def with_context(self, key: str, value: Any) -> RepoCommand:
        return replace(self, context={**self.context, key: value})


def git_command(repo_path: str, repo_name: str, *args: str) -> RepoCommand:
    return RepoCommand(repo_path, repo_name, GitOp(tuple(args)))


def shell_command(repo_path: str, repo_name: str, line: str) -> RepoCommand:
    return RepoCommand(repo_path, repo_name, ShellOp(line))


def custom_command(
    repo_path: str,
    repo_name: str,
    action: Callable[[], str | None],
) -> RepoCommand:
    return RepoCommand(repo_path, repo_name, CustomOp(action))
