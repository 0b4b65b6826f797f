"""
gws.git.provider — Repository provider.

The engine never talks to git directly for clone/fetch/pull/status: it
calls a RepositoryProvider. GitProvider implements the protocol with the
git executable; all knobs come from GitSettings passed to the
constructor.

    provider = GitProvider(GitSettings(timeout=120))
    provider.clone("/ws/libs/core", project.remotes)
    status = provider.get_status("/ws/libs/core")
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Protocol, Sequence

from gws.engine.shell import CommandError, CommandTimeoutError, run_git
from gws.logging import get_logger
from gws.workspace.manifest import Remote

log = get_logger("gws.git")

_AHEAD_BEHIND = re.compile(r"\+(\d+) -(\d+)")
_NOT_A_REPO = 128


class ProviderError(CommandError):
    """A repository operation failed."""
    pass


@dataclass
class RepositoryStatus:
    """Working tree state of one repository."""
    path: str
    exists: bool = False
    clean: bool = False
    branch: str = ""
    ahead: int = 0
    behind: int = 0
    uncommitted: int = 0
    untracked: int = 0
    has_remote: bool = False
    error: Exception | None = None

    @property
    def has_changes(self) -> bool:
        return self.exists and (
            not self.clean or self.ahead > 0 or self.behind > 0
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["error"] = str(self.error) if self.error else None
        return data


class RepositoryProvider(Protocol):
    """Operations the driver binds into engine commands."""

    def get_status(self, path: str | Path) -> RepositoryStatus: ...

    def clone(self, path: str | Path, remotes: Sequence[Remote]) -> None: ...

    def fetch(self, path: str | Path) -> None: ...

    def pull(self, path: str | Path) -> None: ...


@dataclass
class GitSettings:
    """Explicit provider configuration.

    git_binary: git executable
    timeout: per git invocation, seconds (0 = none)
    interactive: allow git to prompt for credentials
    env: extra environment for every git process
    """
    git_binary: str = "git"
    timeout: float = 0.0
    interactive: bool = False
    env: dict[str, str] = field(default_factory=dict)


class GitProvider:
    """RepositoryProvider backed by the git command line."""

    def __init__(self, settings: GitSettings | None = None):
        self.settings = settings or GitSettings()

    def _env(self) -> dict[str, str]:
        env = dict(self.settings.env)
        if not self.settings.interactive:
            env.setdefault("GIT_TERMINAL_PROMPT", "0")
        return env

    def _git(self, cwd: str | Path, *args: str) -> str:
        stdout, _ = run_git(
            cwd, args,
            timeout=self.settings.timeout,
            git_binary=self.settings.git_binary,
            env=self._env(),
        )
        return stdout

    def _git_or_fail(self, what: str, cwd: str | Path, *args: str) -> str:
        try:
            return self._git(cwd, *args)
        except CommandTimeoutError:
            raise
        except CommandError as e:
            detail = e.stderr.strip() or str(e)
            raise ProviderError(
                f"failed to {what}: {detail}",
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e
        except OSError as e:
            raise ProviderError(f"failed to {what}: {e}") from e

    # ─────────────────────────────────────────────
    # STATUS
    # ─────────────────────────────────────────────
    def get_status(self, path: str | Path) -> RepositoryStatus:
        """Inspect a repository. Never raises: problems land in `error`."""
        status = RepositoryStatus(path=str(path))
        if not Path(path).is_dir():
            return status

        try:
            output = self._git(path, "status", "--porcelain=v2", "--branch")
        except CommandTimeoutError as e:
            status.error = e
            return status
        except CommandError as e:
            if e.returncode != _NOT_A_REPO:
                status.error = e
            return status
        except OSError as e:
            status.error = e
            return status

        status.exists = True
        parse_porcelain_v2(output, status)
        return status

    # ─────────────────────────────────────────────
    # CLONE / FETCH / PULL
    # ─────────────────────────────────────────────
    def clone(self, path: str | Path, remotes: Sequence[Remote]) -> None:
        """Clone the first remote into `path`, then add the others."""
        if not remotes:
            raise ProviderError("no remotes defined")

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        primary = remotes[0]
        log.debug("git.clone", path=str(target), url=primary.url)
        self._git_or_fail(
            "clone repository", target.parent,
            "clone", "--origin", primary.name, primary.url, str(target),
        )

        for remote in remotes[1:]:
            self._git_or_fail(
                f"add remote {remote.name}", target,
                "remote", "add", remote.name, remote.url,
            )

    def fetch(self, path: str | Path) -> None:
        log.debug("git.fetch", path=str(path))
        self._git_or_fail("fetch", path, "fetch", "--all")

    def pull(self, path: str | Path) -> None:
        """Fast-forward only; a diverged branch is an error, never a merge."""
        log.debug("git.pull", path=str(path))
        self._git_or_fail("fast-forward", path, "pull", "--ff-only")


def parse_porcelain_v2(output: str, status: RepositoryStatus) -> RepositoryStatus:
    """Fill `status` from `git status --porcelain=v2 --branch` output."""
    status.clean = True
    for line in output.splitlines():
        if line.startswith("# branch.head "):
            status.branch = line[len("# branch.head "):].strip()
        elif line.startswith("# branch.upstream "):
            status.has_remote = True
        elif line.startswith("# branch.ab "):
            m = _AHEAD_BEHIND.search(line)
            if m:
                status.ahead = int(m.group(1))
                status.behind = int(m.group(2))
        elif line.startswith("? "):
            status.untracked += 1
            status.clean = False
        elif line[:2] in ("1 ", "2 ", "u "):
            status.uncommitted += 1
            status.clean = False
    return status
