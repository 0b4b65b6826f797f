"""
gws.git.discover — Find git repositories on disk.

Used by `gws init` (write a manifest for existing checkouts) and
`gws check` (report checkouts the manifest does not know about).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from gws.engine.shell import CommandError, run_git
from gws.workspace.manifest import CONFIG_DIR_NAME, Remote


@dataclass
class DiscoveredRepo:
    path: str                   # relative to the scanned root
    remotes: list[Remote] = field(default_factory=list)


def list_remotes(repo_path: str | Path, git_binary: str = "git") -> list[Remote]:
    """Remotes of a repository, "origin" first, others in `git remote -v` order."""
    stdout, _ = run_git(repo_path, ["remote", "-v"], git_binary=git_binary)

    urls: dict[str, str] = {}
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] not in urls:
            urls[parts[0]] = parts[1]

    names = sorted(urls, key=lambda n: n != "origin")
    return [Remote(name=n, url=urls[n]) for n in names]


def discover_repositories(
    root: str | Path,
    max_depth: int = 10,
    git_binary: str = "git",
) -> list[DiscoveredRepo]:
    """Walk `root` for directories containing `.git`.

    Repositories are not descended into. Repositories without remotes
    are left out since they cannot be declared in a manifest.
    """
    base = Path(root).resolve()
    found: list[DiscoveredRepo] = []

    for dirpath, dirnames, _ in os.walk(base):
        current = Path(dirpath)
        rel = current.relative_to(base)
        depth = len(rel.parts)

        if depth > 0 and (current / ".git").exists():
            dirnames.clear()
            try:
                remotes = list_remotes(current, git_binary)
            except (CommandError, OSError):
                continue
            if remotes:
                found.append(DiscoveredRepo(path=rel.as_posix(), remotes=remotes))
            continue

        if depth >= max_depth:
            dirnames.clear()
            continue

        dirnames[:] = sorted(
            d for d in dirnames if d not in (".git", CONFIG_DIR_NAME)
        )

    return sorted(found, key=lambda r: r.path)


def find_unknown_repositories(
    root: str | Path,
    known_paths: list[str],
    max_depth: int = 10,
    git_binary: str = "git",
) -> list[str]:
    """Repository paths under `root` that are not in `known_paths`."""
    known = {Path(p).as_posix().rstrip("/") for p in known_paths}
    return [
        repo.path
        for repo in discover_repositories(root, max_depth, git_binary)
        if repo.path not in known
    ]
