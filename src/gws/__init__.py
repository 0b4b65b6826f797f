"""
gws — Git workspace manager.

Declares a tree of repositories in small text manifests and runs bulk
operations (clone, fetch, fast-forward, status) across them.
"""

from gws.workspace import (
    Remote,
    Project,
    WorkspaceLink,
    Workspace,
    ManifestError,
    WorkspaceError,
    parse_projects,
    parse_links,
    resolve_workspace,
    find_root,
)
from gws.engine import (
    RepoCommand,
    GitOp,
    ShellOp,
    CustomOp,
    Result,
    ExecuteResult,
    ExecuteOptions,
    execute,
    skip,
)
from gws.git import GitProvider, GitSettings, RepositoryStatus

__version__ = "0.1.0"

__all__ = [
    # workspace
    "Remote",
    "Project",
    "WorkspaceLink",
    "Workspace",
    "ManifestError",
    "WorkspaceError",
    "parse_projects",
    "parse_links",
    "resolve_workspace",
    "find_root",
    # engine
    "RepoCommand",
    "GitOp",
    "ShellOp",
    "CustomOp",
    "Result",
    "ExecuteResult",
    "ExecuteOptions",
    "execute",
    "skip",
    # provider
    "GitProvider",
    "GitSettings",
    "RepositoryStatus",
]
