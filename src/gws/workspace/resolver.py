"""
gws.workspace.resolver — Workspace resolver.

Walks a workspace root depth-first, reads its projects and workspaces
manifests, and returns a Workspace tree:

    root/
      .gws/projects.gws      → Workspace.projects
      .gws/workspaces.gws    → Workspace.children (resolved recursively)

Resolution is best-effort per node: a broken manifest is logged and
recorded on the node, it never aborts the whole tree. Each directory is
expanded at most once per pass (keyed by its canonical path), and
expansion stops past `max_depth`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from gws.logging import get_logger
from gws.workspace.manifest import (
    PROJECTS, WORKSPACES,
    ManifestError, Project, Remote, WorkspaceLink,
    has_manifest, load_links, load_projects, locate_manifest,
)

log = get_logger("gws.resolver")

DEFAULT_MAX_DEPTH = 100

# Node states
RESOLVED = "resolved"
CYCLE = "cycle"
TOO_DEEP = "too_deep"
MISSING = "missing"
UNEXPANDED = "unexpanded"


@dataclass
class Workspace:
    """A resolved workspace node."""
    root: Path
    path: str
    name: str
    remote: Remote | None = None       # set for linked children
    exists: bool = True
    error: Exception | None = None
    state: str = RESOLVED
    projects: list[Project] = field(default_factory=list)
    children: list[Workspace] = field(default_factory=list)

    @property
    def expanded(self) -> bool:
        return self.state == RESOLVED

    def walk(self) -> Iterator[Workspace]:
        """Iterate over this node and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def all_projects(self) -> list[Project]:
        result = list(self.projects)
        for child in self.children:
            result.extend(child.all_projects())
        return result

    def missing_projects(self) -> list[Project]:
        return [p for p in self.projects if not p.exists]

    def all_missing_projects(self) -> list[Project]:
        result = self.missing_projects()
        for child in self.children:
            result.extend(child.all_missing_projects())
        return result

    def missing_workspaces(self) -> list[Workspace]:
        return [c for c in self.children if not c.exists]

    def all_missing_workspaces(self) -> list[Workspace]:
        result = self.missing_workspaces()
        for child in self.children:
            result.extend(child.all_missing_workspaces())
        return result

    def total_project_count(self) -> int:
        return sum(len(ws.projects) for ws in self.walk())

    def total_workspace_count(self) -> int:
        return sum(1 for _ in self.walk()) - 1

    def to_project(self) -> Project:
        """View a linked workspace as a cloneable project."""
        remotes = [self.remote] if self.remote else []
        return Project(path=self.path, remotes=remotes, exists=self.exists)


class WorkspaceError(Exception):
    """Workspace resolution error."""
    pass


class Resolver:
    """Builds a Workspace tree from on-disk manifests.

    A Resolver keeps its visited set only for the duration of one
    `resolve` call; every call builds a fresh tree.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, recursive: bool = True):
        self.max_depth = max_depth
        self.recursive = recursive
        self._visited: set[Path] = set()

    def resolve(self, root: str | Path) -> Workspace:
        """Resolve the workspace rooted at `root`.

        Raises:
            WorkspaceError: `root` is not a directory
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise WorkspaceError(f"Not a directory: {root_path}")

        self._visited = set()
        try:
            return self._resolve(root_path, str(root), 0, None)
        finally:
            self._visited = set()

    def _resolve(
        self,
        path: Path,
        declared: str,
        depth: int,
        link: WorkspaceLink | None,
    ) -> Workspace:
        canonical = path.resolve()
        ws = Workspace(
            root=canonical,
            path=declared,
            name=link.name if link else canonical.name,
            remote=link.remote if link else None,
        )

        # 1. Cycle guard, before depth or filesystem checks
        if canonical in self._visited:
            log.debug("resolver.already_visited", path=str(canonical))
            ws.state = CYCLE
            return ws
        self._visited.add(canonical)

        # 2. Depth cutoff
        if depth > self.max_depth:
            log.warning(
                "resolver.max_depth_reached",
                path=str(canonical), max_depth=self.max_depth,
            )
            ws.state = TOO_DEEP
            return ws

        log.debug("resolver.resolving", path=str(canonical), depth=depth)

        # 3-4. Projects
        self._warn_duplicate(canonical, PROJECTS)
        try:
            projects = load_projects(canonical)
        except ManifestError as e:
            log.warning("resolver.projects_unreadable", path=str(canonical), error=str(e))
            ws.error = ws.error or e
            projects = []

        for project in projects:
            project.exists = (canonical / project.path).exists()
            ws.projects.append(project)

        # 5. Workspace links
        self._warn_duplicate(canonical, WORKSPACES)
        try:
            links = load_links(canonical)
        except ManifestError as e:
            log.warning("resolver.workspaces_unreadable", path=str(canonical), error=str(e))
            ws.error = ws.error or e
            links = []

        # 6. Children
        for child_link in links:
            ws.children.append(self._resolve_child(canonical, child_link, depth))

        log.debug(
            "resolver.resolved",
            path=str(canonical),
            projects=len(ws.projects),
            children=len(ws.children),
        )
        return ws

    def _resolve_child(
        self,
        parent: Path,
        link: WorkspaceLink,
        depth: int,
    ) -> Workspace:
        child_path = parent / link.path

        if not child_path.exists():
            return Workspace(
                root=child_path,
                path=link.path,
                name=link.name,
                remote=link.remote,
                exists=False,
                state=MISSING,
            )

        if not self.recursive:
            return Workspace(
                root=child_path.resolve(),
                path=link.path,
                name=link.name,
                remote=link.remote,
                state=UNEXPANDED,
            )

        try:
            return self._resolve(child_path, link.path, depth + 1, link)
        except OSError as e:
            log.warning("resolver.child_failed", path=str(child_path), error=str(e))
            return Workspace(
                root=child_path,
                path=link.path,
                name=link.name,
                remote=link.remote,
                error=e,
                state=UNEXPANDED,
            )

    @staticmethod
    def _warn_duplicate(root: Path, kind: str) -> None:
        location = locate_manifest(root, kind)
        if location is not None and location.has_duplicate:
            log.warning(
                "resolver.duplicate_manifest",
                kind=kind,
                used=str(location.path),
                legacy=str(location.legacy_path),
                hint="remove the legacy file",
            )


def resolve_workspace(
    root: str | Path | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    recursive: bool = True,
) -> Workspace:
    """Resolve a workspace tree.

    Args:
        root: Workspace root directory (None = cwd)
        max_depth: Deepest link level that is still expanded
        recursive: Follow workspace links

    Returns:
        Workspace

    Raises:
        WorkspaceError: Root is not a directory
    """
    return Resolver(max_depth=max_depth, recursive=recursive).resolve(root or ".")


def find_root(start: str | Path | None = None) -> Path:
    """Find the nearest directory at or above `start` holding a manifest.

    Raises:
        WorkspaceError: No manifest in `start` or any parent
    """
    current = Path(start or ".").resolve()
    for candidate in (current, *current.parents):
        if has_manifest(candidate):
            return candidate

    raise WorkspaceError(
        f"No workspace found (no .gws/projects.gws or .projects.gws "
        f"in {current} or its parents)"
    )
