"""
gws.workspace.writer — Manifest editing.

Appends and removes entries while keeping the rest of the file
(comments, blank lines, ordering) untouched. New manifests are created
in the new-style location (.gws/<kind>.gws).
"""

from __future__ import annotations

from pathlib import Path

from gws.workspace.manifest import (
    PROJECTS, WORKSPACES,
    ManifestError, Project, WorkspaceLink,
    locate_manifest, read_manifest, manifest_paths,
)


def format_project_line(project: Project) -> str:
    """Format a project as a manifest line. "origin" names are implicit."""
    specs = []
    for i, remote in enumerate(project.remotes):
        if remote.name == "origin" and i != 1:
            specs.append(remote.url)
        elif remote.name == "upstream" and i == 1:
            specs.append(remote.url)
        else:
            specs.append(f"{remote.url} {remote.name}")
    return " | ".join([project.path, *specs])


def format_link_line(link: WorkspaceLink) -> str:
    if link.remote.name in ("origin", ""):
        return f"{link.path} | {link.remote.url}"
    return f"{link.path} | {link.remote.url} {link.remote.name}"


def _target(root: str | Path, kind: str) -> Path:
    location = locate_manifest(root, kind)
    if location is not None:
        return location.path
    preferred, _ = manifest_paths(root, kind)
    preferred.parent.mkdir(parents=True, exist_ok=True)
    return preferred


def _append(path: Path, line: str) -> None:
    existing = path.read_bytes() if path.exists() else b""
    with open(path, "a", encoding="utf-8") as f:
        if existing and not existing.endswith(b"\n"):
            f.write("\n")
        f.write(line + "\n")


def _remove(root: str | Path, kind: str, entry_path: str) -> bool:
    location = locate_manifest(root, kind)
    if location is None:
        raise ManifestError(f"no {kind} manifest found", str(root))

    kept: list[str] = []
    removed = False
    for raw in read_manifest(location.path).splitlines():
        line = raw.strip()
        if line and not line.startswith("#") and "|" in line:
            if line.split("|", 1)[0].strip() == entry_path:
                removed = True
                continue
        kept.append(raw)

    location.path.write_text("".join(f"{line}\n" for line in kept), encoding="utf-8")
    return removed


def add_project(root: str | Path, project: Project) -> Path:
    """Append a project to the workspace's projects manifest.

    Returns:
        Path of the manifest written to
    """
    path = _target(root, PROJECTS)
    _append(path, format_project_line(project))
    return path


def remove_project(root: str | Path, project_path: str) -> bool:
    """Remove a project entry. Returns False if no line matched."""
    return _remove(root, PROJECTS, project_path)


def add_link(root: str | Path, link: WorkspaceLink) -> Path:
    path = _target(root, WORKSPACES)
    _append(path, format_link_line(link))
    return path


def remove_link(root: str | Path, link_path: str) -> bool:
    return _remove(root, WORKSPACES, link_path)
