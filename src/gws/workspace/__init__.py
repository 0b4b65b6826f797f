"""gws.workspace — Manifests & workspace tree resolution."""

from gws.workspace.manifest import (
    Remote, Project, WorkspaceLink, ManifestLocation, ManifestError,
    parse_projects, parse_links, parse_ignore, filter_ignored,
    load_projects, load_links, locate_manifest, has_manifest, read_manifest,
)
from gws.workspace.resolver import (
    Workspace, Resolver, WorkspaceError,
    resolve_workspace, find_root, DEFAULT_MAX_DEPTH,
)
from gws.workspace.writer import (
    add_project, remove_project, add_link, remove_link,
    format_project_line, format_link_line,
)

__all__ = [
    "Remote", "Project", "WorkspaceLink", "ManifestLocation", "ManifestError",
    "parse_projects", "parse_links", "parse_ignore", "filter_ignored",
    "load_projects", "load_links", "locate_manifest", "has_manifest", "read_manifest",
    "Workspace", "Resolver", "WorkspaceError",
    "resolve_workspace", "find_root", "DEFAULT_MAX_DEPTH",
    "add_project", "remove_project", "add_link", "remove_link",
    "format_project_line", "format_link_line",
]
