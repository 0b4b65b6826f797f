"""
gws.workspace.manifest — Manifest parser.

Manifest format (one entry per line):

    # comment
    libs/core | git@x:core.git | git@x:core-fork.git fork
    tools/cli | https://example.com/cli.git   # inline comment

    <path> | <url> [<remote-name>] [| <url2> [<remote-name2>] ...]

Remote names default by position: the first remote is "origin", the
second "upstream", any further one "origin" unless named.

The workspaces manifest uses the same grammar with exactly one remote
per line. The ignore manifest holds one regular expression per line;
matching project paths are dropped from the parsed result.

Manifest locations (per workspace root):

    .gws/projects.gws     (new style, preferred)
    .projects.gws         (legacy)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from gws.logging import get_logger

log = get_logger("gws.manifest")

FILE_EXTENSION = "gws"
CONFIG_DIR_NAME = ".gws"

PROJECTS = "projects"
WORKSPACES = "workspaces"
IGNORE = "ignore"

_DEFAULT_NAMES = ("origin", "upstream")


@dataclass(frozen=True)
class Remote:
    """A named git remote."""
    name: str
    url: str


@dataclass
class Project:
    """A leaf repository declared in a projects manifest."""
    path: str
    remotes: list[Remote] = field(default_factory=list)
    exists: bool = False  # set by the resolver

    @property
    def origin(self) -> Remote:
        return self.remotes[0]


@dataclass(frozen=True)
class WorkspaceLink:
    """Reference to a child workspace, before resolution."""
    path: str
    remote: Remote

    @property
    def name(self) -> str:
        return Path(self.path).name


@dataclass(frozen=True)
class ManifestLocation:
    """Where a manifest of a given kind lives for a workspace root."""
    path: Path
    legacy_path: Path
    has_duplicate: bool = False

    @property
    def is_legacy(self) -> bool:
        return self.path == self.legacy_path


class ManifestError(Exception):
    """Manifest parse error."""

    def __init__(self, message: str, source: str = "<string>", line: int | None = None):
        self.source = source
        self.line = line
        self.reason = message
        if line is not None:
            message = f"{source}:{line}: {message}"
        else:
            message = f"{source}: {message}"
        super().__init__(message)


# ─────────────────────────────────────────────
# LOCATIONS
# ─────────────────────────────────────────────
def manifest_paths(root: str | Path, kind: str) -> tuple[Path, Path]:
    """Return (new-style path, legacy path) for a manifest kind."""
    r = Path(root)
    return (
        r / CONFIG_DIR_NAME / f"{kind}.{FILE_EXTENSION}",
        r / f".{kind}.{FILE_EXTENSION}",
    )


def locate_manifest(root: str | Path, kind: str) -> ManifestLocation | None:
    """Find the manifest of `kind` under `root`.

    The new-style location wins when both exist; `has_duplicate` is then
    set so the caller can warn about the leftover legacy file.
    """
    preferred, legacy = manifest_paths(root, kind)
    has_preferred = preferred.is_file()
    has_legacy = legacy.is_file()

    if has_preferred:
        return ManifestLocation(preferred, legacy, has_duplicate=has_legacy)
    if has_legacy:
        return ManifestLocation(legacy, legacy)
    return None


def has_manifest(root: str | Path) -> bool:
    """True if `root` holds a projects or workspaces manifest."""
    return any(
        locate_manifest(root, kind) is not None
        for kind in (PROJECTS, WORKSPACES)
    )


# ─────────────────────────────────────────────
# TEXT PARSING
# ─────────────────────────────────────────────
def _clean_lines(text: str):
    """Yield (line number, content) with comments and blanks removed."""
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        # Inline comments only count after the path field
        pipe = line.find("|")
        if pipe != -1:
            hash_idx = line.find("#", pipe)
            if hash_idx != -1:
                line = line[:hash_idx].rstrip()

        yield lineno, line


def parse_remote(spec: str, index: int) -> Remote:
    """Parse `url [name]` for the remote at position `index`."""
    fields = spec.split()
    if not fields:
        raise ValueError("empty remote definition")

    url = fields[0]
    if len(fields) > 1:
        name = fields[1]
    elif index < len(_DEFAULT_NAMES):
        name = _DEFAULT_NAMES[index]
    else:
        name = "origin"

    return Remote(name=name, url=url)


def _split_line(line: str, what: str) -> tuple[str, list[str]]:
    if "|" not in line:
        raise ValueError(
            f"invalid format: expected '<path> | <url> [name]', got '{line}'"
        )

    parts = [p.strip() for p in line.split("|")]
    path = parts[0]
    if not path:
        raise ValueError(f"empty {what} path")

    specs = parts[1:]
    for spec in specs:
        if not spec:
            raise ValueError(f"empty remote for {what} '{path}'")

    return path, specs


def parse_projects(text: str, source: str = "<string>") -> list[Project]:
    """Parse projects manifest text.

    Args:
        text: Manifest content
        source: Name used in error messages (usually the file path)

    Returns:
        Projects in line order

    Raises:
        ManifestError: First malformed line (the whole file is rejected)
    """
    projects: list[Project] = []
    seen: set[str] = set()

    for lineno, line in _clean_lines(text):
        try:
            path, specs = _split_line(line, "project")
            remotes = [parse_remote(spec, i) for i, spec in enumerate(specs)]
        except ValueError as e:
            raise ManifestError(str(e), source, lineno) from None

        if path in seen:
            raise ManifestError(f"duplicate project path '{path}'", source, lineno)
        seen.add(path)

        projects.append(Project(path=path, remotes=remotes))

    return projects


def parse_links(text: str, source: str = "<string>") -> list[WorkspaceLink]:
    """Parse workspaces manifest text (one remote per line)."""
    links: list[WorkspaceLink] = []

    for lineno, line in _clean_lines(text):
        try:
            path, specs = _split_line(line, "workspace")
            if len(specs) > 1:
                raise ValueError(
                    f"workspace '{path}' declares {len(specs)} remotes, expected one"
                )
            remote = parse_remote(specs[0], 0)
        except ValueError as e:
            raise ManifestError(str(e), source, lineno) from None

        links.append(WorkspaceLink(path=path, remote=remote))

    return links


def parse_ignore(text: str, source: str = "<string>") -> list[re.Pattern]:
    """Parse ignore patterns. Invalid expressions are skipped."""
    patterns: list[re.Pattern] = []
    for lineno, line in _clean_lines(text):
        try:
            patterns.append(re.compile(line))
        except re.error as e:
            log.warning(
                "manifest.invalid_ignore_pattern",
                source=source, line=lineno, pattern=line, error=str(e),
            )
    return patterns


def filter_ignored(
    projects: list[Project],
    patterns: list[re.Pattern],
) -> list[Project]:
    """Drop projects whose path matches any ignore pattern."""
    if not patterns:
        return list(projects)

    kept: list[Project] = []
    for project in projects:
        if any(p.search(project.path) for p in patterns):
            log.debug("manifest.project_ignored", path=project.path)
            continue
        kept.append(project)
    return kept


# ─────────────────────────────────────────────
# FILE LOADING
# ─────────────────────────────────────────────
def read_manifest(path: Path) -> str:
    """Read a manifest as UTF-8. Unreadable or undecodable files raise ManifestError."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"cannot read manifest: {e}", str(path)) from e
    except UnicodeDecodeError as e:
        raise ManifestError(
            f"manifest is not valid UTF-8 (byte {e.start}): {e.reason}", str(path),
        ) from e


def load_ignore(root: str | Path) -> list[re.Pattern]:
    location = locate_manifest(root, IGNORE)
    if location is None:
        return []
    return parse_ignore(read_manifest(location.path), str(location.path))


def load_projects(root: str | Path) -> list[Project]:
    """Read and parse the projects manifest of a workspace root.

    The ignore manifest, if any, is applied. A workspace without a
    projects manifest has no projects.
    """
    location = locate_manifest(root, PROJECTS)
    if location is None:
        return []

    log.debug("manifest.reading", path=str(location.path))
    projects = parse_projects(read_manifest(location.path), str(location.path))
    return filter_ignored(projects, load_ignore(root))


def load_links(root: str | Path) -> list[WorkspaceLink]:
    """Read and parse the workspaces manifest of a workspace root."""
    location = locate_manifest(root, WORKSPACES)
    if location is None:
        return []

    log.debug("manifest.reading", path=str(location.path))
    return parse_links(read_manifest(location.path), str(location.path))
