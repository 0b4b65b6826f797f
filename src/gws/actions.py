"""
gws.actions — Workspace → engine commands.

Binds every project of a resolved Workspace to a RepositoryProvider call
and wraps it in a RepoCommand. Projects that cannot be acted on are
submitted pre-skipped so they still show up, in order, in the results.

    ws = resolve_workspace(root)
    result = execute(fetch_commands(ws, provider), options)
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from gws.engine import (
    ExecuteOptions, ExecuteResult, RepoCommand, custom_command, execute,
)
from gws.git.provider import RepositoryProvider, RepositoryStatus
from gws.workspace.manifest import Project
from gws.workspace.resolver import Workspace

NOT_CLONED = "not cloned yet"
ALREADY_EXISTS = "already exists"


def iter_projects(
    workspace: Workspace,
    recursive: bool = True,
) -> Iterator[tuple[str, Path, Project]]:
    """Yield (display name, absolute path, project), pre-order.

    Display names are relative to the top workspace root so projects of
    nested workspaces stay distinguishable.
    """
    nodes = workspace.walk() if recursive else iter([workspace])
    for ws in nodes:
        if not ws.exists:
            continue
        for project in ws.projects:
            abs_path = ws.root / project.path
            yield _display_name(workspace, abs_path), abs_path, project


def _display_name(top: Workspace, path: Path) -> str:
    try:
        return path.relative_to(top.root).as_posix()
    except ValueError:
        return path.as_posix()


def clone_commands(
    workspace: Workspace,
    provider: RepositoryProvider,
    only: list[str] | None = None,
    recursive: bool = True,
) -> list[RepoCommand]:
    """Clone missing projects and missing linked workspaces.

    `only` restricts the batch to those display names.
    """
    targets = list(iter_projects(workspace, recursive))

    nodes = workspace.walk() if recursive else iter([workspace])
    for ws in nodes:
        for child in ws.missing_workspaces():
            project = child.to_project()
            path = ws.root / child.path
            targets.append((_display_name(workspace, path), path, project))

    commands = []
    for name, path, project in targets:
        if only is not None and name not in only:
            continue
        cmd = custom_command(
            str(path), name,
            lambda p=path, r=project.remotes: provider.clone(p, r),
        )
        if project.exists:
            cmd = cmd.skip(ALREADY_EXISTS)
        commands.append(cmd)
    return commands


def _existing_only(
    workspace: Workspace,
    recursive: bool,
    operation,
) -> list[RepoCommand]:
    commands = []
    for name, path, project in iter_projects(workspace, recursive):
        cmd = custom_command(str(path), name, lambda p=path: operation(p))
        if not project.exists:
            cmd = cmd.skip(NOT_CLONED)
        commands.append(cmd)
    return commands


def fetch_commands(
    workspace: Workspace,
    provider: RepositoryProvider,
    recursive: bool = True,
) -> list[RepoCommand]:
    return _existing_only(workspace, recursive, provider.fetch)


def pull_commands(
    workspace: Workspace,
    provider: RepositoryProvider,
    recursive: bool = True,
) -> list[RepoCommand]:
    return _existing_only(workspace, recursive, provider.pull)


def collect_statuses(
    workspace: Workspace,
    provider: RepositoryProvider,
    options: ExecuteOptions | None = None,
    recursive: bool = True,
) -> tuple[list[RepositoryStatus], ExecuteResult]:
    """Query every project's status through the engine.

    Returns:
        (statuses in manifest order, raw ExecuteResult)
    """
    statuses: dict[int, RepositoryStatus] = {}
    commands = []

    for i, (name, path, _) in enumerate(iter_projects(workspace, recursive)):
        def action(i=i, name=name, path=path) -> None:
            status = provider.get_status(path)
            status.path = name
            statuses[i] = status

        commands.append(custom_command(str(path), name, action))

    result = execute(commands, options)

    ordered = []
    for r in result.results:
        # A timed-out query may still finish later; its status is not trusted
        status = None if r.is_failure else statuses.get(r.order)
        if status is None:
            status = RepositoryStatus(path=r.command.repo_name, error=r.error)
        ordered.append(status)
    return ordered, result
