"""
gws.cli.init_cmd — gws init command.

Scans the workspace directory for existing git checkouts and writes
them to .gws/projects.gws.

  gws init             — Add checkouts not declared yet
  gws init --reset     — Rewrite the projects manifest from scratch
"""

from pathlib import Path

import click

from gws.cli.common import CliContext
from gws.git import discover_repositories
from gws.workspace import Project, add_project, load_projects, locate_manifest
from gws.workspace.manifest import PROJECTS, ManifestError


@click.command("init")
@click.option("--reset", is_flag=True, default=False,
              help="Replace an existing projects manifest")
@click.option("--scan-depth", default=10, show_default=True,
              help="Directory depth scanned for repositories")
@click.pass_obj
def init_cmd(ctx: CliContext, reset, scan_depth):
    """Discover git repositories and write the projects manifest."""
    root = Path(ctx.workspace_dir or ".").resolve()

    location = locate_manifest(root, PROJECTS)
    declared: set[str] = set()
    if location is not None:
        if reset:
            location.path.unlink()
            click.echo(f"Removed {location.path}", err=True)
        else:
            try:
                declared = {p.path for p in load_projects(root)}
            except ManifestError as e:
                raise click.ClickException(str(e))

    repos = discover_repositories(root, max_depth=scan_depth,
                                  git_binary=ctx.config.git_binary)

    added = 0
    target = None
    for repo in repos:
        if repo.path in declared:
            continue
        target = add_project(root, Project(path=repo.path, remotes=repo.remotes))
        click.echo(f"+ {repo.path}")
        added += 1

    if added:
        click.echo(f"✓ Added {added} repositories to {target}")
    else:
        click.echo("✓ Nothing to add.")
