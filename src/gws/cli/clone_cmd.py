"""
gws.cli.clone_cmd — gws clone command.

  gws clone                  — Clone every missing repository
  gws clone libs/core tools  — Clone only these paths
"""

import sys
import click

from gws.actions import clone_commands
from gws.cli.common import CliContext, echo_result, echo_summary
from gws.engine import execute


@click.command("clone")
@click.argument("paths", nargs=-1)
@click.pass_obj
def clone_cmd(ctx: CliContext, paths):
    """Clone missing repositories and workspaces."""
    ws = ctx.load_workspace()
    only = list(paths) if paths else None
    commands = clone_commands(ws, ctx.provider(), only=only)

    if only:
        known = {c.repo_name for c in commands}
        unknown = [p for p in only if p not in known]
        for p in unknown:
            click.echo(f"✗ {p}: not declared in any manifest", err=True)
        if unknown and not commands:
            sys.exit(1)

    on_complete = echo_result if ctx.verbose else None
    result = execute(commands, ctx.options(on_complete=on_complete))
    echo_summary(result, "Cloned")
