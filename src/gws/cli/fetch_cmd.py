"""gws.cli.fetch_cmd — gws fetch command."""

import click

from gws.actions import fetch_commands
from gws.cli.common import CliContext, echo_result, echo_summary
from gws.engine import execute


@click.command("fetch")
@click.option("--no-recursive", is_flag=True, default=False,
              help="Only the top-level workspace")
@click.pass_obj
def fetch_cmd(ctx: CliContext, no_recursive):
    """Fetch all remotes of every cloned repository."""
    ws = ctx.load_workspace(recursive=not no_recursive)
    commands = fetch_commands(ws, ctx.provider(), recursive=not no_recursive)

    on_complete = echo_result if ctx.verbose else None
    result = execute(commands, ctx.options(on_complete=on_complete))
    echo_summary(result, "Fetched", only_changes=ctx.config.only_changes)
