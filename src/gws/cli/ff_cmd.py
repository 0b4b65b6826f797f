"""gws.cli.ff_cmd — gws ff command.

Fast-forwards every cloned repository. A repository whose branch has
diverged is reported as failed, never merged.
"""

import click

from gws.actions import pull_commands
from gws.cli.common import CliContext, echo_result, echo_summary
from gws.engine import execute


@click.command("ff")
@click.option("--no-recursive", is_flag=True, default=False,
              help="Only the top-level workspace")
@click.pass_obj
def ff_cmd(ctx: CliContext, no_recursive):
    """Fast-forward pull all repositories."""
    ws = ctx.load_workspace(recursive=not no_recursive)
    commands = pull_commands(ws, ctx.provider(), recursive=not no_recursive)

    on_complete = echo_result if ctx.verbose else None
    result = execute(commands, ctx.options(on_complete=on_complete))
    echo_summary(result, "Fast-forwarded", only_changes=ctx.config.only_changes)
