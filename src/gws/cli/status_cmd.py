"""
gws.cli.status_cmd — gws status command.

Shows branch, local changes and ahead/behind counts for every
repository of the workspace tree.
"""

import click

from gws.actions import collect_statuses
from gws.cli.common import CliContext
from gws.config import FORMATS
from gws.export import format_statuses


def _describe(status) -> str:
    if status.error is not None and not status.exists:
        return f"✗ {status.path}: {status.error}"
    if not status.exists:
        return f"✗ {status.path}: not cloned"

    details = []
    if status.uncommitted:
        details.append(f"{status.uncommitted} uncommitted")
    if status.untracked:
        details.append(f"{status.untracked} untracked")
    if status.ahead:
        details.append(f"↑{status.ahead}")
    if status.behind:
        details.append(f"↓{status.behind}")
    if not status.has_remote:
        details.append("no upstream")

    marker = "✓" if not status.has_changes else "●"
    line = f"{marker} {status.path} [{status.branch or '?'}]"
    if details:
        line += "  " + ", ".join(details)
    if status.error is not None:
        line += f"  (error: {status.error})"
    return line


@click.command("status")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default=None,
              help="Output format")
@click.option("--only-changes", is_flag=True, default=False,
              help="Show only repositories with changes")
@click.pass_obj
def status_cmd(ctx: CliContext, fmt, only_changes):
    """Show the status of all repositories."""
    ctx.config.apply(format=fmt, only_changes=only_changes or None)
    ws = ctx.load_workspace()

    statuses, _ = collect_statuses(ws, ctx.provider(), ctx.options())

    if ctx.config.format in ("json", "yaml"):
        click.echo(format_statuses(statuses, ctx.config.format))
        return

    click.echo(f"Workspace:  {ws.root}")
    click.echo(f"Projects:   {ws.total_project_count()}")
    if ws.children:
        click.echo(f"Workspaces: {ws.total_workspace_count()}")
    click.echo()

    shown = 0
    for status in statuses:
        if ctx.config.only_changes and status.exists and not status.has_changes:
            continue
        click.echo(_describe(status))
        shown += 1

    for child in ws.all_missing_workspaces():
        click.echo(f"✗ {child.path}/: workspace not cloned")

    for node in ws.walk():
        if node.error is not None:
            click.echo(f"⚠ {node.path}: {node.error}", err=True)

    if shown == 0 and ctx.config.only_changes:
        click.echo("✓ No changes.")
