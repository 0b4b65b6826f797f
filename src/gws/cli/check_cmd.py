"""gws.cli.check_cmd — gws check command.

Reports declared repositories that are missing on disk and checkouts on
disk that no manifest declares.
"""

import click

from gws.actions import iter_projects
from gws.cli.common import CliContext
from gws.git import find_unknown_repositories


@click.command("check")
@click.option("--scan-depth", default=10, show_default=True,
              help="Directory depth scanned for unknown repositories")
@click.pass_obj
def check_cmd(ctx: CliContext, scan_depth):
    """Check workspace consistency."""
    ws = ctx.load_workspace()

    click.echo("Checking known repositories...")
    known = []
    missing = 0
    for name, _, project in iter_projects(ws):
        known.append(name)
        if not project.exists:
            click.echo(f"✗ Missing: {name}")
            missing += 1

    if missing == 0:
        click.echo("✓ All known repositories are present")
    else:
        click.echo(f"⚠ {missing} repositories are missing")

    # Linked workspaces are known too
    for node in ws.walk():
        if node is not ws:
            try:
                known.append(node.root.relative_to(ws.root).as_posix())
            except ValueError:
                pass

    click.echo()
    click.echo("Scanning for unknown repositories...")
    unknown = find_unknown_repositories(
        ws.root, known, max_depth=scan_depth, git_binary=ctx.config.git_binary,
    )
    if not unknown:
        click.echo("✓ No unknown repositories")
    else:
        for path in unknown:
            click.echo(f"⚠ Unknown: {path}")
