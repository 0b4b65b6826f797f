"""
gws.cli — CLI entry point.

Commands:
  gws status            — Branch and change summary of every repository
  gws fetch             — Fetch all remotes
  gws ff                — Fast-forward pull
  gws clone [path...]   — Clone missing repositories
  gws check             — Missing and undeclared repositories
  gws init              — Write a projects manifest from existing checkouts
  gws config [get|set|list] — Show or edit ~/.gws/config.yaml
"""

import click

from gws.cli.common import CliContext
from gws.cli.status_cmd import status_cmd
from gws.cli.fetch_cmd import fetch_cmd
from gws.cli.ff_cmd import ff_cmd
from gws.cli.clone_cmd import clone_cmd
from gws.cli.check_cmd import check_cmd
from gws.cli.init_cmd import init_cmd
from gws.cli.config_cmd import config_cmd
from gws.config import ConfigError, load_config
from gws.logging import setup_logging


@click.group()
@click.version_option(package_name="gws")
@click.option("-C", "--dir", "workspace_dir", default=None,
              help="Workspace directory (default: nearest manifest above pwd)")
@click.option("-p", "--parallel", type=int, default=None,
              help="Repositories processed concurrently (default: 5)")
@click.option("--timeout", type=float, default=None,
              help="Per-repository timeout in seconds (0 = none)")
@click.option("--stop-on-error", is_flag=True, default=False,
              help="Stop starting new operations after the first failure")
@click.option("--max-depth", type=int, default=None,
              help="Maximum nesting of linked workspaces")
@click.option("--config", "config_file", default=None,
              help="Config file (default: ~/.gws/config.yaml)")
@click.option("-v", "--verbose", is_flag=True, default=False,
              help="Per-repository output and debug logging")
@click.pass_context
def main(ctx, workspace_dir, parallel, timeout, stop_on_error, max_depth,
         config_file, verbose):
    """gws — manage a workspace of git repositories."""
    setup_logging(level="DEBUG" if verbose else None)

    try:
        cfg = load_config(config_file)
        cfg.apply(
            parallel=parallel,
            timeout=timeout,
            stop_on_error=stop_on_error or None,
            max_depth=max_depth,
        )
    except ConfigError as e:
        raise click.ClickException(str(e))

    ctx.obj = CliContext(
        config=cfg,
        workspace_dir=workspace_dir,
        config_file=config_file,
        verbose=verbose,
    )


main.add_command(status_cmd, "status")
main.add_command(fetch_cmd, "fetch")
main.add_command(ff_cmd, "ff")
main.add_command(clone_cmd, "clone")
main.add_command(check_cmd, "check")
main.add_command(init_cmd, "init")
main.add_command(config_cmd, "config")
