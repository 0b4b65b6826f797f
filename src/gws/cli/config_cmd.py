"""
gws.cli.config_cmd — gws config command.

  gws config                    — Show resolved settings and their source
  gws config get parallel
  gws config set parallel 8
  gws config list               — Available keys
"""

import click

from gws.cli.common import CliContext
from gws.config import (
    KEYS, ConfigError, config_path, field_name, format_value,
    resolve_config, set_value,
)


def _path(ctx: CliContext):
    return ctx.config_file or config_path()


@click.group("config", invoke_without_command=True)
@click.pass_context
def config_cmd(click_ctx):
    """Show and edit the user configuration."""
    if click_ctx.invoked_subcommand is not None:
        return

    ctx: CliContext = click_ctx.obj
    cfg, sources = resolve_config(_path(ctx))

    click.echo(f"File: {_path(ctx)}")
    click.echo()
    click.echo(f"{'KEY':15s} {'VALUE':12s} SOURCE")
    click.echo(f"{'─' * 15} {'─' * 12} {'─' * 7}")
    for key in KEYS:
        name = field_name(key)
        click.echo(f"{key:15s} {format_value(getattr(cfg, name)):12s} {sources[name]}")


@config_cmd.command("get")
@click.argument("key")
@click.pass_obj
def config_get(ctx: CliContext, key):
    """Print one resolved setting."""
    try:
        name = field_name(key)
        cfg, _ = resolve_config(_path(ctx))
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(format_value(getattr(cfg, name)))


@config_cmd.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set(ctx: CliContext, key, value):
    """Write a setting to the config file."""
    try:
        path = set_value(key, value, _path(ctx))
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"✓ {key} = {value} ({path})")


@config_cmd.command("list")
def config_list():
    """List available configuration keys."""
    for key, description in KEYS.items():
        click.echo(f"  {key:15s} {description}")
