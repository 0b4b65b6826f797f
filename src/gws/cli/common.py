"""
gws.cli.common — Shared CLI plumbing.

Holds the settings collected by the top-level group and the helpers
every command needs: workspace lookup, provider and engine options, and
plain-text batch summaries.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import click

from gws.config import GwsConfig
from gws.engine import ExecuteOptions, ExecuteResult, Result
from gws.git import GitProvider, GitSettings
from gws.workspace import Workspace, WorkspaceError, find_root, resolve_workspace


@dataclass
class CliContext:
    config: GwsConfig
    workspace_dir: str | None = None
    config_file: str | None = None
    verbose: bool = False

    def workspace_root(self) -> Path:
        if self.workspace_dir:
            return Path(self.workspace_dir).resolve()
        return find_root()

    def load_workspace(self, recursive: bool = True) -> Workspace:
        """Resolve the workspace or exit with an error."""
        try:
            return resolve_workspace(
                self.workspace_root(),
                max_depth=self.config.max_depth,
                recursive=recursive,
            )
        except WorkspaceError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    def provider(self) -> GitProvider:
        return GitProvider(GitSettings(
            git_binary=self.config.git_binary,
            timeout=self.config.timeout,
        ))

    def options(self, **callbacks) -> ExecuteOptions:
        return ExecuteOptions(
            parallelism=self.config.parallel,
            stop_on_error=self.config.stop_on_error,
            timeout=self.config.timeout,
            git_binary=self.config.git_binary,
            **callbacks,
        )


def echo_result(result: Result) -> None:
    name = result.command.repo_name
    if result.is_skipped:
        click.echo(f"⚠ {name}: skipped ({result.skip_reason})")
    elif result.is_failure:
        click.echo(f"✗ {name}: {result.message}")
    else:
        click.echo(f"✓ {name}")


def echo_summary(exec_result: ExecuteResult, action: str, only_changes: bool = False) -> None:
    """Print a batch summary; exit 1 if anything failed."""
    succeeded = exec_result.succeeded
    skipped = exec_result.skipped
    failed = exec_result.failed

    if succeeded and not only_changes:
        if len(succeeded) <= 5:
            click.echo(f"✓ {action}: {', '.join(exec_result.success_names())}")
        else:
            click.echo(f"✓ {action} {len(succeeded)} repositories successfully")

    if skipped and not only_changes:
        if len(skipped) <= 3:
            for r in skipped:
                click.echo(f"⚠ {r.command.repo_name}: skipped ({r.skip_reason})")
        else:
            click.echo(f"⚠ Skipped {len(skipped)} repositories")

    if failed:
        click.echo(f"✗ Failed ({len(failed)}):")
        for r in failed:
            click.echo(f"  {r.command.repo_name}: {r.message}")

    if exec_result.stopped:
        click.echo(f"⚠ Execution stopped: {exec_result.stop_reason}")

    if not exec_result.results:
        click.echo("Nothing to do.")

    if exec_result.has_errors:
        sys.exit(1)
