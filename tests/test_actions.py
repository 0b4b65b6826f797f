"""
tests/test_actions.py — Workspace-to-command binding.

Uses an in-memory provider, so no git is needed.
"""

import os
import sys
import threading
import time
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from gws.actions import (
    NOT_CLONED, ALREADY_EXISTS,
    iter_projects, clone_commands, fetch_commands, pull_commands, collect_statuses,
)
from gws.engine import ExecuteOptions, execute
from gws.git.provider import ProviderError, RepositoryStatus
from gws.workspace.resolver import resolve_workspace


class FakeProvider:
    """Records calls; paths listed in `failing` raise ProviderError."""

    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)
        self._lock = threading.Lock()

    def _record(self, op, path, *extra):
        with self._lock:
            self.calls.append((op, os.path.basename(str(path)), *extra))
        if os.path.basename(str(path)) in self.failing:
            raise ProviderError(f"failed to {op}: simulated")

    def get_status(self, path):
        self._record("status", path)
        return RepositoryStatus(path=str(path), exists=True, clean=True, branch="main")

    def clone(self, path, remotes):
        self._record("clone", path, tuple(r.url for r in remotes))
        os.makedirs(path)

    def fetch(self, path):
        self._record("fetch", path)

    def pull(self, path):
        self._record("pull", path)


@pytest.fixture
def workspace(tmp_path):
    """
    root/
      .gws/projects.gws    a (present), b (missing)
      .gws/workspaces.gws  team (present), ops (missing)
      team/.gws/projects.gws  svc (present)
    """
    (tmp_path / ".gws").mkdir()
    (tmp_path / ".gws" / "projects.gws").write_text("a | git@x:a.git\nb | git@x:b.git\n")
    (tmp_path / ".gws" / "workspaces.gws").write_text("team | git@x:team.git\nops | git@x:ops.git\n")
    (tmp_path / "team" / ".gws").mkdir(parents=True)
    (tmp_path / "team" / ".gws" / "projects.gws").write_text("svc | git@x:svc.git\n")
    (tmp_path / "a").mkdir()
    (tmp_path / "team" / "svc").mkdir()
    return tmp_path


# ─────────────────────────────────────────────
# ITERATION
# ─────────────────────────────────────────────
class TestIterProjects:
    def test_display_names(self, workspace):
        ws = resolve_workspace(workspace)
        names = [name for name, _, _ in iter_projects(ws)]
        assert names == ["a", "b", "team/svc"]

    def test_absolute_paths(self, workspace):
        ws = resolve_workspace(workspace)
        paths = [path for _, path, _ in iter_projects(ws)]
        assert paths[2] == workspace.resolve() / "team" / "svc"

    def test_not_recursive(self, workspace):
        ws = resolve_workspace(workspace)
        names = [name for name, _, _ in iter_projects(ws, recursive=False)]
        assert names == ["a", "b"]


# ─────────────────────────────────────────────
# FETCH / PULL
# ─────────────────────────────────────────────
class TestFetchPull:
    def test_missing_projects_skipped(self, workspace):
        ws = resolve_workspace(workspace)
        provider = FakeProvider()
        result = execute(fetch_commands(ws, provider), ExecuteOptions(parallelism=2))

        assert [r.command.repo_name for r in result.results] == ["a", "b", "team/svc"]
        assert result.success_names() == ["a", "team/svc"]
        assert result.skipped_names() == ["b"]
        assert result.results[1].skip_reason == NOT_CLONED
        assert sorted(provider.calls) == [("fetch", "a"), ("fetch", "svc")]

    def test_pull_failure_reported(self, workspace):
        ws = resolve_workspace(workspace)
        provider = FakeProvider(failing={"svc"})
        result = execute(pull_commands(ws, provider), ExecuteOptions(parallelism=1))

        assert result.failed_names() == ["team/svc"]
        assert "simulated" in result.failed[0].message
        assert ("pull", "a") in provider.calls


# ─────────────────────────────────────────────
# CLONE
# ─────────────────────────────────────────────
class TestClone:
    def test_clones_missing_projects_and_workspaces(self, workspace):
        ws = resolve_workspace(workspace)
        provider = FakeProvider()
        commands = clone_commands(ws, provider)

        assert [c.repo_name for c in commands] == ["a", "b", "team/svc", "ops"]
        assert [c.skip_reason for c in commands] == [ALREADY_EXISTS, None, ALREADY_EXISTS, None]

        result = execute(commands)
        assert result.success_names() == ["b", "ops"]
        assert sorted(provider.calls) == [
            ("clone", "b", ("git@x:b.git",)),
            ("clone", "ops", ("git@x:ops.git",)),
        ]
        assert (workspace / "ops").is_dir()

    def test_only(self, workspace):
        ws = resolve_workspace(workspace)
        commands = clone_commands(ws, FakeProvider(), only=["ops"])
        assert [c.repo_name for c in commands] == ["ops"]


# ─────────────────────────────────────────────
# STATUS
# ─────────────────────────────────────────────
class TestStatuses:
    def test_manifest_order(self, workspace):
        ws = resolve_workspace(workspace)
        statuses, result = collect_statuses(ws, FakeProvider(), ExecuteOptions(parallelism=3))

        assert [s.path for s in statuses] == ["a", "b", "team/svc"]
        assert result.all_succeeded

    def test_failed_query_becomes_error_status(self, workspace):
        ws = resolve_workspace(workspace)
        statuses, result = collect_statuses(ws, FakeProvider(failing={"a"}))

        assert statuses[0].path == "a"
        assert isinstance(statuses[0].error, ProviderError)
        assert not statuses[0].exists
        assert result.failed_names() == ["a"]

    def test_timed_out_query_stays_failed(self, workspace):
        release = threading.Event()

        class SlowProvider(FakeProvider):
            def get_status(self, path):
                if os.path.basename(str(path)) == "a":
                    release.wait(5)
                return super().get_status(path)

        def on_complete(result):
            # Let the abandoned query finish before statuses are collected
            if result.command.repo_name == "a":
                release.set()
                time.sleep(0.2)

        ws = resolve_workspace(workspace)
        statuses, result = collect_statuses(
            ws, SlowProvider(),
            ExecuteOptions(parallelism=1, timeout=0.1, on_complete=on_complete),
        )

        assert result.failed_names() == ["a"]
        assert not statuses[0].exists
        assert "timed out" in str(statuses[0].error)
        assert [s.exists for s in statuses[1:]] == [True, True]
