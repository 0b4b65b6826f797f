"""
tests/test_engine.py — Execution engine tests.

Ordering, bounded parallelism, stop-on-error in both modes, timeouts,
skipped commands, callbacks, aggregation helpers.
"""

import os
import shutil
import subprocess
import sys
import threading
import time
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from gws.engine import (
    RepoCommand, GitOp, ShellOp, CustomOp,
    ExecuteOptions, ExecuteResult, Result,
    execute, execute_one, skip,
)
from gws.engine.command import git_command, shell_command, custom_command
from gws.engine.engine import EngineError, STOP_REASON
from gws.engine.shell import CommandError, CommandTimeoutError


def _custom(name, action, path="."):
    return custom_command(path, name, action)


def _sleeper(seconds, value=None, fail=False):
    def action():
        time.sleep(seconds)
        if fail:
            raise RuntimeError(f"boom after {seconds}")
        return value
    return action


# ─────────────────────────────────────────────
# ORDERING
# ─────────────────────────────────────────────
class TestOrdering:
    def test_results_follow_submission_order(self):
        # Later commands finish first
        delays = [0.25, 0.15, 0.05, 0.0]
        cmds = [_custom(f"r{i}", _sleeper(d, value=f"r{i}")) for i, d in enumerate(delays)]

        result = execute(cmds, ExecuteOptions(parallelism=4))
        assert [r.command.repo_name for r in result.results] == ["r0", "r1", "r2", "r3"]
        assert [r.order for r in result.results] == [0, 1, 2, 3]
        assert [r.stdout for r in result.results] == ["r0", "r1", "r2", "r3"]

    def test_input_not_mutated(self):
        cmds = [_custom("a", lambda: None), _custom("b", lambda: None)]
        execute(cmds, ExecuteOptions(parallelism=2))
        assert [c.order for c in cmds] == [-1, -1]

    def test_empty_batch(self):
        result = execute([])
        assert result.results == []
        assert not result.has_errors
        assert not result.all_succeeded

    def test_skipped_keep_their_slot(self):
        cmds = [
            _custom("a", lambda: "a"),
            _custom("b", lambda: "b").skip("not cloned yet"),
            _custom("c", lambda: "c"),
        ]
        result = execute(cmds, ExecuteOptions(parallelism=2))
        assert [r.command.repo_name for r in result.results] == ["a", "b", "c"]
        b = result.results[1]
        assert b.is_skipped
        assert not b.is_success and not b.is_failure
        assert b.skip_reason == "not cloned yet"
        assert b.order == 1

    def test_skipped_never_run(self):
        ran = []
        cmds = [_custom("a", lambda: ran.append("a")).skip("nope")]
        result = execute(cmds)
        assert ran == []
        assert result.skipped_names() == ["a"]


# ─────────────────────────────────────────────
# PARALLELISM
# ─────────────────────────────────────────────
class TestParallelism:
    def _tracking(self, n, delay):
        lock = threading.Lock()
        state = {"current": 0, "peak": 0}

        def action():
            with lock:
                state["current"] += 1
                state["peak"] = max(state["peak"], state["current"])
            time.sleep(delay)
            with lock:
                state["current"] -= 1

        return [_custom(f"r{i}", action) for i in range(n)], state

    def test_bound_respected(self):
        cmds, state = self._tracking(8, 0.05)
        result = execute(cmds, ExecuteOptions(parallelism=3))
        assert result.success_count == 8
        assert 1 < state["peak"] <= 3

    def test_serial(self):
        cmds, state = self._tracking(4, 0.02)
        execute(cmds, ExecuteOptions(parallelism=1))
        assert state["peak"] == 1

    def test_runs_concurrently(self):
        cmds = [_custom(f"r{i}", _sleeper(0.2)) for i in range(4)]
        started = time.monotonic()
        result = execute(cmds, ExecuteOptions(parallelism=4))
        elapsed = time.monotonic() - started
        assert result.all_succeeded
        assert elapsed < 0.6

    def test_default_parallelism(self):
        cmds, state = self._tracking(10, 0.05)
        execute(cmds, ExecuteOptions(parallelism=0))
        assert state["peak"] <= 5

    def test_skipped_do_not_use_workers(self):
        # Only one runnable command: serial path, callbacks from caller thread
        threads = []
        cmds = [
            _custom("a", lambda: None).skip("x"),
            _custom("b", lambda: threads.append(threading.current_thread().name)),
            _custom("c", lambda: None).skip("y"),
        ]
        execute(cmds, ExecuteOptions(parallelism=4))
        assert threads == [threading.current_thread().name]


# ─────────────────────────────────────────────
# STOP ON ERROR
# ─────────────────────────────────────────────
class TestStopOnError:
    def test_serial_stops_after_failure(self):
        cmds = [
            _custom("ok1", lambda: "fine"),
            _custom("bad", _sleeper(0, fail=True)),
            _custom("ok2", lambda: "never"),
        ]
        result = execute(cmds, ExecuteOptions(parallelism=1, stop_on_error=True))
        assert [r.command.repo_name for r in result.results] == ["ok1", "bad"]
        assert result.stopped
        assert result.stop_reason == STOP_REASON
        assert result.failed_names() == ["bad"]

    def test_serial_continues_without_flag(self):
        cmds = [
            _custom("ok1", lambda: None),
            _custom("bad", _sleeper(0, fail=True)),
            _custom("ok2", lambda: None),
        ]
        result = execute(cmds, ExecuteOptions(parallelism=1))
        assert result.total_count == 3
        assert result.success_names() == ["ok1", "ok2"]
        assert not result.stopped

    def test_pool_soft_stop(self):
        cmds = [
            _custom("slow", _sleeper(0.3, value="done")),
            _custom("fast-fail", _sleeper(0.01, fail=True)),
            _custom("pending", lambda: "never"),
        ]
        result = execute(cmds, ExecuteOptions(parallelism=2, stop_on_error=True))

        names = [r.command.repo_name for r in result.results]
        assert names == ["slow", "fast-fail"]
        assert result.results[0].is_success
        assert result.results[0].stdout == "done"
        assert result.results[1].is_failure
        assert result.stopped


# ─────────────────────────────────────────────
# OPERATIONS & FAILURES
# ─────────────────────────────────────────────
class TestOperations:
    def test_shell_success(self, tmp_path):
        (tmp_path / "marker.txt").write_text("")
        result = execute_one(shell_command(str(tmp_path), "repo", "ls"))
        assert result.is_success
        assert "marker.txt" in result.stdout

    def test_shell_failure_keeps_stderr(self, tmp_path):
        result = execute_one(shell_command(str(tmp_path), "repo", "echo nope >&2; exit 3"))
        assert result.is_failure
        assert "nope" in result.stderr
        assert isinstance(result.error, CommandError)
        assert result.error.returncode == 3
        assert result.message == "nope"

    def test_shell_timeout(self, tmp_path):
        started = time.monotonic()
        result = execute_one(shell_command(str(tmp_path), "repo", "sleep 5"), timeout=0.2)
        assert time.monotonic() - started < 3
        assert result.is_failure
        assert isinstance(result.error, CommandTimeoutError)
        assert "timed out" in result.message

    def test_shell_timeout_kills_children(self, tmp_path):
        # The subshell must die with its parent, so "late" is never written
        line = "(sleep 1; touch late); true"
        result = execute_one(shell_command(str(tmp_path), "repo", line), timeout=0.2)
        assert isinstance(result.error, CommandTimeoutError)
        time.sleep(1.5)
        assert not (tmp_path / "late").exists()

    def test_undecodable_output_is_success(self, tmp_path):
        result = execute_one(shell_command(str(tmp_path), "repo", r"printf '\377\376ok'"))
        assert result.is_success
        assert result.error is None
        assert result.stdout.endswith("ok")
        assert "\ufffd" in result.stdout

    def test_undecodable_stderr_on_failure(self, tmp_path):
        result = execute_one(shell_command(str(tmp_path), "repo", r"printf 'bad \377' >&2; exit 1"))
        assert result.is_failure
        assert isinstance(result.error, CommandError)
        assert result.stderr.startswith("bad ")

    def test_custom_timeout(self):
        result = execute_one(_custom("slow", _sleeper(2)), timeout=0.1)
        assert result.is_failure
        assert isinstance(result.error, CommandTimeoutError)

    def test_custom_error(self):
        result = execute_one(_custom("bad", _sleeper(0, fail=True)))
        assert result.is_failure
        assert "boom" in result.message

    def test_missing_directory(self, tmp_path):
        result = execute_one(shell_command(str(tmp_path / "gone"), "gone", "true"))
        assert result.is_failure
        assert isinstance(result.error, OSError)

    @pytest.mark.parametrize("cmd", [
        RepoCommand(".", "g", GitOp(())),
        RepoCommand(".", "s", ShellOp("  ")),
        RepoCommand(".", "c", CustomOp(None)),
        RepoCommand(".", "x", object()),
    ])
    def test_structural_errors(self, cmd):
        result = execute_one(cmd)
        assert result.is_failure
        assert isinstance(result.error, EngineError)

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_git_op(self, tmp_path):
        subprocess.run(["git", "init", "-q", str(tmp_path)], check=True)
        result = execute_one(git_command(str(tmp_path), "repo", "rev-parse", "--is-inside-work-tree"))
        assert result.is_success
        assert result.stdout.strip() == "true"

    def test_git_binary_option(self, tmp_path):
        cmd = git_command(str(tmp_path), "repo", "status")
        result = execute_one(cmd, git_binary="definitely-not-a-git-binary")
        assert result.is_failure
        assert isinstance(result.error, OSError)


# ─────────────────────────────────────────────
# CALLBACKS
# ─────────────────────────────────────────────
class TestCallbacks:
    @pytest.mark.parametrize("parallelism", [1, 3])
    def test_each_runnable_reported_once(self, parallelism):
        started, progress, completed = [], [], []
        lock = threading.Lock()

        def record(target):
            def fn(*args):
                with lock:
                    target.append(args)
            return fn

        cmds = [_custom(f"r{i}", lambda: None) for i in range(4)]
        cmds[2] = cmds[2].skip("skip me")

        execute(cmds, ExecuteOptions(
            parallelism=parallelism,
            on_start=record(started),
            on_progress=record(progress),
            on_complete=record(completed),
        ))

        assert sorted(c.repo_name for (c,) in started) == ["r0", "r1", "r3"]
        assert sorted(r.command.repo_name for (r,) in completed) == ["r0", "r1", "r3"]
        assert len(progress) == 3
        assert all(total == 4 for _, total, _ in progress)
        assert sorted(current for current, _, _ in progress) == [1, 2, 3]

    def test_callback_error_propagates(self):
        def explode(_):
            raise ValueError("callback failed")

        cmds = [_custom("a", lambda: None)]
        with pytest.raises(ValueError, match="callback failed"):
            execute(cmds, ExecuteOptions(on_complete=explode))


# ─────────────────────────────────────────────
# AGGREGATION
# ─────────────────────────────────────────────
class TestAggregation:
    def _result(self, name, order, success=False, skipped=False):
        cmd = RepoCommand(name, name, CustomOp(lambda: None), order=order)
        if skipped:
            return skip(cmd, "why")
        return Result(command=cmd, success=success, order=order)

    def test_counts(self):
        res = ExecuteResult()
        res.add_result(self._result("c", 2, skipped=True))
        res.add_result(self._result("a", 0, success=True))
        res.add_result(self._result("b", 1))
        res.sort_by_order()

        assert [r.order for r in res.results] == [0, 1, 2]
        assert (res.success_count, res.failed_count, res.skipped_count) == (1, 1, 1)
        assert res.total_count == 3
        assert res.has_errors
        assert not res.all_succeeded
        assert res.success_names() == ["a"]
        assert res.failed_names() == ["b"]
        assert res.skipped_names() == ["c"]

    def test_all_succeeded_ignores_skips(self):
        res = ExecuteResult()
        res.add_result(self._result("a", 0, success=True))
        res.add_result(self._result("b", 1, skipped=True))
        assert res.all_succeeded

    def test_message_fallbacks(self):
        cmd = RepoCommand(".", "x", CustomOp(None))
        assert Result(command=cmd, stderr=" err \n").message == "err"
        assert Result(command=cmd, error=RuntimeError("boom")).message == "boom"
        assert Result(command=cmd).message == "unknown error"

    def test_context_is_carried(self):
        cmd = _custom("a", lambda: None).with_context("project", "p")
        result = execute([cmd])
        assert result.results[0].command.context == {"project": "p"}
