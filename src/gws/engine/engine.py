"""
gws.engine.engine — Command execution engine.

Runs a batch of RepoCommands with bounded parallelism:

    result = execute(commands, ExecuteOptions(parallelism=8, stop_on_error=True))
    for r in result.results:        # always in submission order
        ...

Serial mode (one command, or parallelism=1) runs commands in order and
stops right after the first failure when stop_on_error is set. Pool
mode dispatches commands in submission order to at most `parallelism`
worker threads; after a failure with stop_on_error, commands not yet
started are dropped while in-flight ones finish normally.

Per-command failures never raise out of execute(): they are captured
as failed Results.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable

from gws.engine.command import CustomOp, GitOp, RepoCommand, ShellOp
from gws.engine.result import ExecuteResult, Result, skip
from gws.engine.shell import CommandError, CommandTimeoutError, run_git, run_shell
from gws.logging import get_logger

log = get_logger("gws.engine")

DEFAULT_PARALLEL = 5
STOP_REASON = "stopped on first error"


class EngineError(Exception):
    """A command that cannot be executed as submitted."""
    pass


@dataclass
class ExecuteOptions:
    """Execution options.

    parallelism: max commands in flight (0 = DEFAULT_PARALLEL)
    stop_on_error: stop dispatching after the first failure
    timeout: per-command limit in seconds (0 = none)
    git_binary: executable used for GitOp commands
    """
    parallelism: int = 0
    stop_on_error: bool = False
    timeout: float = 0.0
    git_binary: str = "git"
    on_start: Callable[[RepoCommand], None] | None = None
    on_progress: Callable[[int, int, RepoCommand], None] | None = None
    on_complete: Callable[[Result], None] | None = None


def execute(
    commands: list[RepoCommand],
    options: ExecuteOptions | None = None,
) -> ExecuteResult:
    """Execute a batch of commands.

    Args:
        commands: Commands in the order results should be reported
        options: Execution options

    Returns:
        ExecuteResult with results sorted by submission order
    """
    opts = options or ExecuteOptions()
    log.debug("engine.execute", count=len(commands), parallel=opts.parallelism)

    if not commands:
        return ExecuteResult()

    # Order indices are the only basis for output ordering
    submitted = [replace(cmd, order=i) for i, cmd in enumerate(commands)]

    exec_result = ExecuteResult()
    runnable: list[RepoCommand] = []
    for cmd in submitted:
        if cmd.is_skipped:
            exec_result.add_result(skip(cmd, cmd.skip_reason or ""))
        else:
            runnable.append(cmd)

    parallel = opts.parallelism if opts.parallelism > 0 else DEFAULT_PARALLEL
    if len(runnable) <= 1:
        parallel = 1

    started = time.monotonic()
    if parallel == 1:
        _execute_serial(runnable, opts, exec_result, len(submitted))
    else:
        _execute_pool(runnable, opts, exec_result, len(submitted), parallel)

    exec_result.sort_by_order()
    exec_result.total_duration = time.monotonic() - started
    return exec_result


def _execute_serial(
    commands: list[RepoCommand],
    opts: ExecuteOptions,
    exec_result: ExecuteResult,
    total: int,
) -> None:
    for i, cmd in enumerate(commands, start=1):
        if opts.on_start:
            opts.on_start(cmd)
        if opts.on_progress:
            opts.on_progress(i, total, cmd)

        result = execute_one(cmd, opts.timeout, opts.git_binary)

        if opts.on_complete:
            opts.on_complete(result)
        exec_result.add_result(result)

        if opts.stop_on_error and result.is_failure:
            exec_result.stopped = True
            exec_result.stop_reason = STOP_REASON
            log.info("engine.stopped", repo=cmd.repo_name, remaining=len(commands) - i)
            break


def _execute_pool(
    commands: list[RepoCommand],
    opts: ExecuteOptions,
    exec_result: ExecuteResult,
    total: int,
    parallel: int,
) -> None:
    lock = threading.Lock()
    stop = threading.Event()
    completed = 0

    def task(cmd: RepoCommand) -> None:
        nonlocal completed

        # Soft stop: drop commands that were not dispatched yet
        if stop.is_set():
            return

        if opts.on_start:
            opts.on_start(cmd)

        result = execute_one(cmd, opts.timeout, opts.git_binary)

        with lock:
            completed += 1
            current = completed
            exec_result.add_result(result)
            if opts.stop_on_error and result.is_failure and not stop.is_set():
                stop.set()
                exec_result.stopped = True
                exec_result.stop_reason = STOP_REASON
                log.info("engine.stopped", repo=cmd.repo_name)

        log.debug(
            "engine.command_done",
            repo=cmd.repo_name, success=result.success,
            duration=round(result.duration, 3),
        )

        if opts.on_progress:
            opts.on_progress(current, total, cmd)
        if opts.on_complete:
            opts.on_complete(result)

    with ThreadPoolExecutor(max_workers=parallel, thread_name_prefix="gws-worker") as pool:
        futures = [pool.submit(task, cmd) for cmd in commands]

    for future in futures:
        # Re-raises callback errors; command errors never get here
        future.result()


def execute_one(
    cmd: RepoCommand,
    timeout: float = 0,
    git_binary: str = "git",
) -> Result:
    """Run a single command and capture its outcome."""
    started = time.monotonic()
    stdout = stderr = ""
    error: Exception | None = None

    try:
        stdout, stderr = _run_operation(cmd, timeout, git_binary)
    except CommandError as e:
        stderr = e.stderr
        error = e
    except Exception as e:
        error = e

    if error is not None:
        log.debug("engine.command_failed", repo=cmd.repo_name, error=str(error))

    return Result(
        command=cmd,
        success=error is None,
        stdout=stdout,
        stderr=stderr,
        error=error,
        duration=time.monotonic() - started,
        order=cmd.order,
    )


def _run_operation(
    cmd: RepoCommand,
    timeout: float,
    git_binary: str,
) -> tuple[str, str]:
    op = cmd.op

    if isinstance(op, GitOp):
        if not op.args:
            raise EngineError("git command requires at least one argument")
        return run_git(cmd.repo_path, op.args, timeout=timeout, git_binary=git_binary)

    if isinstance(op, ShellOp):
        if not op.line.strip():
            raise EngineError("shell command requires a command line")
        return run_shell(cmd.repo_path, op.line, timeout=timeout)

    if isinstance(op, CustomOp):
        if op.action is None:
            raise EngineError("custom command requires an action")
        output = _run_action(op.action, timeout, cmd.repo_name)
        return output or "", ""

    raise EngineError(f"unknown command kind: {type(op).__name__}")


def _run_action(
    action: Callable[[], str | None],
    timeout: float,
    name: str,
) -> str | None:
    """Call `action`, giving up after `timeout` seconds.

    Python threads cannot be interrupted: on timeout the helper thread
    is left to finish in the background and its outcome is discarded.
    """
    if not timeout:
        return action()

    outcome: dict[str, object] = {}

    def target() -> None:
        try:
            outcome["value"] = action()
        except BaseException as e:
            outcome["error"] = e

    helper = threading.Thread(target=target, name=f"gws-action-{name}", daemon=True)
    helper.start()
    helper.join(timeout)

    if helper.is_alive():
        raise CommandTimeoutError(timeout)
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome.get("value")  # type: ignore[return-value]
