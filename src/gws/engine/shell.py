"""
gws.engine.shell — Subprocess runners.

Runs git or a shell line inside a repository directory, captures
stdout/stderr (decoded as UTF-8, undecodable bytes replaced), and
enforces an optional timeout. Every process runs in its own session so
the whole process group is killed when the timeout expires.
"""

from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path

from gws.logging import get_logger

log = get_logger("gws.engine")


class CommandError(Exception):
    """A subprocess exited with a non-zero status."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(CommandError):
    """A command ran longer than its configured timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"command timed out after {timeout:g}s")
        self.timeout = timeout


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def run(
    argv: list[str] | str,
    cwd: str | Path,
    timeout: float = 0,
    shell: bool = False,
    env: dict[str, str] | None = None,
) -> tuple[str, str]:
    """Run a process inside `cwd`.

    Args:
        argv: Argument list (or a command line when `shell` is set)
        cwd: Working directory
        timeout: Seconds before the process is killed (0 = no limit)
        shell: Run through the system shell
        env: Extra environment variables

    Returns:
        (stdout, stderr)

    Raises:
        CommandError: Non-zero exit status
        CommandTimeoutError: Timeout expired
        OSError: Executable or working directory not found
    """
    full_env = None
    if env:
        full_env = {**os.environ, **env}

    # New session: a timeout kills the shell and everything it started
    with subprocess.Popen(
        argv,
        cwd=str(cwd),
        shell=shell,
        env=full_env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        start_new_session=True,
    ) as proc:
        try:
            out, err = proc.communicate(timeout=timeout or None)
        except subprocess.TimeoutExpired:
            log.debug("engine.process_timeout", argv=argv, cwd=str(cwd), timeout=timeout)
            _kill_group(proc)
            _, err = proc.communicate()
            error = CommandTimeoutError(timeout)
            error.stderr = _decode(err)
            raise error from None
        except BaseException:
            _kill_group(proc)
            raise

    stdout, stderr = _decode(out), _decode(err)
    if proc.returncode != 0:
        first = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        raise CommandError(
            f"exit status {proc.returncode}" + (f": {first}" if first else ""),
            returncode=proc.returncode,
            stderr=stderr,
        )

    return stdout, stderr


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (AttributeError, OSError):
        proc.kill()


def run_git(
    repo_path: str | Path,
    args: list[str] | tuple[str, ...],
    timeout: float = 0,
    git_binary: str = "git",
    env: dict[str, str] | None = None,
) -> tuple[str, str]:
    log.debug("engine.git", repo=str(repo_path), args=list(args), timeout=timeout)
    return run([git_binary, *args], repo_path, timeout=timeout, env=env)


def run_shell(
    repo_path: str | Path,
    line: str,
    timeout: float = 0,
) -> tuple[str, str]:
    log.debug("engine.shell", repo=str(repo_path), line=line, timeout=timeout)
    return run(line, repo_path, timeout=timeout, shell=True)
