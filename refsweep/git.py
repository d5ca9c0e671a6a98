"""Thin subprocess wrapper around the git binary."""

import logging
import os
import shlex
import subprocess
from pathlib import Path

from refsweep.errors import GitUnavailableError, NotAGitRepositoryError

logger = logging.getLogger(__name__)


def get_git_binary() -> str:
    """Get the git executable, overridable with REFSWEEP_GIT."""
    return os.getenv("REFSWEEP_GIT", "git")


def format_command(args: list[str]) -> str:
    return shlex.join([get_git_binary(), *args])


def run_git(
    args: list[str],
    cwd: Path | str | None = None,
    timeout: float | None = None,
    input: str | None = None,
) -> subprocess.CompletedProcess:
    """
    Run a git command and capture its output.

    Non-zero exit codes are returned to the caller, not raised, except for
    the "not a git repository" case which no caller can recover from.

    Args:
        args: Arguments after the git binary.
        cwd: Working directory. Defaults to the current directory.
        timeout: Seconds before the process is killed.
        input: Text passed on stdin.

    Returns:
        The completed process with text stdout/stderr.

    Raises:
        GitUnavailableError: If the git binary cannot be executed.
        NotAGitRepositoryError: If cwd is not inside a repository.
        subprocess.TimeoutExpired: If the timeout is exceeded.
    """
    command = [get_git_binary(), *args]
    logger.debug("Running %s", shlex.join(command))

    try:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            input=input,
        )
    except FileNotFoundError as e:
        raise GitUnavailableError(
            f"git executable not found: {e.filename or command[0]}",
            command=shlex.join(command),
        ) from e
    except PermissionError as e:
        raise GitUnavailableError(
            f"Cannot execute git: {e}",
            command=shlex.join(command),
        ) from e

    if result.returncode != 0 and "not a git repository" in result.stderr.lower():
        raise NotAGitRepositoryError(
            f"Not a git repository: {Path(cwd or '.').resolve()}",
            command=shlex.join(command),
        )

    return result


def git_output(
    args: list[str],
    cwd: Path | str | None = None,
    timeout: float | None = None,
) -> str:
    """
    Run a git command and return stripped stdout.

    Raises:
        subprocess.CalledProcessError: If git exits with a non-zero status.
    """
    result = run_git(args, cwd=cwd, timeout=timeout)
    if result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode,
            result.args,
            output=result.stdout,
            stderr=result.stderr,
        )
    return result.stdout.strip()
