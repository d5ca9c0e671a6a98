"""Post-delete housekeeping: prune stale tracking refs and collect garbage."""

import logging
import subprocess
from pathlib import Path

from refsweep.errors import MaintenanceError
from refsweep.git import format_command, run_git

logger = logging.getLogger(__name__)

MAINTENANCE_TIMEOUT = 600.0


def _run_step(args: list[str], repo_path: Path | str | None, timeout: float) -> None:
    command = format_command(args)
    try:
        result = run_git(args, cwd=repo_path, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise MaintenanceError(f"{command} timed out after {timeout:g}s") from e

    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip()
        raise MaintenanceError(f"{command} failed: {detail}")


def perform_maintenance(
    remote_name: str = "origin",
    repo_path: Path | str | None = None,
    prune_remote: bool = True,
    prune_tags: bool = True,
    aggressive: bool = False,
    timeout: float = MAINTENANCE_TIMEOUT,
) -> list[str]:
    """
    Prune deleted refs and run garbage collection.

    Args:
        remote_name: Remote to prune tracking branches and tags from.
        repo_path: Repository working directory.
        prune_remote: Whether to fetch with --prune first.
        prune_tags: Also pass --prune-tags, dropping local tags that no
            longer exist on the remote.
        aggressive: Pass --aggressive to git gc.
        timeout: Seconds allowed per step.

    Returns:
        The commands that were run.

    Raises:
        MaintenanceError: If a step fails.
    """
    steps = []
    if prune_remote:
        fetch = ["fetch", remote_name, "--prune"]
        if prune_tags:
            fetch.append("--prune-tags")
        steps.append(fetch)

    gc = ["gc", "--prune=now"]
    if aggressive:
        gc.append("--aggressive")
    steps.append(gc)

    completed = []
    for args in steps:
        logger.info("Running %s", format_command(args))
        _run_step(args, repo_path, timeout)
        completed.append(format_command(args))

    return completed
