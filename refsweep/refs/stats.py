"""Repository statistics for before/after comparison."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from refsweep.git import git_output

logger = logging.getLogger(__name__)


def _count_refs(prefix: str, repo_path: Path | str | None) -> int:
    output = git_output(["for-each-ref", "--format=%(refname)", prefix], cwd=repo_path)
    return sum(
        1 for line in output.splitlines()
        if line.strip() and not line.endswith("/HEAD")
    )


def get_directory_size(path: Path) -> int:
    """Get the total size of all files below a directory, in bytes."""
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += os.path.getsize(os.path.join(dirpath, filename))
            except OSError:
                # Files can vanish while gc runs.
                continue
    return total


def format_size(size_bytes: int) -> str:
    """Format a byte count as a short human-readable string."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def get_repository_stats(repo_path: Path | str | None = None) -> dict[str, Any]:
    """
    Collect commit, branch and tag counts and the size of the git directory.

    Each probe that fails is reported as zero instead of aborting, so stats
    are still available for empty or partially broken repositories.

    Args:
        repo_path: Repository working directory.

    Returns:
        Dictionary with commits, local_branches, remote_branches, branches,
        tags, size_bytes and size.
    """
    stats: dict[str, Any] = {
        "commits": 0,
        "local_branches": 0,
        "remote_branches": 0,
        "branches": 0,
        "tags": 0,
        "size_bytes": 0,
        "size": format_size(0),
    }

    try:
        stats["commits"] = int(git_output(["rev-list", "--count", "HEAD"], cwd=repo_path))
    except (subprocess.CalledProcessError, ValueError) as e:
        logger.debug("Could not count commits: %s", e)

    try:
        stats["local_branches"] = _count_refs("refs/heads", repo_path)
        stats["remote_branches"] = _count_refs("refs/remotes", repo_path)
        stats["tags"] = _count_refs("refs/tags", repo_path)
    except subprocess.CalledProcessError as e:
        logger.debug("Could not count refs: %s", e)
    stats["branches"] = stats["local_branches"] + stats["remote_branches"]

    try:
        git_dir = Path(git_output(["rev-parse", "--absolute-git-dir"], cwd=repo_path))
        stats["size_bytes"] = get_directory_size(git_dir)
        stats["size"] = format_size(stats["size_bytes"])
    except subprocess.CalledProcessError as e:
        logger.debug("Could not locate git directory: %s", e)

    return stats


def compare_stats(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """Compute what a cleanup removed."""
    reclaimed = before.get("size_bytes", 0) - after.get("size_bytes", 0)
    return {
        "branches_removed": before.get("branches", 0) - after.get("branches", 0),
        "tags_removed": before.get("tags", 0) - after.get("tags", 0),
        "size_reclaimed_bytes": reclaimed,
        "size_reclaimed": format_size(max(reclaimed, 0)),
    }
