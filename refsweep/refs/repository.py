"""Repository discovery and basic information."""

import subprocess
from pathlib import Path
from typing import Any

from refsweep.git import git_output, run_git


def find_repo_root(path: Path | str | None = None) -> Path:
    """
    Find the top-level directory of the repository containing `path`.

    Raises:
        NotAGitRepositoryError: If `path` is not inside a repository.
        GitUnavailableError: If git cannot be executed.
    """
    return Path(git_output(["rev-parse", "--show-toplevel"], cwd=path))


def get_current_branch(repo_path: Path | str | None = None) -> str | None:
    """Get the checked-out branch, or None on a detached HEAD."""
    result = run_git(["branch", "--show-current"], cwd=repo_path)
    branch = result.stdout.strip()
    return branch or None


def get_remote_url(remote_name: str = "origin", repo_path: Path | str | None = None) -> str | None:
    """Get the URL of a remote, or None if it is not configured."""
    result = run_git(["remote", "get-url", remote_name], cwd=repo_path)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_repository_info(
    path: Path | str | None = None,
    remote_name: str = "origin",
) -> dict[str, Any]:
    """
    Collect repository root, current branch and remote URL.

    Args:
        path: Any directory inside the repository.
        remote_name: Remote to report.

    Returns:
        Dictionary with root, current_branch, remote_name and remote_url.
    """
    root = find_repo_root(path)
    try:
        current = get_current_branch(root)
    except subprocess.SubprocessError:
        current = None

    return {
        "root": root,
        "current_branch": current,
        "remote_name": remote_name,
        "remote_url": get_remote_url(remote_name, root),
    }
