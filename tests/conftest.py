"""Shared fixtures for tests that need real git repositories."""

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

OLD_DATE = "2020-01-15T12:00:00+00:00"
RECENT_DATE = None  # use the current time


def git(repo: Path, *args: str, date: str | None = None) -> str:
    """Run git in a test repository and return stdout."""
    env = os.environ.copy()
    env.update({
        "GIT_AUTHOR_NAME": "Test User",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test User",
        "GIT_COMMITTER_EMAIL": "test@example.com",
        "GIT_CONFIG_NOSYSTEM": "1",
    })
    if date:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date

    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit(repo: Path, message: str, date: str | None = None) -> str:
    """Create a commit touching a file and return its sha."""
    path = repo / "file.txt"
    with open(path, "a") as f:
        f.write(f"{message}\n")
    git(repo, "add", "file.txt")
    git(repo, "commit", "-q", "-m", message, date=date)
    return git(repo, "rev-parse", "HEAD")


def branch_names(repo: Path, prefix: str = "refs/heads") -> set[str]:
    output = git(repo, "for-each-ref", "--format=%(refname)", prefix)
    return {line[len(prefix) + 1:] for line in output.splitlines() if line}


@dataclass
class GitRepo:
    path: Path
    old_sha: str
    recent_sha: str
    remote: Path | None = None


@pytest.fixture
def repo(tmp_path):
    """A repository on 'main' with one old and one recent commit."""
    path = tmp_path / "work"
    path.mkdir()
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "user.email", "test@example.com")
    git(path, "config", "commit.gpgsign", "false")
    git(path, "config", "tag.gpgsign", "false")

    old_sha = commit(path, "initial", date=OLD_DATE)
    recent_sha = commit(path, "recent work")
    return GitRepo(path=path, old_sha=old_sha, recent_sha=recent_sha)


@pytest.fixture
def repo_with_remote(repo, tmp_path):
    """The `repo` fixture plus a bare 'origin' it has pushed to."""
    remote = tmp_path / "origin.git"
    subprocess.run(["git", "init", "-q", "--bare", str(remote)], check=True)
    git(repo.path, "remote", "add", "origin", str(remote))
    git(repo.path, "push", "-q", "origin", "main")
    repo.remote = remote
    return repo
