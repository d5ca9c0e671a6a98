"""Execute ref deletions with git."""

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from refsweep.git import format_command, run_git
from refsweep.models import RefKind

logger = logging.getLogger(__name__)

COMMAND_FAILED = "Command failed"


class RefDeletionExecutor(Protocol):
    """
    Something that can delete refs of one kind.

    Both methods return None on success and the raw failure message
    otherwise. Neither retries. Structural problems (git missing, not a
    repository) are raised as GitUnavailableError instead of being returned.
    """

    def delete_one(self, name: str) -> str | None:
        ...

    def delete_batch(self, names: list[str]) -> str | None:
        ...


def _full_ref(kind: RefKind, name: str) -> str:
    if kind.is_tag:
        return f"refs/tags/{name}"
    return f"refs/heads/{name}"


class GitDeletionExecutor:
    """
    Delete local or remote branches and tags through the git CLI.

    Batches are all-or-nothing: local refs are removed in a single
    `git update-ref --stdin` transaction and remote refs with
    `git push --atomic`, so a failed batch never leaves some refs deleted.
    """

    def __init__(
        self,
        kind: RefKind,
        remote_name: str = "origin",
        repo_path: Path | str | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the executor.

        Args:
            kind: Which namespace the deleted names belong to.
            remote_name: Remote used for remote branches and tags.
            repo_path: Repository working directory. Uses cwd if not provided.
            timeout: Seconds before a single git invocation is abandoned.
        """
        self.kind = kind
        self.remote_name = remote_name
        self.repo_path = repo_path
        self.timeout = timeout

    def delete_one(self, name: str) -> str | None:
        """Delete a single ref."""
        if self.kind == RefKind.LOCAL_BRANCH:
            args = ["branch", "-D", name]
        elif self.kind == RefKind.LOCAL_TAG:
            args = ["tag", "-d", name]
        else:
            args = ["push", self.remote_name, "--delete", _full_ref(self.kind, name)]
        return self._execute(args)

    def delete_batch(self, names: list[str]) -> str | None:
        """Delete several refs atomically."""
        if not names:
            return None

        if self.kind.scope == "local":
            stdin = "".join(f"delete {_full_ref(self.kind, n)}\n" for n in names)
            return self._execute(["update-ref", "--stdin"], input=stdin)

        refs = [_full_ref(self.kind, n) for n in names]
        return self._execute(["push", "--atomic", self.remote_name, "--delete", *refs])

    def _execute(self, args: list[str], input: str | None = None) -> str | None:
        command = format_command(args)

        try:
            result = run_git(args, cwd=self.repo_path, timeout=self.timeout, input=input)
        except subprocess.TimeoutExpired:
            logger.warning("Timed out after %ss: %s", self.timeout, command)
            return f"{COMMAND_FAILED}: {command}\nerror: timed out after {self.timeout:g}s"

        if result.returncode == 0:
            return None

        output = (result.stderr or result.stdout or "").strip()
        message = f"{COMMAND_FAILED}: {command}"
        if output:
            message += f"\n{output}"
        logger.debug("Exit %s: %s", result.returncode, message)
        return message
