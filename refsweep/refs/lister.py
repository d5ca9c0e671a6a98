"""List branches and tags with their age and last author."""

import logging
from pathlib import Path

from refsweep.git import git_output
from refsweep.models import RefItem, RefKind

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\x00"

# for-each-ref expands %00 to the separator above
BRANCH_FORMAT = "%00".join([
    "%(refname)",
    "%(committerdate:unix)",
    "%(committerdate:iso)",
    "%(authorname)",
    "%(worktreepath)",
    "%(subject)",
])

TAG_FORMAT = "%00".join([
    "%(refname)",
    "%(creatordate:unix)",
    "%(creatordate:iso)",
    "%(if)%(taggername)%(then)%(taggername)%(else)%(authorname)%(end)",
    "",
    "%(subject)",
])


def get_ref_prefix(kind: RefKind, remote_name: str = "origin") -> str:
    """Get the refs/ namespace listed for a kind."""
    if kind == RefKind.LOCAL_BRANCH:
        return "refs/heads/"
    if kind == RefKind.REMOTE_BRANCH:
        return f"refs/remotes/{remote_name}/"
    # Remote tags are deleted by the names of the local tags.
    return "refs/tags/"


def parse_ref_line(line: str, prefix: str) -> RefItem | None:
    """
    Parse one line of for-each-ref output.

    Args:
        line: Separator-delimited fields produced by BRANCH_FORMAT/TAG_FORMAT.
        prefix: Namespace to strip from the full ref name.

    Returns:
        RefItem, or None for symbolic refs, checked-out branches and lines
        that cannot be parsed.
    """
    fields = line.split(FIELD_SEPARATOR, 5)
    if len(fields) < 6:
        logger.debug("Skipping malformed ref line: %r", line)
        return None

    refname, unix_time, iso_date, author, worktree, subject = fields

    if not refname.startswith(prefix):
        return None

    name = refname[len(prefix):]
    if not name or name == "HEAD":
        return None

    if worktree:
        # Checked out in this or another worktree; git refuses to delete it.
        logger.debug("Skipping %s, checked out at %s", name, worktree)
        return None

    try:
        timestamp = int(unix_time)
    except ValueError:
        logger.debug("Skipping %s, no usable date: %r", name, unix_time)
        return None

    return RefItem(
        name=name,
        timestamp_unix=timestamp,
        timestamp_display=iso_date,
        author=author,
        subject=subject,
    )


def parse_ref_output(output: str, prefix: str) -> list[RefItem]:
    """Parse the full output of for-each-ref."""
    items = []
    for line in output.splitlines():
        if not line.strip():
            continue
        item = parse_ref_line(line, prefix)
        if item is not None:
            items.append(item)
    return items


def list_refs(
    kind: RefKind,
    remote_name: str = "origin",
    repo_path: Path | str | None = None,
) -> list[RefItem]:
    """
    List all refs of a kind.

    Args:
        kind: Which namespace to list.
        remote_name: Remote whose tracking branches are listed.
        repo_path: Repository working directory.

    Returns:
        Refs in for-each-ref order (sorted by ref name).

    Raises:
        subprocess.CalledProcessError: If git for-each-ref fails.
    """
    prefix = get_ref_prefix(kind, remote_name)
    ref_format = TAG_FORMAT if kind.is_tag else BRANCH_FORMAT

    output = git_output(
        ["for-each-ref", f"--format={ref_format}", prefix.rstrip("/")],
        cwd=repo_path,
    )
    items = parse_ref_output(output, prefix)
    logger.debug("Listed %d %s refs", len(items), kind.value)
    return items
