"""Find stale refs that are eligible for deletion."""

import time
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

from refsweep.models import ProtectionConfig, RefItem, RefKind
from refsweep.refs.lister import list_refs
from refsweep.refs.repository import get_current_branch

from .protection import is_protected

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_cutoff(days: int, now: float | None = None) -> int:
    """
    Get the unix timestamp before which refs count as stale.

    Args:
        days: Age threshold in days.
        now: Reference time. Uses the current time if not provided.

    Returns:
        Cutoff as whole seconds since the epoch.
    """
    if now is None:
        now = time.time()
    return int(now - days * SECONDS_PER_DAY)


def find_stale_refs(
    items: list[RefItem],
    days: int,
    protection: ProtectionConfig | None = None,
    now: float | None = None,
    exclude: set[str] | None = None,
) -> list[RefItem]:
    """
    Select refs older than the cutoff that are not protected.

    Args:
        items: Refs of a single kind.
        days: Age threshold in days.
        protection: Protect/force-delete patterns.
        now: Reference time for the cutoff.
        exclude: Names that must never be selected (e.g. the current branch).

    Returns:
        Candidates sorted oldest first.
    """
    cutoff = calculate_cutoff(days, now)
    exclude = exclude or set()

    candidates = [
        item
        for item in items
        if item.timestamp_unix < cutoff
        and item.name not in exclude
        and not is_protected(item.name, protection)
    ]
    return sorted(candidates, key=lambda x: x.timestamp_unix)


def collect_candidates(config, repo_path: Path | str | None = None) -> dict[RefKind, list[RefItem]]:
    """
    List and filter refs for every kind selected in the config.

    Args:
        config: Resolved SweepConfig.
        repo_path: Repository working directory.

    Returns:
        Dictionary mapping each selected kind to its candidates, oldest first.
    """
    current = get_current_branch(repo_path)
    tags: list[RefItem] | None = None
    candidates: dict[RefKind, list[RefItem]] = {}

    for kind in config.selected_kinds():
        if kind.is_tag:
            # Local and remote tags are both cleaned by the local tag list.
            if tags is None:
                tags = list_refs(kind, config.remote_name, repo_path)
            items = tags
        else:
            items = list_refs(kind, config.remote_name, repo_path)

        exclude = {current} if kind == RefKind.LOCAL_BRANCH and current else set()
        candidates[kind] = find_stale_refs(
            items,
            config.days,
            protection=config.protection_for(kind),
            exclude=exclude,
        )

    return candidates


def get_candidate_summary(candidates: dict[RefKind, list[RefItem]]) -> dict[str, Any]:
    """
    Summarize candidates per kind.

    Returns:
        Dictionary with per-kind counts, the total and the oldest ref.
    """
    counts = {kind.value: len(items) for kind, items in candidates.items()}
    all_items = [item for items in candidates.values() for item in items]
    oldest = min(all_items, key=lambda x: x.timestamp_unix) if all_items else None

    return {
        "counts": counts,
        "total": len(all_items),
        "oldest": oldest.name if oldest else None,
        "oldest_date": oldest.timestamp_display if oldest else None,
    }


def group_by_date(items: list[RefItem]) -> dict[str, list[RefItem]]:
    """
    Group refs by the calendar day of their timestamp.

    Returns:
        Dictionary mapping YYYY-MM-DD to refs, in ascending date order.
    """
    groups: dict[str, list[RefItem]] = defaultdict(list)
    for item in items:
        day = datetime.fromtimestamp(item.timestamp_unix).strftime("%Y-%m-%d")
        groups[day].append(item)
    return dict(sorted(groups.items()))
