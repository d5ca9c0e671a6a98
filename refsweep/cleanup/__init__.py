"""Cleanup module for stale branch and tag deletion."""

from .candidate_finder import (
    calculate_cutoff,
    collect_candidates,
    find_stale_refs,
    get_candidate_summary,
    group_by_date,
)
from .deleter import BatchedConcurrentDeleter, delete_refs
from .executor import GitDeletionExecutor, RefDeletionExecutor
from .maintenance import perform_maintenance
from .protection import is_protected, matches_any

__all__ = [
    "BatchedConcurrentDeleter",
    "GitDeletionExecutor",
    "RefDeletionExecutor",
    "calculate_cutoff",
    "collect_candidates",
    "delete_refs",
    "find_stale_refs",
    "get_candidate_summary",
    "group_by_date",
    "is_protected",
    "matches_any",
    "perform_maintenance",
]
