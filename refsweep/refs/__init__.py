"""Ref listing and repository inspection."""

from .lister import list_refs, parse_ref_output
from .repository import find_repo_root, get_repository_info
from .stats import compare_stats, format_size, get_repository_stats

__all__ = [
    "compare_stats",
    "find_repo_root",
    "format_size",
    "get_repository_info",
    "get_repository_stats",
    "list_refs",
    "parse_ref_output",
]
