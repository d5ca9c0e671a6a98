"""Taxonomy module for deletion failure classification."""

from .classifier import (
    classify_error,
    get_failure_summary,
    get_hint,
    group_failures,
)
from .rules import ERROR_HINTS, ERROR_RULES

__all__ = [
    "ERROR_HINTS",
    "ERROR_RULES",
    "classify_error",
    "get_failure_summary",
    "get_hint",
    "group_failures",
]
