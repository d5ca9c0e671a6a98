"""Protection rules for branches and tags."""

import re
from functools import lru_cache
from typing import Iterable

from refsweep.models import ProtectionConfig


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern:
    # Only '*' is special; everything else matches literally.
    parts = [re.escape(part) for part in pattern.split("*")]
    return re.compile(".*".join(parts), re.DOTALL)


def matches_pattern(name: str, pattern: str) -> bool:
    """
    Check a name against a single protect/force-delete pattern.

    Args:
        name: Branch or tag name.
        pattern: Literal name, or a pattern where '*' stands for any sequence
            of characters. Wildcard patterns must match the whole name.

    Returns:
        True if the name matches.
    """
    if name == pattern:
        return True
    if "*" not in pattern:
        return False
    return _compile_pattern(pattern).fullmatch(name) is not None


def matches_any(name: str, patterns: Iterable[str] | None) -> bool:
    """Check whether a name matches at least one pattern."""
    if not patterns:
        return False
    return any(matches_pattern(name, pattern) for pattern in patterns)


def is_protected(name: str, config: ProtectionConfig | None) -> bool:
    """
    Decide whether a ref must be kept.

    A ref is protected when it matches a protected pattern and does not
    match any force-delete pattern.

    Args:
        name: Branch or tag name.
        config: Pattern lists. None protects nothing.

    Returns:
        True if the ref must not be deleted.
    """
    if config is None:
        return False
    if not matches_any(name, config.protected_patterns):
        return False
    return not matches_any(name, config.force_delete_patterns)
