"""Failure classification for grouped reporting."""

import re
from functools import lru_cache

from refsweep.models import FailedItem

from .rules import (
    COMMAND_FAILED_PREFIX,
    DEFAULT_KEY_LENGTH,
    ERROR_HINTS,
    ERROR_RULES,
    UNKNOWN_ERROR,
)

REF_PLACEHOLDER = "<ref>"


@lru_cache(maxsize=None)
def _compiled_rules() -> list[tuple[str, list[re.Pattern]]]:
    return [
        (category, [re.compile(p, re.IGNORECASE) for p in patterns])
        for category, patterns in ERROR_RULES
    ]


def _split_wrapper(message: str) -> tuple[str | None, str]:
    """Separate the 'Command failed' line from the git output below it."""
    first_line, _, rest = message.partition("\n")
    if first_line.startswith(COMMAND_FAILED_PREFIX):
        return first_line, rest
    return None, message


def normalize_command_line(line: str) -> str:
    """
    Replace the ref arguments of a 'Command failed: git ...' line.

    The git binary, its subcommand and any flags are kept; every other
    argument becomes a placeholder so failures on different refs share a key.
    """
    prefix, sep, command = line.partition(":")
    if not sep:
        return line.strip()

    tokens = command.split()
    normalized: list[str] = []
    for index, token in enumerate(tokens):
        if index < 2 or token.startswith("-"):
            normalized.append(token)
        elif not normalized or normalized[-1] != REF_PLACEHOLDER:
            normalized.append(REF_PLACEHOLDER)

    return f"{prefix}: {' '.join(normalized)}".strip()


def classify_error(message: str | None) -> str:
    """
    Map a raw deletion failure message to a classification key.

    Args:
        message: Raw message reported by the executor.

    Returns:
        A category from the rule table, a normalized 'Command failed' line,
        or the first characters of the message.
    """
    if not message or not message.strip():
        return UNKNOWN_ERROR

    wrapper, detail = _split_wrapper(message)

    for category, patterns in _compiled_rules():
        if any(p.search(detail) for p in patterns):
            return category

    if wrapper is not None:
        return normalize_command_line(wrapper)

    text = message.strip()
    if len(text) > DEFAULT_KEY_LENGTH:
        return text[:DEFAULT_KEY_LENGTH] + "..."
    return text


def get_hint(key: str) -> str | None:
    """Return an actionable hint for a classification key, if one exists."""
    return ERROR_HINTS.get(key)


def group_failures(failed_items: list[FailedItem]) -> dict[str, list[FailedItem]]:
    """
    Group failed refs by classification key.

    Keys appear in the order they are first seen.
    """
    groups: dict[str, list[FailedItem]] = {}
    for item in failed_items:
        key = classify_error(item.error)
        groups.setdefault(key, []).append(item)
    return groups


def get_failure_summary(failed_items: list[FailedItem]) -> list[dict]:
    """
    Summarize failures for display.

    Returns:
        List of groups sorted by size (largest first), each with the key,
        count, names and hint.
    """
    summary = []
    for key, items in group_failures(failed_items).items():
        summary.append({
            "key": key,
            "count": len(items),
            "names": [item.name for item in items],
            "scopes": sorted({item.kind for item in items}),
            "hint": get_hint(key),
        })
    return sorted(summary, key=lambda x: x["count"], reverse=True)
