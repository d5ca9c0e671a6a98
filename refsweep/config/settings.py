"""Configuration loading: defaults, JSON file, environment and CLI overrides."""

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from refsweep.errors import ConfigError
from refsweep.models import DeletionPolicy, ProtectionConfig, RefKind

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = [
    "refsweep.config.json",
    ".refsweep.config.json",
    "config/refsweep.config.json",
]

DEFAULT_CONFIG: dict[str, Any] = {
    "days": 365,
    "protected_branches": ["production", "staging", "master", "main", "develop"],
    "force_delete_branches": [],
    "protected_tags": [],
    "force_delete_tags": [],
    "remote_name": "origin",
    "include_tags": True,
    "cleanup_after_delete": True,
    "aggressive_gc": False,
    "clean_targets": ["all"],
    "local": {
        "batch_size": 100,
        "max_concurrency": 8,
        "inter_batch_delay": 0.0,
        "timeout": 30.0,
        "strategy": "batch",
    },
    "remote": {
        "batch_size": 50,
        "max_concurrency": 3,
        "inter_batch_delay": 0.5,
        "timeout": 60.0,
        "strategy": "batch",
    },
}

# Keys as written by older JSON config files
KEY_ALIASES = {
    "protectedBranches": "protected_branches",
    "forceDeleteBranches": "force_delete_branches",
    "protectedTags": "protected_tags",
    "forceDeleteTags": "force_delete_tags",
    "remoteName": "remote_name",
    "includeTags": "include_tags",
    "cleanupAfterDelete": "cleanup_after_delete",
    "cleanTargets": "clean_targets",
}

TARGET_KINDS: dict[str, list[RefKind]] = {
    "local-branches": [RefKind.LOCAL_BRANCH],
    "remote-branches": [RefKind.REMOTE_BRANCH],
    "local-tags": [RefKind.LOCAL_TAG],
    "remote-tags": [RefKind.REMOTE_TAG],
    "branches": [RefKind.LOCAL_BRANCH, RefKind.REMOTE_BRANCH],
    "tags": [RefKind.LOCAL_TAG, RefKind.REMOTE_TAG],
    "all": list(RefKind),
}


@dataclass
class SweepConfig:
    """Resolved settings for one run."""

    days: int = 365
    protected_branches: list[str] = field(default_factory=list)
    force_delete_branches: list[str] = field(default_factory=list)
    protected_tags: list[str] = field(default_factory=list)
    force_delete_tags: list[str] = field(default_factory=list)
    remote_name: str = "origin"
    include_tags: bool = True
    cleanup_after_delete: bool = True
    aggressive_gc: bool = False
    clean_targets: list[str] = field(default_factory=lambda: ["all"])
    local_policy: DeletionPolicy = field(default_factory=DeletionPolicy)
    remote_policy: DeletionPolicy = field(default_factory=DeletionPolicy)
    source: Path | None = None

    def branch_protection(self) -> ProtectionConfig:
        return ProtectionConfig(
            protected_patterns=tuple(self.protected_branches),
            force_delete_patterns=tuple(self.force_delete_branches),
        )

    def tag_protection(self) -> ProtectionConfig:
        return ProtectionConfig(
            protected_patterns=tuple(self.protected_tags),
            force_delete_patterns=tuple(self.force_delete_tags),
        )

    def protection_for(self, kind: RefKind) -> ProtectionConfig:
        return self.tag_protection() if kind.is_tag else self.branch_protection()

    def policy_for(self, kind: RefKind) -> DeletionPolicy:
        return self.remote_policy if kind.scope == "remote" else self.local_policy

    def selected_kinds(self) -> list[RefKind]:
        """Kinds to clean, in deletion order."""
        selected: set[RefKind] = set()
        for target in self.clean_targets:
            selected.update(TARGET_KINDS[target])
        if not self.include_tags:
            selected -= {RefKind.LOCAL_TAG, RefKind.REMOTE_TAG}
        return [kind for kind in RefKind if kind in selected]


def parse_list(value: str | None) -> list[str]:
    """Split a comma-separated option value."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def find_config_file(base_dir: Path | str | None = None) -> Path:
    """
    Locate the config file.

    Returns:
        The first existing candidate, or the default location if none exists.
    """
    base = Path(base_dir) if base_dir else Path.cwd()
    for name in CONFIG_FILENAMES:
        path = base / name
        if path.exists():
            return path
    return base / CONFIG_FILENAMES[0]


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Config file %s is malformed (%s), using defaults", path, e)
        return {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e.strerror or e}") from e

    if not isinstance(data, dict):
        logger.warning("Config file %s must contain a JSON object, using defaults", path)
        return {}

    normalized = {}
    for key, value in data.items():
        key = KEY_ALIASES.get(key, key)
        if key not in DEFAULT_CONFIG:
            logger.warning("Ignoring unknown config key '%s' in %s", key, path)
            continue
        normalized[key] = value
    return normalized


def _merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    days = os.getenv("REFSWEEP_DAYS")
    if days:
        try:
            overrides["days"] = int(days)
        except ValueError as e:
            raise ConfigError(f"REFSWEEP_DAYS must be an integer, got '{days}'") from e
    remote = os.getenv("REFSWEEP_REMOTE")
    if remote:
        overrides["remote_name"] = remote
    return overrides


def _build_policy(name: str, values: Any) -> DeletionPolicy:
    if not isinstance(values, dict):
        raise ConfigError(f"'{name}' policy must be an object")
    try:
        return DeletionPolicy(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid '{name}' policy: {e}") from e


TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ConfigError(f"'{name}' must be true or false, got {value!r}")


def _as_list(name: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return parse_list(value)
    if not isinstance(value, list):
        raise ConfigError(f"'{name}' must be a list of strings")
    return [str(v) for v in value]


def build_config(data: dict[str, Any], source: Path | None = None) -> SweepConfig:
    """
    Validate a merged settings dictionary.

    Raises:
        ConfigError: For out-of-range numbers, unknown targets or bad policies.
    """
    try:
        days = int(data["days"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'days' must be an integer, got {data['days']!r}") from e
    if days < 0:
        raise ConfigError(f"'days' cannot be negative, got {days}")

    targets = _as_list("clean_targets", data["clean_targets"]) or ["all"]
    unknown = [t for t in targets if t not in TARGET_KINDS]
    if unknown:
        raise ConfigError(
            f"Unknown clean target(s): {', '.join(unknown)}. "
            f"Valid targets: {', '.join(TARGET_KINDS)}"
        )

    return SweepConfig(
        days=days,
        protected_branches=_as_list("protected_branches", data["protected_branches"]),
        force_delete_branches=_as_list("force_delete_branches", data["force_delete_branches"]),
        protected_tags=_as_list("protected_tags", data["protected_tags"]),
        force_delete_tags=_as_list("force_delete_tags", data["force_delete_tags"]),
        remote_name=str(data["remote_name"]),
        include_tags=_as_bool("include_tags", data["include_tags"]),
        cleanup_after_delete=_as_bool("cleanup_after_delete", data["cleanup_after_delete"]),
        aggressive_gc=_as_bool("aggressive_gc", data["aggressive_gc"]),
        clean_targets=targets,
        local_policy=_build_policy("local", data["local"]),
        remote_policy=_build_policy("remote", data["remote"]),
        source=source,
    )


def load_config(
    config_path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
    base_dir: Path | str | None = None,
) -> SweepConfig:
    """
    Resolve the run configuration.

    Precedence, lowest first: built-in defaults, the JSON config file,
    REFSWEEP_* environment variables, then explicit overrides (CLI options).
    Overrides with a None value are ignored.

    Args:
        config_path: Explicit config file. Falls back to REFSWEEP_CONFIG and
            then the first of CONFIG_FILENAMES found in base_dir.
        overrides: Values taken from the command line.
        base_dir: Directory searched for config files. Defaults to cwd.

    Returns:
        Validated SweepConfig.

    Raises:
        ConfigError: If the resulting settings are invalid.
    """
    path = config_path or os.getenv("REFSWEEP_CONFIG")
    resolved = Path(path) if path else find_config_file(base_dir)

    data = copy.deepcopy(DEFAULT_CONFIG)
    source = None
    if resolved.exists():
        data = _merge(data, _read_config_file(resolved))
        source = resolved
    elif path:
        logger.warning("Config file %s not found, using defaults", resolved)

    data = _merge(data, _env_overrides())
    if overrides:
        data = _merge(data, {k: v for k, v in overrides.items() if v is not None})

    return build_config(data, source=source)


def write_default_config(path: Path | str) -> Path:
    """
    Write the default settings as a JSON config file.

    Raises:
        FileExistsError: If the file already exists.
    """
    path = Path(path)
    if path.exists():
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(DEFAULT_CONFIG, f, indent=2)
        f.write("\n")
    return path
