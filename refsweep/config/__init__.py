"""Configuration for refsweep."""

from .settings import (
    DEFAULT_CONFIG,
    SweepConfig,
    find_config_file,
    load_config,
    parse_list,
    write_default_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "SweepConfig",
    "find_config_file",
    "load_config",
    "parse_list",
    "write_default_config",
]
