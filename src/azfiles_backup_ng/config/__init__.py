"""Configuration system for azfiles-backup-ng.

This module provides TOML-based configuration loading, validation,
and schema definitions for scheduled share backups.
"""

from .loader import ConfigError, find_config_file, load_config, parse_config
from .schema import (
    AccessConfig,
    Config,
    GlobalConfig,
    RetentionConfig,
    SandboxConfig,
    ShareConfig,
)

__all__ = [
    "AccessConfig",
    "GlobalConfig",
    "RetentionConfig",
    "SandboxConfig",
    "ShareConfig",
    "Config",
    "load_config",
    "parse_config",
    "find_config_file",
    "ConfigError",
]
