"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    PROTECTION_POLICIES,
    AccessConfig,
    Config,
    GlobalConfig,
    RetentionConfig,
    SandboxConfig,
    ShareConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


CONFIG_ENV_VAR = "AZFILES_BACKUP_CONFIG"

# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "azfiles-backup-ng" / "config.toml",
    Path("/etc/azfiles-backup-ng/config.toml"),
]

VALID_PERMISSION_CHARS = set("rcwdl")


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file from ${CONFIG_ENV_VAR} not found: {env_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _require(data: dict[str, Any], key: str, section: str) -> Any:
    if key not in data or data[key] in ("", None):
        raise ConfigError(f"[{section}] missing required '{key}' field")
    return data[key]


def _parse_share(data: dict[str, Any], section: str) -> ShareConfig:
    """Parse a source or target share section."""
    return ShareConfig(
        subscription_id=_require(data, "subscription_id", section),
        resource_group=_require(data, "resource_group", section),
        account_name=_require(data, "account_name", section),
        share_name=_require(data, "share_name", section),
        region=data.get("region", ""),
        endpoint_suffix=data.get("endpoint_suffix", "core.windows.net"),
    )


def _parse_retention(data: dict[str, Any]) -> RetentionConfig:
    """Parse retention configuration from dict."""
    retention = RetentionConfig(
        ceiling=data.get("ceiling", 200),
        source_buffer=data.get("source_buffer", 20),
        target_buffer=data.get("target_buffer", 10),
        protection_key=data.get("protection_key", "AzureBackupProtected"),
        protection_policy=data.get("protection_policy", "presence"),
    )
    if retention.protection_policy not in PROTECTION_POLICIES:
        raise ConfigError(
            f"Invalid protection_policy '{retention.protection_policy}', "
            f"expected one of: {', '.join(PROTECTION_POLICIES)}"
        )
    if retention.ceiling <= 0:
        raise ConfigError("Retention ceiling must be positive")
    if retention.source_buffer < 0 or retention.target_buffer < 0:
        raise ConfigError("Retention buffers must not be negative")
    return retention


def _parse_access(data: dict[str, Any]) -> AccessConfig:
    """Parse access signature configuration from dict."""
    access = AccessConfig(
        expiry_hours=data.get("expiry_hours", 24),
        source_permissions=data.get("source_permissions", "rl"),
        target_permissions=data.get("target_permissions", "rwl"),
    )
    if access.expiry_hours <= 0:
        raise ConfigError("Access expiry_hours must be positive")
    for name in ("source_permissions", "target_permissions"):
        value = getattr(access, name)
        if not value or not set(value) <= VALID_PERMISSION_CHARS:
            raise ConfigError(f"Invalid {name} '{value}' (allowed letters: rcwdl)")
    return access


def _parse_sandbox(data: dict[str, Any]) -> SandboxConfig:
    """Parse sandbox configuration from dict."""
    sandbox = SandboxConfig(
        resource_group=_require(data, "resource_group", "sandbox"),
        region=_require(data, "region", "sandbox"),
        subnet_id=_require(data, "subnet_id", "sandbox"),
        subscription_id=data.get("subscription_id", ""),
        image=data.get("image", "peterdavehello/azcopy:latest"),
        tool=data.get("tool", "azcopy"),
        cpu=float(data.get("cpu", 2.0)),
        memory_gb=float(data.get("memory_gb", 4.0)),
        name_prefix=data.get("name_prefix", "azcopy-job"),
    )
    if sandbox.cpu <= 0 or sandbox.memory_gb <= 0:
        raise ConfigError("Sandbox cpu and memory_gb must be positive")
    return sandbox


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    return GlobalConfig(
        log_file=data.get("log_file"),
        transaction_log=data.get("transaction_log"),
        quiet=data.get("quiet", False),
        verbose=data.get("verbose", False),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if config.source == config.target:
        warnings.append("Source and target refer to the same share")

    retention = config.retention
    for side, buffer in (
        ("source", retention.source_buffer),
        ("target", retention.target_buffer),
    ):
        if buffer >= retention.ceiling:
            warnings.append(
                f"{side} buffer ({buffer}) is not below the ceiling "
                f"({retention.ceiling}); every run will try to evict"
            )

    if set("wdc") & set(config.access.source_permissions):
        warnings.append(
            f"Source permissions '{config.access.source_permissions}' grant "
            "more than read and list"
        )
    if not {"r", "w", "l"} <= set(config.access.target_permissions):
        warnings.append(
            f"Target permissions '{config.access.target_permissions}' lack "
            "read, write or list; the copy job will fail"
        )

    if not config.sandbox.subnet_id.startswith("/subscriptions/"):
        warnings.append(
            f"Sandbox subnet_id '{config.sandbox.subnet_id}' does not look like a resource id"
        )

    return warnings


def parse_config(data: dict[str, Any]) -> tuple[Config, list[str]]:
    """Build a Config from already parsed TOML data.

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If a required section or field is missing or invalid
    """
    for section in ("source", "target", "sandbox"):
        if section not in data:
            raise ConfigError(f"Missing required [{section}] section")

    try:
        config = Config(
            source=_parse_share(data["source"], "source"),
            target=_parse_share(data["target"], "target"),
            sandbox=_parse_sandbox(data["sandbox"]),
            global_config=_parse_global(data.get("global", {})),
            retention=_parse_retention(data.get("retention", {})),
            access=_parse_access(data.get("access", {})),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value: {e}")

    return config, _validate_config(config)


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    return parse_config(data)


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# azfiles-backup-ng configuration
# See documentation for full options

[global]
# log_file = "/var/log/azfiles-backup-ng.log"
# transaction_log = "/var/log/azfiles-backup-ng.jsonl"

# Share that is snapshotted and copied from
[source]
subscription_id = "00000000-0000-0000-0000-000000000000"
resource_group = "rg-files-prod"
account_name = "stfilesprod"
share_name = "data"
region = "westeurope"

# Mirror share that receives the copy
[target]
subscription_id = "00000000-0000-0000-0000-000000000000"
resource_group = "rg-files-backup"
account_name = "stfilesbackup"
share_name = "data-mirror"
region = "northeurope"

[retention]
ceiling = 200                           # Platform maximum snapshots per share
source_buffer = 20                      # Keep this many slots free on the source
target_buffer = 10                      # Keep this many slots free on the target
protection_key = "AzureBackupProtected" # Never evict snapshots carrying this key
protection_policy = "presence"          # or "truthy" to ignore false-like values

[access]
expiry_hours = 24
source_permissions = "rl"
target_permissions = "rwl"

# Container sandbox running the copy tool
[sandbox]
resource_group = "rg-files-backup"
region = "westeurope"
subnet_id = "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg-net/providers/Microsoft.Network/virtualNetworks/vnet-files/subnets/snet-aci"
image = "peterdavehello/azcopy:latest"
cpu = 2.0
memory_gb = 4.0
name_prefix = "azcopy-job"
"""
