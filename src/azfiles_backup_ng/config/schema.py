"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
All classes are frozen: a loaded configuration is an immutable value
handed to the orchestrator at construction time.
"""

from dataclasses import dataclass, field
from typing import Optional

PROTECTION_POLICIES = ("presence", "truthy")


@dataclass(frozen=True)
class ShareConfig:
    """One side (source or target) of the replication.

    Attributes:
        subscription_id: Subscription holding the storage account
        resource_group: Resource group of the storage account
        account_name: Storage account name
        share_name: File share name
        region: Region of the storage account
        endpoint_suffix: DNS suffix of the storage endpoints
    """

    subscription_id: str
    resource_group: str
    account_name: str
    share_name: str
    region: str = ""
    endpoint_suffix: str = "core.windows.net"

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.file.{self.endpoint_suffix}"

    @property
    def share_url(self) -> str:
        return f"{self.account_url}/{self.share_name}"

    @property
    def label(self) -> str:
        return f"{self.account_name}/{self.share_name}"


@dataclass(frozen=True)
class RetentionConfig:
    """Snapshot rotation settings.

    Attributes:
        ceiling: Platform maximum number of snapshots per share
        source_buffer: Headroom kept free on the source share
        target_buffer: Headroom kept free on the target share
        protection_key: Metadata key marking snapshots owned by another backup system
        protection_policy: "presence" protects any snapshot carrying the key,
            "truthy" only those whose value is not false-like
    """

    ceiling: int = 200
    source_buffer: int = 20
    target_buffer: int = 10
    protection_key: str = "AzureBackupProtected"
    protection_policy: str = "presence"


@dataclass(frozen=True)
class AccessConfig:
    """Shared access signature settings.

    Attributes:
        expiry_hours: Lifetime of each generated signature
        source_permissions: Permission string for the source share
        target_permissions: Permission string for the target share
    """

    expiry_hours: int = 24
    source_permissions: str = "rl"
    target_permissions: str = "rwl"


@dataclass(frozen=True)
class SandboxConfig:
    """Container sandbox that runs the copy tool.

    Attributes:
        subscription_id: Subscription for the container group (defaults to the target's)
        resource_group: Resource group the container group is created in
        region: Region of the container group
        subnet_id: Subnet reaching both shares' private endpoints
        image: Container image providing the copy tool
        tool: Executable name inside the image
        cpu: Requested CPU cores
        memory_gb: Requested memory in GiB
        name_prefix: Prefix of the per-run container group name
    """

    resource_group: str
    region: str
    subnet_id: str
    subscription_id: str = ""
    image: str = "peterdavehello/azcopy:latest"
    tool: str = "azcopy"
    cpu: float = 2.0
    memory_gb: float = 4.0
    name_prefix: str = "azcopy-job"


@dataclass(frozen=True)
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        log_file: Path to log file (None for no file logging)
        transaction_log: Path to JSON-lines transaction log (None to disable)
        quiet: Suppress non-essential output
        verbose: Enable verbose output
    """

    log_file: Optional[str] = None
    transaction_log: Optional[str] = None
    quiet: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class Config:
    """Root configuration object."""

    source: ShareConfig
    target: ShareConfig
    sandbox: SandboxConfig
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    access: AccessConfig = field(default_factory=AccessConfig)

    @property
    def sandbox_subscription(self) -> str:
        """Subscription for the container group."""
        return self.sandbox.subscription_id or self.target.subscription_id

    def buffer_for(self, side: str) -> int:
        """Retention buffer of the 'source' or 'target' side."""
        if side == "source":
            return self.retention.source_buffer
        if side == "target":
            return self.retention.target_buffer
        raise ValueError(f"Unknown side: {side}")

    def share_for(self, side: str) -> ShareConfig:
        """Share configuration of the 'source' or 'target' side."""
        if side == "source":
            return self.source
        if side == "target":
            return self.target
        raise ValueError(f"Unknown side: {side}")
