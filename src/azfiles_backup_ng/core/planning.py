"""Replication planning: mode selection, scoped access and the copy command.

A run copies from a read-only source snapshot to the live target share.
When the target already holds data the copy tool mirrors (``sync``) and
removes files absent from the snapshot; an empty target is seeded with a
plain ``copy``.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from urllib.parse import urlsplit

from .. import __util__
from ..__util__ import SASGenerationFailure, Snapshot
from ..config import AccessConfig, SandboxConfig
from ..endpoint import Endpoint

logger = logging.getLogger(__name__)

COPY_FLAGS = (
    "--preserve-smb-info",
    "--preserve-smb-permissions",
    "--recursive",
)

_SIG_RE = re.compile(r"(sig=)[^&]+")


class ReplicationMode(Enum):
    """How the copy tool reconciles the target."""

    SYNC = "sync"  # Incremental mirror, deletes extraneous target files
    COPY = "copy"  # Seed copy into an empty target


class AccessRole(Enum):
    """Which side of the replication an access signature is for."""

    SOURCE = "source"
    TARGET = "target"


def redact(uri: str) -> str:
    """Hide the signature of a SAS URI for logging."""
    return _SIG_RE.sub(r"\1REDACTED", uri)


@dataclass(frozen=True)
class AccessGrant:
    """A time-limited, scoped share URI."""

    uri: str
    permission: str
    expiry: datetime

    @property
    def query(self) -> str:
        return urlsplit(self.uri).query


@dataclass(frozen=True)
class CopyCommand:
    """Command line of the external copy tool."""

    tool: str
    args: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.tool, *self.args]

    def redacted(self) -> str:
        return " ".join(redact(token) for token in self.argv)


@dataclass(frozen=True)
class ReplicationJob:
    """Everything needed to launch one copy in the sandbox.

    The job is transient; ``correlation_id`` and ``name`` are what external
    monitoring uses to match a dispatch with its eventual outcome.
    """

    name: str
    mode: ReplicationMode
    source_uri: str
    target_uri: str
    command: CopyCommand
    cpu: float
    memory_gb: float
    subnet_id: str
    image: str
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ReplicationPlanner:
    """Builds the access signatures and command line for one run."""

    def __init__(self, access: AccessConfig, sandbox: SandboxConfig) -> None:
        self.access = access
        self.sandbox = sandbox

    def permission_for(self, role: AccessRole) -> str:
        """Permission string for a role, checked against its minimum scope.

        Raises:
            SASGenerationFailure: The configured permissions are unsafe or insufficient
        """
        if role is AccessRole.SOURCE:
            permission = self.access.source_permissions
            if set(permission) & set("wcd"):
                raise SASGenerationFailure(
                    f"Source permissions '{permission}' must not allow writes"
                )
            required = {"r", "l"}
        else:
            permission = self.access.target_permissions
            required = {"r", "w", "l"}
        missing = required - set(permission)
        if missing:
            raise SASGenerationFailure(
                f"{role.value} permissions '{permission}' lack "
                f"{''.join(sorted(missing))}"
            )
        return permission

    def expiry_from(self, issued_at: datetime) -> datetime:
        return __util__.as_utc(issued_at) + timedelta(hours=self.access.expiry_hours)

    def generate_access(
        self, endpoint: Endpoint, role: AccessRole, issued_at: datetime
    ) -> AccessGrant:
        """Share URI carrying a SAS valid until issued_at + expiry_hours.

        The signature is single-shot; nothing refreshes it, so the copy
        must finish inside that window.
        """
        permission = self.permission_for(role)
        expiry = self.expiry_from(issued_at)
        token = endpoint.generate_sas(permission, expiry)
        if not token:
            raise SASGenerationFailure(
                f"Empty access signature for {endpoint.share.label}"
            )
        token = token.lstrip("?")
        logger.debug(
            "Generated %s access for %s (%s) valid until %s",
            role.value,
            endpoint.share.label,
            permission,
            expiry.isoformat(),
        )
        return AccessGrant(
            uri=f"{endpoint.share_uri()}?{token}", permission=permission, expiry=expiry
        )

    @staticmethod
    def snapshot_access_uri(snapshot: Snapshot, share_access: AccessGrant) -> str:
        """Grant read access to one snapshot using the share-level signature."""
        separator = "&" if urlsplit(snapshot.uri).query else "?"
        return f"{snapshot.uri}{separator}{share_access.query}"

    @staticmethod
    def select_mode(target: Endpoint) -> ReplicationMode:
        """SYNC when the target already holds entries, COPY when it is empty."""
        if target.has_entries():
            logger.info("Target %s holds data, mirroring with sync", target.share.label)
            return ReplicationMode.SYNC
        logger.info("Target %s is empty, seeding with copy", target.share.label)
        return ReplicationMode.COPY

    def build_command(
        self, mode: ReplicationMode, source_uri: str, target_uri: str
    ) -> CopyCommand:
        """Copy tool invocation; the flags are the same for both modes."""
        return CopyCommand(
            tool=self.sandbox.tool,
            args=(mode.value, source_uri, target_uri, *COPY_FLAGS),
        )

    def plan(
        self,
        source_snapshot: Snapshot,
        source: Endpoint,
        target: Endpoint,
        issued_at: datetime,
        name: str,
    ) -> ReplicationJob:
        """Select the mode, sign both sides and assemble the job."""
        mode = self.select_mode(target)
        source_access = self.generate_access(source, AccessRole.SOURCE, issued_at)
        target_access = self.generate_access(target, AccessRole.TARGET, issued_at)
        source_uri = self.snapshot_access_uri(source_snapshot, source_access)
        command = self.build_command(mode, source_uri, target_access.uri)
        logger.debug("Copy command: %s", command.redacted())
        return ReplicationJob(
            name=name,
            mode=mode,
            source_uri=source_uri,
            target_uri=target_access.uri,
            command=command,
            cpu=self.sandbox.cpu,
            memory_gb=self.sandbox.memory_gb,
            subnet_id=self.sandbox.subnet_id,
            image=self.sandbox.image,
        )
