"""Snapshot enumeration, rotation and creation for one file share.

The platform allows a fixed number of snapshots per share. Before every
new snapshot the oldest unprotected snapshot is evicted whenever
``count + buffer`` reaches that ceiling. Snapshots carrying the
protection metadata key belong to a separate backup system and are never
touched.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..__util__ import RetentionViolation, Snapshot
from ..config import RetentionConfig
from ..endpoint import Endpoint

logger = logging.getLogger(__name__)

FALSE_VALUES = frozenset({"", "0", "false", "no", "off", "none"})


def protection_value(metadata: dict[str, str], key: str) -> Optional[str]:
    """Value of a metadata key, matched case-insensitively as the service does."""
    wanted = key.casefold()
    for name, value in metadata.items():
        if name.casefold() == wanted:
            return "" if value is None else str(value)
    return None


def is_protected(snapshot: Snapshot, key: str, policy: str = "presence") -> bool:
    """Whether a snapshot must be kept out of rotation.

    With the "presence" policy the key alone protects the snapshot, whatever
    its value. With "truthy" a value such as "false" or "0" does not.
    """
    value = protection_value(snapshot.metadata, key)
    if value is None:
        return False
    if policy == "presence":
        return True
    if policy == "truthy":
        return value.strip().lower() not in FALSE_VALUES
    raise ValueError(f"Unknown protection policy: {policy}")


@dataclass(frozen=True)
class RetentionDecision:
    """Outcome of checking a share against the ceiling."""

    count: int
    buffer: int
    ceiling: int
    evict: Optional[Snapshot] = None

    @property
    def needs_eviction(self) -> bool:
        return self.count + self.buffer >= self.ceiling


class SnapshotManager:
    """Lists, rotates and creates snapshots of one share."""

    def __init__(self, endpoint: Endpoint, retention: RetentionConfig) -> None:
        self.endpoint = endpoint
        self.retention = retention

    def __repr__(self) -> str:
        return f"SnapshotManager({self.endpoint.share.label})"

    def _to_snapshot(self, entry) -> Snapshot:
        return Snapshot(
            account_name=self.endpoint.account_name,
            share_name=entry.name,
            snapshot_time=entry.snapshot_time,
            uri=self.endpoint.snapshot_uri(entry.snapshot_time),
            metadata=dict(entry.metadata),
        )

    def list_snapshots(self) -> list[Snapshot]:
        """Snapshots of this share, oldest first.

        The backend lists every share of the account together with their
        snapshots in no guaranteed order, so filtering and sorting happen here.
        """
        share_name = self.endpoint.share_name
        snapshots = [
            self._to_snapshot(entry)
            for entry in self.endpoint.list_entries()
            if entry.is_snapshot and entry.name == share_name
        ]
        snapshots.sort(key=lambda s: (s.created, s.snapshot_time))
        logger.debug("%s has %d snapshot(s)", self.endpoint.share.label, len(snapshots))
        return snapshots

    def is_protected(self, snapshot: Snapshot) -> bool:
        return is_protected(
            snapshot,
            self.retention.protection_key,
            self.retention.protection_policy,
        )

    def eviction_candidates(self, snapshots: list[Snapshot]) -> list[Snapshot]:
        """Unprotected snapshots in the order they would be evicted."""
        return [s for s in snapshots if not self.is_protected(s)]

    def plan_retention(self, buffer: int) -> RetentionDecision:
        """Decide whether a snapshot has to go before the next one is created.

        Raises:
            RetentionViolation: The ceiling is reached and every snapshot is protected
        """
        snapshots = self.list_snapshots()
        decision = RetentionDecision(
            count=len(snapshots), buffer=buffer, ceiling=self.retention.ceiling
        )
        if not decision.needs_eviction:
            return decision

        candidates = self.eviction_candidates(snapshots)
        if not candidates:
            raise RetentionViolation(
                f"{self.endpoint.share.label} holds {len(snapshots)} snapshot(s), "
                f"buffer {buffer} reaches the ceiling of {self.retention.ceiling} "
                "and all of them are protected"
            )
        return RetentionDecision(
            count=decision.count,
            buffer=buffer,
            ceiling=decision.ceiling,
            evict=candidates[0],
        )

    def enforce_retention(self, buffer: int) -> Optional[Snapshot]:
        """Evict the oldest unprotected snapshot if the ceiling would be reached.

        Returns:
            The deleted snapshot, or None when nothing had to be evicted

        Raises:
            RetentionViolation: The ceiling is reached and every snapshot is protected
            SnapshotFailure: The delete call failed
        """
        decision = self.plan_retention(buffer)
        if decision.evict is None:
            logger.info(
                "%s: %d snapshot(s) + buffer %d below ceiling %d, nothing to evict",
                self.endpoint.share.label,
                decision.count,
                buffer,
                decision.ceiling,
            )
            return None

        logger.info(
            "%s: %d snapshot(s) + buffer %d reaches ceiling %d, evicting %s",
            self.endpoint.share.label,
            decision.count,
            buffer,
            decision.ceiling,
            decision.evict.get_name(),
        )
        self.endpoint.delete_snapshot(decision.evict.snapshot_time)
        return decision.evict

    def create_snapshot(self) -> Snapshot:
        """Create a new snapshot; call only after enforce_retention succeeded."""
        entry = self.endpoint.create_snapshot()
        snapshot = self._to_snapshot(entry)
        logger.info("Created snapshot: %s", snapshot)
        return snapshot
