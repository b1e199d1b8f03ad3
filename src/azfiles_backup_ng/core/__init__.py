"""Core backup logic for azfiles-backup-ng.

Snapshot rotation, replication planning, sandbox dispatch and the
orchestrator that sequences them once per trigger.
"""

from .dispatch import DispatchAck, JobDispatcher
from .orchestrator import Orchestrator, RunPreview, RunResult, RunState, Trigger
from .planning import (
    AccessGrant,
    AccessRole,
    CopyCommand,
    ReplicationJob,
    ReplicationMode,
    ReplicationPlanner,
)
from .snapshots import RetentionDecision, SnapshotManager, is_protected

__all__ = [
    "AccessGrant",
    "AccessRole",
    "CopyCommand",
    "DispatchAck",
    "JobDispatcher",
    "Orchestrator",
    "ReplicationJob",
    "ReplicationMode",
    "ReplicationPlanner",
    "RetentionDecision",
    "RunPreview",
    "RunResult",
    "RunState",
    "SnapshotManager",
    "Trigger",
    "is_protected",
]
