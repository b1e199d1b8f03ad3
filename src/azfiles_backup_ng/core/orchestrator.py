"""One backup invocation: rotate and snapshot the source, plan, dispatch,
rotate and snapshot the target.

The steps run strictly in order. The first failure moves the run to
FAILED, the remaining steps are skipped and the error is re-raised so the
host sees a failed invocation; retries are the scheduler's business.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .. import __util__
from ..__util__ import Snapshot
from ..config import Config
from ..endpoint import Endpoint
from ..transaction import TransactionLog
from .dispatch import DispatchAck, JobDispatcher
from .planning import ReplicationJob, ReplicationMode, ReplicationPlanner
from .snapshots import SnapshotManager

logger = logging.getLogger(__name__)

MAX_JOB_NAME = 63


class RunState(Enum):
    """Progress of one invocation."""

    IDLE = "idle"
    SOURCE_ROTATED = "source-rotated"
    SOURCE_SNAPSHOTTED = "source-snapshotted"
    PLANNED = "planned"
    DISPATCHED = "dispatched"
    TARGET_ROTATED = "target-rotated"
    TARGET_SNAPSHOTTED = "target-snapshotted"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Trigger:
    """A timer firing."""

    scheduled_at: datetime
    past_due: bool = False

    @classmethod
    def now(cls, past_due: bool = False) -> "Trigger":
        return cls(scheduled_at=__util__.utc_now(), past_due=past_due)

    def run_id(self, prefix: str) -> str:
        """Unique container-group-safe name for this invocation."""
        stamp = __util__.as_utc(self.scheduled_at).strftime("%Y%m%d-%H%M%S")
        suffix = uuid.uuid4().hex[:6]
        prefix = re.sub(r"[^a-z0-9-]+", "-", prefix.lower()).strip("-") or "job"
        head = prefix[: MAX_JOB_NAME - len(stamp) - len(suffix) - 2].rstrip("-")
        return f"{head}-{stamp}-{suffix}"


@dataclass
class RunResult:
    """What an invocation did, filled in step by step."""

    run_id: str
    trigger: Trigger
    state: RunState = RunState.IDLE
    transitions: list[RunState] = field(default_factory=list)
    source_evicted: Optional[Snapshot] = None
    source_snapshot: Optional[Snapshot] = None
    mode: Optional[ReplicationMode] = None
    job: Optional[ReplicationJob] = None
    acknowledgment: Optional[DispatchAck] = None
    target_evicted: Optional[Snapshot] = None
    target_snapshot: Optional[Snapshot] = None
    failed_in: Optional[RunState] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE

    def advance(self, state: RunState) -> None:
        logger.debug("Run %s: %s -> %s", self.run_id, self.state.value, state.value)
        self.state = state
        self.transitions.append(state)


@dataclass
class RunPreview:
    """Read-only view of what the next invocation would do."""

    source_count: int
    source_evict: Optional[Snapshot]
    target_count: int
    target_evict: Optional[Snapshot]
    mode: ReplicationMode
    command: list[str]


class Orchestrator:
    """Sequences snapshot rotation, planning and dispatch for one share pair."""

    def __init__(
        self,
        config: Config,
        source: Endpoint,
        target: Endpoint,
        dispatcher: JobDispatcher,
        transactions: Optional[TransactionLog] = None,
    ) -> None:
        self.config = config
        self.source = source
        self.target = target
        self.dispatcher = dispatcher
        self.transactions = transactions or TransactionLog(None)
        self.source_snapshots = SnapshotManager(source, config.retention)
        self.target_snapshots = SnapshotManager(target, config.retention)
        self.planner = ReplicationPlanner(config.access, config.sandbox)

    def _rotate(self, manager: SnapshotManager, side: str, run_id: str):
        buffer = self.config.buffer_for(side)
        evicted = manager.enforce_retention(buffer)
        if evicted is not None:
            self.transactions.log(
                "delete",
                "completed",
                run_id=run_id,
                share=manager.endpoint.share.label,
                snapshot=evicted.snapshot_time,
                details={"side": side},
            )
        return evicted

    def _snapshot(self, manager: SnapshotManager, run_id: str) -> Snapshot:
        label = manager.endpoint.share.label
        with self.transactions.context("snapshot", run_id=run_id, share=label) as tx:
            snapshot = manager.create_snapshot()
            tx.set(snapshot=snapshot.snapshot_time)
        return snapshot

    def _dispatch(self, job: ReplicationJob, run_id: str) -> DispatchAck:
        with self.transactions.context(
            "dispatch",
            run_id=run_id,
            job=job.name,
            mode=job.mode.value,
            correlation_id=job.correlation_id,
        ) as tx:
            ack = self.dispatcher.dispatch(job)
            tx.add_detail("resource_group", ack.resource_group)
            tx.add_detail("status", ack.status)
            return ack

    def new_result(self, trigger: Trigger) -> RunResult:
        """Fresh IDLE result with a unique run id for a trigger."""
        return RunResult(
            run_id=trigger.run_id(self.config.sandbox.name_prefix), trigger=trigger
        )

    def run(self, trigger: Trigger, result: Optional[RunResult] = None) -> RunResult:
        """Execute one invocation.

        Pass ``result`` to keep access to the FAILED result when a step raises.

        Raises:
            AbortError: Any step failed; the result is left in FAILED state
        """
        if result is None:
            result = self.new_result(trigger)
        logger.info(
            __util__.log_heading(f"Started at {trigger.scheduled_at.isoformat()}")
        )
        if trigger.past_due:
            logger.warning("Timer is running late!")
        logger.info(
            "Run %s: %s -> %s",
            result.run_id,
            self.source.share.label,
            self.target.share.label,
        )

        try:
            with self.transactions.context("run", run_id=result.run_id) as run_tx:
                result.source_evicted = self._rotate(
                    self.source_snapshots, "source", result.run_id
                )
                result.advance(RunState.SOURCE_ROTATED)

                result.source_snapshot = self._snapshot(
                    self.source_snapshots, result.run_id
                )
                result.advance(RunState.SOURCE_SNAPSHOTTED)

                result.job = self.planner.plan(
                    result.source_snapshot,
                    self.source,
                    self.target,
                    issued_at=trigger.scheduled_at,
                    name=result.run_id,
                )
                result.mode = result.job.mode
                result.advance(RunState.PLANNED)

                result.acknowledgment = self._dispatch(result.job, result.run_id)
                result.advance(RunState.DISPATCHED)

                # The copy is still running here, so this snapshot shows the
                # target as it was before this run's transfer.
                result.target_evicted = self._rotate(
                    self.target_snapshots, "target", result.run_id
                )
                result.advance(RunState.TARGET_ROTATED)

                result.target_snapshot = self._snapshot(
                    self.target_snapshots, result.run_id
                )
                result.advance(RunState.TARGET_SNAPSHOTTED)

                run_tx.set(
                    mode=result.mode.value,
                    job=result.job.name,
                    correlation_id=result.job.correlation_id,
                )
        except Exception as e:
            result.failed_in = result.state
            result.error = e
            result.advance(RunState.FAILED)
            logger.error(
                "Run %s failed after %s: %s", result.run_id, result.failed_in.value, e
            )
            raise

        result.advance(RunState.DONE)
        logger.info(
            __util__.log_heading(f"Finished at {__util__.utc_now().isoformat()}")
        )
        return result

    def preview(self, trigger: Trigger) -> RunPreview:
        """Report what run() would do using read-only calls only.

        Access signatures are not generated; the command shows placeholders.
        """
        source = self.source_snapshots.plan_retention(self.config.retention.source_buffer)
        target = self.target_snapshots.plan_retention(self.config.retention.target_buffer)
        mode = self.planner.select_mode(self.target)
        command = self.planner.build_command(
            mode,
            f"{self.source.share_uri()}?sharesnapshot=<new>&<sas>",
            f"{self.target.share_uri()}?<sas>",
        )
        logger.debug("Preview for trigger at %s", trigger.scheduled_at.isoformat())
        return RunPreview(
            source_count=source.count,
            source_evict=source.evict,
            target_count=target.count,
            target_evict=target.evict,
            mode=mode,
            command=command.argv,
        )
