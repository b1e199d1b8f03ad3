"""JSON-lines transaction log.

Every snapshot, eviction and dispatch is appended as one JSON record so
that dispatches can later be matched with what the sandbox reports.
Appends are serialized with a file lock because overlapping invocations
may write to the same log.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

from . import __util__

logger = logging.getLogger(__name__)


class TransactionLog:
    """Append-only record of what an invocation did."""

    def __init__(self, path: Path | str | None) -> None:
        self.path = Path(path) if path else None
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.path is not None

    @property
    def _lock_path(self) -> Path:
        assert self.path is not None
        return self.path.with_name(self.path.name + ".lock")

    def log(
        self,
        action: str,
        status: str,
        run_id: Optional[str] = None,
        share: Optional[str] = None,
        snapshot: Optional[str] = None,
        mode: Optional[str] = None,
        job: Optional[str] = None,
        correlation_id: Optional[str] = None,
        duration_seconds: Optional[float] = None,
        error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Append a record. None values are left out.

        Write errors are logged and otherwise ignored; the audit trail must
        not turn a successful run into a failed one.
        """
        if self.path is None:
            return

        record: dict[str, Any] = {
            "timestamp": __util__.utc_now().isoformat(),
            "pid": os.getpid(),
            "action": action,
            "status": status,
        }
        optional = {
            "run_id": run_id,
            "share": share,
            "snapshot": snapshot,
            "mode": mode,
            "job": job,
            "correlation_id": correlation_id,
            "duration_seconds": (
                round(duration_seconds, 3) if duration_seconds is not None else None
            ),
            "error": error,
            "details": details,
        }
        record.update({k: v for k, v in optional.items() if v is not None})

        try:
            with FileLock(self._lock_path):
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record) + "\n")
        except OSError as e:
            logger.warning("Could not write transaction log %s: %s", self.path, e)

    def context(self, action: str, **fields) -> "TransactionContext":
        return TransactionContext(self, action, **fields)

    def read(
        self,
        limit: Optional[int] = None,
        action_filter: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Read records, newest last, optionally filtered and limited to the last N."""
        if self.path is None or not self.path.exists():
            return []

        records = []
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if action_filter and record.get("action") != action_filter:
                    continue
                if status_filter and record.get("status") != status_filter:
                    continue
                records.append(record)

        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records

    def stats(self) -> dict[str, Any]:
        """Completed/failed counts per action."""
        stats: dict[str, Any] = {
            "total_records": 0,
            "snapshots": {"completed": 0, "failed": 0},
            "deletes": {"completed": 0, "failed": 0},
            "dispatches": {"completed": 0, "failed": 0},
            "runs": {"completed": 0, "failed": 0},
            "last_dispatch": None,
        }
        buckets = {
            "snapshot": "snapshots",
            "delete": "deletes",
            "dispatch": "dispatches",
            "run": "runs",
        }
        for record in self.read():
            stats["total_records"] += 1
            bucket = buckets.get(record.get("action"))
            status = record.get("status")
            if bucket and status in ("completed", "failed"):
                stats[bucket][status] += 1
            if record.get("action") == "dispatch" and status == "completed":
                stats["last_dispatch"] = record
        return stats


class TransactionContext:
    """Logs 'started' on entry and 'completed' or 'failed' on exit."""

    def __init__(self, log: TransactionLog, action: str, **fields) -> None:
        self.log = log
        self.action = action
        self.fields = fields
        self.start_time = 0.0

    def set(self, **fields) -> None:
        """Add fields to the completion record."""
        self.fields.update(fields)

    def add_detail(self, key: str, value: Any) -> None:
        self.fields.setdefault("details", {})[key] = value

    def __enter__(self) -> "TransactionContext":
        self.start_time = time.monotonic()
        self.log.log(self.action, "started", **self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration = time.monotonic() - self.start_time
        if exc_type is not None:
            self.log.log(
                self.action,
                "failed",
                duration_seconds=duration,
                error=str(exc_val),
                **self.fields,
            )
        else:
            self.log.log(
                self.action, "completed", duration_seconds=duration, **self.fields
            )
        return False
