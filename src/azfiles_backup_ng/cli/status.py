"""Status command: Show snapshot headroom and recent runs."""

import argparse
import logging

from ..__util__ import AbortError
from .common import SIDES, load_config_for, open_session

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Shows snapshot counts against the ceiling, the next eviction candidate
    on each side and, on request, the recent transaction history.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = load_config_for(args)
    if config is None:
        return 1

    session = open_session(config)
    orchestrator = session.orchestrator

    print("azfiles-backup-ng Status")
    print("=" * 60)
    print(f"Ceiling: {config.retention.ceiling} snapshots per share")
    print(f"Sandbox: {config.sandbox.resource_group} ({config.sandbox.region})")
    print("")

    all_healthy = True

    for side in SIDES:
        manager = (
            orchestrator.source_snapshots
            if side == "source"
            else orchestrator.target_snapshots
        )
        buffer = config.buffer_for(side)
        print(f"{side.capitalize()}: {config.share_for(side).label}")
        try:
            snapshots = manager.list_snapshots()
            candidates = manager.eviction_candidates(snapshots)
            protected = len(snapshots) - len(candidates)
            print(
                f"  Snapshots: {len(snapshots)} ({protected} protected), "
                f"buffer {buffer}"
            )
            if snapshots:
                print(f"  Latest: {snapshots[-1].snapshot_time}")
            if candidates:
                print(f"  Next eviction: {candidates[0].snapshot_time}")
            elif len(snapshots) + buffer >= config.retention.ceiling:
                print("  Next eviction: none possible, next run will fail")
                all_healthy = False
        except AbortError as e:
            print(f"  Status: error: {e}")
            all_healthy = False
        print("")

    if session.transactions.enabled:
        stats = session.transactions.stats()
        print(
            f"Runs: {stats['runs']['completed']} completed, "
            f"{stats['runs']['failed']} failed"
        )
        last = stats["last_dispatch"]
        if last:
            print(
                f"Last dispatch: {last.get('job')} at {last.get('timestamp')} "
                f"({last.get('mode')}, correlation id {last.get('correlation_id')})"
            )
        if getattr(args, "transactions", False):
            print("")
            print("Recent transactions:")
            for record in session.transactions.read(limit=getattr(args, "limit", 10)):
                line = f"  {record.get('timestamp')} {record.get('action')} {record.get('status')}"
                if record.get("error"):
                    line += f" ({record['error']})"
                print(line)
        print("")

    print("=" * 60)
    if all_healthy:
        print("Overall: All systems operational")
    else:
        print("Overall: Some issues detected")

    return 0 if all_healthy else 1
