"""List command: Show snapshots."""

import argparse
import json
import logging

from rich.console import Console
from rich.table import Table

from ..__util__ import AbortError
from .common import load_config_for, open_session, selected_sides

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = load_config_for(args)
    if config is None:
        return 1

    listing = {}
    try:
        orchestrator = open_session(config).orchestrator
        for side in selected_sides(args):
            manager = (
                orchestrator.source_snapshots
                if side == "source"
                else orchestrator.target_snapshots
            )
            listing[side] = [
                (snapshot, manager.is_protected(snapshot))
                for snapshot in manager.list_snapshots()
            ]
    except AbortError as e:
        logger.error("Listing failed: %s", e)
        return 1

    if getattr(args, "json", False):
        print(
            json.dumps(
                {
                    side: {
                        "share": config.share_for(side).label,
                        "snapshots": [
                            {
                                "snapshot": snapshot.snapshot_time,
                                "uri": snapshot.uri,
                                "protected": protected,
                                "metadata": snapshot.metadata,
                            }
                            for snapshot, protected in entries
                        ],
                    }
                    for side, entries in listing.items()
                },
                indent=2,
            )
        )
        return 0

    console = Console()
    for side, entries in listing.items():
        table = Table(
            title=f"{side}: {config.share_for(side).label} "
            f"({len(entries)}/{config.retention.ceiling})"
        )
        table.add_column("#", justify="right")
        table.add_column("Snapshot")
        table.add_column("Protected")
        for i, (snapshot, protected) in enumerate(entries, 1):
            table.add_row(str(i), snapshot.snapshot_time, "yes" if protected else "")
        console.print(table)

    return 0
