"""Snapshot command: Rotate and create snapshots only."""

import argparse
import logging

from ..__util__ import AbortError
from .common import load_config_for, open_session, selected_sides

logger = logging.getLogger(__name__)


def execute_snapshot(args: argparse.Namespace) -> int:
    """Execute the snapshot command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = load_config_for(args)
    if config is None:
        return 1

    dry_run = getattr(args, "dry_run", False)

    try:
        orchestrator = open_session(config).orchestrator
        for side in selected_sides(args):
            manager = (
                orchestrator.source_snapshots
                if side == "source"
                else orchestrator.target_snapshots
            )
            buffer = config.buffer_for(side)
            if dry_run:
                decision = manager.plan_retention(buffer)
                logger.info(
                    "%s: %d snapshot(s), would evict %s and create one",
                    side,
                    decision.count,
                    decision.evict.get_name() if decision.evict else "nothing",
                )
                continue
            manager.enforce_retention(buffer)
            manager.create_snapshot()
    except AbortError as e:
        logger.error("Snapshot failed: %s", e)
        return 1

    return 0
