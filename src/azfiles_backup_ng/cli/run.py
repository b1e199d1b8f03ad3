"""Run command: Execute one backup invocation."""

import argparse
import logging

from ..__util__ import AbortError
from ..core import RunPreview, Trigger
from .common import load_config_for, open_session

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    config = load_config_for(args)
    if config is None:
        return 1

    trigger = Trigger.now(past_due=getattr(args, "past_due", False))

    try:
        session = open_session(config)
        if getattr(args, "dry_run", False):
            _print_preview(session.orchestrator.preview(trigger))
            return 0

        result = session.orchestrator.run(trigger)
    except AbortError as e:
        logger.error("Backup run failed: %s", e)
        return 1

    logger.info(
        "Run %s done: %s copy dispatched as %s (correlation id %s)",
        result.run_id,
        result.mode.value if result.mode else "?",
        result.acknowledgment.name if result.acknowledgment else "?",
        result.acknowledgment.correlation_id if result.acknowledgment else "?",
    )
    return 0


def _print_preview(preview: RunPreview) -> None:
    """Show what would be done without making changes."""
    print("Dry run mode - showing what would be done:")
    print("")
    for side, count, evict in (
        ("Source", preview.source_count, preview.source_evict),
        ("Target", preview.target_count, preview.target_evict),
    ):
        print(f"{side}: {count} snapshot(s)")
        if evict is not None:
            print(f"  Would evict: {evict.get_name()}")
        print("  Would create one snapshot")
    print("")
    print(f"Mode: {preview.mode.value}")
    print(f"Command: {' '.join(preview.command)}")
