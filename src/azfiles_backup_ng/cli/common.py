"""Shared CLI utilities and argument parsers."""

import argparse
import logging
from dataclasses import dataclass

from ..__logger__ import create_logger
from ..config import Config, ConfigError, find_config_file, load_config
from ..core import JobDispatcher, Orchestrator
from ..endpoint import create_endpoints
from ..transaction import TransactionLog

logger = logging.getLogger(__name__)

SIDES = ("source", "target")


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_side_arg(parser: argparse.ArgumentParser) -> None:
    """Add --side selecting source, target or both shares."""
    parser.add_argument(
        "--side",
        choices=["source", "target", "both"],
        default="both",
        help="Which share to operate on (default: both)",
    )


def selected_sides(args: argparse.Namespace) -> tuple[str, ...]:
    side = getattr(args, "side", "both") or "both"
    return SIDES if side == "both" else (side,)


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_config_for(args: argparse.Namespace) -> Config | None:
    """Find, load and log warnings for the configuration.

    Sets up logging from the command line and the config's log_file.

    Returns:
        The configuration, or None after printing why it is unavailable
    """
    create_logger(get_log_level(args))

    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: azfiles-backup-ng config init")
            return None

        config, warnings = load_config(config_path)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    level = get_log_level(args)
    if level == "INFO":
        if config.global_config.verbose:
            level = "DEBUG"
        elif config.global_config.quiet:
            level = "WARNING"
    create_logger(level, log_file=config.global_config.log_file)

    logger.info("Loaded configuration from: %s", config_path)
    for warning in warnings:
        logger.warning("Config: %s", warning)
    return config


def get_credential():
    """Credential chain for the management and data planes."""
    from azure.identity import DefaultAzureCredential

    return DefaultAzureCredential()


@dataclass
class Session:
    """Clients built from one configuration."""

    config: Config
    orchestrator: Orchestrator
    transactions: TransactionLog


def open_session(config: Config, credential=None) -> Session:
    """Create endpoints, dispatcher and orchestrator for a configuration."""
    credential = credential or get_credential()
    source, target = create_endpoints(config, credential)
    dispatcher = JobDispatcher.from_credential(
        config.sandbox, credential, config.sandbox_subscription
    )
    transactions = TransactionLog(config.global_config.transaction_log)
    return Session(
        config=config,
        orchestrator=Orchestrator(config, source, target, dispatcher, transactions),
        transactions=transactions,
    )
