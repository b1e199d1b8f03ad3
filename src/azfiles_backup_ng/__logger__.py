# pyright: standard

"""azfiles-backup-ng: azfiles_backup_ng/__logger__.py
A common rich logger shared by the CLI and the orchestrator.
"""

import logging
import logging.handlers

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
# Create a logger directly
logger = logging.Logger("azfiles-backup-ng", logging.INFO)


def create_logger(level="INFO", log_file=None) -> None:
    """Helper function to setup logging for a command invocation.

    Args:
        level: Log level name or number
        log_file: Optional path of a rotating plain-text log file
    """
    # pylint: disable=global-statement
    global cons, rich_handler, logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    cons = Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False)

    handlers: list[logging.Handler] = [rich_handler]
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)
    for handler in handlers:
        logger.addHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=handlers,
        force=True,
    )

    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(max(level, logging.WARNING))
