"""
Logging configuration for photo tournament.

Sets up loguru sinks for the console and for a log file kept next to the
round log, so several tournaments sharing a results directory also share one
history. Every record carries the tournament id it belongs to ("-" outside a
tournament).
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[tournament_id]}</magenta> | "
    "<cyan>{name}:{function}:{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[tournament_id]} | "
    "{name}:{function}:{line} - {message}"
)

LOG_FILE = "photo_tournament.log"
DEBUG_LOG_FILE = "photo_tournament_debug.log"


def setup_logging(level: str = "INFO", debug: bool = False, log_dir: Path | None = None) -> None:
    """
    Configure loguru logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: If True, log DEBUG everywhere and write an extra debug log file
        log_dir: Directory for the log files (defaults to the working directory)
    """
    logger.remove()
    logger.configure(extra={"tournament_id": "-"})

    log_dir = Path(log_dir) if log_dir is not None else Path.cwd()

    _ = logger.add(sys.stderr, level="DEBUG" if debug else level, format=CONSOLE_FORMAT)

    # Judgments, eliminations and fallbacks across all runs
    _ = logger.add(
        log_dir / LOG_FILE,
        level="INFO",
        format=FILE_FORMAT,
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )

    if debug:
        _ = logger.add(
            log_dir / DEBUG_LOG_FILE,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="50 MB",
            retention="3 days",
            compression="zip",
        )


def get_logger(name: str | None = None, tournament_id: str | None = None) -> Any:
    """
    Get a logger bound to a component name and, optionally, a tournament.

    Args:
        name: Component name (defaults to "photo_tournament")
        tournament_id: Tournament whose records this logger writes
    """
    bound = logger.bind(name=name or "photo_tournament")
    if tournament_id is not None:
        bound = bound.bind(tournament_id=tournament_id)
    return bound
