"""Logging configuration for devbrain."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

# Every module logs under this namespace via logging.getLogger(__name__)
LOGGER_NAME = "devbrain"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(verbose: int = 0, log_file: Path | None = None) -> None:
    """Configure logging based on verbosity level and optional file output.

    Without either option no handler is installed, so only warnings reach
    stderr through logging's last-resort handler. Calling it again replaces
    the handlers of the previous call.

    Args:
        verbose: Verbosity level (0=off, 1=INFO, 2+=DEBUG)
        log_file: Optional path to write logs to file
    """
    if verbose == 0 and log_file is None:
        # No logging requested
        return

    # File logging without verbosity still records INFO
    level = logging.DEBUG if verbose >= 2 else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    if verbose > 0:
        logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level))

    if log_file is not None:
        # Ensure parent directory exists
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file), level))

    # Log startup delimiter with timestamp
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    logger.info("=" * 60)
    logger.info(
        "%s starting | %s | level=%s", LOGGER_NAME, timestamp, logging.getLevelName(level)
    )
    logger.info("=" * 60)
