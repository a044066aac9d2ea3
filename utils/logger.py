"""
utils/logger.py
---------------
Logging for the data-access layer.

Pool lifecycle, failed statements and undeliverable async outcomes are
logged from both the caller's thread and the background query workers
("db-worker_N"), so every record is tagged with its thread name.
Modules obtain loggers with `get_logger(__name__)`.
"""

import logging
import sys

from config import LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_initialized = False


def _init_logging() -> None:
    """
    Route every db.* and utils.* record to stdout.

    Runs once per process; the level comes from LOG_LEVEL in .env and
    falls back to INFO when the name is not a logging level.
    """
    global _initialized
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root = logging.getLogger()
    level = logging.getLevelName(LOG_LEVEL)
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    root.addHandler(handler)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A configured logging.Logger.
    """
    _init_logging()
    return logging.getLogger(name)
