"""
db/health.py
------------
Connectivity check for the configured database.
Run this module directly to verify the settings in .env:
    python -m db.health
"""

import sys

from db.connection import ConnectionSource
from db.errors import DataAccessError
from db.executor import QueryExecutor
from db.mappers import fetch_scalar
from utils.logger import get_logger

logger = get_logger(__name__)


def health_check(executor: QueryExecutor) -> bool:
    """
    Run ``SELECT 1`` through the executor.

    Returns:
        True if the database answered, False on any data-access failure.
    """
    try:
        return executor.query("SELECT 1", None, fetch_scalar) == 1
    except DataAccessError as e:
        logger.warning(f"Health check failed: {e}")
        return False


def main() -> int:
    from config import DATABASE_URL, DB_PASS, DB_USER

    source = ConnectionSource()
    try:
        source.initialize(DATABASE_URL, DB_USER, DB_PASS)
    except DataAccessError:
        return 1
    try:
        with QueryExecutor(source, max_workers=1) as executor:
            healthy = health_check(executor)
    finally:
        source.shutdown()
    if healthy:
        logger.info(f"Database at {DATABASE_URL} is reachable.")
        return 0
    logger.error(f"Database at {DATABASE_URL} did not answer.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
