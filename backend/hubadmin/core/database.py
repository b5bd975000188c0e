"""
PostgreSQL connections for the Hub Admin backend

All repositories go through this module. Connections are plain psycopg2
connections; the *_dict variants use RealDictCursor so rows come back as
dictionaries ready to feed into the pydantic domain models.

Author: Hub Admin team
Updated: 2025-11-03
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor

from .config import settings

logger = logging.getLogger(__name__)

# Seconds psycopg2 waits for the server before giving up on a connect
CONNECTION_TIMEOUT = 10


def _database_url() -> str:
    database_url = settings.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not configured")
    return database_url


def get_db_connection_dict():
    """
    Get a database connection with RealDictCursor (returns dictionaries)

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM orders")
        results = cursor.fetchall()  # Returns list of dicts
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(
        _database_url(),
        cursor_factory=RealDictCursor,
        connect_timeout=CONNECTION_TIMEOUT
    )


def get_db_connection_with_retry(max_retries=None, retry_delay=1.0):
    """
    Get a psycopg2 connection with automatic retry on connection failures

    Retries with exponential backoff (retry_delay, 2x, 4x, ...). Errors other
    than OperationalError are raised immediately.

    Args:
        max_retries: Maximum number of connection attempts (default: DB_CONNECT_RETRIES)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = _database_url()
    max_retries = max_retries or settings.DB_CONNECT_RETRIES
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(
                database_url,
                connect_timeout=CONNECTION_TIMEOUT
            )

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)

    logger.error(f"All {max_retries} connection attempts failed")
    raise last_error


def like_pattern(text: str) -> str:
    """Substring pattern for ILIKE with %, _ and backslash matched literally"""
    escaped = (text or "").replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
