import logging
from pathlib import Path
from contextlib import contextmanager

import duckdb

from backend.jjm import config

logger = logging.getLogger(__name__)


def get_connection():
    """
    Return a DuckDB connection to the dashboard database.
    Use this when you need to keep the connection open for multiple queries.
    """
    db_path = Path(config.DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(db_path))


@contextmanager
def db_connection():
    """
    Context manager for auto-closing DuckDB connections.
    Example:
        with db_connection() as conn:
            rows = conn.execute("SELECT * FROM region").fetchall()
    """
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_db():
    """FastAPI dependency: one connection per request."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn):
    """Run a block inside BEGIN/COMMIT, rolling back on any error."""
    conn.execute("BEGIN TRANSACTION")
    try:
        yield conn
    except Exception:
        logger.error("Transaction failed, rolling back")
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")
