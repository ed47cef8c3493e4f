import logging

from backend.jjm.database_connection import get_connection
from backend.jjm.schema import DDL

logger = logging.getLogger(__name__)


def rows_as_dicts(result):
    """Turn a DuckDB result into a list of dicts keyed by column name."""
    columns = [desc[0] for desc in result.description]
    return [dict(zip(columns, row)) for row in result.fetchall()]


def fetch_all(conn, query: str, params=None):
    return rows_as_dicts(conn.execute(query, params or []))


def fetch_one(conn, query: str, params=None):
    rows = fetch_all(conn, query, params)
    return rows[0] if rows else None


# ============================================================
# 🔹 Database Initialization (creates tables if missing)
# ============================================================
def initialize_database(conn=None):
    """Create every dashboard table that does not exist yet."""
    own_conn = conn is None
    if own_conn:
        conn = get_connection()
    try:
        for statement in DDL:
            conn.execute(statement)

        tables = conn.execute("SHOW TABLES").fetchall()
        if tables:
            logger.info("📊 Available tables: " + ", ".join([t[0] for t in tables]))
        else:
            logger.warning("⚠️ No tables found in DuckDB!")
    finally:
        if own_conn:
            conn.close()
