import json
import logging

from backend.jjm.db_utils import fetch_all

logger = logging.getLogger(__name__)

ACTIVITY_FIELDS = ("activity_type", "activity_description", "file_name", "file_type", "page_url")


def log_activity(conn, payload: dict) -> bool:
    """Store a user activity record. Failures are logged and reported as False."""
    try:
        values = [payload.get(f) for f in ACTIVITY_FIELDS]
        metadata = payload.get("metadata")
        conn.execute(
            f"INSERT INTO user_activity ({', '.join(ACTIVITY_FIELDS)}, metadata) VALUES (?, ?, ?, ?, ?, ?)",
            [*values, json.dumps(metadata) if metadata is not None else None],
        )
        logger.info(f"📝 Activity logged: {payload.get('activity_type')}")
        return True
    except Exception as e:
        logger.error(f"Failed to log activity: {e}")
        return False


def recent_activity(conn, limit=50):
    rows = fetch_all(conn, "SELECT * FROM user_activity ORDER BY created_at DESC, id DESC LIMIT ?", [limit])
    for row in rows:
        if row.get("metadata"):
            row["metadata"] = json.loads(row["metadata"])
    return rows
