"""
Daily update feed shown on the dashboard ("12 new villages integrated today").

The totals seen at the previous check are kept in app_state under
daily_updates_<YYYY-MM-DD>; each positive change since then becomes an update
entry, newest first.
"""

import json
import logging
from datetime import date, datetime

from backend.jjm.db_utils import fetch_one

logger = logging.getLogger(__name__)

# update type -> (total column, status label)
TRACKED_TOTALS = {
    "village": ("villages", "integrated"),
    "esr": ("esr", "integrated"),
    "scheme": ("completed_schemes", "completed"),
    "flow_meter": ("flow_meters", "installed"),
    "rca": ("rca", "installed"),
    "pressure_transmitter": ("pressure_transmitters", "installed"),
}


def state_key(day=None) -> str:
    return f"daily_updates_{(day or date.today()).isoformat()}"


def current_totals(conn) -> dict:
    row = fetch_one(conn, """
        SELECT
            COALESCE(SUM(total_villages_integrated), 0) AS villages,
            COALESCE(SUM(total_esr_integrated), 0) AS esr,
            COALESCE(SUM(fully_completed_schemes), 0) AS completed_schemes,
            COALESCE(SUM(flow_meter_integrated), 0) AS flow_meters,
            COALESCE(SUM(rca_integrated), 0) AS rca,
            COALESCE(SUM(pressure_transmitter_integrated), 0) AS pressure_transmitters
        FROM region
    """)
    return {k: int(v) for k, v in row.items()}


def load_state(conn, key):
    row = fetch_one(conn, "SELECT value FROM app_state WHERE key = ?", [key])
    return json.loads(row["value"]) if row else None


def save_state(conn, key, value):
    payload = json.dumps(value)
    if fetch_one(conn, "SELECT key FROM app_state WHERE key = ?", [key]):
        conn.execute(
            "UPDATE app_state SET value = ?, updated_at = current_timestamp WHERE key = ?", [payload, key]
        )
    else:
        conn.execute("INSERT INTO app_state (key, value) VALUES (?, ?)", [key, payload])


def get_today_updates(conn, today=None) -> dict:
    """Return today's updates, adding entries for totals that grew since the last call."""
    today = today or date.today()
    key = state_key(today)
    totals = current_totals(conn)

    state = load_state(conn, key)
    if state is None:
        # First call of the day: the current totals become the baseline
        state = {"updates": [], "prevTotals": totals, "lastUpdateDay": today.isoformat()}
        save_state(conn, key, state)
        logger.info(f"📅 Started daily update tracking for {today.isoformat()}")
        return state

    previous = state.get("prevTotals", {})
    timestamp = datetime.now().isoformat()
    new_updates = []
    for update_type, (total_key, status) in TRACKED_TOTALS.items():
        delta = totals[total_key] - int(previous.get(total_key, 0))
        if delta > 0:
            new_updates.append({
                "type": update_type,
                "count": delta,
                "status": status,
                "timestamp": timestamp,
                "region": "All Regions",
            })

    if new_updates or previous != totals:
        state["updates"] = new_updates + state.get("updates", [])
        state["prevTotals"] = totals
        state["lastUpdateDay"] = today.isoformat()
        save_state(conn, key, state)
        logger.info(f"📅 Recorded {len(new_updates)} new daily updates")

    return state
