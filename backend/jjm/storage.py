"""
Queries behind the dashboard API: regions, schemes, geographic filters,
village LPCD data and ESR chlorine / pressure readings.

Every function takes an open DuckDB connection and returns plain dicts.
"""

import logging

from backend.jjm.dashboard_urls import generate_scheme_dashboard_url
from backend.jjm.db_utils import fetch_all, fetch_one
from backend.jjm.metrics import LPCD_NORM, THRESHOLDS
from backend.jjm.schema import (
    DAYS,
    ESR_READING_KINDS,
    LPCD_VALUE_COLUMNS,
    REGION_COUNT_COLUMNS,
    SCHEMA,
    SCHEME_INT_COLUMNS,
    WATER_VALUE_COLUMNS,
)

logger = logging.getLogger(__name__)

IN_PROGRESS_STATUSES = ("Partial", "In Progress")
FULLY_COMPLETED_STATUSES = ("completed", "fully-completed", "fully completed")

SCHEME_KEY_COLUMNS = ("scheme_id", "block")
SCHEME_EDITABLE_COLUMNS = [c for c in SCHEMA["scheme_status"] if c not in ("sr_no", *SCHEME_KEY_COLUMNS)]


def _all_regions(region) -> bool:
    return not region or region == "all"


# -------------------- Regions --------------------
def get_all_regions(conn):
    return fetch_all(conn, "SELECT * FROM region ORDER BY region_name")


def get_region_by_name(conn, region_name):
    return fetch_one(conn, "SELECT * FROM region WHERE region_name = ?", [region_name])


def get_region_summary(conn, region=None):
    """Counts for one region, or the sum over all regions."""
    if not _all_regions(region):
        row = get_region_by_name(conn, region) or {}
        return {c: int(row.get(c) or 0) for c in REGION_COUNT_COLUMNS}

    sums = ", ".join(f"COALESCE(SUM({c}), 0) AS {c}" for c in REGION_COUNT_COLUMNS)
    row = fetch_one(conn, f"SELECT {sums} FROM region")
    return {c: int(row[c]) for c in REGION_COUNT_COLUMNS}


def ensure_region(conn, region_name):
    """Create an empty region row if it does not exist yet."""
    if region_name and not get_region_by_name(conn, region_name):
        conn.execute("INSERT INTO region (region_name) VALUES (?)", [region_name])
        logger.info(f"📍 Created region {region_name}")


def update_region_summaries(conn):
    """Recompute every region row from the scheme_status table."""
    totals = fetch_all(conn, """
        SELECT
            region AS region_name,
            COUNT(*) AS total_schemes_integrated,
            SUM(CASE WHEN fully_completion_scheme_status = 'Fully-Completed' THEN 1 ELSE 0 END)
                AS fully_completed_schemes,
            SUM(COALESCE(total_villages_integrated, 0)) AS total_villages_integrated,
            SUM(COALESCE(fully_completed_villages, 0)) AS fully_completed_villages,
            SUM(COALESCE(total_esr_integrated, 0)) AS total_esr_integrated,
            SUM(COALESCE(no_fully_completed_esr, 0)) AS fully_completed_esr,
            SUM(COALESCE(total_esr_integrated, 0) - COALESCE(no_fully_completed_esr, 0)) AS partial_esr,
            SUM(COALESCE(flow_meters_connected, 0)) AS flow_meter_integrated,
            SUM(COALESCE(residual_chlorine_analyzer_connected, 0)) AS rca_integrated,
            SUM(COALESCE(pressure_transmitter_connected, 0)) AS pressure_transmitter_integrated
        FROM scheme_status
        WHERE region IS NOT NULL AND region <> ''
        GROUP BY region
        ORDER BY region
    """)

    assignments = ", ".join(f"{c} = ?" for c in REGION_COUNT_COLUMNS)
    for row in totals:
        ensure_region(conn, row["region_name"])
        conn.execute(
            f"UPDATE region SET {assignments} WHERE region_name = ?",
            [int(row[c] or 0) for c in REGION_COUNT_COLUMNS] + [row["region_name"]],
        )
        logger.info(f"✅ Updated {row['region_name']} summaries ({row['total_schemes_integrated']} schemes)")

    # Regions whose schemes were all removed
    zeros = ", ".join(f"{c} = 0" for c in REGION_COUNT_COLUMNS)
    conn.execute(f"""
        UPDATE region SET {zeros}
        WHERE region_name NOT IN (SELECT DISTINCT region FROM scheme_status WHERE region IS NOT NULL)
    """)
    return len(totals)


# -------------------- Schemes --------------------
def _status_condition(status):
    if status == "In Progress":
        return "fully_completion_scheme_status IN (?, ?)", list(IN_PROGRESS_STATUSES)
    if status == "Fully Completed":
        return "LOWER(fully_completion_scheme_status) IN (?, ?, ?)", list(FULLY_COMPLETED_STATUSES)
    return "fully_completion_scheme_status = ?", [status]


def get_all_schemes(conn, region=None, status=None, scheme_id=None, block=None):
    conditions, params = [], []
    if not _all_regions(region):
        conditions.append("region = ?")
        params.append(region)
    if status and status != "all":
        condition, values = _status_condition(status)
        conditions.append(condition)
        params.extend(values)
    if scheme_id:
        conditions.append("scheme_id = ?")
        params.append(scheme_id)
    if block:
        conditions.append("block = ?")
        params.append(block)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return fetch_all(conn, f"SELECT * FROM scheme_status {where} ORDER BY region, scheme_name", params)


def get_scheme(conn, scheme_id, block=None):
    if block is not None:
        return fetch_one(
            conn, "SELECT * FROM scheme_status WHERE scheme_id = ? AND block = ?", [scheme_id, block]
        )
    return fetch_one(conn, "SELECT * FROM scheme_status WHERE scheme_id = ? ORDER BY block LIMIT 1", [scheme_id])


def _scheme_values(data):
    values = {}
    for column in SCHEME_EDITABLE_COLUMNS:
        if column not in data:
            continue
        value = data[column]
        if column in SCHEME_INT_COLUMNS:
            value = int(value or 0)
        elif isinstance(value, str):
            value = value.strip()
        values[column] = value
    return values


def create_scheme(conn, data):
    scheme_id = str(data.get("scheme_id") or "").strip()
    block = str(data.get("block") or "").strip()
    if not scheme_id or not data.get("scheme_name"):
        raise ValueError("scheme_id and scheme_name are required")
    if get_scheme(conn, scheme_id, block):
        raise ValueError(f"Scheme {scheme_id} already exists for block '{block}'")

    values = _scheme_values(data)
    values.update({"scheme_id": scheme_id, "block": block})
    values.setdefault("fully_completion_scheme_status", "Not-Connected")
    if not values.get("dashboard_url"):
        values["dashboard_url"] = generate_scheme_dashboard_url(values)

    columns = list(values)
    conn.execute(
        f"INSERT INTO scheme_status ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
        [values[c] for c in columns],
    )
    ensure_region(conn, values.get("region"))
    logger.info(f"➕ Created scheme {scheme_id} ({block or 'no block'})")
    return get_scheme(conn, scheme_id, block)


def update_scheme(conn, scheme_id, data, block=None):
    """Update the non-key columns of a scheme; returns the updated row or None."""
    existing = get_scheme(conn, scheme_id, block)
    if not existing:
        return None

    values = _scheme_values(data)
    if not values:
        return existing

    merged = {**existing, **values}
    if "dashboard_url" not in values:
        values["dashboard_url"] = generate_scheme_dashboard_url(merged)

    assignments = ", ".join(f"{c} = ?" for c in values)
    conn.execute(
        f"UPDATE scheme_status SET {assignments} WHERE scheme_id = ? AND block = ?",
        [*values.values(), scheme_id, existing["block"]],
    )
    logger.info(f"✏️ Updated scheme {scheme_id} ({', '.join(values)})")
    return get_scheme(conn, scheme_id, existing["block"])


def delete_scheme(conn, scheme_id, block=None) -> int:
    if block is not None:
        count = fetch_one(conn, "SELECT COUNT(*) AS n FROM scheme_status WHERE scheme_id = ? AND block = ?",
                          [scheme_id, block])["n"]
        conn.execute("DELETE FROM scheme_status WHERE scheme_id = ? AND block = ?", [scheme_id, block])
    else:
        count = fetch_one(conn, "SELECT COUNT(*) AS n FROM scheme_status WHERE scheme_id = ?", [scheme_id])["n"]
        conn.execute("DELETE FROM scheme_status WHERE scheme_id = ?", [scheme_id])
    logger.info(f"🗑️ Deleted {count} row(s) for scheme {scheme_id}")
    return count


# -------------------- Geography --------------------
GEO_LEVELS = ["region", "circle", "division", "sub_division", "block"]


def get_geo_filters(conn):
    """Nested region -> circle -> division -> sub_division -> blocks tree."""
    rows = fetch_all(conn, f"""
        SELECT DISTINCT {', '.join(GEO_LEVELS)}
        FROM scheme_status
        WHERE region IS NOT NULL AND region <> ''
        ORDER BY {', '.join(GEO_LEVELS)}
    """)

    tree = {}
    for row in rows:
        node = tree
        for level in GEO_LEVELS[:-1]:
            node = node.setdefault(row[level] or "", {})
        blocks = node.setdefault("__blocks__", [])
        if row["block"] and row["block"] not in blocks:
            blocks.append(row["block"])

    def to_list(node, depth):
        if depth == len(GEO_LEVELS) - 1:
            return node.get("__blocks__", [])
        child_key = f"{GEO_LEVELS[depth + 1]}s"
        return [
            {"name": name, child_key: to_list(child, depth + 1)}
            for name, child in node.items()
            if name != "__blocks__"
        ]

    return {"regions": to_list(tree, 0)}


def get_schemes_by_geography(conn, region=None, circle=None, division=None, sub_division=None, block=None):
    filters = {"region": region, "circle": circle, "division": division,
               "sub_division": sub_division, "block": block}
    conditions, params = [], []
    for column, value in filters.items():
        if value and value != "all":
            conditions.append(f"{column} = ?")
            params.append(value)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return fetch_all(conn, f"SELECT * FROM scheme_status {where} ORDER BY region, scheme_name", params)


# -------------------- Villages (LPCD) --------------------
def _any_day(condition):
    return "(" + " OR ".join(condition.format(col=c) for c in LPCD_VALUE_COLUMNS) + ")"


def get_water_scheme_data(conn, region=None, min_lpcd=None, max_lpcd=None, zero_supply_for_week=False):
    conditions, params = [], []
    not_zero_week = "COALESCE(consistent_zero_lpcd_for_a_week, 0) = 0"

    if not _all_regions(region):
        conditions.append("region = ?")
        params.append(region)

    if zero_supply_for_week:
        conditions.append("consistent_zero_lpcd_for_a_week = 1")

    if min_lpcd is not None:
        conditions.append(not_zero_week)
        conditions.append(_any_day("{col} >= ?"))
        params.extend([min_lpcd] * len(LPCD_VALUE_COLUMNS))

    if max_lpcd is not None:
        if max_lpcd <= LPCD_NORM and not zero_supply_for_week:
            conditions.append(not_zero_week)
            conditions.append(_any_day("({col} > 0 AND {col} <= ?)"))
        else:
            conditions.append(_any_day("{col} <= ?"))
        params.extend([max_lpcd] * len(LPCD_VALUE_COLUMNS))

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return fetch_all(conn, f"SELECT * FROM water_scheme_data {where} ORDER BY region, scheme_name", params)


def get_village_lpcd_stats(conn, region=None):
    """Village counts against the 55 LPCD norm, using each village's weekly counters."""
    where, params = ("", []) if _all_regions(region) else ("WHERE region = ?", [region])
    row = fetch_one(conn, f"""
        SELECT
            COUNT(*) AS total_villages,
            COALESCE(SUM(population), 0) AS total_population,
            COALESCE(SUM(CASE WHEN consistent_zero_lpcd_for_a_week = 1 THEN 1 ELSE 0 END), 0)
                AS zero_supply_villages,
            COALESCE(SUM(CASE WHEN COALESCE(consistent_zero_lpcd_for_a_week, 0) = 0
                               AND below_55_lpcd_count > 0 THEN 1 ELSE 0 END), 0) AS villages_below_55,
            COALESCE(SUM(CASE WHEN above_55_lpcd_count > 0 THEN 1 ELSE 0 END), 0) AS villages_above_55,
            COALESCE(SUM(CASE WHEN above_55_lpcd_count = 7 THEN 1 ELSE 0 END), 0)
                AS villages_above_55_all_week
        FROM water_scheme_data
        {where}
    """, params)
    return {k: int(v or 0) for k, v in row.items()}


def _scheme_lpcd_expr(day):
    """Scheme LPCD for one day; day 7 reuses the day-6 water quantity."""
    water = f"total_water_day{min(day, len(WATER_VALUE_COLUMNS))}"
    return (f"CASE WHEN total_population > 0 "
            f"THEN ROUND((COALESCE({water}, 0) * 100000) / total_population, 2) ELSE 0 END")


def get_scheme_lpcd_data(conn, region=None, min_lpcd=None, max_lpcd=None):
    """
    One row per (scheme_id, block) aggregated from the village LPCD table:
    population, water totals, daily scheme LPCD and village counts by their
    day-7 reading. min_lpcd / max_lpcd filter on the day-1 scheme LPCD.
    """
    water_sums = ",\n".join(
        f"SUM({c}) AS {c.replace('water_value', 'total_water')}" for c in WATER_VALUE_COLUMNS
    )
    lpcd_values = ",\n".join(f"{_scheme_lpcd_expr(day)} AS lpcd_value_day{day}" for day in DAYS)
    water_totals = ", ".join(c.replace("water_value", "total_water") for c in WATER_VALUE_COLUMNS)

    conditions, params = [], []
    if not _all_regions(region):
        conditions.append("region = ?")
        params.append(region)
    if min_lpcd is not None:
        conditions.append("lpcd_value_day1 >= ?")
        params.append(min_lpcd)
    if max_lpcd is not None:
        conditions.append("lpcd_value_day1 <= ?")
        params.append(max_lpcd)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    return fetch_all(conn, f"""
        WITH scheme_aggregation AS (
            SELECT
                scheme_id, block,
                MAX(scheme_name) AS scheme_name,
                MAX(region) AS region,
                MAX(circle) AS circle,
                MAX(division) AS division,
                MAX(sub_division) AS sub_division,
                COALESCE(SUM(population), 0) AS total_population,
                COUNT(*) AS total_villages,
                SUM(CASE WHEN lpcd_value_day7 >= {LPCD_NORM} THEN 1 ELSE 0 END) AS villages_above_55,
                SUM(CASE WHEN lpcd_value_day7 > 0 AND lpcd_value_day7 < {LPCD_NORM} THEN 1 ELSE 0 END)
                    AS villages_below_55,
                SUM(CASE WHEN COALESCE(lpcd_value_day7, 0) <= 0 THEN 1 ELSE 0 END) AS villages_zero_supply,
                {water_sums}
            FROM water_scheme_data
            GROUP BY scheme_id, block
        ),
        scheme_lpcd AS (
            SELECT
                a.scheme_id, a.block, a.scheme_name, a.region, a.circle, a.division, a.sub_division,
                a.total_population, a.total_villages,
                a.villages_above_55, a.villages_below_55, a.villages_zero_supply,
                {lpcd_values},
                {water_totals},
                (SELECT MAX(s.dashboard_url) FROM scheme_status s WHERE s.scheme_id = a.scheme_id)
                    AS dashboard_url
            FROM scheme_aggregation a
        )
        SELECT * FROM scheme_lpcd
        {where}
        ORDER BY region, scheme_name
    """, params)


def get_scheme_lpcd_stats(conn, region=None):
    """Schemes bucketed by day-1 LPCD into zero / below 40 / 40-55 / above 55."""
    schemes = get_scheme_lpcd_data(conn, region)

    stats = {"above_55_count": 0, "below_40_count": 0, "between_40_55_count": 0,
             "zero_lpcd_count": 0, "total_schemes": len(schemes)}
    for scheme in schemes:
        lpcd = float(scheme["lpcd_value_day1"] or 0)
        if lpcd == 0:
            stats["zero_lpcd_count"] += 1
        elif lpcd > LPCD_NORM:
            stats["above_55_count"] += 1
        elif lpcd < 40:
            stats["below_40_count"] += 1
        else:
            stats["between_40_55_count"] += 1
    return stats


# -------------------- ESR readings (chlorine / pressure) --------------------
def get_esr_readings(conn, kind, region=None, band=None):
    """ESR rows; `band` filters on the latest reading ('below', 'optimal', 'above')."""
    readings = ESR_READING_KINDS[kind]
    latest = readings["values"][-1]
    low, high = THRESHOLDS[kind]

    conditions, params = [], []
    if not _all_regions(region):
        conditions.append("region = ?")
        params.append(region)
    if band == "below":
        conditions.append(f"{latest} >= 0 AND {latest} < {low}")
    elif band == "optimal":
        conditions.append(f"{latest} >= {low} AND {latest} <= {high}")
    elif band == "above":
        conditions.append(f"{latest} > {high}")
    elif band:
        raise ValueError(f"Unknown {kind} band '{band}'")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return fetch_all(
        conn, f"SELECT * FROM {readings['table']} {where} ORDER BY region, scheme_name, village_name, esr_name", params
    )


def get_esr_dashboard_stats(conn, kind, region=None):
    """Latest-day band counts plus sensors that stayed in one band all week."""
    readings = ESR_READING_KINDS[kind]
    values = readings["values"]
    latest = values[-1]
    low, high = THRESHOLDS[kind]

    def every_day(condition):
        return " AND ".join(condition.format(col=c) for c in values)

    all_zero = every_day("{col} = 0")
    all_below = every_day("{col} > 0 AND {col} < " + str(low))
    all_optimal = every_day("{col} >= " + str(low) + " AND {col} <= " + str(high))
    all_above = every_day("{col} > " + str(high))

    where, params = ("", []) if _all_regions(region) else ("WHERE region = ?", [region])
    row = fetch_one(conn, f"""
        SELECT
            COUNT(*) AS total_sensors,
            SUM(CASE WHEN {latest} >= 0 AND {latest} < {low} THEN 1 ELSE 0 END) AS below_range_sensors,
            SUM(CASE WHEN {latest} >= {low} AND {latest} <= {high} THEN 1 ELSE 0 END) AS optimal_range_sensors,
            SUM(CASE WHEN {latest} > {high} THEN 1 ELSE 0 END) AS above_range_sensors,
            SUM(CASE WHEN {all_zero} THEN 1 ELSE 0 END) AS consistent_zero_sensors,
            SUM(CASE WHEN {all_below} THEN 1 ELSE 0 END) AS consistent_below_range_sensors,
            SUM(CASE WHEN {all_optimal} THEN 1 ELSE 0 END) AS consistent_optimal_sensors,
            SUM(CASE WHEN {all_above} THEN 1 ELSE 0 END) AS consistent_above_range_sensors
        FROM {readings['table']}
        {where}
    """, params)
    return {k: int(v or 0) for k, v in row.items()}


def get_esr_reading(conn, kind, scheme_id, village_name, esr_name):
    """One ESR row by its (scheme_id, village_name, esr_name) key, or None."""
    table = ESR_READING_KINDS[kind]["table"]
    return fetch_one(
        conn,
        f"SELECT * FROM {table} WHERE scheme_id = ? AND village_name = ? AND esr_name = ?",
        [scheme_id, village_name, esr_name],
    )
