import logging

logger = logging.getLogger(__name__)

AMRAVATI = "Amravati"

# (table, column, SET expression, WHERE condition)
CLEANUP_RULES = [
    ("water_scheme_data", "region", "TRIM(region)", "region <> TRIM(region)"),
    ("water_scheme_data", "region", f"'{AMRAVATI}'", f"region LIKE '%{AMRAVATI}%' AND region <> '{AMRAVATI}'"),
    ("water_scheme_data", "scheme_name", "TRIM(scheme_name)", "scheme_name <> TRIM(scheme_name)"),
    ("scheme_status", "region", "TRIM(region)", "region <> TRIM(region)"),
    ("scheme_status", "region", f"'{AMRAVATI}'", f"region LIKE '%{AMRAVATI}%' AND region <> '{AMRAVATI}'"),
    ("scheme_status", "scheme_name", "TRIM(scheme_name)", "scheme_name <> TRIM(scheme_name)"),
]


def cleanup_water_scheme_data(conn) -> dict:
    """
    Trim names and fold Amravati variants (BOM / stray whitespace) onto one
    spelling. Key columns are trimmed on import, so only non-key text is touched.
    """
    counts = {}
    for table, column, expression, condition in CLEANUP_RULES:
        fixed = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE {condition}").fetchone()[0]
        if fixed:
            conn.execute(f"UPDATE {table} SET {column} = {expression} WHERE {condition}")
        name = f"{table}.{column}"
        counts[name] = counts.get(name, 0) + fixed

    total = sum(counts.values())
    if total:
        logger.info(f"🧹 Cleaned {total} values: {counts}")
    else:
        logger.info("🧹 Water scheme data already clean")
    return counts
