"""
PI Vision dashboard URL generation for schemes, villages and ESRs.

Every dashboard is addressed by the asset path of the scheme inside the
PI AF hierarchy, e.g.

    \\\\DemoAF\\JJM\\JJM\\Maharashtra\\Region-Nashik\\Circle-...\\Scheme-<id> - <name>

percent-encoded the same way a browser's ``encodeURIComponent`` does and
appended to the display URL (``rootpath`` for schemes and villages,
``asset`` for ESRs).
"""

import logging
import time
from dataclasses import dataclass
from urllib.parse import quote

from backend.jjm import config
from backend.jjm.db_utils import fetch_all

logger = logging.getLogger(__name__)

SCHEME_DISPLAY = "10108/CEREBULB_JJM_MAHARASHTRA_SCHEME_LEVEL_DASHBOARD"
VILLAGE_DISPLAY = "10109/CEREBULB_JJM_MAHARASHTRA_VILLAGE_LEVEL_DASHBOARD"
ESR_DISPLAY = "10086/CEREBULB_JJM_MAHARASHTRA_ESR_LEVEL_DASHBOARD"

ROOTPATH_PARAMS = "hidetoolbar=true&hidesidebar=true&mode=kiosk"
ASSET_PARAMS = "mode=kiosk&hidetoolbar&hidesidebar"

AF_ROOT = "\\\\DemoAF\\JJM\\JJM\\Maharashtra"

# Region names that differ between the database and the AF hierarchy
REGION_DISPLAY_NAMES = {"Amravati": "Amaravati"}

# Bargaonpimpri (Nashik) is stored in AF with doubled separators and a
# non-breaking space before "Tal Sinnar".
BARGAONPIMPRI_SCHEME_ID = "20019176"
BARGAONPIMPRI_PATH = (
    "\\\\DemoAF\\\\JJM\\\\JJM\\\\Maharashtra\\\\Region-Nashik\\\\Circle-Nashik"
    "\\\\Division-Nashik\\\\Sub Division-Sinnar\\\\Block-Sinnar"
    "\\\\Scheme-20019176 - Retro. Bargaonpimpri & 6 VRWSS\u00a0 Tal Sinnar"
)

HIERARCHY_FIELDS = ("region", "circle", "division", "sub_division", "block", "scheme_id", "scheme_name")

URL_TABLES = {
    "scheme_status": ("scheme", ["scheme_id", "block"]),
    "water_scheme_data": ("village", ["scheme_id", "village_name"]),
    "chlorine_data": ("esr", ["scheme_id", "village_name", "esr_name"]),
    "pressure_data": ("esr", ["scheme_id", "village_name", "esr_name"]),
}


@dataclass
class UrlMismatch:
    table: str
    key: dict
    stored_url: str | None
    expected_url: str | None


def encode_uri_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe="!*'()~")


def _display_url(display: str) -> str:
    return f"{config.PI_VISION_BASE_URL.rstrip('/')}/#/Displays/{display}"


def _is_bargaonpimpri(record) -> bool:
    return (
        str(record.get("scheme_id") or "") == BARGAONPIMPRI_SCHEME_ID
        and "Bargaonpimpri" in (record.get("scheme_name") or "")
    )


def build_scheme_path(record) -> str:
    """AF path of a scheme; placeholders stand in for missing hierarchy."""
    if _is_bargaonpimpri(record):
        return BARGAONPIMPRI_PATH

    region = record.get("region") or "Unknown Region"
    circle = record.get("circle") or "Unknown Circle"
    division = record.get("division") or "Unknown Division"
    sub_division = record.get("sub_division") or "Unknown Sub Division"
    block = record.get("block") or "Unknown Block"
    scheme_id = record.get("scheme_id") or f"Unknown-{int(time.time() * 1000)}"
    scheme_name = record.get("scheme_name") or f"Unknown Scheme {scheme_id}"

    region_display = REGION_DISPLAY_NAMES.get(region, region)
    # Pune schemes are registered without spaces around the hyphen
    separator = "-" if region == "Pune" else " - "

    return (
        f"{AF_ROOT}\\Region-{region_display}\\Circle-{circle}\\Division-{division}"
        f"\\Sub Division-{sub_division}\\Block-{block}\\Scheme-{scheme_id}{separator}{scheme_name}"
    )


def _child_path(record, *children) -> str:
    # The special-case scheme path keeps doubled separators all the way down
    joiner = "\\\\" if _is_bargaonpimpri(record) else "\\"
    return joiner.join([build_scheme_path(record), *children])


def _missing_fields(record, fields):
    return [f for f in fields if not record.get(f)]


def generate_scheme_dashboard_url(scheme):
    path = build_scheme_path(scheme)
    return f"{_display_url(SCHEME_DISPLAY)}?{ROOTPATH_PARAMS}&rootpath={encode_uri_component(path)}"


def generate_village_dashboard_url(village):
    missing = _missing_fields(village, HIERARCHY_FIELDS + ("village_name",))
    if missing:
        logger.warning(
            f"Cannot generate URL for village {village.get('village_name')} - missing {', '.join(missing)}"
        )
        return None

    path = _child_path(village, village["village_name"])
    return f"{_display_url(VILLAGE_DISPLAY)}?{ROOTPATH_PARAMS}&rootpath={encode_uri_component(path)}"


def generate_esr_dashboard_url(esr):
    missing = _missing_fields(esr, HIERARCHY_FIELDS + ("village_name", "esr_name"))
    if missing:
        logger.warning(
            f"Cannot generate URL for ESR {esr.get('esr_name')} in village {esr.get('village_name')}"
            f" - missing {', '.join(missing)}"
        )
        return None

    path = _child_path(esr, esr["village_name"], esr["esr_name"])
    return f"{_display_url(ESR_DISPLAY)}?{ASSET_PARAMS}&asset={encode_uri_component(path)}"


GENERATORS = {
    "scheme": generate_scheme_dashboard_url,
    "village": generate_village_dashboard_url,
    "esr": generate_esr_dashboard_url,
}


# -------------------- Reconciliation --------------------
def _select_rows(conn, table, key_columns, where="", params=None):
    columns = sorted(set(HIERARCHY_FIELDS) | set(key_columns) | {"dashboard_url"})
    return fetch_all(conn, f"SELECT {', '.join(columns)} FROM {table} {where}", params)


def _write_url(conn, table, key_columns, row, url):
    conditions = " AND ".join(f"{c} = ?" for c in key_columns)
    conn.execute(
        f"UPDATE {table} SET dashboard_url = ? WHERE {conditions}",
        [url, *[row[c] for c in key_columns]],
    )


def populate_missing_dashboard_urls(conn) -> dict:
    """Fill empty dashboard_url values in every table. Returns updated counts per table."""
    updated = {}
    for table, (level, key_columns) in URL_TABLES.items():
        rows = _select_rows(conn, table, key_columns, "WHERE dashboard_url IS NULL OR dashboard_url = ''")
        count = 0
        for row in rows:
            url = GENERATORS[level](row)
            if url:
                _write_url(conn, table, key_columns, row, url)
                count += 1
        updated[table] = count
        if rows:
            logger.info(f"🔗 {table}: generated {count} of {len(rows)} missing dashboard URLs")
    return updated


def regenerate_dashboard_urls(conn, region=None) -> int:
    """Recompute scheme and village URLs and rewrite the ones that changed."""
    where, params = "", None
    if region and region != "all":
        where, params = "WHERE region = ?", [region]

    changed = 0
    for table in ("scheme_status", "water_scheme_data"):
        level, key_columns = URL_TABLES[table]
        for row in _select_rows(conn, table, key_columns, where, params):
            url = GENERATORS[level](row)
            if url and url != row.get("dashboard_url"):
                _write_url(conn, table, key_columns, row, url)
                changed += 1

    logger.info(f"🔗 Regenerated {changed} dashboard URLs (region={region or 'all'})")
    return changed


def verify_dashboard_urls(conn, tables=None) -> list:
    """List rows whose stored URL is missing or differs from the generated one."""
    mismatches = []
    for table in tables or URL_TABLES:
        level, key_columns = URL_TABLES[table]
        for row in _select_rows(conn, table, key_columns):
            if level == "scheme" and not row.get("scheme_id"):
                continue
            expected = GENERATORS[level](row)
            if expected != row.get("dashboard_url"):
                mismatches.append(UrlMismatch(
                    table=table,
                    key={c: row[c] for c in key_columns},
                    stored_url=row.get("dashboard_url"),
                    expected_url=expected,
                ))
    logger.info(f"🔎 URL verification found {len(mismatches)} mismatches")
    return mismatches
