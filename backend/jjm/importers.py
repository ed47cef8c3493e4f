"""
Excel / CSV report import into DuckDB.

- scheme status workbook: one transaction, existing (scheme_id, block) rows
  are skipped (or updated on request), region summaries recomputed afterwards
- LPCD village report: full replacement, insert-or-update per village
- chlorine / pressure ESR reports: insert-or-update per ESR
"""

import logging
from dataclasses import asdict, dataclass, field

from backend.jjm.dashboard_urls import (
    generate_esr_dashboard_url,
    generate_scheme_dashboard_url,
    generate_village_dashboard_url,
)
from backend.jjm.data_loader import (
    canonical_region,
    clean_id,
    clean_text,
    iter_scheme_sheets,
    normalise_scheme_status,
    read_report_records,
    to_date_text,
    to_float,
    to_int,
)
from backend.jjm.database_connection import transaction
from backend.jjm.db_utils import fetch_all
from backend.jjm.metrics import calculate_lpcd_flags, esr_band_counts
from backend.jjm.schema import (
    ESR_KEY_COLUMNS,
    ESR_READING_KINDS,
    HIERARCHY_COLUMNS,
    LPCD_DATE_COLUMNS,
    LPCD_POSITIONAL_COLUMNS,
    LPCD_VALUE_COLUMNS,
    SCHEME_INT_COLUMNS,
    WATER_DATE_COLUMNS,
    WATER_SCHEME_COLUMNS,
    WATER_VALUE_COLUMNS,
)
from backend.jjm.storage import ensure_region, update_region_summaries

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 50


@dataclass
class ImportResult:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    removed: int = 0
    errors: list = field(default_factory=list)

    def add_error(self, message):
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append(message)

    def to_dict(self):
        return asdict(self)


# -------------------- Shared helpers --------------------
def _exists(conn, table, key):
    conditions = " AND ".join(f"{c} = ?" for c in key)
    return conn.execute(
        f"SELECT 1 FROM {table} WHERE {conditions} LIMIT 1", list(key.values())
    ).fetchone() is not None


def _insert(conn, table, values):
    columns = list(values)
    conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
        [values[c] for c in columns],
    )


def _update(conn, table, key, values):
    assignments = {c: v for c, v in values.items() if c not in key}
    conditions = " AND ".join(f"{c} = ?" for c in key)
    conn.execute(
        f"UPDATE {table} SET {', '.join(f'{c} = ?' for c in assignments)} WHERE {conditions}",
        [*assignments.values(), *key.values()],
    )


def _upsert(conn, table, key_columns, values, result):
    key = {c: values[c] for c in key_columns}
    if _exists(conn, table, key):
        _update(conn, table, key, values)
        result.updated += 1
    else:
        _insert(conn, table, values)
        result.inserted += 1


def _hierarchy(record):
    values = {c: clean_text(record.get(c)) for c in HIERARCHY_COLUMNS}
    values["region"] = canonical_region(values["region"])
    return values


# -------------------- Scheme status --------------------
def _scheme_row(record, sheet_region):
    values = {c: clean_text(record.get(c)) for c in ("circle", "division", "sub_division", "agency")}
    values["scheme_id"] = clean_id(record.get("scheme_id"))
    values["scheme_name"] = clean_text(record.get("scheme_name"))
    values["block"] = clean_text(record.get("block")) or ""
    values["region"] = sheet_region or canonical_region(record.get("region"))
    for column in SCHEME_INT_COLUMNS:
        values[column] = to_int(record.get(column))
    values["fully_completion_scheme_status"] = normalise_scheme_status(
        record.get("fully_completion_scheme_status")
    )
    values["scheme_functional_status"] = clean_text(record.get("scheme_functional_status"))
    values["dashboard_url"] = generate_scheme_dashboard_url(values)
    return values


def import_scheme_status(conn, path, update_existing=False) -> ImportResult:
    """
    Import every region sheet of a scheme status workbook.

    Rows whose (scheme_id, block) already exists are skipped unless
    update_existing is set. The whole file is one transaction: any database
    error rolls everything back and is re-raised.
    """
    result = ImportResult()
    seen = set()

    with transaction(conn):
        for sheet in iter_scheme_sheets(path):
            fields = set(sheet.mapping.values())
            if not {"scheme_id", "scheme_name"} <= fields:
                logger.warning(f"Sheet {sheet.sheet_name} has no scheme id / name columns, skipping")
                continue

            for offset, record in enumerate(sheet.records):
                row_number = sheet.header_row + offset + 2
                values = _scheme_row(record, sheet.region)
                if not values["scheme_id"] or not values["scheme_name"]:
                    result.skipped += 1
                    continue
                if not values["region"]:
                    result.skipped += 1
                    result.add_error(f"{sheet.sheet_name} row {row_number}: region could not be determined")
                    continue

                key = (values["scheme_id"], values["block"])
                if key in seen:
                    result.skipped += 1
                    continue
                seen.add(key)

                ensure_region(conn, values["region"])
                if _exists(conn, "scheme_status", {"scheme_id": key[0], "block": key[1]}):
                    if update_existing:
                        _update(conn, "scheme_status", {"scheme_id": key[0], "block": key[1]}, values)
                        result.updated += 1
                    else:
                        result.skipped += 1
                    continue

                _insert(conn, "scheme_status", values)
                result.inserted += 1

        update_region_summaries(conn)

    logger.info(
        f"📥 Scheme import: {result.inserted} inserted, {result.updated} updated, {result.skipped} skipped"
    )
    return result


# -------------------- Village LPCD report --------------------
def _water_row(record):
    values = _hierarchy(record)
    values["scheme_id"] = clean_id(record.get("scheme_id"))
    values["scheme_name"] = clean_text(record.get("scheme_name"))
    values["village_name"] = clean_text(record.get("village_name"))
    values["population"] = to_int(record.get("population"), default=None)
    values["number_of_esr"] = to_int(record.get("number_of_esr"), default=None)
    for column in WATER_VALUE_COLUMNS + LPCD_VALUE_COLUMNS:
        values[column] = to_float(record.get(column))
    for column in WATER_DATE_COLUMNS + LPCD_DATE_COLUMNS:
        values[column] = to_date_text(record.get(column))

    flags = calculate_lpcd_flags(values[c] for c in LPCD_VALUE_COLUMNS)
    (values["consistent_zero_lpcd_for_a_week"],
     values["below_55_lpcd_count"],
     values["above_55_lpcd_count"]) = flags
    values["dashboard_url"] = generate_village_dashboard_url(values)
    return values


def import_water_scheme_data(conn, path) -> ImportResult:
    """
    Replace the village LPCD table with the contents of an .xlsx / .csv report.
    Villages that are not in the file are removed.
    """
    result = ImportResult()
    records = read_report_records(path, WATER_SCHEME_COLUMNS, LPCD_POSITIONAL_COLUMNS)

    rows = {}
    for index, record in enumerate(records, start=1):
        try:
            values = _water_row(record)
        except Exception as e:
            result.add_error(f"Row {index}: {e}")
            continue
        if not values["scheme_id"] or not values["village_name"]:
            result.skipped += 1
            continue
        rows[(values["scheme_id"], values["village_name"])] = values

    with transaction(conn):
        existing = fetch_all(conn, "SELECT scheme_id, village_name FROM water_scheme_data")
        for row in existing:
            if (row["scheme_id"], row["village_name"]) not in rows:
                conn.execute(
                    "DELETE FROM water_scheme_data WHERE scheme_id = ? AND village_name = ?",
                    [row["scheme_id"], row["village_name"]],
                )
                result.removed += 1

        for values in rows.values():
            _upsert(conn, "water_scheme_data", ("scheme_id", "village_name"), values, result)

    logger.info(
        f"📥 LPCD import: {result.inserted} inserted, {result.updated} updated, "
        f"{result.removed} removed, {len(result.errors)} errors"
    )
    return result


# -------------------- ESR chlorine / pressure reports --------------------
def _esr_row(record, kind):
    readings = ESR_READING_KINDS[kind]
    values = _hierarchy(record)
    values["scheme_id"] = clean_id(record.get("scheme_id"))
    values["scheme_name"] = clean_text(record.get("scheme_name"))
    values["village_name"] = clean_text(record.get("village_name"))
    values["esr_name"] = clean_text(record.get("esr_name"))
    for column in readings["values"]:
        values[column] = to_float(record.get(column))
    for column in readings["dates"]:
        values[column] = to_date_text(record.get(column))

    counts = esr_band_counts([values[c] for c in readings["values"]], kind)
    for column, count in zip(readings["bands"], counts):
        values[column] = count
    values["dashboard_url"] = generate_esr_dashboard_url(values)
    return values


def import_esr_readings(conn, path, kind) -> ImportResult:
    """Insert or update ESR readings ('chlorine' or 'pressure') from an .xlsx / .csv report."""
    if kind not in ESR_READING_KINDS:
        raise ValueError(f"Unknown reading kind '{kind}'")
    readings = ESR_READING_KINDS[kind]
    result = ImportResult()

    columns = [*ESR_KEY_COLUMNS, *readings["values"], *readings["dates"], *readings["bands"]]
    records = read_report_records(path, columns, readings["positional"],
                                  required=("scheme_id", "village_name", "esr_name"))

    with transaction(conn):
        for index, record in enumerate(records, start=1):
            try:
                values = _esr_row(record, kind)
            except Exception as e:
                result.add_error(f"Row {index}: {e}")
                continue
            if not values["scheme_id"] or not values["village_name"] or not values["esr_name"]:
                result.skipped += 1
                continue
            _upsert(conn, readings["table"], ("scheme_id", "village_name", "esr_name"), values, result)

    logger.info(f"📥 {kind.title()} import: {result.inserted} inserted, {result.updated} updated")
    return result
