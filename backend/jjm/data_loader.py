#!/usr/bin/env python3
"""
backend/jjm/data_loader.py

Reads the scheme / LPCD / chlorine / pressure reports:
 - loads every sheet of an .xlsx workbook with openpyxl (cached values only)
 - reads .csv reports with pandas, trying several encodings
 - finds the header row of a sheet and maps its columns to table fields
 - coerces cell values (ids, counts, readings, dates, status labels)
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

import openpyxl
import pandas as pd

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}
ENCODINGS = ["utf-8-sig", "latin1", "windows-1252"]
HEADER_SCAN_ROWS = 20


class ImportFileError(ValueError):
    """Raised when a report file cannot be read."""


# -------- Column patterns for the scheme status workbook --------
SCHEME_COLUMN_PATTERNS = {
    "scheme_id": ["Scheme ID", "SchemeId", "Scheme_Id", "Scheme Code", "SchemeID"],
    "scheme_name": ["Scheme Name", "SchemeName", "scheme_name"],
    "region": ["Region", "RegionName", "Region Name"],
    "circle": ["Circle"],
    "division": ["Division"],
    "sub_division": ["Sub Division", "Sub-Division", "SubDivision", "Sub_Division"],
    "block": ["Block", "Taluka"],
    "agency": ["Agency", "Agency Name"],
    "number_of_village": [
        "Number of Village", "No. of Village", "Total Villages", "Number of Villages", "Villages",
    ],
    "total_villages_integrated": ["Total Villages Integrated", "Villages Integrated"],
    "no_of_functional_village": ["No. of Functional Village", "Functional Villages"],
    "no_of_partial_village": ["No. of Partial Village", "Partial Villages", "Partial Village"],
    "no_of_non_functional_village": [
        "No. of Non- Functional Village", "No. of Non-Functional Village",
        "Non-Functional Villages", "Non Functional Villages",
    ],
    "fully_completed_villages": ["Fully completed Villages", "Fully Completed Villages"],
    "total_number_of_esr": ["Total Number of ESR", "Total ESR", "ESR Total"],
    "total_esr_integrated": [
        "Total ESR Integrated", "ESR Integrated", "Total Number of ESR Integrated",
    ],
    "no_fully_completed_esr": [
        "No. Fully Completed ESR", "Fully Completed ESR", "No. of Fully Completed ESR",
        "ESR Fully Completed",
    ],
    "balance_to_complete_esr": ["Balance to Complete ESR", "Balance ESR"],
    "flow_meters_connected": [
        "Flow Meters Connected", "Flow Meters Conneted", "Flow Meter Connected",
        "Flow Meters", "FM Connected",
    ],
    "pressure_transmitter_connected": [
        "Pressure Transmitter Connected", "Pressure Transmitters Connected",
        "Pressure Transmitter Conneted", "PT Connected", "Pressure Transmitters",
    ],
    "residual_chlorine_analyzer_connected": [
        "Residual Chlorine Connected", "Residual Chlorine Analyzer Connected",
        "Residual Chlorine Conneted", "RCA Connected", "Residual Chlorine",
        "Residual Chlorine Analyzers",
    ],
    "fully_completion_scheme_status": [
        "Fully completion Scheme Status", "Scheme Status", "Status",
    ],
    "scheme_functional_status": ["Scheme Functional Status", "Functional Status"],
}

# Header aliases for the village / ESR reports that do not compact to the column name
REPORT_HEADER_ALIASES = {
    "schemecode": "scheme_id",
    "village": "village_name",
    "esr": "esr_name",
    "noofesr": "number_of_esr",
}

REGION_PATTERNS = [
    (re.compile(r"\bamravati\b", re.I), "Amravati"),
    (re.compile(r"\bnashik\b", re.I), "Nashik"),
    (re.compile(r"\bnagpur\b", re.I), "Nagpur"),
    (re.compile(r"\bpune\b", re.I), "Pune"),
    (re.compile(r"\bkonkan\b", re.I), "Konkan"),
    (re.compile(r"\bcs\b", re.I), "Chhatrapati Sambhajinagar"),
    (re.compile(r"\bsambhajinagar\b", re.I), "Chhatrapati Sambhajinagar"),
    (re.compile(r"\bchhatrapati\b", re.I), "Chhatrapati Sambhajinagar"),
]


@dataclass
class SheetRecords:
    sheet_name: str
    region: str | None
    header_row: int
    mapping: dict
    records: list = field(default_factory=list)


# -------- Value coercion --------
def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and not value.strip()


def clean_text(value):
    """Trimmed string, or None for blank cells."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).replace("\ufeff", "").strip()


def clean_id(value):
    """Scheme ids arrive as text or as numbers (20019176.0)."""
    return clean_text(value)


def to_float(value):
    """Numeric reading; strips units and stray characters, 'n/a' or blank gives None."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.lower() in ("n/a", "na", "-", "nan"):
        return None
    text = re.sub(r"[^0-9.\-]", "", text)
    try:
        return float(text)
    except ValueError:
        return None


def to_int(value, default=0):
    number = to_float(value)
    if number is None:
        return default
    return int(round(number))


def to_date_text(value):
    """Dates are stored as text; real dates are rendered dd/mm/yyyy."""
    if is_blank(value):
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime("%d/%m/%Y")
    return str(value).strip()


def normalise_scheme_status(value) -> str:
    status = clean_text(value)
    if not status:
        return "Not-Connected"
    lowered = status.lower()
    if "incomplete" in lowered or "not complete" in lowered:
        return "In Progress"
    if "full" in lowered or "complete" in lowered:
        return "Fully-Completed"
    if "partial" in lowered or "progress" in lowered or "function" in lowered:
        return "In Progress"
    return status


def canonical_region(value):
    """Fold spelling and BOM variants of a region name onto the stored name."""
    text = clean_text(value)
    if not text:
        return None
    for pattern, name in REGION_PATTERNS:
        if pattern.search(text):
            return name
    return text


# -------- Sheet / header detection --------
def detect_region_from_sheet_name(sheet_name: str, allow_unlisted: bool = True):
    """Known region named in a sheet title; with allow_unlisted, any "Region X" title gives X."""
    for pattern, name in REGION_PATTERNS:
        if pattern.search(sheet_name):
            return name

    if allow_unlisted and "Region" in sheet_name:
        region_part = sheet_name.split("Region", 1)[1].strip()
        region_part = re.sub(r"^\s*-\s*", "", region_part).strip()
        if region_part:
            return region_part
    return None


def compact(text) -> str:
    return re.sub(r"[^a-z0-9]", "", str(text).lower())


def _pattern_score(header: str, patterns) -> int:
    """0 = no match, higher is better: exact > case-insensitive > substring (longer wins)."""
    best = 0
    lowered = header.lower()
    for pattern in patterns:
        if header == pattern:
            return 10_000
        if lowered == pattern.lower():
            best = max(best, 5_000)
        elif pattern.lower() in lowered:
            best = max(best, len(pattern))
    return best


def map_headers_to_fields(headers, patterns=SCHEME_COLUMN_PATTERNS) -> dict:
    """Map column index -> field name. Each field is mapped to at most one column."""
    candidates = []
    for index, header in enumerate(headers):
        header = clean_text(header)
        if not header:
            continue
        for field_name, field_patterns in patterns.items():
            score = _pattern_score(header, field_patterns)
            if score:
                candidates.append((score, index, field_name))

    mapping, used_fields = {}, set()
    for score, index, field_name in sorted(candidates, key=lambda c: (-c[0], c[1])):
        if index in mapping or field_name in used_fields:
            continue
        mapping[index] = field_name
        used_fields.add(field_name)
    return mapping


def map_report_headers(headers, columns) -> dict:
    """Map column index -> column name for village / ESR reports by compacted header text."""
    lookup = {compact(c): c for c in columns}
    lookup.update({k: v for k, v in REPORT_HEADER_ALIASES.items() if v in columns})
    mapping = {}
    for index, header in enumerate(headers):
        key = compact(header) if not is_blank(header) else ""
        column = lookup.get(key)
        if column and column not in mapping.values():
            mapping[index] = column
    return mapping


def find_header_row(rows, patterns=SCHEME_COLUMN_PATTERNS, max_scan=HEADER_SCAN_ROWS) -> int:
    """Index of the header row within the first `max_scan` rows."""
    best_index, best_matches, best_filled = 0, 0, 0
    for index, row in enumerate(rows[:max_scan]):
        matches = len(map_headers_to_fields(row, patterns))
        if matches > best_matches:
            best_index, best_matches = index, matches

    if best_matches:
        return best_index

    # Nothing looks like a header: fall back to the fullest row
    for index, row in enumerate(rows[:max_scan]):
        filled = sum(1 for cell in row if not is_blank(cell))
        if filled > best_filled:
            best_index, best_filled = index, filled
    return best_index


def records_from_rows(rows, mapping) -> list:
    """Turn data rows into dicts keyed by field name, skipping empty rows."""
    records = []
    for row in rows:
        if all(is_blank(cell) for cell in row):
            continue
        records.append({
            name: (row[index] if index < len(row) else None)
            for index, name in mapping.items()
        })
    return records


# -------- File readers --------
def _suffix(path) -> str:
    return Path(path).suffix.lower()


def read_workbook_rows(path) -> dict:
    """Sheet name -> list of row tuples (cached cell values)."""
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as e:
        raise ImportFileError(f"Could not open workbook {Path(path).name}: {e}") from e

    try:
        return {ws.title: [tuple(r) for r in ws.iter_rows(values_only=True)] for ws in workbook.worksheets}
    finally:
        workbook.close()


def try_read_csv(path) -> pd.DataFrame:
    """Try multiple encodings until the file reads successfully."""
    for enc in ENCODINGS:
        try:
            df = pd.read_csv(path, encoding=enc, header=None, dtype=str, keep_default_na=False)
            logger.info(f"Read {Path(path).name} with encoding {enc}")
            return df
        except UnicodeDecodeError:
            logger.warning(f"Encoding {enc} failed for {Path(path).name}, trying next...")
        except pd.errors.EmptyDataError:
            return pd.DataFrame()
    raise ImportFileError(f"All encodings failed for {Path(path).name}")


def read_report_rows(path) -> list:
    """Rows of a single-table report: first sheet of a workbook, or a CSV file."""
    suffix = _suffix(path)
    if suffix in EXCEL_EXTENSIONS:
        sheets = read_workbook_rows(path)
        return next(iter(sheets.values()), [])
    if suffix in CSV_EXTENSIONS:
        df = try_read_csv(path)
        return [tuple(None if v == "" else v for v in row) for row in df.itertuples(index=False)]
    raise ImportFileError(f"Unsupported file type '{suffix}'. Upload an .xlsx or .csv file.")


def read_report_records(path, columns, positional_columns, required=("scheme_id", "village_name")) -> list:
    """
    Records of a village / ESR report.
    A header row is used when it names every required column, otherwise the
    columns are taken by position.
    """
    rows = read_report_rows(path)
    if not rows:
        return []

    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        mapping = map_report_headers(row, columns)
        if all(r in mapping.values() for r in required):
            logger.info(f"Using header row {index} ({len(mapping)} mapped columns)")
            return records_from_rows(rows[index + 1:], mapping)

    logger.info("No header row found, mapping report columns by position")
    mapping = dict(enumerate(positional_columns))
    return records_from_rows(rows, mapping)


def iter_scheme_sheets(path):
    """Yield SheetRecords for each sheet of a scheme status workbook."""
    if _suffix(path) not in EXCEL_EXTENSIONS:
        raise ImportFileError(f"Unsupported file type '{_suffix(path)}'. Upload an .xlsx workbook.")

    for sheet_name, rows in read_workbook_rows(path).items():
        region = detect_region_from_sheet_name(sheet_name)
        if not rows:
            logger.warning(f"Sheet {sheet_name} is empty, skipping")
            continue

        header_row = find_header_row(rows)
        mapping = map_headers_to_fields(rows[header_row])
        logger.info(
            f"Sheet {sheet_name}: region={region or 'Unknown'}, header row={header_row}, "
            f"{len(mapping)} mapped columns"
        )
        yield SheetRecords(
            sheet_name=sheet_name,
            region=region,
            header_row=header_row,
            mapping=mapping,
            records=records_from_rows(rows[header_row + 1:], mapping),
        )
