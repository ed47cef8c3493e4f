"""
Maintenance commands for the JJM dashboard database.

    python -m etl.jjm_etl import-schemes reports/scheme_status.xlsx
    python -m etl.jjm_etl import-lpcd reports/lpcd.csv
    python -m etl.jjm_etl fix-urls --region Pune
"""

import argparse
import logging
import sys
from pathlib import Path

from backend.jjm import config
from backend.jjm.cleanup import cleanup_water_scheme_data
from backend.jjm.dashboard_urls import (
    populate_missing_dashboard_urls,
    regenerate_dashboard_urls,
    verify_dashboard_urls,
)
from backend.jjm.database_connection import db_connection
from backend.jjm.db_utils import initialize_database
from backend.jjm.importers import import_esr_readings, import_scheme_status, import_water_scheme_data
from backend.jjm.storage import update_region_summaries
from backend.jjm.validation import validate_scheme_workbook

# --- Setup ---
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("jjm_etl")


def _existing_file(value):
    path = Path(value)
    if not path.exists():
        raise argparse.ArgumentTypeError(f"{value} not found")
    return path


def _log_result(label, result):
    logger.info(
        f"{label}: inserted={result.inserted} updated={result.updated} skipped={result.skipped} "
        f"removed={result.removed} errors={len(result.errors)}"
    )
    for error in result.errors:
        logger.warning(f"  {error}")


# --- Commands ---
def cmd_init_db(conn, args):
    initialize_database(conn)


def cmd_import_schemes(conn, args):
    _log_result("Scheme status", import_scheme_status(conn, args.file, update_existing=args.update))
    populate_missing_dashboard_urls(conn)


def cmd_import_lpcd(conn, args):
    _log_result("LPCD", import_water_scheme_data(conn, args.file))


def cmd_import_chlorine(conn, args):
    _log_result("Chlorine", import_esr_readings(conn, args.file, "chlorine"))


def cmd_import_pressure(conn, args):
    _log_result("Pressure", import_esr_readings(conn, args.file, "pressure"))


def cmd_validate(conn, args):
    result = validate_scheme_workbook(args.file)
    logger.info(result.message)
    return 0 if result.is_valid else 1


def cmd_update_summaries(conn, args):
    logger.info(f"Updated {update_region_summaries(conn)} regions")


def cmd_fix_urls(conn, args):
    populate_missing_dashboard_urls(conn)
    regenerate_dashboard_urls(conn, args.region)


def cmd_verify_urls(conn, args):
    mismatches = verify_dashboard_urls(conn)
    for mismatch in mismatches[: args.show]:
        logger.warning(f"{mismatch.table} {mismatch.key}: stored={mismatch.stored_url!r}")
    return 1 if mismatches else 0


def cmd_cleanup(conn, args):
    cleanup_water_scheme_data(conn)


def build_parser():
    parser = argparse.ArgumentParser(description="JJM dashboard database maintenance")
    parser.add_argument("--db", help=f"DuckDB file (default: {config.DB_PATH})")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create missing tables").set_defaults(func=cmd_init_db)

    p = sub.add_parser("import-schemes", help="Import a scheme status workbook")
    p.add_argument("file", type=_existing_file)
    p.add_argument("--update", action="store_true", help="Update schemes that already exist")
    p.set_defaults(func=cmd_import_schemes)

    for name, func, help_text in (
        ("import-lpcd", cmd_import_lpcd, "Replace village LPCD data from an .xlsx / .csv report"),
        ("import-chlorine", cmd_import_chlorine, "Import ESR chlorine readings"),
        ("import-pressure", cmd_import_pressure, "Import ESR pressure readings"),
        ("validate", cmd_validate, "Check a scheme status workbook without importing it"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("file", type=_existing_file)
        p.set_defaults(func=func)

    sub.add_parser("update-summaries", help="Recompute region totals").set_defaults(func=cmd_update_summaries)

    p = sub.add_parser("fix-urls", help="Fill and regenerate dashboard URLs")
    p.add_argument("--region", help="Only regenerate this region")
    p.set_defaults(func=cmd_fix_urls)

    p = sub.add_parser("verify-urls", help="Report stored URLs that differ from generated ones")
    p.add_argument("--show", type=int, default=20, help="Number of mismatches to print")
    p.set_defaults(func=cmd_verify_urls)

    sub.add_parser("cleanup", help="Trim names and fix region spellings").set_defaults(func=cmd_cleanup)
    return parser


# --- Main ---
def main(argv=None):
    args = build_parser().parse_args(argv)
    if args.db:
        config.DB_PATH = args.db

    with db_connection() as conn:
        initialize_database(conn)
        status = args.func(conn, args)

    logger.info(f"{args.command} complete ({config.DB_PATH})")
    return status or 0


if __name__ == "__main__":
    sys.exit(main())
