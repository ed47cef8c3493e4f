from datetime import date

from backend.jjm import config
from backend.jjm.activity import log_activity, recent_activity
from backend.jjm.cleanup import cleanup_water_scheme_data
from backend.jjm.daily_updates import get_today_updates, state_key
from backend.jjm.database_connection import db_connection
from backend.jjm.db_utils import fetch_all, fetch_one
from backend.jjm.importers import import_scheme_status
from backend.jjm.storage import delete_scheme, get_region_by_name, update_region_summaries
from backend.jjm.validation import validate_scheme_workbook

from etl.jjm_etl import main as etl_main
from tests.conftest import write_csv

DAY = date(2025, 4, 7)


class TestDailyUpdates:
    def test_first_call_sets_baseline(self, conn):
        state = get_today_updates(conn, today=DAY)
        assert state["updates"] == []
        assert state["prevTotals"]["villages"] == 0
        assert state_key(DAY) == "daily_updates_2025-04-07"

    def test_growth_becomes_updates(self, conn, scheme_workbook):
        get_today_updates(conn, today=DAY)
        import_scheme_status(conn, scheme_workbook)

        state = get_today_updates(conn, today=DAY)
        counts = {u["type"]: u["count"] for u in state["updates"]}
        assert counts == {
            "village": 18,
            "esr": 12,
            "scheme": 1,
            "flow_meter": 8,
            "rca": 5,
            "pressure_transmitter": 4,
        }
        assert {u["region"] for u in state["updates"]} == {"All Regions"}

        again = get_today_updates(conn, today=DAY)
        assert len(again["updates"]) == 6

    def test_new_day_starts_fresh(self, conn, scheme_workbook):
        import_scheme_status(conn, scheme_workbook)
        get_today_updates(conn, today=DAY)
        state = get_today_updates(conn, today=date(2025, 4, 8))
        assert state["updates"] == []
        assert state["prevTotals"]["villages"] == 18


class TestRegionSummaries:
    def test_region_without_schemes_is_zeroed(self, conn, scheme_workbook):
        import_scheme_status(conn, scheme_workbook)
        delete_scheme(conn, "30001")
        update_region_summaries(conn)

        pune = get_region_by_name(conn, "Pune")
        assert pune["total_schemes_integrated"] == 0
        assert pune["flow_meter_integrated"] == 0


class TestCleanup:
    def test_trims_and_folds_amravati(self, conn):
        conn.execute(
            "INSERT INTO water_scheme_data (scheme_id, village_name, region, scheme_name) VALUES "
            "('1', 'A', ' Amravati', ' Morshi WSS '), ('2', 'B', '\ufeffAmravati', 'Warud'), "
            "('3', 'C', 'Nagpur', 'Kalmeshwar')"
        )
        counts = cleanup_water_scheme_data(conn)
        assert counts["water_scheme_data.region"] == 2
        assert counts["water_scheme_data.scheme_name"] == 1

        rows = fetch_all(conn, "SELECT region, scheme_name FROM water_scheme_data ORDER BY scheme_id")
        assert [r["region"] for r in rows] == ["Amravati", "Amravati", "Nagpur"]
        assert rows[0]["scheme_name"] == "Morshi WSS"

        assert sum(cleanup_water_scheme_data(conn).values()) == 0


class TestActivity:
    def test_log_and_read_back(self, conn):
        assert log_activity(conn, {"activity_type": "PAGE_VIEW", "page_url": "/regions", "metadata": None})
        assert log_activity(conn, {"activity_type": "FILE_UPLOAD", "metadata": {"size": 10}})

        rows = recent_activity(conn, limit=10)
        assert [r["activity_type"] for r in rows] == ["FILE_UPLOAD", "PAGE_VIEW"]
        assert rows[0]["metadata"] == {"size": 10}

    def test_failure_is_reported(self, conn):
        assert log_activity(conn, {"activity_type": None}) is False


class TestValidation:
    def test_valid_workbook(self, scheme_workbook):
        result = validate_scheme_workbook(scheme_workbook)
        assert result.is_valid
        assert result.schemes_found == 3

    def test_csv_is_rejected(self, tmp_path):
        result = validate_scheme_workbook(write_csv(tmp_path / "schemes.csv", [["Scheme ID"]]))
        assert not result.is_valid
        assert result.to_dict()["details"]["schemesFound"] == 0


class TestEtlCommands:
    def test_import_and_verify(self, db_path, scheme_workbook, tmp_path):
        db_file = tmp_path / "cli.duckdb"
        assert etl_main(["--db", str(db_file), "import-schemes", str(scheme_workbook)]) == 0
        assert config.DB_PATH == str(db_file)
        assert etl_main(["verify-urls"]) == 0
        assert etl_main(["validate", str(scheme_workbook)]) == 0

    def test_fix_urls_rewrites_stale_urls(self, conn, db_path, scheme_workbook):
        import_scheme_status(conn, scheme_workbook)
        conn.execute("UPDATE scheme_status SET dashboard_url = 'https://stale'")
        conn.close()

        assert etl_main(["verify-urls"]) == 1
        assert etl_main(["fix-urls"]) == 0
        assert etl_main(["verify-urls"]) == 0

        with db_connection() as check:
            row = fetch_one(check, "SELECT COUNT(*) AS n FROM scheme_status WHERE dashboard_url = 'https://stale'")
        assert row["n"] == 0
