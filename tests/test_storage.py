import pytest

from backend.jjm.importers import import_esr_readings, import_scheme_status, import_water_scheme_data
from backend.jjm.storage import (
    create_scheme,
    delete_scheme,
    get_all_schemes,
    get_esr_dashboard_stats,
    get_esr_reading,
    get_esr_readings,
    get_geo_filters,
    get_region_summary,
    get_scheme,
    get_scheme_lpcd_data,
    get_scheme_lpcd_stats,
    get_schemes_by_geography,
    get_village_lpcd_stats,
    get_water_scheme_data,
    update_scheme,
)

from tests.conftest import esr_row, write_csv


@pytest.fixture
def schemes(conn, scheme_workbook):
    import_scheme_status(conn, scheme_workbook)
    return conn


@pytest.fixture
def villages(conn, lpcd_csv):
    import_water_scheme_data(conn, lpcd_csv)
    return conn


@pytest.fixture
def chlorine(conn, tmp_path):
    path = write_csv(tmp_path / "chlorine.csv", [
        esr_row("123", "Wavi", "ESR 1", [0.3] * 7),
        esr_row("123", "Wavi", "ESR 2", [0] * 7),
        esr_row("124", "Pimpri", "ESR 1", [0.3, 0.3, 0.3, 0.3, 0.3, 0.3, 0.8], region="Pune"),
    ])
    import_esr_readings(conn, path, "chlorine")
    return conn


class TestSchemes:
    @pytest.mark.parametrize("status,expected", [
        ("Fully Completed", {"20019001"}),
        ("In Progress", {"20019002"}),
        ("Not-Connected", {"30001"}),
        ("all", {"20019001", "20019002", "30001"}),
    ])
    def test_status_filter(self, schemes, status, expected):
        assert {s["scheme_id"] for s in get_all_schemes(schemes, status=status)} == expected

    def test_region_and_block_filters(self, schemes):
        assert len(get_all_schemes(schemes, region="Nashik")) == 2
        assert len(get_all_schemes(schemes, region="all")) == 3
        assert [s["scheme_id"] for s in get_all_schemes(schemes, block="Yeola")] == ["20019002"]

    def test_get_scheme_by_block(self, schemes):
        assert get_scheme(schemes, "30001")["block"] == "Baramati"
        assert get_scheme(schemes, "30001", block="Other") is None

    def test_create_update_delete(self, conn):
        created = create_scheme(conn, {"scheme_id": " 555 ", "scheme_name": "Alibag RR", "region": "Konkan",
                                       "block": "Alibag", "number_of_village": "3"})
        assert created["scheme_id"] == "555"
        assert created["number_of_village"] == 3
        assert created["fully_completion_scheme_status"] == "Not-Connected"
        assert "Scheme-555%20-%20Alibag%20RR" in created["dashboard_url"]

        with pytest.raises(ValueError):
            create_scheme(conn, {"scheme_id": "555", "scheme_name": "Again", "block": "Alibag"})

        updated = update_scheme(conn, "555", {"scheme_name": "Alibag RRWSS"})
        assert updated["scheme_name"] == "Alibag RRWSS"
        assert "Alibag%20RRWSS" in updated["dashboard_url"]
        assert update_scheme(conn, "999", {"scheme_name": "x"}) is None

        assert delete_scheme(conn, "555") == 1
        assert delete_scheme(conn, "555") == 0

    def test_create_requires_name(self, conn):
        with pytest.raises(ValueError):
            create_scheme(conn, {"scheme_id": "1"})


class TestRegionsAndGeography:
    def test_summary_for_all_regions(self, schemes):
        summary = get_region_summary(schemes)
        assert summary["total_schemes_integrated"] == 3
        assert summary["fully_completed_schemes"] == 1
        assert summary["flow_meter_integrated"] == 8

    def test_summary_for_unknown_region_is_zero(self, schemes):
        assert set(get_region_summary(schemes, "Nagpur").values()) == {0}

    def test_geo_filters_tree(self, schemes):
        tree = get_geo_filters(schemes)
        assert [r["name"] for r in tree["regions"]] == ["Nashik", "Pune"]
        sub_division = tree["regions"][0]["circles"][0]["divisions"][0]["sub_divisions"][0]
        assert sub_division == {"name": "Sinnar", "blocks": ["Sinnar", "Yeola"]}

    def test_schemes_by_geography(self, schemes):
        assert len(get_schemes_by_geography(schemes, region="Nashik", block="Sinnar")) == 1
        assert len(get_schemes_by_geography(schemes, circle="Nashik")) == 3


class TestVillageLpcd:
    def test_zero_supply_filter(self, villages):
        rows = get_water_scheme_data(villages, zero_supply_for_week=True)
        assert [r["village_name"] for r in rows] == ["Zero Wadi"]

    def test_min_lpcd_filter(self, villages):
        assert [r["village_name"] for r in get_water_scheme_data(villages, min_lpcd=55)] == ["Bharpur"]

    def test_max_lpcd_excludes_zero_supply(self, villages):
        assert [r["village_name"] for r in get_water_scheme_data(villages, max_lpcd=55)] == ["Kami Gaon"]

    def test_region_filter(self, villages):
        assert [r["village_name"] for r in get_water_scheme_data(villages, region="Pune")] == ["Bharpur"]

    def test_village_stats(self, villages):
        assert get_village_lpcd_stats(villages) == {
            "total_villages": 3,
            "total_population": 3000,
            "zero_supply_villages": 1,
            "villages_below_55": 1,
            "villages_above_55": 1,
            "villages_above_55_all_week": 1,
        }

    def test_scheme_lpcd_listing(self, villages):
        rows = get_scheme_lpcd_data(villages)
        assert [r["scheme_id"] for r in rows] == ["101", "102", "103"]

        kami = rows[1]
        assert kami["lpcd_value_day1"] == 30.0
        assert kami["total_water_day1"] == pytest.approx(0.3)
        assert (kami["villages_above_55"], kami["villages_below_55"], kami["villages_zero_supply"]) == (0, 1, 0)
        assert rows[0]["villages_zero_supply"] == 1
        assert rows[2]["villages_above_55"] == 1

    def test_scheme_lpcd_filters(self, villages):
        assert [r["scheme_id"] for r in get_scheme_lpcd_data(villages, min_lpcd=55)] == ["103"]
        below = get_scheme_lpcd_data(villages, region="Nashik", max_lpcd=40)
        assert [r["scheme_id"] for r in below] == ["101", "102"]

    def test_scheme_stats(self, villages):
        assert get_scheme_lpcd_stats(villages) == {
            "above_55_count": 1,
            "below_40_count": 1,
            "between_40_55_count": 0,
            "zero_lpcd_count": 1,
            "total_schemes": 3,
        }
        assert get_scheme_lpcd_stats(villages, region="Pune")["total_schemes"] == 1


class TestEsrReadings:
    def test_band_filter_uses_latest_reading(self, chlorine):
        rows = get_esr_readings(chlorine, "chlorine", band="optimal")
        assert [(r["village_name"], r["esr_name"]) for r in rows] == [("Wavi", "ESR 1")]
        assert len(get_esr_readings(chlorine, "chlorine", region="Pune", band="above")) == 1

    def test_single_reading_by_key(self, chlorine):
        row = get_esr_reading(chlorine, "chlorine", "124", "Pimpri", "ESR 1")
        assert row["region"] == "Pune"
        assert get_esr_reading(chlorine, "chlorine", "124", "Pimpri", "ESR 9") is None

    def test_unknown_band(self, chlorine):
        with pytest.raises(ValueError):
            get_esr_readings(chlorine, "chlorine", band="sideways")

    def test_dashboard_stats(self, chlorine):
        assert get_esr_dashboard_stats(chlorine, "chlorine") == {
            "total_sensors": 3,
            "below_range_sensors": 1,
            "optimal_range_sensors": 1,
            "above_range_sensors": 1,
            "consistent_zero_sensors": 1,
            "consistent_below_range_sensors": 0,
            "consistent_optimal_sensors": 1,
            "consistent_above_range_sensors": 0,
        }

    def test_empty_table_stats(self, conn):
        assert get_esr_dashboard_stats(conn, "pressure")["total_sensors"] == 0
