import pytest

from backend.jjm.metrics import (
    calculate_lpcd_flags,
    classify_chlorine,
    classify_pressure,
    esr_band_counts,
)


class TestLpcdFlags:
    def test_week_of_zeros(self):
        assert calculate_lpcd_flags([0] * 7) == (1, 7, 0)

    def test_partial_zero_week_is_not_consistent(self):
        assert calculate_lpcd_flags([0, 0, 0, None, None, None, None]) == (0, 3, 0)

    def test_mixed_week(self):
        assert calculate_lpcd_flags([10, 55, 60.5, "40", None, "n/a", 80]) == (0, 2, 3)

    def test_no_readings(self):
        assert calculate_lpcd_flags([None] * 7) == (0, 0, 0)


class TestClassification:
    @pytest.mark.parametrize("value,expected", [
        (0.1, "below"),
        (0.2, "optimal"),
        (0.5, "optimal"),
        (0.51, "above"),
        (None, None),
        ("", None),
    ])
    def test_chlorine(self, value, expected):
        assert classify_chlorine(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (0, "below"),
        (0.7, "optimal"),
        ("1.2", "above"),
        (-1, None),
    ])
    def test_pressure(self, value, expected):
        assert classify_pressure(value) == expected


class TestEsrBandCounts:
    def test_longest_zero_run_and_bands(self):
        values = [0, 0, 0.3, 0, 0, 0, 0.9]
        assert esr_band_counts(values, "chlorine") == (3, 5, 1, 1)

    def test_missing_readings_break_zero_runs(self):
        values = [0, None, 0, 0.25, None, None, None]
        assert esr_band_counts(values, "pressure") == (1, 2, 1, 0)
