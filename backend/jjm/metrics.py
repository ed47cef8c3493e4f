"""
Derived values for the daily readings.

LPCD: 55 litres per capita per day is the service norm.
Chlorine (mg/l): below < 0.2, optimal 0.2 - 0.5, above > 0.5.
Pressure (bar):  below < 0.2, optimal 0.2 - 0.7, above > 0.7.
"""

from backend.jjm.data_loader import to_float

LPCD_NORM = 55
LPCD_DAYS = 7

THRESHOLDS = {
    "chlorine": (0.2, 0.5),
    "pressure": (0.2, 0.7),
}


def calculate_lpcd_flags(values):
    """
    Returns (consistent_zero_lpcd_for_a_week, below_55_lpcd_count, above_55_lpcd_count).

    Only days with a reading are counted. A week of zeros counts every day
    as below the norm.
    """
    readings = [v for v in (to_float(x) for x in values) if v is not None]
    if not readings:
        return 0, 0, 0

    all_zero = all(v == 0 for v in readings)
    consistent_zero = 1 if all_zero and len(readings) == LPCD_DAYS else 0
    if all_zero:
        return consistent_zero, len(readings), 0

    below = sum(1 for v in readings if v < LPCD_NORM)
    above = sum(1 for v in readings if v >= LPCD_NORM)
    return consistent_zero, below, above


def classify_reading(value, kind):
    """'below' / 'optimal' / 'above' for one chlorine or pressure reading, None if missing."""
    value = to_float(value)
    if value is None or value < 0:
        return None
    low, high = THRESHOLDS[kind]
    if value < low:
        return "below"
    if value <= high:
        return "optimal"
    return "above"


def classify_chlorine(value):
    return classify_reading(value, "chlorine")


def classify_pressure(value):
    return classify_reading(value, "pressure")


def esr_band_counts(values, kind):
    """
    (consistent_zero_days, below_days, optimal_days, above_days) for an ESR week.

    consistent_zero_days is the longest run of consecutive zero readings.
    """
    readings = [to_float(v) for v in values]

    longest = run = 0
    for value in readings:
        run = run + 1 if value == 0 else 0
        longest = max(longest, run)

    bands = {"below": 0, "optimal": 0, "above": 0}
    for value in readings:
        band = classify_reading(value, kind)
        if band:
            bands[band] += 1
    return longest, bands["below"], bands["optimal"], bands["above"]
