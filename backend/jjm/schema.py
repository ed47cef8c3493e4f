"""
Database schema for the JJM dashboard
EXACT column names used in DuckDB (all lowercase with underscores)
"""

DAYS = range(1, 8)

HIERARCHY_COLUMNS = ["region", "circle", "division", "sub_division", "block"]

REGION_COUNT_COLUMNS = [
    "total_esr_integrated",
    "fully_completed_esr",
    "partial_esr",
    "total_villages_integrated",
    "fully_completed_villages",
    "total_schemes_integrated",
    "fully_completed_schemes",
    "flow_meter_integrated",
    "rca_integrated",
    "pressure_transmitter_integrated",
]

SCHEME_INT_COLUMNS = [
    "number_of_village",
    "total_villages_integrated",
    "no_of_functional_village",
    "no_of_partial_village",
    "no_of_non_functional_village",
    "fully_completed_villages",
    "total_number_of_esr",
    "total_esr_integrated",
    "no_fully_completed_esr",
    "balance_to_complete_esr",
    "flow_meters_connected",
    "pressure_transmitter_connected",
    "residual_chlorine_analyzer_connected",
]

SCHEME_TEXT_COLUMNS = [
    "scheme_id",
    *HIERARCHY_COLUMNS,
    "scheme_name",
    "agency",
    "scheme_functional_status",
    "fully_completion_scheme_status",
    "dashboard_url",
]

WATER_VALUE_COLUMNS = [f"water_value_day{d}" for d in range(1, 7)]
WATER_DATE_COLUMNS = [f"water_date_day{d}" for d in range(1, 7)]
LPCD_VALUE_COLUMNS = [f"lpcd_value_day{d}" for d in DAYS]
LPCD_DATE_COLUMNS = [f"lpcd_date_day{d}" for d in DAYS]
LPCD_FLAG_COLUMNS = [
    "consistent_zero_lpcd_for_a_week",
    "below_55_lpcd_count",
    "above_55_lpcd_count",
]

CHLORINE_VALUE_COLUMNS = [f"chlorine_value_{d}" for d in DAYS]
CHLORINE_DATE_COLUMNS = [f"chlorine_date_day_{d}" for d in DAYS]
CHLORINE_BAND_COLUMNS = [
    "number_of_consistent_zero_value_in_chlorine",
    "chlorine_less_than_02_mgl",
    "chlorine_between_02_05_mgl",
    "chlorine_greater_than_05_mgl",
]

PRESSURE_VALUE_COLUMNS = [f"pressure_value_{d}" for d in DAYS]
PRESSURE_DATE_COLUMNS = [f"pressure_date_day_{d}" for d in DAYS]
PRESSURE_BAND_COLUMNS = [
    "number_of_consistent_zero_value_in_pressure",
    "pressure_less_than_02_bar",
    "pressure_between_02_07_bar",
    "pressure_greater_than_07_bar",
]

# Column order of the header-less LPCD report (one village per row)
LPCD_POSITIONAL_COLUMNS = [
    *HIERARCHY_COLUMNS,
    "scheme_id",
    "scheme_name",
    "village_name",
    "population",
    "number_of_esr",
    *WATER_VALUE_COLUMNS,
    *LPCD_VALUE_COLUMNS,
    *WATER_DATE_COLUMNS,
    *LPCD_DATE_COLUMNS,
    *LPCD_FLAG_COLUMNS,
]

# Column order of the header-less chlorine / pressure reports (one ESR per row)
ESR_KEY_COLUMNS = [*HIERARCHY_COLUMNS, "scheme_id", "scheme_name", "village_name", "esr_name"]
CHLORINE_POSITIONAL_COLUMNS = [
    *ESR_KEY_COLUMNS,
    *CHLORINE_VALUE_COLUMNS,
    *CHLORINE_DATE_COLUMNS,
    *CHLORINE_BAND_COLUMNS,
]
PRESSURE_POSITIONAL_COLUMNS = [
    *ESR_KEY_COLUMNS,
    *PRESSURE_VALUE_COLUMNS,
    *PRESSURE_DATE_COLUMNS,
    *PRESSURE_BAND_COLUMNS,
]

ESR_READING_KINDS = {
    "chlorine": {
        "table": "chlorine_data",
        "values": CHLORINE_VALUE_COLUMNS,
        "dates": CHLORINE_DATE_COLUMNS,
        "bands": CHLORINE_BAND_COLUMNS,
        "positional": CHLORINE_POSITIONAL_COLUMNS,
    },
    "pressure": {
        "table": "pressure_data",
        "values": PRESSURE_VALUE_COLUMNS,
        "dates": PRESSURE_DATE_COLUMNS,
        "bands": PRESSURE_BAND_COLUMNS,
        "positional": PRESSURE_POSITIONAL_COLUMNS,
    },
}

WATER_SCHEME_COLUMNS = [
    *HIERARCHY_COLUMNS,
    "scheme_id",
    "scheme_name",
    "village_name",
    "population",
    "number_of_esr",
    *WATER_VALUE_COLUMNS,
    *LPCD_VALUE_COLUMNS,
    *WATER_DATE_COLUMNS,
    *LPCD_DATE_COLUMNS,
    *LPCD_FLAG_COLUMNS,
    "dashboard_url",
]

SCHEMA = {
    "region": ["region_id", "region_name", *REGION_COUNT_COLUMNS],
    "scheme_status": [
        "sr_no",
        "scheme_id",
        *HIERARCHY_COLUMNS,
        "scheme_name",
        "agency",
        "number_of_village",
        "total_villages_integrated",
        "no_of_functional_village",
        "no_of_partial_village",
        "no_of_non_functional_village",
        "fully_completed_villages",
        "total_number_of_esr",
        "scheme_functional_status",
        "total_esr_integrated",
        "no_fully_completed_esr",
        "balance_to_complete_esr",
        "flow_meters_connected",
        "pressure_transmitter_connected",
        "residual_chlorine_analyzer_connected",
        "fully_completion_scheme_status",
        "dashboard_url",
    ],
    "water_scheme_data": WATER_SCHEME_COLUMNS,
    "chlorine_data": [*ESR_KEY_COLUMNS, *CHLORINE_VALUE_COLUMNS, *CHLORINE_DATE_COLUMNS,
                      *CHLORINE_BAND_COLUMNS, "dashboard_url"],
    "pressure_data": [*ESR_KEY_COLUMNS, *PRESSURE_VALUE_COLUMNS, *PRESSURE_DATE_COLUMNS,
                      *PRESSURE_BAND_COLUMNS, "dashboard_url"],
    "app_state": ["key", "value", "updated_at"],
    "user_activity": [
        "id", "activity_type", "activity_description", "file_name",
        "file_type", "page_url", "metadata", "created_at",
    ],
}


def _columns_sql(columns, sql_type):
    return ",\n    ".join(f"{c} {sql_type}" for c in columns)


DDL = [
    "CREATE SEQUENCE IF NOT EXISTS region_id_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS scheme_sr_no_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS user_activity_id_seq START 1",
    f"""
    CREATE TABLE IF NOT EXISTS region (
        region_id INTEGER PRIMARY KEY DEFAULT nextval('region_id_seq'),
        region_name VARCHAR NOT NULL UNIQUE,
        {_columns_sql(REGION_COUNT_COLUMNS, "INTEGER DEFAULT 0")}
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS scheme_status (
        sr_no INTEGER DEFAULT nextval('scheme_sr_no_seq'),
        scheme_id VARCHAR NOT NULL,
        region VARCHAR,
        circle VARCHAR,
        division VARCHAR,
        sub_division VARCHAR,
        block VARCHAR NOT NULL DEFAULT '',
        scheme_name VARCHAR NOT NULL,
        agency VARCHAR,
        {_columns_sql(SCHEME_INT_COLUMNS, "INTEGER DEFAULT 0")},
        scheme_functional_status VARCHAR,
        fully_completion_scheme_status VARCHAR DEFAULT 'Not-Connected',
        dashboard_url VARCHAR,
        PRIMARY KEY (scheme_id, block)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS water_scheme_data (
        region VARCHAR,
        circle VARCHAR,
        division VARCHAR,
        sub_division VARCHAR,
        block VARCHAR,
        scheme_id VARCHAR NOT NULL,
        scheme_name VARCHAR,
        village_name VARCHAR NOT NULL,
        population INTEGER,
        number_of_esr INTEGER,
        {_columns_sql(WATER_VALUE_COLUMNS + LPCD_VALUE_COLUMNS, "DOUBLE")},
        {_columns_sql(WATER_DATE_COLUMNS + LPCD_DATE_COLUMNS, "VARCHAR")},
        {_columns_sql(LPCD_FLAG_COLUMNS, "INTEGER DEFAULT 0")},
        dashboard_url VARCHAR,
        PRIMARY KEY (scheme_id, village_name)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS chlorine_data (
        {_columns_sql(HIERARCHY_COLUMNS, "VARCHAR")},
        scheme_id VARCHAR NOT NULL,
        scheme_name VARCHAR,
        village_name VARCHAR NOT NULL,
        esr_name VARCHAR NOT NULL,
        {_columns_sql(CHLORINE_VALUE_COLUMNS, "DOUBLE")},
        {_columns_sql(CHLORINE_DATE_COLUMNS, "VARCHAR")},
        number_of_consistent_zero_value_in_chlorine INTEGER DEFAULT 0,
        {_columns_sql(CHLORINE_BAND_COLUMNS[1:], "DOUBLE DEFAULT 0")},
        dashboard_url VARCHAR,
        PRIMARY KEY (scheme_id, village_name, esr_name)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS pressure_data (
        {_columns_sql(HIERARCHY_COLUMNS, "VARCHAR")},
        scheme_id VARCHAR NOT NULL,
        scheme_name VARCHAR,
        village_name VARCHAR NOT NULL,
        esr_name VARCHAR NOT NULL,
        {_columns_sql(PRESSURE_VALUE_COLUMNS, "DOUBLE")},
        {_columns_sql(PRESSURE_DATE_COLUMNS, "VARCHAR")},
        number_of_consistent_zero_value_in_pressure INTEGER DEFAULT 0,
        {_columns_sql(PRESSURE_BAND_COLUMNS[1:], "DOUBLE DEFAULT 0")},
        dashboard_url VARCHAR,
        PRIMARY KEY (scheme_id, village_name, esr_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_state (
        key VARCHAR PRIMARY KEY,
        value VARCHAR NOT NULL,
        updated_at TIMESTAMP DEFAULT current_timestamp
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_activity (
        id INTEGER PRIMARY KEY DEFAULT nextval('user_activity_id_seq'),
        activity_type VARCHAR NOT NULL,
        activity_description VARCHAR,
        file_name VARCHAR,
        file_type VARCHAR,
        page_url VARCHAR,
        metadata VARCHAR,
        created_at TIMESTAMP DEFAULT current_timestamp
    )
    """,
]
