import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from backend.jjm import config
from backend.jjm.database_connection import get_connection
from backend.jjm.db_utils import initialize_database

SCHEME_HEADERS = [
    "Sr No.", "Region", "Circle", "Division", "Sub Division", "Block", "Scheme ID", "Scheme Name",
    "Agency", "Number of Village", "Total Villages Integrated", "Fully Completed Villages",
    "Total Number of ESR", "Total ESR Integrated", "No. Fully Completed ESR",
    "Flow Meters Connected", "Pressure Transmitter Connected", "Residual Chlorine Analyzer Connected",
    "Fully completion Scheme Status",
]


def scheme_row(sr, scheme_id, name, block="Sinnar", villages=4, completed_villages=2, esr=3,
               completed_esr=1, fm=2, pt=1, rca=1, status="Fully Completed", region="Nashik"):
    return [sr, region, "Nashik", "Nashik", "Sinnar", block, scheme_id, name, "M/S Ceinsys",
            villages, villages, completed_villages, esr, esr, completed_esr, fm, pt, rca, status]


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "jjm_test.duckdb"
    monkeypatch.setattr(config, "DB_PATH", str(path))
    monkeypatch.setattr(config, "UPLOAD_DIR", tmp_path / "uploads")
    monkeypatch.setattr(config, "GROQ_API_KEY", None)
    return path


@pytest.fixture
def conn(db_path):
    connection = get_connection()
    initialize_database(connection)
    yield connection
    connection.close()


@pytest.fixture
def client(db_path):
    from backend.jjm.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def scheme_workbook(tmp_path):
    """Two region sheets with a title row above the header."""
    wb = Workbook()
    nashik = wb.active
    nashik.title = "Region - Nashik"
    nashik.append(["Scheme level status report"])
    nashik.append(SCHEME_HEADERS)
    nashik.append(scheme_row(1, 20019001, "Sinnar RRWSS", status="Fully Completed"))
    nashik.append(scheme_row(2, "20019002", " Yeola 38 Villages ", block="Yeola", status="In progress",
                             completed_villages=0, completed_esr=0))
    nashik.append([None] * len(SCHEME_HEADERS))

    pune = wb.create_sheet("Pune")
    pune.append(SCHEME_HEADERS)
    pune.append(scheme_row(1, "30001", "Baramati WSS", block="Baramati", region="", status="",
                           villages=10, completed_villages=5, esr=6, completed_esr=6, fm=4, pt=2, rca=3))

    path = tmp_path / "scheme_status.xlsx"
    wb.save(path)
    return path


def lpcd_row(scheme_id, village, lpcd, water_day1=0.0, population=1000, region="Nashik"):
    """One header-less LPCD report line: hierarchy, scheme, village, 6 water days, 7 LPCD days."""
    return [region, "Nashik", "Nashik", "Sinnar", "Sinnar", scheme_id, f"Scheme {scheme_id}", village,
            population, 1, water_day1, 0, 0, 0, 0, 0, *lpcd]


def esr_row(scheme_id, village, esr, readings, region="Nashik"):
    return [region, "Nashik", "Nashik", "Sinnar", "Sinnar", scheme_id, f"Scheme {scheme_id}", village, esr,
            *readings]


def write_csv(path, rows):
    path.write_text("\n".join(",".join(str(v) for v in row) for row in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def lpcd_csv(tmp_path):
    """Zero-supply village, below-norm village and an above-norm village in Pune."""
    return write_csv(tmp_path / "lpcd.csv", [
        lpcd_row("101", "Zero Wadi", [0] * 7),
        lpcd_row("102", "Kami Gaon", [30, 40, 50, 20, 10, 45, 30], water_day1=0.3),
        lpcd_row("103", "Bharpur", [60] * 7, water_day1=0.6, region="Pune"),
    ])
