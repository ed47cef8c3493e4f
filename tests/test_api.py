import pytest

from tests.conftest import esr_row, write_csv

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def upload(client, url, path, content_type=XLSX, name=None, **params):
    with open(path, "rb") as fh:
        return client.post(url, files={"file": (name or path.name, fh, content_type)}, params=params)


@pytest.fixture
def loaded_client(client, scheme_workbook):
    response = upload(client, "/api/schemes/import/excel", scheme_workbook)
    assert response.status_code == 200
    return client


class TestHealthAndRegions:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "service": "jjm-dashboard", "version": "1.0.0"}

    def test_unknown_region(self, client):
        response = client.get("/api/regions/Nowhere")
        assert response.status_code == 404

    def test_regions_after_import(self, loaded_client):
        names = [r["region_name"] for r in loaded_client.get("/api/regions").json()]
        assert names == ["Nashik", "Pune"]
        assert loaded_client.get("/api/regions/Pune").json()["flow_meter_integrated"] == 4
        assert loaded_client.get("/api/regions/summary").json()["total_schemes_integrated"] == 3
        assert loaded_client.get("/api/regions/summary", params={"region": "Nashik"}).json()[
            "fully_completed_schemes"] == 1

    def test_update_summaries(self, loaded_client):
        response = loaded_client.post("/api/regions/update-summaries")
        assert response.json() == {"success": True, "regionsUpdated": 2}


class TestSchemeEndpoints:
    def test_import_result(self, client, scheme_workbook):
        body = upload(client, "/api/schemes/import/excel", scheme_workbook).json()
        assert body["success"] is True
        assert (body["inserted"], body["skipped"]) == (3, 0)

        again = upload(client, "/api/schemes/import/excel", scheme_workbook, updateExisting="true").json()
        assert again["updated"] == 3

    def test_rejects_unsupported_extension(self, client, scheme_workbook):
        response = upload(client, "/api/schemes/import/excel", scheme_workbook,
                          content_type="application/vnd.ms-excel", name="schemes.xls")
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    def test_validate(self, client, scheme_workbook):
        body = upload(client, "/api/schemes/validate", scheme_workbook).json()
        assert body["isValid"] is True
        assert body["message"] == "Excel file valid. Found 3 schemes across 2 region sheets (Nashik, Pune)."
        assert body["details"]["regionsFound"] == ["Nashik", "Pune"]

    def test_list_and_get(self, loaded_client):
        in_progress = loaded_client.get("/api/schemes", params={"status": "In Progress"}).json()
        assert [s["scheme_id"] for s in in_progress] == ["20019002"]
        assert loaded_client.get("/api/schemes/30001").json()["block"] == "Baramati"
        assert loaded_client.get("/api/schemes/404404").status_code == 404

    def test_crud(self, client):
        payload = {"scheme_id": "555", "scheme_name": "Alibag RR", "region": "Konkan", "block": "Alibag",
                   "flow_meters_connected": 2}
        created = client.post("/api/schemes", json=payload)
        assert created.status_code == 201
        assert created.json()["dashboard_url"].startswith("https://")

        konkan = client.get("/api/regions/Konkan").json()
        assert (konkan["total_schemes_integrated"], konkan["flow_meter_integrated"]) == (1, 2)

        assert client.post("/api/schemes", json=payload).status_code == 400

        updated = client.put("/api/schemes/555", json={"flow_meters_connected": 3})
        assert updated.json()["flow_meters_connected"] == 3
        assert client.get("/api/regions/Konkan").json()["flow_meter_integrated"] == 3

        assert client.delete("/api/schemes/555").json() == {"success": True, "deleted": 1}
        assert client.delete("/api/schemes/555").status_code == 404

    def test_update_rejects_null_scheme_name(self, client):
        client.post("/api/schemes", json={"scheme_id": "556", "scheme_name": "Pen RR", "region": "Konkan"})

        response = client.put("/api/schemes/556", json={"scheme_name": None})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert client.get("/api/schemes/556").json()["scheme_name"] == "Pen RR"

    def test_invalid_body_is_400(self, client):
        response = client.post("/api/schemes", json={"scheme_id": "1"})
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestGeography:
    def test_filters_and_schemes(self, loaded_client):
        regions = loaded_client.get("/api/geo/filters").json()["regions"]
        assert [r["name"] for r in regions] == ["Nashik", "Pune"]

        schemes = loaded_client.get("/api/geo/schemes", params={"region": "Nashik", "subdivision": "Sinnar"}).json()
        assert len(schemes) == 2


class TestWaterData:
    def test_csv_import_and_queries(self, client, lpcd_csv):
        body = upload(client, "/api/water-scheme-data/import/csv", lpcd_csv, content_type="text/csv").json()
        assert body["inserted"] == 3

        zero = client.get("/api/water-scheme-data", params={"zeroSupplyForWeek": "true"}).json()
        assert [v["village_name"] for v in zero] == ["Zero Wadi"]
        above = client.get("/api/water-scheme-data", params={"minLpcd": 55}).json()
        assert [v["village_name"] for v in above] == ["Bharpur"]

        assert client.get("/api/water-scheme-data/lpcd-stats").json()["total_villages"] == 3
        assert client.get("/api/water-scheme-data/scheme-lpcd-stats").json()["above_55_count"] == 1

        schemes = client.get("/api/scheme-lpcd-data", params={"minLpcd": 25, "maxLpcd": 50}).json()
        assert [(s["scheme_id"], s["villages_below_55"]) for s in schemes] == [("102", 1)]

    def test_csv_endpoint_rejects_workbooks(self, client, scheme_workbook):
        response = upload(client, "/api/water-scheme-data/import/csv", scheme_workbook)
        assert response.status_code == 400


class TestEsrEndpoints:
    def test_import_and_lookup_by_key(self, client, tmp_path):
        path = write_csv(tmp_path / "pressure.csv", [esr_row("123", "Wavi", "ESR 1", [0.3] * 7)])
        assert upload(client, "/api/pressure/import", path, content_type="text/csv").json()["inserted"] == 1

        reading = client.get("/api/pressure/123/Wavi/ESR%201")
        assert reading.status_code == 200
        assert reading.json()["esr_name"] == "ESR 1"
        assert client.get("/api/pressure/123/Wavi/ESR%202").status_code == 404

    def test_unknown_band(self, client):
        assert client.get("/api/chlorine", params={"band": "sideways"}).status_code == 400

    def test_empty_stats(self, client):
        assert client.get("/api/pressure/dashboard-stats").json()["total_sensors"] == 0


class TestMaintenance:
    def test_today_updates_baseline(self, loaded_client):
        body = loaded_client.get("/api/updates/today").json()
        assert body["updates"] == []
        assert body["prevTotals"]["villages"] == 18

    def test_verify_and_regenerate_urls(self, loaded_client):
        assert loaded_client.get("/api/dashboard-urls/verify").json()["valid"] is True
        response = loaded_client.post("/api/dashboard-urls/regenerate", params={"region": "Pune"})
        assert response.json() == {"success": True, "updated": 0}


class TestTranslationAndActivity:
    def test_translate(self, client):
        body = client.post("/api/translate", json={"text": "Schemes", "targetLanguage": "hi"}).json()
        assert body["originalText"] == "Schemes"
        assert body["translatedText"].startswith("Schemes (")

    def test_translate_requires_text(self, client):
        response = client.post("/api/translate", json={"text": "", "targetLanguage": "hi"})
        assert response.status_code == 400

    def test_log_and_list_activity(self, client):
        payload = {"activity_type": "FILE_UPLOAD", "file_name": "lpcd.csv", "metadata": {"rows": 3}}
        assert client.post("/api/auth/log-activity", json=payload).json() == {"success": True}

        activity = client.get("/api/auth/activity").json()
        assert activity[0]["activity_type"] == "FILE_UPLOAD"
        assert activity[0]["metadata"] == {"rows": 3}


class TestAssistantEndpoints:
    def test_ask(self, client):
        body = client.post("/api/assistant/ask", json={"question": "help"}).json()
        assert body["intent"] == "help"
        assert body["language"] == "en"

    def test_ask_empty_question(self, client):
        assert client.post("/api/assistant/ask", json={"question": "   "}).status_code == 400

    def test_ai_status_without_key(self, client):
        body = client.get("/api/ai/status").json()
        assert body["configured"] is False
        assert body["features"]["voiceEnabled"] is True

    def test_ai_chat_without_key(self, client):
        response = client.post("/api/ai/chat", json={"prompt": "hello"})
        assert response.status_code == 500
        assert response.json()["success"] is False
