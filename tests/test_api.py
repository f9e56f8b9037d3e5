"""Tests for the FastAPI routes."""

import logging

import pytest
import requests
from fastapi.testclient import TestClient

import report_api.main as main
import report_core.context as context
from report_api.main import app
from report_core.data import parse_csv_text


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_fetch(monkeypatch, worklog_csv):
    calls = []

    def fetch(url):
        calls.append(url)
        return parse_csv_text(worklog_csv)

    monkeypatch.setattr(context, "request_report_table", fetch)
    return calls


class TestMeta:
    def test_reports(self, client):
        response = client.get("/meta/reports")
        assert response.status_code == 200
        body = response.json()
        assert [r["id"] for r in body["reports"]] == ["worklog", "material", "enquiry", "tealog"]
        assert body["default_report"] == "worklog"
        assert body["reports"][1]["tab_label"] == "Material"


class TestReportRoutes:
    """Tests for table, facets, entry and export routes."""

    def test_columns(self, client, fake_fetch):
        body = client.get("/reports/worklog/columns").json()
        assert [c["key"] for c in body["columns"]] == ["Date", "Site", "Work Description", "MA", "Amount"]
        assert [c["key"] for c in body["facets"]] == ["Date", "Site", "Work Description"]

    def test_table_payload(self, client, fake_fetch):
        view = {"filters": {"Site": "North"}, "sort": {"key": "Date", "direction": "desc"}, "page_size": 10}
        response = client.post("/reports/worklog/table", json=view)

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 2
        assert [r["Work Description"] for r in body["rows"]] == ["Painting", "Plastering"]
        assert body["rows"][1]["Amount"] == "₹1,200.00"
        assert body["total_amount"] == pytest.approx(1650.5)
        assert body["facets"][1] == {"key": "Site", "label": "Site", "options": ["East", "North", "South"]}

    def test_table_is_loaded_once(self, client, fake_fetch):
        client.post("/reports/worklog/table", json={})
        client.post("/reports/worklog/table", json={"search": "tiling"})
        assert len(fake_fetch) == 1
        client.post("/reports/worklog/table?refresh=true", json={})
        assert len(fake_fetch) == 2

    def test_unknown_report(self, client, fake_fetch):
        assert client.post("/reports/nope/table", json={}).status_code == 404

    def test_facet_options(self, client, fake_fetch):
        assert client.get("/reports/worklog/facets/Site").json() == {"values": ["East", "North", "South"]}
        assert client.get("/reports/worklog/facets/Entered By").status_code == 404

    def test_entry_details(self, client, fake_fetch):
        response = client.post("/reports/worklog/entry", json={"search": "painting", "index": 0})
        assert response.status_code == 200
        details = {d["key"]: d["value"] for d in response.json()["details"]}
        assert details["Work Description"] == "Painting"
        assert details["Entered By"] == "anita"

    def test_entry_out_of_range(self, client, fake_fetch):
        assert client.post("/reports/worklog/entry", json={"index": 99}).status_code == 404

    def test_export(self, client, fake_fetch):
        response = client.post("/reports/worklog/export", json={"page_size": 10, "page": 1})
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "Worklog_Report_Report.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_fetch_failure_renders_empty_state(self, client, monkeypatch, caplog):
        def offline(url):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(context, "request_report_table", offline)
        with caplog.at_level(logging.ERROR, logger="report_core.context"):
            response = client.post("/reports/tealog/table", json={})

        assert response.status_code == 200
        body = response.json()
        assert body["empty"] is True
        assert body["rows"] == []
        assert body["columns"] == []
        assert body["pagination"]["total_pages"] == 0
        assert "Error loading report tealog" in caplog.text

    def test_failed_fetch_is_retried_without_refresh(self, client, monkeypatch, worklog_csv):
        responses = [requests.ConnectionError("offline"), parse_csv_text(worklog_csv)]

        def flaky(url):
            result = responses.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        monkeypatch.setattr(context, "request_report_table", flaky)

        assert client.post("/reports/worklog/table", json={}).json()["empty"] is True
        body = client.post("/reports/worklog/table", json={}).json()
        assert body["empty"] is False
        assert body["pagination"]["total"] == 4

    def test_sort_on_time_column_with_bare_numbers(self, client, monkeypatch):
        csv_text = "Site,Start Time\nNorth,2330\nSouth,0930\nEast,6744\n"
        monkeypatch.setattr(context, "request_report_table", lambda url: parse_csv_text(csv_text))

        response = client.post("/reports/enquiry/table", json={"sort": {"key": "Start Time"}})

        assert response.status_code == 200
        assert sorted(r["Site"] for r in response.json()["rows"]) == ["East", "North", "South"]

    def test_oversized_amount_is_displayed(self, client, monkeypatch):
        csv_text = "Site,Amount\nNorth,1000000000000000000000000000000\nSouth,5\n"
        monkeypatch.setattr(context, "request_report_table", lambda url: parse_csv_text(csv_text))

        response = client.post("/reports/enquiry/table", json={})

        assert response.status_code == 200
        assert response.json()["rows"][0]["Amount"] == "₹10," + "00," * 13 + "000.00"

    def test_facet_error_returns_error_payload(self, client, monkeypatch):
        def broken(report_id, *, refresh=False):
            raise RuntimeError("cache unavailable")

        monkeypatch.setattr(main, "load_report_data", broken)
        response = client.get("/reports/worklog/facets/Site")

        assert response.status_code == 500
        assert response.json() == {"error": "cache unavailable", "type": "RuntimeError"}

    def test_entry_error_returns_error_payload(self, client, monkeypatch, fake_fetch):
        def broken(view, data_ctx):
            raise RuntimeError("bad view")

        monkeypatch.setattr(main, "prepare_context", broken)
        response = client.post("/reports/worklog/entry", json={"index": 0})

        assert response.status_code == 500
        assert response.json()["type"] == "RuntimeError"
