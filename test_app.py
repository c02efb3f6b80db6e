import io
from datetime import date, datetime

import pytest

import app as app_module
import parsers
from config import ParserConfig
from parsers import SyllabusParser


class FixedParser(SyllabusParser):
    def parse(self, text, now=None):
        return super().parse(text, now=now or datetime(2024, 9, 15))


@pytest.fixture
def client(monkeypatch):
    flask_app = app_module.app
    flask_app.config["TESTING"] = True
    monkeypatch.setitem(flask_app.config, "PARSER_CONFIG", ParserConfig())
    monkeypatch.setitem(flask_app.config, "SYLLABUS_PARSER", FixedParser(ParserConfig()))
    return flask_app.test_client()


def upload(client, content, filename="syllabus.txt", content_type="text/plain"):
    return client.post(
        "/api/parse",
        data={"file": (io.BytesIO(content), filename, content_type)},
        content_type="multipart/form-data",
    )


def test_parse_requires_file(client):
    response = client.post("/api/parse", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["error"] == "No file provided"


def test_parse_rejects_unsupported_type(client):
    response = upload(client, b"\x89PNG", filename="scan.png", content_type="image/png")

    assert response.status_code == 400


def test_parse_rejects_empty_text(client):
    response = upload(client, b"   \n  ")

    assert response.status_code == 400
    assert response.get_json()["error"] == "No text found in file"


def test_parse_returns_events(client, monkeypatch):
    def find_dates(line, now):
        return [("Oct 1", datetime(2024, 10, 1))] if "Essay" in line else []

    monkeypatch.setattr(parsers, "find_dates", find_dates)

    response = upload(client, b"Course policies\nEssay 1 due Oct 1\n")

    data = response.get_json()
    assert response.status_code == 200
    assert data["success"] is True
    assert len(data["events"]) == 1
    event = data["events"][0]
    assert event["date"] == "2024-10-01"
    assert event["type"] == "assignment"
    assert event["originalText"] == "Essay 1 due Oct 1"
    assert event["id"]


def test_export_ics_download(client):
    payload = {
        "events": [
            {"id": "e1", "title": "Quiz 1", "date": "2024-10-01T04:00:00.000Z", "type": "exam", "description": "Quiz 1"},
        ]
    }

    response = client.post("/api/export/ics", json=payload)

    assert response.status_code == 200
    assert response.mimetype == "text/calendar"
    assert "syllabus-calendar.ics" in response.headers["Content-Disposition"]
    assert b"UID:e1@syllabuscalendar.com" in response.data
    assert b"DTSTART:20241001T090000" in response.data


def test_export_ics_requires_events(client):
    response = client.post("/api/export/ics", json={"events": []})

    assert response.status_code == 400


def test_google_sync_requires_token(client):
    response = client.post("/api/google-calendar", json={"events": [{"title": "x", "date": "2024-10-01"}]})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Missing required data"


def test_google_sync_returns_results(client, monkeypatch):
    created = []

    def fake_sync(service, events, **options):
        created.append((service, events, options))
        return [{"eventId": e.id, "googleEventId": "g-" + e.id, "success": True} for e in events]

    monkeypatch.setattr(app_module, "create_google_service_from_token", lambda token: f"service:{token}")
    monkeypatch.setattr(app_module, "sync_events_to_google", fake_sync)

    response = client.post(
        "/api/google-calendar",
        json={
            "accessToken": "tok",
            "events": [{"id": "e1", "title": "Read chapter 1", "date": "2024-10-01", "type": "reading"}],
        },
    )

    assert response.status_code == 200
    assert response.get_json() == {"results": [{"eventId": "e1", "googleEventId": "g-e1", "success": True}]}
    service, events, options = created[0]
    assert service == "service:tok"
    assert events[0].date == date(2024, 10, 1)
    assert options["timezone"] == "America/New_York"
    assert options["calendar_id"] == "primary"
