from __future__ import annotations

from datetime import datetime

import pytest

import config.testing as testing_settings
from conftest import WORKPLACE, north_of
from geo_attendance.attendance.controller import record_to_dict
from geo_attendance.attendance.model import AttendanceRecord
from geo_attendance.container import build_container
from geo_attendance.core.enums import AttendanceStatus
from geo_attendance.location.provider import FixedLocationProvider
from geo_attendance.main import create_app


@pytest.fixture
def container(clock):
    provider = FixedLocationProvider(
        latitude=WORKPLACE.latitude,
        longitude=WORKPLACE.longitude,
        timestamp_factory=clock.now,
    )
    return build_container(settings=testing_settings, clock=clock, location_provider=provider)


@pytest.fixture
def client(container):
    app = create_app(settings=testing_settings, container=container)
    return app.test_client()


def login(client, user_id: int, role: str = "sevak"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role


def test_requires_login(client):
    resp = client.post("/attendance/check-in", json={})
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_check_in_then_duplicate(client):
    login(client, 1)

    resp = client.post("/attendance/check-in", json={})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["record"]["status"] == "PRESENT"
    assert body["record"]["check_in"]["verified"] is True
    assert body["record"]["date"] == "2026-02-02"

    resp = client.post("/attendance/check-in", json={})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "AlreadyCheckedIn"


def test_check_out_without_check_in(client):
    login(client, 1)
    resp = client.post("/attendance/check-out", json={})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "NotCheckedIn"


def test_check_out_reports_hours(client, clock):
    login(client, 1)
    client.post("/attendance/check-in", json={})
    clock.advance(hours=8)

    resp = client.post("/attendance/check-out", json={})
    assert resp.status_code == 200
    assert resp.get_json()["record"]["total_hours"] == 8

    today = client.get("/attendance/today").get_json()
    assert today["record"]["check_out"] is not None


def test_out_of_range_location_payload(client):
    login(client, 1)
    far = north_of(WORKPLACE, 300)
    resp = client.post(
        "/attendance/check-in",
        json={"location": {"latitude": far.latitude, "longitude": far.longitude, "accuracy": 5}},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "OutOfRangeError"
    assert client.get("/attendance/today").get_json()["record"] is None


def test_malformed_location_payload(client):
    login(client, 1)
    resp = client.post("/attendance/check-in", json={"location": {"latitude": "north"}})
    assert resp.status_code == 400


def test_approve_requires_approver_role(client):
    login(client, 1)
    record_id = client.post("/attendance/check-in", json={}).get_json()["record"]["id"]

    assert client.post(f"/attendance/{record_id}/approve").status_code == 403

    login(client, 2, role="hod")
    resp = client.post(f"/attendance/{record_id}/approve")
    assert resp.status_code == 200
    assert resp.get_json()["record"]["approved_by"] is None  # already verified

    assert client.post("/attendance/999/approve").status_code == 404


def test_notes_on_own_record(client):
    login(client, 1)
    record_id = client.post("/attendance/check-in", json={}).get_json()["record"]["id"]

    resp = client.post(f"/attendance/{record_id}/notes", json={"notes": "site visit"})
    assert resp.status_code == 200
    assert resp.get_json()["record"]["notes"] == "site visit"

    login(client, 3)
    assert client.post(f"/attendance/{record_id}/notes", json={"notes": "x"}).status_code == 403


def test_history_and_stats(client):
    login(client, 1)
    client.post("/attendance/check-in", json={})

    resp = client.get("/attendance/history?start=2026-02-01&end=2026-02-02")
    assert [r["date"] for r in resp.get_json()["records"]] == ["2026-02-02"]

    assert client.get("/attendance/history?start=02/01/2026").status_code == 400
    assert client.get("/attendance/history?start=2026-02-03&end=2026-02-02").status_code == 400

    stats = client.get("/attendance/stats?period=weekly").get_json()["stats"]
    assert stats["present_days"] == 1
    assert client.get("/attendance/stats?period=hourly").status_code == 400


@pytest.mark.parametrize("status", list(AttendanceStatus))
def test_status_serialized_with_enum_value(status):
    now = datetime(2026, 2, 2, 9, 0)
    record = AttendanceRecord(
        record_id=1, user_id=1, work_date=now.date(), status=status, created_at=now, updated_at=now
    )
    assert record_to_dict(record)["status"] == status.value
    assert record_to_dict(record)["status"].isupper()


def test_monthly_stats_route(client):
    login(client, 1)
    client.post("/attendance/check-in", json={})

    resp = client.get("/attendance/stats?month=2&year=2026")
    assert resp.status_code == 200
    stats = resp.get_json()["stats"]
    assert (stats["start_date"], stats["end_date"]) == ("2026-02-01", "2026-02-02")
    assert stats["present_days"] == 1

    january = client.get("/attendance/stats?month=1&year=2026").get_json()["stats"]
    assert january["end_date"] == "2026-01-31"
    assert january["present_days"] == 0

    assert client.get("/attendance/stats?month=2").status_code == 400
    assert client.get("/attendance/stats?month=feb&year=2026").status_code == 400
    assert client.get("/attendance/stats?month=5&year=2026").status_code == 400
