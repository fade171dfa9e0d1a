from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from plenpilot_api.app.core.security import create_access_token
from plenpilot_api.app.main import app


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


def auth(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


def test_login_and_me(client, make_user):
    user = make_user("Kari", password="hemmelig")
    response = client.post("/api/v1/auth/login", json={"email": user.email, "password": "hemmelig"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Kari"

    bad = client.post("/api/v1/auth/login", json={"email": user.email, "password": "feil"})
    assert bad.status_code == 401


def test_requires_authentication(client):
    assert client.get("/api/v1/locations/").status_code == 401


def test_admin_routes_reject_employees(client, admin, make_user):
    employee = make_user()
    response = client.post(
        "/api/v1/locations/",
        json={"name": "Parken", "maintenance_frequency": 2, "edge_cutting_frequency": 4, "start_week": 18},
        headers=auth(employee),
    )
    assert response.status_code == 403


def test_location_validation(client, admin):
    response = client.post(
        "/api/v1/locations/",
        json={"name": "Parken", "maintenance_frequency": 0, "edge_cutting_frequency": 4, "start_week": 60},
        headers=auth(admin),
    )
    assert response.status_code == 422


def test_time_entry_flow_and_weekly_status(client, admin, make_user):
    anne, bjorn = make_user("Anne"), make_user("Bjørn")
    created = client.post(
        "/api/v1/locations/",
        json={"name": "Parken", "maintenance_frequency": 2, "edge_cutting_frequency": 4, "start_week": 18},
        headers=auth(admin),
    )
    assert created.status_code == 201
    location_id = created.json()["id"]

    entry = client.post(
        "/api/v1/time-entries/",
        json={
            "location_id": location_id,
            "date": datetime(2024, 5, 14, 10).isoformat(),
            "hours": 2,
            "tagged_employee_ids": [bjorn.id],
        },
        headers=auth(anne),
    )
    assert entry.status_code == 201

    status = client.get("/api/v1/locations/weekly-status", params={"week": 20, "year": 2024}, headers=auth(anne))
    assert status.status_code == 200
    [location] = status.json()
    assert location["status"] == "ikke_utfort"

    pending = client.get("/api/v1/time-entries/pending", headers=auth(bjorn))
    assert [e["id"] for e in pending.json()] == [entry.json()["id"]]

    unread = client.get("/api/v1/notifications/unread", headers=auth(bjorn))
    [notification] = unread.json()
    assert notification["type"] == "job_tagged"
    read = client.post(f"/api/v1/notifications/{notification['id']}/read", headers=auth(bjorn))
    assert read.status_code == 204


def test_time_entry_for_unknown_location(client, make_user):
    employee = make_user()
    response = client.post("/api/v1/time-entries/", json={"location_id": 999, "hours": 1}, headers=auth(employee))
    assert response.status_code == 400


def test_weekly_status_for_missing_week(client, make_user):
    response = client.get(
        "/api/v1/locations/weekly-status", params={"week": 53, "year": 2021}, headers=auth(make_user())
    )
    assert response.status_code == 400


def test_service_error_is_returned_as_message(client, make_user, monkeypatch):
    from plenpilot_api.app.core.errors import ServiceError
    from plenpilot_api.app.services.location_service import LocationService

    async def failing(week_number, year=None):
        raise ServiceError("Could not get locations with weekly status")

    monkeypatch.setattr(LocationService, "get_locations_with_weekly_status", failing)
    response = client.get("/api/v1/locations/weekly-status", params={"week": 20}, headers=auth(make_user()))
    assert response.status_code == 500
    assert response.json() == {"detail": "Could not get locations with weekly status"}


def test_bulk_notifications_forbidden_for_employees(client, admin, make_user):
    employee = make_user()
    response = client.post(
        "/api/v1/notifications/bulk",
        json={"user_ids": [admin.id], "title": "Hei", "message": "Test"},
        headers=auth(employee),
    )
    assert response.status_code == 403

    response = client.post(
        "/api/v1/notifications/bulk",
        json={"user_ids": [employee.id], "title": "Hei", "message": "Test"},
        headers=auth(admin),
    )
    assert response.status_code == 201
    assert response.json()["notifications_created"] == 1

    response = client.post(
        "/api/v1/notifications/bulk",
        json={"user_ids": [employee.id, 424242], "title": "Hei", "message": "Test"},
        headers=auth(admin),
    )
    assert response.status_code == 400

    response = client.post(
        "/api/v1/notifications/bulk",
        json={"user_ids": [employee.id], "title": "Hei", "message": "Test", "type": "spam"},
        headers=auth(admin),
    )
    assert response.status_code == 422


def test_dashboard_stats(client, admin, make_user):
    response = client.get("/api/v1/dashboard/", params={"week": 20, "year": 2024}, headers=auth(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["week"] == 20
    assert body["total_locations"] == 0


def test_register_fcm_token(client, make_user):
    from plenpilot_api.app.core.db import get_connection

    user = make_user()
    response = client.put("/api/v1/auth/me/fcm-token", json={"token": "abc"}, headers=auth(user))
    assert response.status_code == 204
    conn = get_connection()
    try:
        assert conn.execute("SELECT fcm_token FROM users WHERE id = ?", (user.id,)).fetchone()[0] == "abc"
    finally:
        conn.close()
