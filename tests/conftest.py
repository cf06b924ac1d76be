import pytest
from fastapi.testclient import TestClient

from eventpros_api.app.core.config import settings
from eventpros_api.app.core.db import init_db
from eventpros_api.app.main import app


@pytest.fixture(autouse=True)
def _isolated_db(tmp_path, monkeypatch):
    """Every test runs against a fresh SQLite file."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "service_token", "")
    init_db()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register an account and return ``(user, auth_headers)``."""

    def _register(email, role="event_manager", password="strongpassword", full_name=None):
        resp = client.post(
            "/api/users",
            json={"email": email, "password": password, "role": role, "full_name": full_name},
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()["data"]
        login = client.post("/api/users/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        token = login.json()["data"]["access_token"]
        return user, {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def admin(register):
    # The first account on a fresh database becomes the administrator.
    user, headers = register("admin@example.co.nz")
    assert user["role"] == "admin"
    return user, headers


@pytest.fixture
def manager(admin, register):
    return register("host@example.co.nz")


@pytest.fixture
def contractor(admin, register, client):
    """A verified contractor based in Auckland with a catering service."""
    user, headers = register("caterer@example.co.nz", role="contractor")
    resp = client.post(
        "/api/contractors",
        json={
            "company_name": "Harbour Catering",
            "subscription_tier": "showcase",
            "service_categories": ["catering"],
            "service_areas": ["Auckland"],
            "latitude": -36.85,
            "longitude": 174.76,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    resp = client.post(
        f"/api/contractors/{user['id']}/services",
        json={"service_type": "catering", "price_range_min": 5000, "price_range_max": 10000},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    resp = client.put(f"/api/contractors/{user['id']}", json={"is_verified": True}, headers=admin[1])
    assert resp.status_code == 200, resp.text
    return user, headers


def event_payload(**overrides):
    payload = {
        "event_type": "wedding",
        "title": "Harbour wedding",
        "event_date": "2026-12-12T15:00:00",
        "duration_hours": 8,
        "attendee_count": 100,
        "location": {"address": "Viaduct, Auckland", "lat": -36.8432, "lng": 174.7574, "region": "Auckland"},
        "budget_total": 8000,
        "service_requirements": [{"category": "catering"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def event(client, manager):
    resp = client.post("/api/events", json=event_payload(), headers=manager[1])
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
