import sqlite3

from fastapi.testclient import TestClient

from conftest import event_payload
from eventpros_api.app.main import create_app
from eventpros_api.app.services.audit_service import AuditService


def test_unhandled_error_returns_500_envelope():
    app = create_app()

    @app.get("/broken")
    async def broken():
        raise RuntimeError("database exploded")

    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/broken")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert body["message"] == "An unexpected error occurred"
    assert "database exploded" not in resp.text


def test_audit_failure_does_not_fail_request(client, manager, monkeypatch):
    async def failing_log(*args, **kwargs):
        raise sqlite3.OperationalError("audit_logs is locked")

    monkeypatch.setattr(AuditService, "log", failing_log)
    resp = client.post("/api/events", json=event_payload(), headers=manager[1])
    assert resp.status_code == 201
    assert resp.json()["data"]["title"] == "Harbour wedding"
