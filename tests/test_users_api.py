from eventpros_api.app.core.config import settings


def test_first_user_becomes_admin(register):
    admin, _ = register("first@example.co.nz")
    second, _ = register("second@example.co.nz", role="contractor")
    assert admin["role"] == "admin"
    assert second["role"] == "contractor"


def test_duplicate_email_conflicts(client, admin):
    resp = client.post("/api/users", json={"email": "ADMIN@example.co.nz", "password": "strongpassword"})
    assert resp.status_code == 409
    body = resp.json()
    assert "already registered" in body["error"]
    assert "data" not in body


def test_validation_errors_are_400_with_details(client):
    resp = client.post("/api/users", json={"email": "not-an-email", "password": "short"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    fields = {d["field"] for d in body["details"]}
    assert {"email", "password"} <= fields


def test_signup_cannot_choose_admin_role(client, admin):
    resp = client.post("/api/users", json={"email": "x@example.co.nz", "password": "strongpassword", "role": "admin"})
    assert resp.status_code == 400


def test_login_and_me(client, manager):
    user, headers = manager
    resp = client.get("/api/users/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "host@example.co.nz"
    assert resp.json()["data"]["role"] == "event_manager"


def test_bad_credentials(client, manager):
    resp = client.post("/api/users/login", json={"email": "host@example.co.nz", "password": "wrongpassword"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Incorrect email or password"


def test_missing_and_invalid_tokens(client):
    assert client.get("/api/users/me").status_code == 401
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401


def test_listing_users_is_admin_only(client, admin, manager):
    assert client.get("/api/users", headers=manager[1]).status_code == 403
    resp = client.get("/api/users", headers=admin[1])
    assert resp.status_code == 200
    assert [u["email"] for u in resp.json()["data"]] == ["admin@example.co.nz", "host@example.co.nz"]


def test_users_update_themselves_but_not_roles(client, manager):
    user, headers = manager
    resp = client.put(f"/api/users/{user['id']}", json={"full_name": "Aroha"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["full_name"] == "Aroha"
    resp = client.put(f"/api/users/{user['id']}", json={"role": "admin"}, headers=headers)
    assert resp.status_code == 403


def test_disabled_user_token_rejected(client, admin, manager):
    user, headers = manager
    resp = client.put(f"/api/users/{user['id']}", json={"disabled": True}, headers=admin[1])
    assert resp.status_code == 200
    assert client.get("/api/users/me", headers=headers).status_code == 401


def test_admin_deletes_user(client, admin, manager):
    user, headers = manager
    resp = client.delete(f"/api/users/{user['id']}", headers=admin[1])
    assert resp.status_code == 200
    assert client.delete(f"/api/users/{user['id']}", headers=admin[1]).status_code == 404
    assert client.get("/api/users/me", headers=headers).status_code == 401


def test_audit_log_is_admin_only(client, admin, manager):
    assert client.get("/api/audit/logs", headers=manager[1]).status_code == 403
    resp = client.get("/api/audit/logs", params={"object_type": "user"}, headers=admin[1])
    assert resp.status_code == 200
    actions = {(log["action"], log["object_id"]) for log in resp.json()["data"]}
    assert ("create", manager[0]["id"]) in actions


def test_service_token_acts_as_admin(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "service_token", "integration-secret")
    resp = client.get("/api/users", headers={"Authorization": "Bearer integration-secret"})
    assert resp.status_code == 200


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "ok"


def test_non_ascii_token_is_unauthorized(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "service_token", "integration-secret")
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer café".encode("latin-1")})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid or expired token"
