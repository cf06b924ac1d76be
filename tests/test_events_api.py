from conftest import event_payload


def test_create_and_get_event(client, manager, event):
    assert event["status"] == "planning"
    assert event["location"]["region"] == "Auckland"
    assert event["service_requirements"][0]["category"] == "catering"
    resp = client.get(f"/api/events/{event['id']}", headers=manager[1])
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Harbour wedding"


def test_draft_events(client, manager):
    resp = client.post("/api/events", json=event_payload(is_draft=True), headers=manager[1])
    assert resp.json()["data"]["status"] == "draft"


def test_contractors_cannot_create_events(client, contractor):
    resp = client.post("/api/events", json=event_payload(), headers=contractor[1])
    assert resp.status_code == 403


def test_events_are_private_to_their_owner(client, event, register, admin):
    _, other = register("other@example.co.nz")
    assert client.get(f"/api/events/{event['id']}", headers=other).status_code == 403
    assert client.get("/api/events", headers=other).json()["data"] == []
    assert client.get(f"/api/events/{event['id']}", headers=admin[1]).status_code == 200
    assert len(client.get("/api/events", headers=admin[1]).json()["data"]) == 1


def test_update_event(client, manager, event):
    resp = client.put(
        f"/api/events/{event['id']}",
        json={"status": "confirmed", "budget_total": 12000, "title": None},
        headers=manager[1],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "confirmed"
    assert data["budget_total"] == 12000
    assert data["title"] == "Harbour wedding"


def test_invalid_event_type(client, manager):
    resp = client.post("/api/events", json=event_payload(event_type="coronation"), headers=manager[1])
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "event_type"


def test_delete_event(client, manager, event):
    assert client.delete(f"/api/events/{event['id']}", headers=manager[1]).status_code == 200
    assert client.get(f"/api/events/{event['id']}", headers=manager[1]).status_code == 404


def test_list_filters_by_status(client, manager, event):
    client.post("/api/events", json=event_payload(is_draft=True, title="Draft"), headers=manager[1])
    drafts = client.get("/api/events", params={"status": "draft"}, headers=manager[1]).json()["data"]
    assert [e["title"] for e in drafts] == ["Draft"]
