def test_contractor_profile_lifecycle(client, contractor):
    user, headers = contractor
    resp = client.get(f"/api/contractors/{user['id']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["company_name"] == "Harbour Catering"
    assert data["is_verified"] is True
    assert data["service_areas"] == ["Auckland"]
    assert data["services"][0]["price_range_max"] == 10000

    resp = client.put(f"/api/contractors/{user['id']}", json={"description": "Canapés and more"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["description"] == "Canapés and more"


def test_only_contractors_create_profiles(client, manager):
    resp = client.post("/api/contractors", json={"company_name": "Nope"}, headers=manager[1])
    assert resp.status_code == 403


def test_duplicate_profile_conflicts(client, contractor):
    resp = client.post("/api/contractors", json={"company_name": "Again"}, headers=contractor[1])
    assert resp.status_code == 409


def test_contractor_cannot_verify_itself(client, register, admin):
    user, headers = register("dj@example.co.nz", role="contractor")
    client.post("/api/contractors", json={"company_name": "DJ Tane"}, headers=headers)
    resp = client.put(f"/api/contractors/{user['id']}", json={"is_verified": True}, headers=headers)
    assert resp.status_code == 403


def test_other_users_cannot_edit(client, contractor, manager):
    user, _ = contractor
    resp = client.put(f"/api/contractors/{user['id']}", json={"description": "x"}, headers=manager[1])
    assert resp.status_code == 403


def test_invalid_price_range(client, contractor):
    user, headers = contractor
    resp = client.post(
        f"/api/contractors/{user['id']}/services",
        json={"service_type": "catering", "price_range_min": 900, "price_range_max": 100},
        headers=headers,
    )
    assert resp.status_code == 400


def test_list_filters(client, contractor, register):
    other, headers = register("band@example.co.nz", role="contractor")
    client.post(
        "/api/contractors",
        json={"company_name": "Kiwi Band", "service_categories": ["music"]},
        headers=headers,
    )
    all_contractors = client.get("/api/contractors").json()["data"]
    assert {c["company_name"] for c in all_contractors} == {"Harbour Catering", "Kiwi Band"}
    verified = client.get("/api/contractors", params={"verified_only": True}).json()["data"]
    assert [c["company_name"] for c in verified] == ["Harbour Catering"]
    music = client.get("/api/contractors", params={"service_type": "music"}).json()["data"]
    assert [c["company_name"] for c in music] == ["Kiwi Band"]


def test_unknown_contractor_is_404(client):
    resp = client.get("/api/contractors/999")
    assert resp.status_code == 404
    assert "not found" in resp.json()["error"]


def test_performance_and_availability(client, contractor, admin):
    user, headers = contractor
    resp = client.put(
        f"/api/contractors/{user['id']}/performance",
        json={"overall_performance_score": 0.9, "total_projects": 10, "successful_projects": 9},
        headers=headers,
    )
    assert resp.status_code == 403
    resp = client.put(
        f"/api/contractors/{user['id']}/performance",
        json={"overall_performance_score": 0.9, "total_projects": 10, "successful_projects": 9},
        headers=admin[1],
    )
    assert resp.status_code == 200

    resp = client.get("/api/matching/performance", params={"contractor_id": user["id"]}, headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["overall_performance_score"] == 0.9
    assert data["success_rate"] == 0.9
    assert data["reliability_score"] == 0.5

    resp = client.put(
        f"/api/contractors/{user['id']}/availability",
        json={"dates": ["2026-12-12"], "is_available": True},
        headers=headers,
    )
    assert resp.status_code == 200
    resp = client.get(
        "/api/matching/availability",
        params={"contractor_id": user["id"], "event_date": "2026-12-12"},
        headers=headers,
    )
    assert resp.json()["data"]["available"] is True
    resp = client.get(
        "/api/matching/availability",
        params={"contractor_id": user["id"], "event_date": "2026-12-13"},
        headers=headers,
    )
    assert resp.json()["data"]["availability_score"] == 0.0


def test_onboarding_flow(client, register, admin):
    user, headers = register("florist@example.co.nz", role="contractor")
    client.post("/api/contractors", json={"company_name": "Petals"}, headers=headers)
    url = f"/api/contractors/{user['id']}/onboarding"

    resp = client.get(url, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["completed_steps"] == 0

    resp = client.put(url, json={"step1_completed": True, "is_submitted": True}, headers=headers)
    assert resp.status_code == 400

    resp = client.post(f"{url}/approve", headers=admin[1])
    assert resp.status_code == 400

    steps = {f"step{i}_completed": True for i in range(1, 5)}
    resp = client.put(url, json={**steps, "is_submitted": True}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["completed_steps"] == 4

    assert client.post(f"{url}/approve", headers=headers).status_code == 403
    resp = client.post(f"{url}/approve", headers=admin[1])
    assert resp.status_code == 200
    assert resp.json()["data"]["approved_by"] == admin[0]["id"]
    assert client.get(f"/api/contractors/{user['id']}").json()["data"]["is_verified"] is True
    assert client.post(f"{url}/approve", headers=admin[1]).status_code == 409


def test_delete_profile(client, contractor):
    user, headers = contractor
    assert client.delete(f"/api/contractors/{user['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/contractors/{user['id']}").status_code == 404


def test_coordinates_update_together(client, contractor):
    user, headers = contractor
    url = f"/api/contractors/{user['id']}"
    resp = client.put(url, json={"latitude": -41.29}, headers=headers)
    assert resp.status_code == 400
    profile = client.get(url).json()["data"]
    assert (profile["latitude"], profile["longitude"]) == (-36.85, 174.76)

    assert client.put(url, json={"latitude": -41.29, "longitude": None}, headers=headers).status_code == 400
    resp = client.put(url, json={"latitude": -41.29, "longitude": 174.78}, headers=headers)
    assert resp.status_code == 200
    assert (resp.json()["data"]["latitude"], resp.json()["data"]["longitude"]) == (-41.29, 174.78)
