def test_budget_route_get_and_post(client, manager):
    headers = manager[1]
    resp = client.get(
        "/api/matching/budget",
        params={"event_budget": 8000, "price_min": 5000, "price_max": 10000},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["overall_score"] == 1.0

    resp = client.post(
        "/api/matching/budget",
        json={"event_budget": 2000, "price_min": 5000, "price_max": 10000},
        headers=headers,
    )
    assert resp.status_code == 200
    assert 0 < resp.json()["data"]["overall_score"] < 1


def test_budget_route_rejects_bad_input(client, manager):
    headers = manager[1]
    resp = client.get("/api/matching/budget", params={"event_budget": 8000}, headers=headers)
    assert resp.status_code == 400
    resp = client.get(
        "/api/matching/budget",
        params={"event_budget": 8000, "price_min": 9000, "price_max": 1000},
        headers=headers,
    )
    assert resp.status_code == 400


def test_scoring_requires_authentication(client):
    resp = client.get("/api/matching/budget", params={"event_budget": 1, "price_min": 0, "price_max": 2})
    assert resp.status_code == 401


def test_location_route(client, manager):
    resp = client.get(
        "/api/matching/location",
        params={"lat": -36.8485, "lng": 174.7633, "service_areas": ["Auckland", "Waikato"]},
        headers=manager[1],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["overall_score"] == 1.0
    assert data["breakdown"]["service_area_coverage"] is True

    resp = client.post(
        "/api/matching/location",
        json={"lat": -41.2865, "lng": 174.7762, "service_areas": ["Auckland"]},
        headers=manager[1],
    )
    assert resp.json()["data"]["overall_score"] == 0.0


def test_compatibility_route_blends(client, manager):
    resp = client.post(
        "/api/matching/compatibility",
        json={
            "event": {"budget_total": 2000, "location": {"lat": -36.8485, "lng": 174.7633}},
            "contractor": {"service_areas": ["Auckland"], "price_min": 5000, "price_max": 10000},
        },
        headers=manager[1],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["location"]["overall_score"] == 1.0
    assert data["budget"]["overall_score"] == 0.4
    assert data["blended_score"] == 0.7
    assert 0 <= data["compatibility"]["overall_score"] <= 1


def test_compatibility_route_requires_location(client, manager):
    resp = client.post(
        "/api/matching/compatibility",
        json={"event": {"budget_total": 2000}, "contractor": {}},
        headers=manager[1],
    )
    assert resp.status_code == 400


def test_find_matches_for_event(client, manager, contractor, event, register):
    # An unverified contractor is never matched.
    _, other = register("unverified@example.co.nz", role="contractor")
    client.post("/api/contractors", json={"company_name": "Pop-up Catering", "service_categories": ["catering"]}, headers=other)

    user, headers = contractor
    client.put(
        f"/api/contractors/{user['id']}/availability",
        json={"dates": ["2026-12-12"]},
        headers=headers,
    )
    resp = client.get("/api/matching/contractors", params={"event_id": event["id"]}, headers=manager[1])
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 1
    match = data["matches"][0]
    assert match["contractor_id"] == user["id"]
    assert match["budget_score"] == 1.0
    assert match["location_score"] == 1.0
    assert match["availability_score"] == 1.0
    assert match["is_premium"] is True
    assert 0 < match["overall_score"] <= 1
    assert data["analytics"]["total_contractors"] == 1
    assert data["analytics"]["premium_contractors"] == 1

    resp = client.post(
        "/api/matching/contractors",
        json={"event_id": event["id"], "service_type": "music"},
        headers=manager[1],
    )
    assert resp.json()["data"]["total"] == 0

    resp = client.post(
        "/api/matching/contractors",
        json={"event_id": event["id"], "min_score": 1.0},
        headers=manager[1],
    )
    assert resp.json()["data"]["matches"] == []


def test_matching_someone_elses_event_is_forbidden(client, event, register):
    _, other = register("nosy@example.co.nz")
    resp = client.get("/api/matching/contractors", params={"event_id": event["id"]}, headers=other)
    assert resp.status_code == 403


def test_matching_unknown_event(client, manager):
    resp = client.get("/api/matching/contractors", params={"event_id": 404}, headers=manager[1])
    assert resp.status_code == 404


def test_ranking_route(client, manager):
    base = {
        "compatibility_score": 0.9,
        "availability_score": 1.0,
        "budget_score": 0.5,
        "location_score": 0.5,
        "performance_score": 0.5,
    }
    resp = client.post(
        "/api/matching/ranking",
        json={"matches": [{"contractor_id": 7, "overall_score": 0.4, **base}, {"contractor_id": 8, "overall_score": 0.8, **base}]},
        headers=manager[1],
    )
    assert resp.status_code == 200
    ranking = resp.json()["data"]
    assert [r["contractor_id"] for r in ranking] == [8, 7]
    assert ranking[0]["match_reasons"] == ["High service compatibility", "Available for your event date"]


def test_match_feedback(client, manager, contractor, event):
    resp = client.post(
        "/api/matching/feedback",
        json={"event_id": event["id"], "contractor_id": contractor[0]["id"], "feedback_type": "positive", "rating": 5},
        headers=manager[1],
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["feedback_type"] == "positive"

    resp = client.post(
        "/api/matching/feedback",
        json={"event_id": event["id"], "contractor_id": contractor[0]["id"], "feedback_type": "meh"},
        headers=manager[1],
    )
    assert resp.status_code == 400
