def test_cluster_supplied_points(client):
    points = [
        {"id": "a", "lat": -36.85, "lng": 174.76, "service_types": ["catering"]},
        {"id": "b", "lat": -36.86, "lng": 174.77, "service_types": ["music"]},
        {"id": "c", "lat": -41.29, "lng": 174.78},
    ]
    resp = client.post("/api/map/clusters", json={"points": points, "zoom": 6})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total_points"] == 3
    assert len(data["clusters"]) == 1
    assert data["clusters"][0]["member_ids"] == ["a", "b"]
    assert [p["id"] for p in data["pins"]] == ["c"]


def test_invalid_zoom(client):
    resp = client.post("/api/map/clusters", json={"points": [], "zoom": 30})
    assert resp.status_code == 400


def test_cluster_stored_contractors(client, contractor, register):
    user, _ = contractor
    _, headers = register("band@example.co.nz", role="contractor")
    client.post(
        "/api/contractors",
        json={"company_name": "Kiwi Band", "service_categories": ["music"], "latitude": -36.86, "longitude": 174.77},
        headers=headers,
    )
    resp = client.get("/api/map/clusters", params={"zoom": 6})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total_points"] == 2
    assert data["clusters"][0]["count"] == 2
    assert data["clusters"][0]["has_verified"] is True

    verified = client.get("/api/map/clusters", params={"zoom": 6, "verified_only": True}).json()["data"]
    assert [p["id"] for p in verified["pins"]] == [f"contractor-{user['id']}"]

    music = client.get("/api/map/clusters", params={"zoom": 6, "service_type": "music"}).json()["data"]
    assert music["total_points"] == 1


def test_viewport_requires_all_edges(client):
    resp = client.get("/api/map/clusters", params={"zoom": 6, "north": -36})
    assert resp.status_code == 400

    resp = client.get(
        "/api/map/clusters",
        params={"zoom": 6, "north": -40, "south": -42, "east": 176, "west": 173},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["total_points"] == 0
