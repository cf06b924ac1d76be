def _submit(client, headers, contractor_id, event_id=None, rating=5, comment="Great <b>food</b>"):
    return client.post(
        "/api/testimonials",
        json={"contractor_id": contractor_id, "event_id": event_id, "rating": rating, "comment": comment},
        headers=headers,
    )


def test_submit_and_moderate(client, admin, manager, contractor, event):
    contractor_id = contractor[0]["id"]
    resp = _submit(client, manager[1], contractor_id, event["id"])
    assert resp.status_code == 201
    testimonial = resp.json()["data"]
    assert testimonial["is_approved"] is False
    assert testimonial["comment"] == "Great &lt;b&gt;food&lt;/b&gt;"

    # Unapproved testimonials are hidden from other users.
    visible = client.get("/api/testimonials", params={"contractor_id": contractor_id}, headers=contractor[1]).json()["data"]
    assert visible == []

    resp = client.put(f"/api/testimonials/{testimonial['id']}/moderate", json={"approved": True}, headers=manager[1])
    assert resp.status_code == 403
    resp = client.put(f"/api/testimonials/{testimonial['id']}/moderate", json={"approved": True}, headers=admin[1])
    assert resp.status_code == 200
    assert resp.json()["data"]["moderated_by"] == admin[0]["id"]

    visible = client.get("/api/testimonials", params={"contractor_id": contractor_id}, headers=contractor[1]).json()["data"]
    assert len(visible) == 1
    profile = client.get(f"/api/contractors/{contractor_id}").json()["data"]
    assert profile["average_rating"] == 5
    assert profile["review_count"] == 1


def test_duplicate_testimonial_conflicts(client, manager, contractor, event):
    assert _submit(client, manager[1], contractor[0]["id"], event["id"]).status_code == 201
    assert _submit(client, manager[1], contractor[0]["id"], event["id"]).status_code == 409


def test_rating_bounds(client, manager, contractor):
    assert _submit(client, manager[1], contractor[0]["id"], rating=6).status_code == 400


def test_cannot_review_for_someone_elses_event(client, contractor, event, register):
    _, other = register("other@example.co.nz")
    assert _submit(client, other, contractor[0]["id"], event["id"]).status_code == 403


def test_contractors_cannot_submit(client, contractor):
    assert _submit(client, contractor[1], contractor[0]["id"]).status_code == 403


def test_delete_refreshes_rating(client, admin, manager, contractor):
    contractor_id = contractor[0]["id"]
    testimonial = _submit(client, manager[1], contractor_id, rating=3).json()["data"]
    client.put(f"/api/testimonials/{testimonial['id']}/moderate", json={"approved": True}, headers=admin[1])
    assert client.get(f"/api/contractors/{contractor_id}").json()["data"]["average_rating"] == 3

    assert client.delete(f"/api/testimonials/{testimonial['id']}", headers=contractor[1]).status_code == 403
    assert client.delete(f"/api/testimonials/{testimonial['id']}", headers=manager[1]).status_code == 200
    profile = client.get(f"/api/contractors/{contractor_id}").json()["data"]
    assert profile["review_count"] == 0
    assert profile["average_rating"] == 0
