from datetime import timedelta

from fastapi.testclient import TestClient

from flavatix_backend.app.db.models import QuickTasting

def test_health(client: TestClient):
    assert client.get("/health").json() == {"ok": True}
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.headers.get("X-Request-ID", "").startswith("req-")

def test_create_quick_tasting_contract(client: TestClient, auth):
    r = client.post("/api/tastings/create", json={"mode": "quick", "category": "coffee"}, headers=auth("alice"))
    assert r.status_code == 201
    body = r.json()
    assert set(["tasting", "items", "message"]).issubset(body.keys())
    t = body["tasting"]
    assert t["user_id"] == "alice"
    assert t["session_name"] == "Coffee Quick Tasting"
    assert t["total_items"] == 0
    assert t["study_approach"] is None
    assert t["is_blind_items"] is False

def test_create_requires_auth_and_matching_user(client: TestClient, auth):
    assert client.post("/api/tastings/create", json={"mode": "quick", "category": "coffee"}).status_code == 401
    r = client.post("/api/tastings/create",
                    json={"mode": "quick", "category": "coffee", "user_id": "mallory"},
                    headers=auth("alice"))
    assert r.status_code == 403
    assert "error" in r.json()

def test_create_validation(client: TestClient, auth):
    h = auth("alice")
    r = client.post("/api/tastings/create", json={"mode": "competition", "category": "wine"}, headers=h)
    assert r.status_code == 400
    r = client.post("/api/tastings/create",
                    json={"mode": "study", "category": "wine", "items": [{"item_name": "x"}]}, headers=h)
    assert r.status_code == 400
    # malformed input is a 400, not a 422
    r = client.post("/api/tastings/create", json={"mode": "speed", "category": "wine"}, headers=h)
    assert r.status_code == 400
    assert "error" in r.json()

def test_study_mode_defaults_to_collaborative(make_tasting):
    body = make_tasting("alice", mode="study", category="tea")
    assert body["tasting"]["study_approach"] == "collaborative"
    assert body["tasting"]["session_name"] == "Tea Study"

def test_items_update_complete_and_stats(client: TestClient, auth, make_tasting):
    tid = make_tasting("alice")["tasting"]["id"]
    h = auth("alice")

    r = client.post(f"/api/tastings/{tid}/items", json={"item_name": "Ethiopia Guji"}, headers=h)
    assert r.status_code == 201
    item_id = r.json()["item"]["id"]

    # only the owner edits
    assert client.post(f"/api/tastings/{tid}/items", json={"item_name": "x"}, headers=auth("bob")).status_code == 403

    r = client.patch(f"/api/tastings/{tid}/items/{item_id}",
                     json={"aroma": "strong jasmine", "flavor": "peach", "overall_score": 88}, headers=h)
    assert r.status_code == 200
    assert r.json()["item"]["overall_score"] == 88
    assert r.json()["descriptors_saved"] >= 2

    assert client.patch(f"/api/tastings/{tid}/items/nope", json={"notes": "x"}, headers=h).status_code == 404
    assert client.patch(f"/api/tastings/{tid}/items/{item_id}",
                        json={"overall_score": 101}, headers=h).status_code == 400

    r = client.post(f"/api/tastings/{tid}/complete", json={"notes": "lovely"}, headers=h)
    assert r.status_code == 200
    t = r.json()["tasting"]
    assert t["completed_items"] == 1
    assert t["average_score"] == 88
    assert t["completed_at"] is not None
    assert [(i["id"], i["overall_score"]) for i in r.json()["items"]] == [(item_id, 88)]

    stats = client.get("/api/tastings/stats", headers=h).json()
    assert stats["total_tastings"] == 1
    assert stats["average_rating"] == 88
    assert stats["most_tasted_category"] == "coffee"
    assert stats["current_streak"] == 1

def test_empty_stats(client: TestClient, auth):
    stats = client.get("/api/tastings/stats", headers=auth("nobody")).json()
    assert stats["total_tastings"] == 0
    assert stats["most_tasted_category"] is None

def test_history_filters_and_sorting(client: TestClient, auth, make_tasting):
    make_tasting("alice", category="coffee")
    make_tasting("alice", category="wine")
    make_tasting("bob", category="wine")
    h = auth("alice")

    rows = client.get("/api/tastings/history", headers=h).json()["data"]
    assert len(rows) == 2
    rows = client.get("/api/tastings/history?category=wine", headers=h).json()["data"]
    assert [r["tasting"]["category"] for r in rows] == ["wine"]
    rows = client.get("/api/tastings/history?sort_by=category&sort_order=asc", headers=h).json()["data"]
    assert [r["tasting"]["category"] for r in rows] == ["coffee", "wine"]
    assert client.get("/api/tastings/history?sort_by=weird", headers=h).status_code == 400

def test_get_and_delete(client: TestClient, auth, make_tasting):
    tid = make_tasting("alice")["tasting"]["id"]
    assert client.get(f"/api/tastings/{tid}").status_code == 200
    assert client.delete(f"/api/tastings/{tid}", headers=auth("bob")).status_code == 403
    r = client.delete(f"/api/tastings/{tid}", headers=auth("alice"))
    assert r.status_code == 200
    assert client.get(f"/api/tastings/{tid}").status_code == 404

def test_unsupported_method_is_405(client: TestClient):
    assert client.put("/api/tastings/create", json={}).status_code == 405

def test_create_returns_items_and_blind_flags(client: TestClient, auth):
    payload = {
        "mode": "competition",
        "category": "wine",
        "is_blind_items": True,
        "is_blind_attributes": True,
        "items": [{"item_name": "Glass 1"}, {"item_name": "Glass 2", "include_in_ranking": False}],
    }
    r = client.post("/api/tastings/create", json=payload, headers=auth("alice"))
    assert r.status_code == 201
    body = r.json()
    t = body["tasting"]
    assert (t["is_blind_participants"], t["is_blind_items"], t["is_blind_attributes"]) == (False, True, True)
    ranked = {i["item_name"]: i["include_in_ranking"] for i in body["items"]}
    assert ranked == {"Glass 1": True, "Glass 2": False}
    assert all(i["id"] and i["tasting_id"] == t["id"] for i in body["items"])

    again = client.get(f"/api/tastings/{t['id']}").json()["tasting"]
    assert again["is_blind_items"] is True

def test_shared_term_on_two_items_counts_twice(client: TestClient, auth, make_tasting):
    tid = make_tasting("alice")["tasting"]["id"]
    h = auth("alice")
    ids = []
    for name in ("Guji", "Huila"):
        ids.append(client.post(f"/api/tastings/{tid}/items", json={"item_name": name}, headers=h).json()["item"]["id"])
    for item_id in ids:
        r = client.patch(f"/api/tastings/{tid}/items/{item_id}", json={"aroma": "cherry"}, headers=h)
        assert r.json()["item"]["aroma"] == "cherry"

    def total(scope_type, scope_filter):
        r = client.post("/api/flavor-wheels/generate", headers=h,
                        json={"wheel_type": "aroma", "scope_type": scope_type, "scope_filter": scope_filter})
        return r.json()["wheel_data"]["total_descriptors"]

    assert total("tasting", {"tasting_id": tid}) == 2
    assert total("item", {"item_name": "Guji"}) == 1
    assert total("item", {"item_name": "Huila"}) == 1

def test_timestamps_are_stored_as_utc(client: TestClient, auth, make_tasting, session):
    tid = make_tasting("alice")["tasting"]["id"]
    row = session.get(QuickTasting, tid)
    assert row.created_at.utcoffset() == timedelta(0)
    assert row.completed_at is None

    # naive query dates are read as UTC
    rows = client.get("/api/tastings/history?date_from=2000-01-01T00:00:00", headers=auth("alice")).json()["data"]
    assert [r["tasting"]["id"] for r in rows] == [tid]
    rows = client.get("/api/tastings/history?date_to=2000-01-01T00:00:00", headers=auth("alice")).json()["data"]
    assert rows == []
