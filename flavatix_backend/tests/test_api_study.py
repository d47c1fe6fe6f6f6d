from fastapi.testclient import TestClient

CATEGORIES = [
    {"name": "Aroma", "has_scale": True, "scale_max": 10, "rank_in_summary": True},
    {"name": "Notes", "has_text": True},
]

def _create(client, auth, user="alice", **overrides):
    body = {"name": "Origin trip", "base_category": "coffee", "categories": CATEGORIES, **overrides}
    return client.post("/api/tastings/study/create", json=body, headers=auth(user))

def test_create_and_resolve_code(client: TestClient, auth):
    r = _create(client, auth)
    assert r.status_code == 201
    body = r.json()
    code = body["session_code"]
    assert len(code) == 8 and code.isalnum() and code == code.upper()

    r = client.post("/api/tastings/study/resolve-code", json={"code": code.lower()})
    assert r.json() == {"session_id": body["session_id"], "session_name": "Origin trip", "requires_auth": False}
    assert client.post("/api/tastings/study/resolve-code", json={"code": "ZZZZZZZZ"}).status_code == 404
    assert client.post("/api/tastings/study/resolve-code", json={"code": " "}).status_code == 400

def test_create_validation(client: TestClient, auth):
    assert _create(client, auth, categories=[]).status_code == 400
    assert _create(client, auth, name="x" * 121).status_code == 400
    assert _create(client, auth, categories=[{"name": "Empty"}]).status_code == 400
    assert _create(client, auth, categories=[{"name": "Big", "has_scale": True, "scale_max": 101}]).status_code == 400
    assert _create(client, auth, categories=[{"name": f"c{i}", "has_text": True} for i in range(21)]).status_code == 400

def test_join_anonymous_and_authenticated(client: TestClient, auth):
    sid = _create(client, auth).json()["session_id"]
    anon = client.post("/api/tastings/study/join", json={"session_id": sid})
    assert "participant_id" in anon.json()

    first = client.post("/api/tastings/study/join", json={"session_id": sid, "display_name": "Bob"}, headers=auth("bob"))
    again = client.post("/api/tastings/study/join", json={"session_id": sid}, headers=auth("bob"))
    assert again.json() == {"participant_id": first.json()["participant_id"], "message": "Already joined"}

def test_items_responses_and_summary(client: TestClient, auth):
    created = _create(client, auth).json()
    sid = created["session_id"]
    categories = {c["name"]: c["id"] for c in client.get(f"/api/tastings/study/{sid}/summary",
                                                         headers=auth("alice")).json()["categories"]}
    assert list(categories) == ["Aroma"]

    assert client.post(f"/api/tastings/study/{sid}/items", json={"items": [{"label": "A"}]},
                       headers=auth("bob")).status_code == 403
    r = client.post(f"/api/tastings/study/{sid}/items", json={"items": [{"label": "A"}, {"label": "B"}]},
                    headers=auth("alice"))
    assert r.status_code == 201
    item_a, item_b = [i["id"] for i in r.json()["items"]]
    listed = client.get(f"/api/tastings/study/{sid}/items").json()["items"]
    assert [i["label"] for i in listed] == ["A", "B"]

    client.post("/api/tastings/study/join", json={"session_id": sid}, headers=auth("bob"))
    aroma = categories["Aroma"]
    url = f"/api/tastings/study/{sid}/responses"
    r = client.post(url, json={"item_id": item_a, "responses": [{"category_id": aroma, "scale_value": 6}]},
                    headers=auth("bob"))
    assert r.json() == {"saved": True, "progress": 1}
    # resubmitting the same item updates in place
    r = client.post(url, json={"item_id": item_a, "responses": [{"category_id": aroma, "scale_value": 8}]},
                    headers=auth("bob"))
    assert r.json()["progress"] == 1
    client.post(url, json={"item_id": item_b, "responses": [{"category_id": aroma, "scale_value": 4}]},
                headers=auth("alice"))

    assert client.post(url, json={"item_id": item_a, "responses": [{"category_id": aroma}]},
                       headers=auth("eve")).status_code == 403
    assert client.post(url, json={"item_id": "nope", "responses": [{"category_id": aroma}]},
                       headers=auth("bob")).status_code == 404
    assert client.post(url, json={"item_id": item_a, "responses": []}, headers=auth("bob")).status_code == 400

    summary = client.get(f"/api/tastings/study/{sid}/summary", headers=auth("bob")).json()
    assert [(r["item_label"], r["score"]) for r in summary["ranking"]] == [("A", 8.0), ("B", 4.0)]
    assert summary["ai_insights"] == []
    assert client.get(f"/api/tastings/study/{sid}/summary", headers=auth("eve")).status_code == 403

def test_lifecycle(client: TestClient, auth):
    created = _create(client, auth).json()
    sid, code = created["session_id"], created["session_code"]

    assert client.post(f"/api/tastings/study/{sid}/start", headers=auth("bob")).status_code == 404
    assert client.post(f"/api/tastings/study/{sid}/start", headers=auth("alice")).json()["status"] == "active"
    assert client.post(f"/api/tastings/study/{sid}/finish", headers=auth("alice")).json()["status"] == "finished"

    # finished sessions can no longer be joined
    assert client.post("/api/tastings/study/resolve-code", json={"code": code}).status_code == 400
    assert client.post("/api/tastings/study/join", json={"session_id": sid}).status_code == 400

def test_study_routes_not_shadowed_by_tastings(client: TestClient):
    r = client.get("/api/tastings/study/unknown/items")
    assert r.status_code == 404
    assert r.json()["error"] == "Session not found"

def _aroma_category(client, auth, sid):
    summary = client.get(f"/api/tastings/study/{sid}/summary", headers=auth("alice")).json()
    return next(c["id"] for c in summary["categories"] if c["name"] == "Aroma")

def test_responses_checked_against_session_categories(client: TestClient, auth):
    sid = _create(client, auth).json()["session_id"]
    other = _create(client, auth, name="Other trip").json()["session_id"]
    item = client.post(f"/api/tastings/study/{sid}/items", json={"items": [{"label": "A"}]},
                       headers=auth("alice")).json()["items"][0]["id"]
    aroma = _aroma_category(client, auth, sid)
    url = f"/api/tastings/study/{sid}/responses"
    h = auth("alice")

    foreign = _aroma_category(client, auth, other)
    r = client.post(url, json={"item_id": item, "responses": [{"category_id": foreign, "scale_value": 5}]}, headers=h)
    assert r.status_code == 400
    assert client.post(url, json={"item_id": item, "responses": [{"category_id": "missing"}]},
                       headers=h).status_code == 400

    for bad in (11, -1):
        r = client.post(url, json={"item_id": item, "responses": [{"category_id": aroma, "scale_value": bad}]},
                        headers=h)
        assert r.status_code == 400
    assert client.post(url, json={"item_id": item, "responses": [{"category_id": aroma, "scale_value": 10}]},
                       headers=h).json()["saved"] is True

    # rejected submissions leave the summary untouched
    summary = client.get(f"/api/tastings/study/{sid}/summary", headers=h).json()
    assert [(r["item_label"], r["score"]) for r in summary["ranking"]] == [("A", 10.0)]
