from fastapi.testclient import TestClient

ITEMS = [
    {"item_name": "Mystery A", "correct_answers": {"overall_score": 80, "aroma": "jasmine", "flavor": "peach"}},
    {"item_name": "Mystery B", "correct_answers": {"overall_score": 60, "aroma": "caramel"}},
]

def _competition(client, auth, make_tasting):
    body = make_tasting("alice", mode="competition", category="coffee", items=ITEMS)
    tid = body["tasting"]["id"]
    ids = [i["id"] for i in body["items"]]
    for user in ("bob", "carol"):
        client.post(f"/api/tastings/{tid}/participants", headers=auth(user))
    return tid, ids

def test_submit_scores_and_ranks(client: TestClient, auth, make_tasting):
    tid, (a, b) = _competition(client, auth, make_tasting)
    url = f"/api/tastings/{tid}/competition/submit"

    perfect = [
        {"item_id": a, "aroma": "jasmine", "flavor": "peach", "overall_score": 80},
        {"item_id": b, "aroma": "caramel", "overall_score": 60},
    ]
    r = client.post(url, json={"answers": perfect}, headers=auth("bob"))
    assert r.status_code == 200
    assert r.json() == {"score": 100, "rank": 1, "answered": 2, "total_items": 2}

    r = client.post(url, json={"answers": [{"item_id": a, "aroma": "smoke", "overall_score": 20}]}, headers=auth("carol"))
    assert r.json()["rank"] == 2
    assert r.json()["score"] < 100

    board = client.get(f"/api/tastings/{tid}/competition/leaderboard").json()["leaderboard"]
    assert [(row["rank"], row["user_id"]) for row in board] == [(1, "bob"), (2, "carol")]

def test_submit_once_only(client: TestClient, auth, make_tasting):
    tid, (a, _) = _competition(client, auth, make_tasting)
    url = f"/api/tastings/{tid}/competition/submit"
    payload = {"answers": [{"item_id": a, "aroma": "jasmine"}]}
    assert client.post(url, json=payload, headers=auth("bob")).status_code == 200
    assert client.post(url, json=payload, headers=auth("bob")).status_code == 409

def test_submit_rules(client: TestClient, auth, make_tasting):
    tid, (a, _) = _competition(client, auth, make_tasting)
    payload = {"answers": [{"item_id": a}]}
    assert client.post(f"/api/tastings/{tid}/competition/submit", json=payload, headers=auth("eve")).status_code == 404

    quick = make_tasting("alice")["tasting"]["id"]
    assert client.post(f"/api/tastings/{quick}/competition/submit", json=payload, headers=auth("alice")).status_code == 404
    assert client.get(f"/api/tastings/{quick}/competition/leaderboard").status_code == 404

def test_answers_feed_the_tasting_wheel(client: TestClient, auth, make_tasting):
    tid, (a, _) = _competition(client, auth, make_tasting)
    client.post(f"/api/tastings/{tid}/competition/submit",
                json={"answers": [{"item_id": a, "aroma": "jasmine and lemon"}]}, headers=auth("bob"))
    r = client.post("/api/flavor-wheels/generate",
                    json={"wheel_type": "aroma", "scope_type": "tasting", "scope_filter": {"tasting_id": tid}},
                    headers=auth("alice"))
    assert r.json()["wheel_data"]["total_descriptors"] == 2

def test_each_competitor_keeps_their_descriptors(client: TestClient, auth, make_tasting):
    tid, (a, _) = _competition(client, auth, make_tasting)
    url = f"/api/tastings/{tid}/competition/submit"
    for user in ("bob", "carol"):
        assert client.post(url, json={"answers": [{"item_id": a, "aroma": "cherry"}]}, headers=auth(user)).status_code == 200

    for user in ("bob", "carol"):
        r = client.post("/api/flavor-wheels/generate",
                        json={"wheel_type": "aroma", "scope_type": "personal"}, headers=auth(user))
        assert r.json()["wheel_data"]["total_descriptors"] == 1

    r = client.post("/api/flavor-wheels/generate",
                    json={"wheel_type": "aroma", "scope_type": "tasting", "scope_filter": {"tasting_id": tid}},
                    headers=auth("alice"))
    assert r.json()["wheel_data"]["total_descriptors"] == 2
