from datetime import timedelta

from fastapi.testclient import TestClient

from flavatix_backend.app.db.models import FlavorWheel, utcnow
from flavatix_backend.app.db.seed import seed_defaults
from flavatix_backend.app.routers.flavor_wheels import EMPTY_WHEEL_MESSAGE

def _extract(client, auth, user="alice", **body):
    payload = {"source_type": "quick_review", "source_id": "r1", **body}
    return client.post("/api/flavor-wheels/extract-descriptors", json=payload, headers=auth(user))

def _generate(client, auth, user="alice", **body):
    return client.post("/api/flavor-wheels/generate", json=body, headers=auth(user))

# ---------- extraction ----------
def test_extract_from_text(client: TestClient, auth):
    r = _extract(client, auth, text="a strong jasmine with lemon",
                 item_context={"item_name": "Guji", "item_category": "coffee"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["saved_count"] == 2
    jasmine = next(d for d in body["descriptors"] if d["text"] == "jasmine")
    assert jasmine["intensity"] == 4

def test_structured_data_wins_over_text(client: TestClient, auth):
    r = _extract(client, auth, text="lemon", structured_data={"texture_notes": "silky"})
    assert [(d["text"], d["type"]) for d in r.json()["descriptors"]] == [("silky", "texture")]
    # blank structured notes still win; the text is not used
    r = _extract(client, auth, text="lemon", structured_data={"aroma_notes": ""})
    assert r.status_code == 200
    assert (r.json()["descriptors"], r.json()["saved_count"]) == ([], 0)

def test_extract_validation(client: TestClient, auth):
    assert _extract(client, auth).status_code == 400
    assert _extract(client, auth, text="   ").status_code == 400
    assert _extract(client, auth, text="lemon", source_type="tweet").status_code == 400
    assert _extract(client, auth, text="lemon", source_id="").status_code == 400
    r = client.post("/api/flavor-wheels/extract-descriptors",
                    json={"source_type": "quick_review", "source_id": "r1", "text": "lemon"})
    assert r.status_code == 401

def test_extract_is_idempotent_per_source(client: TestClient, auth):
    _extract(client, auth, text="lemon")
    _extract(client, auth, text="lemon")
    wheel = _generate(client, auth, wheel_type="aroma", scope_type="universal").json()["wheel_data"]
    assert wheel["total_descriptors"] == 1

# ---------- generation & cache ----------
def test_generate_personal_wheel_and_cache(client: TestClient, auth):
    _extract(client, auth, text="jasmine, lemon, lime")
    _extract(client, auth, user="bob", source_id="r2", text="peach")

    first = _generate(client, auth, wheel_type="aroma", scope_type="personal",
                      scope_filter={"user_id": "bob"})
    body = first.json()
    assert body["success"] is True and body["cached"] is False
    # personal scope always means the caller
    assert body["wheel_data"]["total_descriptors"] == 3
    names = [c["name"] for c in body["wheel_data"]["categories"]]
    assert names == ["Fruity", "Floral"]

    second = _generate(client, auth, wheel_type="aroma", scope_type="personal").json()
    assert second["cached"] is True
    assert second["wheel_id"] == body["wheel_id"]

    forced = _generate(client, auth, wheel_type="aroma", scope_type="personal", force_regenerate=True).json()
    assert forced["cached"] is False
    assert forced["wheel_id"] != body["wheel_id"]

def test_force_regenerate_keeps_other_cached_wheels(client: TestClient, auth):
    _extract(client, auth, text="jasmine, lemon")
    _extract(client, auth, user="bob", source_id="r2", text="peach")
    universal = _generate(client, auth, wheel_type="aroma", scope_type="universal").json()["wheel_id"]
    bobs = _generate(client, auth, user="bob", wheel_type="aroma", scope_type="personal").json()["wheel_id"]

    forced = _generate(client, auth, wheel_type="aroma", scope_type="personal", force_regenerate=True).json()
    assert forced["cached"] is False

    again = _generate(client, auth, wheel_type="aroma", scope_type="universal").json()
    assert (again["cached"], again["wheel_id"]) == (True, universal)
    again = _generate(client, auth, user="bob", wheel_type="aroma", scope_type="personal").json()
    assert (again["cached"], again["wheel_id"]) == (True, bobs)

def test_combined_wheel_excludes_texture_and_metaphor(client: TestClient, auth):
    _extract(client, auth, structured_data={
        "aroma_notes": "jasmine", "flavor_notes": "peach", "texture_notes": "silky", "other_notes": "summer",
    })
    combined = _generate(client, auth, wheel_type="combined", scope_type="universal").json()["wheel_data"]
    assert combined["total_descriptors"] == 2
    metaphor = _generate(client, auth, wheel_type="metaphor", scope_type="universal").json()["wheel_data"]
    assert metaphor["categories"][0]["name"] == "Temporal"

def test_scoped_wheels_need_their_filter(client: TestClient, auth):
    for scope in ("item", "category", "tasting"):
        assert _generate(client, auth, wheel_type="aroma", scope_type=scope).status_code == 400
    assert _generate(client, auth, wheel_type="aroma", scope_type="galaxy").status_code == 400

def test_item_and_category_scopes(client: TestClient, auth):
    _extract(client, auth, text="jasmine", item_context={"item_name": "Guji", "item_category": "coffee"})
    _extract(client, auth, source_id="r2", text="lemon", item_context={"item_name": "Earl Grey", "item_category": "tea"})

    item = _generate(client, auth, wheel_type="aroma", scope_type="item", scope_filter={"item_name": "Guji"}).json()
    assert item["wheel_data"]["total_descriptors"] == 1
    cat = _generate(client, auth, wheel_type="aroma", scope_type="category",
                    scope_filter={"item_category": "tea"}).json()
    assert cat["wheel_data"]["categories"][0]["subcategories"][0]["descriptors"][0]["text"] == "lemon"

def test_tasting_scope_uses_item_notes(client: TestClient, auth, make_tasting):
    body = make_tasting("alice", mode="quick")
    tid = body["tasting"]["id"]
    item = client.post(f"/api/tastings/{tid}/items", json={"item_name": "Guji"}, headers=auth("alice")).json()["item"]
    client.patch(f"/api/tastings/{tid}/items/{item['id']}", json={"aroma": "jasmine and bergamot"}, headers=auth("alice"))
    # same source id but a review, so not part of the tasting
    _extract(client, auth, source_id=tid, text="peach")

    wheel = _generate(client, auth, wheel_type="aroma", scope_type="tasting",
                      scope_filter={"tasting_id": tid}).json()["wheel_data"]
    assert wheel["total_descriptors"] == 2

def test_empty_wheel_reports_message(client: TestClient, auth):
    body = _generate(client, auth, wheel_type="flavor", scope_type="personal").json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["wheel_data"]["categories"] == []
    assert body["error"] == EMPTY_WHEEL_MESSAGE

def test_generate_limits(client: TestClient, auth):
    for i in range(3):
        _extract(client, auth, source_id=f"r{i}", text="lemon")
    _extract(client, auth, source_id="x", text="lime")
    wheel = _generate(client, auth, wheel_type="aroma", scope_type="universal", min_descriptor_count=2).json()
    terms = [d["text"] for c in wheel["wheel_data"]["categories"] for s in c["subcategories"] for d in s["descriptors"]]
    assert terms == ["lemon"]
    assert _generate(client, auth, wheel_type="aroma", scope_type="universal",
                     max_descriptors_per_subcategory=0).status_code == 400

# ---------- maintenance ----------
def test_stale_stats_and_cleanup(client: TestClient, auth, session):
    _extract(client, auth, text="lemon")
    wheel_id = _generate(client, auth, wheel_type="aroma", scope_type="personal").json()["wheel_id"]
    assert client.get(f"/api/flavor-wheels/{wheel_id}/stale").json()["should_regenerate"] is False

    _extract(client, auth, source_id="r2", text="lime")
    assert client.get(f"/api/flavor-wheels/{wheel_id}/stale").json()["should_regenerate"] is True
    assert client.get("/api/flavor-wheels/missing/stale").json()["should_regenerate"] is True

    stats = client.get("/api/flavor-wheels/stats", headers=auth("alice")).json()
    assert stats["total_wheels"] == 1
    assert stats["wheels_by_type"] == {"aroma": 1}
    assert stats["total_descriptors"] == 1

    row = session.get(FlavorWheel, wheel_id)
    row.expires_at = utcnow() - timedelta(days=1)
    session.add(row)
    session.commit()
    assert client.post("/api/flavor-wheels/cleanup", headers=auth("alice")).json() == {"deleted": 1}
    assert client.get("/api/flavor-wheels/stats", headers=auth("alice")).json()["total_wheels"] == 0

def test_expired_wheels_are_not_served_from_cache(client: TestClient, auth, session):
    _extract(client, auth, text="lemon")
    wheel_id = _generate(client, auth, wheel_type="aroma", scope_type="universal").json()["wheel_id"]
    row = session.get(FlavorWheel, wheel_id)
    row.expires_at = utcnow() - timedelta(seconds=1)
    session.add(row)
    session.commit()
    again = _generate(client, auth, wheel_type="aroma", scope_type="universal").json()
    assert again["cached"] is False
    assert again["wheel_id"] != wheel_id

# ---------- lexicon browsing & reference data ----------
def test_category_browsing(client: TestClient):
    cats = client.get("/api/flavor-wheels/categories/aroma").json()["categories"]
    assert cats[0] == "Fruity"
    subs = client.get("/api/flavor-wheels/categories/aroma/Fruity").json()["subcategories"]
    assert "Citrus" in subs
    assert client.get("/api/flavor-wheels/categories/texture/Mouthfeel").json() == {"subcategories": []}

def test_seeded_molecules_and_demo_wheel(client: TestClient, auth):
    seed_defaults()
    # idempotent
    seed_defaults()
    r = client.get("/api/flavor-wheels/molecules/Jasmine")
    assert r.status_code == 200
    assert {"name": "Linalool", "formula": "C10H18O"} in r.json()["molecules"]
    assert client.get("/api/flavor-wheels/molecules/cardboard").status_code == 404

    wheel = _generate(client, auth, user="demo-user", wheel_type="aroma", scope_type="tasting",
                      scope_filter={"tasting_id": "demo-tasting"}).json()["wheel_data"]
    assert wheel["total_descriptors"] > 0
