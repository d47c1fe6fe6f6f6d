from fastapi.testclient import TestClient

def _study_with_bob(client, auth, make_tasting, approach="collaborative"):
    tid = make_tasting("alice", mode="study", study_approach=approach)["tasting"]["id"]
    r = client.post(f"/api/tastings/{tid}/participants", headers=auth("bob"))
    return tid, r.json()["participant"]["id"]

def _suggest(client, auth, tid, user, participant_id, name="Kenya AA"):
    return client.post(f"/api/tastings/{tid}/suggestions",
                       json={"participant_id": participant_id, "item_name": name}, headers=auth(user))

def test_submit_list_and_approve(client: TestClient, auth, make_tasting):
    tid, bob_pid = _study_with_bob(client, auth, make_tasting)

    r = _suggest(client, auth, tid, "bob", bob_pid)
    assert r.status_code == 201
    suggestion = r.json()["suggestion"]
    assert suggestion["status"] == "pending"

    listed = client.get(f"/api/tastings/{tid}/suggestions", headers=auth("alice")).json()["suggestions"]
    assert listed[0]["participant"]["user_id"] == "bob"
    pending = client.get(f"/api/tastings/{tid}/suggestions?status=pending", headers=auth("bob")).json()
    assert len(pending["suggestions"]) == 1

    r = client.post(f"/api/tastings/{tid}/suggestions/{suggestion['id']}/moderate",
                    json={"action": "approve"}, headers=auth("alice"))
    assert r.status_code == 200
    assert r.json()["suggestion"]["status"] == "approved"

    tasting = client.get(f"/api/tastings/{tid}").json()
    assert tasting["tasting"]["total_items"] == 1
    assert tasting["items"][0]["item_name"] == "Kenya AA"

    # moderated once only
    r = client.post(f"/api/tastings/{tid}/suggestions/{suggestion['id']}/moderate",
                    json={"action": "reject"}, headers=auth("alice"))
    assert r.status_code == 409

def test_reject_does_not_add_item(client: TestClient, auth, make_tasting):
    tid, bob_pid = _study_with_bob(client, auth, make_tasting)
    sid = _suggest(client, auth, tid, "bob", bob_pid).json()["suggestion"]["id"]
    r = client.post(f"/api/tastings/{tid}/suggestions/{sid}/moderate", json={"action": "reject"}, headers=auth("alice"))
    assert r.json()["suggestion"]["status"] == "rejected"
    assert client.get(f"/api/tastings/{tid}").json()["tasting"]["total_items"] == 0

def test_submission_rules(client: TestClient, auth, make_tasting):
    tid, bob_pid = _study_with_bob(client, auth, make_tasting)
    assert _suggest(client, auth, tid, "bob", bob_pid, name="   ").status_code == 400
    assert _suggest(client, auth, tid, "bob", bob_pid, name="x" * 101).status_code == 400
    assert _suggest(client, auth, tid, "bob", "missing").status_code == 404
    # someone else's participant row
    assert _suggest(client, auth, tid, "carol", bob_pid).status_code == 403

def test_predefined_study_rejects_suggestions(client: TestClient, auth, make_tasting):
    tid, bob_pid = _study_with_bob(client, auth, make_tasting, approach="predefined")
    assert _suggest(client, auth, tid, "bob", bob_pid).status_code == 404

def test_moderation_rules(client: TestClient, auth, make_tasting):
    tid, bob_pid = _study_with_bob(client, auth, make_tasting)
    sid = _suggest(client, auth, tid, "bob", bob_pid).json()["suggestion"]["id"]
    url = f"/api/tastings/{tid}/suggestions/{sid}/moderate"
    assert client.post(url, json={"action": "approve"}, headers=auth("bob")).status_code == 403
    assert client.post(url, json={"action": "maybe"}, headers=auth("alice")).status_code == 400
    missing = f"/api/tastings/{tid}/suggestions/nope/moderate"
    assert client.post(missing, json={"action": "approve"}, headers=auth("alice")).status_code == 404

def test_outsider_cannot_list(client: TestClient, auth, make_tasting):
    tid, _ = _study_with_bob(client, auth, make_tasting)
    assert client.get(f"/api/tastings/{tid}/suggestions", headers=auth("eve")).status_code == 403
