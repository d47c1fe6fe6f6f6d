from __future__ import annotations
import os
import tempfile

# point the app at a throwaway data dir before anything reads the config
_TMP_DATA = tempfile.mkdtemp(prefix="flavatix-tests-")
os.environ["DATA_DIR"] = _TMP_DATA
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DATA}/flavatix-test.sqlite3"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_ANON_KEY", None)

import pytest
from fastapi.testclient import TestClient
from flavatix_backend.app.db.session import drop_db, init_db, new_session
from flavatix_backend.app.main import app

# --- Fresh schema per test ---
@pytest.fixture(autouse=True)
def fresh_db():
    drop_db()
    init_db()
    yield

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def session():
    with new_session() as s:
        yield s

# --- Bearer headers; in dev mode the token is the user id ---
@pytest.fixture
def auth():
    def _headers(user_id: str):
        return {"Authorization": f"Bearer {user_id}"}
    return _headers

# --- Small builders shared by API tests ---
@pytest.fixture
def make_tasting(client, auth):
    def _make(user_id: str = "host", **body):
        payload = {"mode": "quick", "category": "coffee", **body}
        r = client.post("/api/tastings/create", json=payload, headers=auth(user_id))
        assert r.status_code == 201, r.text
        return r.json()
    return _make
