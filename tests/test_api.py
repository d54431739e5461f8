import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from conftest import FakeLeetCode, loaded_catalog, pool
from db.store import MemoryStore


@pytest.fixture
def wired(monkeypatch):
    store = MemoryStore()
    catalog = loaded_catalog(store, {"two-sum": 1200, "lru-cache": 1650, "word-ladder": 1700})
    fake = FakeLeetCode(
        pools={"Graph": pool("word-ladder", "lru-cache")},
        details={"lru-cache": {"title": "LRU Cache", "difficulty": "Medium", "tags": ["Graph"]}},
    )
    monkeypatch.setattr(api_main, "_store", lambda: store)
    monkeypatch.setattr(api_main, "_catalog", lambda: catalog)
    monkeypatch.setattr(api_main, "_api", lambda: fake)
    return store, catalog


@pytest.fixture
def client(wired):
    return TestClient(api_main.app)


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_rating_lookup(client):
    assert client.get("/api/ratings/Two-Sum").json() == {"found": True, "slug": "two-sum", "rating": 1200, "title": "Two Sum"}
    assert client.get("/api/ratings/nope").json() == {"slug": "nope", "found": False}


def test_focus_override_and_toggle(client, wired):
    store, _ = wired
    assert client.get("/api/focus").json() == {"tags": []}
    assert client.put("/api/focus", json={"tags": ["Graph", "Trie"]}).json() == {"success": True, "tags": ["Graph", "Trie"]}
    assert client.post("/api/focus/toggle", json={"tag": "Trie"}).json()["tags"] == ["Graph"]
    assert store.get(["lc_focus_tags_v1"]) == {"lc_focus_tags_v1": ["Graph"]}
    assert client.post("/api/focus/toggle", json={}).json()["success"] is False


def test_recommendations_endpoint(client, wired):
    store, _ = wired
    store.set({"lc_solved_set_v1": ["word-ladder"]})
    recs = client.get("/api/recommendations", params={"tags": ["Graph"], "target_rating": 1600}).json()
    assert recs == [{"slug": "lru-cache", "title": "Lru Cache", "rating": 1650}]


def test_recommendations_cap_is_honoured(client):
    params = {"tags": ["Graph"], "target_rating": 1600}
    assert len(client.get("/api/recommendations", params=params).json()) == 2
    assert [r["slug"] for r in client.get("/api/recommendations", params={**params, "cap": 1}).json()] == ["lru-cache"]
    assert client.get("/api/recommendations", params={**params, "cap": 0}).json() == []
    assert client.get("/api/recommendations", params={**params, "cap": -1}).status_code == 422


def test_problem_endpoint(client):
    out = client.get("/api/problems/lru-cache").json()
    assert out["found"] is True
    assert out["rating"] == 1650
    assert [r["slug"] for r in out["similar"]] == ["word-ladder"]


def test_session_import(client, wired):
    store, _ = wired
    resp = client.post("/api/session/import", json={"cookies": "csrftoken=abc; LEETCODE_SESSION=s"}).json()
    assert resp["success"] is True
    assert store.get(["lc_auth_cookies_v1"]) == {"lc_auth_cookies_v1": {"csrftoken": "abc", "session": "s"}}
    assert client.post("/api/session/import", json={"cookies": "theme=dark"}).json()["success"] is False


def test_cache_clear(client, wired):
    store, catalog = wired
    store.set({"lc_tag_map_v1": [["x", ["A"]]]})
    assert client.post("/api/cache/clear").json() == {"status": "ok", "ratings": False}
    assert store.get(["lc_tag_map_v1"]) == {}
    assert catalog.loaded
    client.post("/api/cache/clear", params={"ratings": "true"})
    assert not catalog.loaded
    assert store.get(["lc_ratings_cache_v1"]) == {}
