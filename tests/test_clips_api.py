from datetime import timedelta, timezone

import pytest

from clipbin.core.timezone_utils import add_seconds
from clipbin.models.clip import Clip, ClipAccessLog

from conftest import bearer, login, register


@pytest.fixture
def alice(client, alice_tokens):
    return bearer(alice_tokens["accessToken"])


@pytest.fixture
def bob(client):
    register(client, username="bob", email="b@x.com", password="bobpass1")
    return bearer(login(client, username="bob", password="bobpass1").json()["data"]["accessToken"])


def _create(client, headers, **fields):
    payload = {"title": "note", "content": "hello world"}
    payload.update(fields)
    resp = client.post("/api/clips", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_clip_routes_are_gated(client):
    assert client.post("/api/clips", json={"content": "x"}).status_code == 401
    assert client.get("/api/clips").status_code == 401
    assert client.get("/api/clips/1").status_code == 401
    assert client.put("/api/clips/1", json={"title": "t"}).status_code == 401
    assert client.delete("/api/clips/1").status_code == 401


def test_create_clip_defaults(client, alice):
    clip = _create(client, alice)
    assert clip["content"] == "hello world"
    assert clip["contentType"] == "text"
    assert clip["accessType"] == "private"
    assert clip["viewCount"] == 0
    assert clip["isEncrypted"] is False
    assert len(clip["shortUrl"]) == 8


def test_create_clip_accepts_camel_case_fields(client, alice):
    clip = _create(client, alice, contentType="code", language="python", accessType="public", tags=["a", "b"])
    assert clip["contentType"] == "code"
    assert clip["language"] == "python"
    assert clip["accessType"] == "public"
    assert clip["tags"] == ["a", "b"]


def test_create_clip_validates_body(client, alice):
    assert client.post("/api/clips", json={"content": ""}, headers=alice).status_code == 422
    assert client.post("/api/clips", json={"content": "x", "accessType": "secret"}, headers=alice).status_code == 422


def test_list_clips_only_own_and_paginated(client, alice, bob):
    for i in range(3):
        _create(client, alice, title=f"a{i}")
    _create(client, bob, title="b0")

    resp = client.get("/api/clips", headers=alice)
    assert resp.status_code == 200
    assert sorted(c["title"] for c in resp.json()["data"]) == ["a0", "a1", "a2"]

    page = client.get("/api/clips", params={"page": 2, "page_size": 2}, headers=alice).json()["data"]
    assert len(page) == 1


@pytest.mark.parametrize("params", [{"page": 0}, {"page_size": 0}, {"page_size": 101}, {"page": 10**19}])
def test_list_clips_rejects_bad_pagination(client, alice, params):
    resp = client.get("/api/clips", params=params, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid pagination parameters"


def test_get_clip_visibility(client, alice, bob):
    private = _create(client, alice)
    public = _create(client, alice, accessType="public")

    assert client.get(f"/api/clips/{private['id']}", headers=alice).status_code == 200
    assert client.get(f"/api/clips/{private['id']}", headers=bob).status_code == 404
    assert client.get(f"/api/clips/{public['id']}", headers=bob).status_code == 200
    assert client.get("/api/clips/9999", headers=alice).status_code == 404


def test_get_clip_counts_views(client, alice, app_db):
    clip = _create(client, alice)
    client.get(f"/api/clips/{clip['id']}", headers=alice)
    client.get(f"/api/clips/{clip['id']}", headers=alice)
    assert app_db.get(Clip, clip["id"]).view_count == 2


def test_short_url_serves_public_and_unlisted_only(client, alice, app_db):
    private = _create(client, alice)
    unlisted = _create(client, alice, accessType="unlisted")
    public = _create(client, alice, accessType="public")

    assert client.get(f"/api/s/{private['shortUrl']}").status_code == 404
    resp = client.get(f"/api/s/{unlisted['shortUrl']}", headers={"User-Agent": "pytest-agent", "Referer": "https://ref.example"})
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == unlisted["id"]
    assert client.get(f"/api/s/{public['shortUrl']}").status_code == 200
    assert client.get("/api/s/doesnotexist").status_code == 404

    log = app_db.query(ClipAccessLog).filter(ClipAccessLog.content_id == unlisted["id"]).one()
    assert log.user_agent == "pytest-agent"
    assert log.referrer == "https://ref.example"
    assert app_db.get(Clip, unlisted["id"]).view_count == 1


def test_expired_clip_is_hidden(client, clock, alice):
    expires = clock.now.replace(microsecond=0).isoformat()
    clip = _create(client, alice, accessType="public", expiresAt=expires)
    # expiry instant has been reached
    assert client.get(f"/api/s/{clip['shortUrl']}").status_code == 404
    assert client.get(f"/api/clips/{clip['id']}", headers=alice).status_code == 404


def test_update_clip_by_owner(client, alice):
    clip = _create(client, alice)
    resp = client.put(f"/api/clips/{clip['id']}", json={"title": "renamed", "accessType": "public"}, headers=alice)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "renamed"
    assert data["accessType"] == "public"
    assert data["content"] == "hello world"


def test_update_clip_rejects_null_content(client, alice):
    clip = _create(client, alice)
    assert client.put(f"/api/clips/{clip['id']}", json={"content": None}, headers=alice).status_code == 422


def test_update_and_delete_by_other_user_are_not_found(client, alice, bob):
    clip = _create(client, alice)
    assert client.put(f"/api/clips/{clip['id']}", json={"title": "x"}, headers=bob).status_code == 404
    assert client.delete(f"/api/clips/{clip['id']}", headers=bob).status_code == 404
    assert client.get(f"/api/clips/{clip['id']}", headers=alice).status_code == 200


def test_delete_clip_is_soft(client, alice, app_db):
    clip = _create(client, alice, accessType="public")
    resp = client.delete(f"/api/clips/{clip['id']}", headers=alice)
    assert resp.status_code == 200

    assert client.get(f"/api/clips/{clip['id']}", headers=alice).status_code == 404
    assert client.get(f"/api/s/{clip['shortUrl']}").status_code == 404
    assert client.get("/api/clips", headers=alice).json()["data"] == []
    assert app_db.get(Clip, clip["id"]).deleted_at is not None
    assert client.delete(f"/api/clips/{clip['id']}", headers=alice).status_code == 404


def test_clip_times_are_reported_in_utc(client, clock, alice):
    expires = add_seconds(clock.now, 3600).astimezone(timezone(timedelta(hours=2)))
    clip = _create(client, alice, expiresAt=expires.isoformat())
    assert clip["expiresAt"] == "2026-01-01T13:00:00+00:00"
    assert clip["createdAt"].endswith("+00:00")

    fetched = client.get(f"/api/clips/{clip['id']}", headers=alice).json()["data"]
    assert fetched["expiresAt"] == clip["expiresAt"]
