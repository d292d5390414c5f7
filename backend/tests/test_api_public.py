import pytest
from fastapi.testclient import TestClient

from headless_cms.main import create_app
from headless_cms.models.api_key import ApiKey

OWNER = "77777777-7777-7777-7777-777777777777"


@pytest.fixture
def api_key(client, auth_headers):
    resp = client.post("/api/api-keys", json={"key_name": "frontend"}, headers=auth_headers(OWNER))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def published_articles(client, seed_content_type):
    for title, status in (("Alpha", "published"), ("Beta", "published"), ("Draft", "draft")):
        resp = client.post(
            "/api/content-entries",
            json={"content_type_id": seed_content_type.id, "title": title, "status": status},
        )
        assert resp.status_code == 201, resp.text


def test_public_entries_require_a_valid_key(client, published_articles, api_key):
    assert client.get("/api/public/content-entries?content_type=article").status_code == 401

    resp = client.get("/api/public/content-entries?content_type=article", headers={"x-api-key": "sk-prod-nope"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False

    bearer = {"Authorization": f"Bearer {api_key['key_value']}"}
    assert client.get("/api/public/content-entries?content_type=article", headers=bearer).status_code == 200


def test_inactive_or_expired_keys_are_rejected(client, auth_headers, published_articles, api_key):
    owner = auth_headers(OWNER)
    client.put(f"/api/api-keys/{api_key['id']}", json={"is_active": False}, headers=owner)
    resp = client.get("/api/public/content-entries?content_type=article", headers={"x-api-key": api_key["key_value"]})
    assert resp.status_code == 401

    expired = client.post(
        "/api/api-keys",
        json={"key_name": "old", "expires_at": "2020-01-01T00:00:00Z"},
        headers=owner,
    ).json()["data"]
    resp = client.get("/api/public/content-entries?content_type=article", headers={"x-api-key": expired["key_value"]})
    assert resp.status_code == 401


def test_list_public_entries(client, db, published_articles, api_key):
    headers = {"x-api-key": api_key["key_value"]}

    resp = client.get("/api/public/content-entries?content_type=article&sort=slug&order=asc", headers=headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert [entry["slug"] for entry in data["entries"]] == ["alpha", "beta"]
    assert data["meta"]["total"] == 2
    assert data["meta"]["offset"] == 0
    assert data["meta"]["content_type"]["name"] == "article"

    drafts = client.get("/api/public/content-entries?content_type=article&status=draft", headers=headers).json()["data"]
    assert [entry["slug"] for entry in drafts["entries"]] == ["draft"]

    paged = client.get("/api/public/content-entries?content_type=article&sort=slug&order=asc&limit=1&offset=1", headers=headers)
    assert [entry["slug"] for entry in paged.json()["data"]["entries"]] == ["beta"]

    assert db.query(ApiKey).filter(ApiKey.id == api_key["id"]).one().last_used_at is not None


def test_list_public_entries_errors(client, published_articles, api_key):
    headers = {"x-api-key": api_key["key_value"]}

    assert client.get("/api/public/content-entries", headers=headers).status_code == 400
    assert client.get("/api/public/content-entries?content_type=article&sort=title", headers=headers).status_code == 400
    assert client.get("/api/public/content-entries?content_type=missing", headers=headers).status_code == 404
    assert client.get("/api/public/content-entries?content_type=article&offset=-1", headers=headers).status_code == 400


def test_get_public_entry_by_slug(client, published_articles, api_key):
    headers = {"x-api-key": api_key["key_value"]}

    resp = client.get("/api/public/content-entries/alpha?content_type=article", headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["entry"]["title"] == "Alpha"
    assert resp.json()["data"]["meta"]["content_type"]["name"] == "article"

    assert client.get("/api/public/content-entries/draft?content_type=article", headers=headers).status_code == 404
    assert client.get("/api/public/content-entries/alpha", headers=headers).status_code == 400


def test_public_entries_without_key_when_not_required(database, test_settings, published_articles):
    settings = test_settings.model_copy(update={"PUBLIC_API_KEY_REQUIRED": False})
    with TestClient(create_app(settings, database=database)) as open_client:
        resp = open_client.get("/api/public/content-entries?content_type=article")
    assert resp.status_code == 200
    assert resp.json()["data"]["meta"]["total"] == 2
