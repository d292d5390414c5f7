from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_type import ContentTypeField
from headless_cms.models.content_version import ContentEntryVersion


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_and_list_content_types(client, auth_headers):
    resp = client.post(
        "/api/content-types",
        json={
            "name": "product",
            "display_name": "Product",
            "fields": [
                {"field_name": "price", "display_name": "Price", "field_type": "number", "is_required": True},
                {"field_name": "photos", "display_name": "Photos", "field_type": "media"},
            ],
        },
        headers=auth_headers("33333333-3333-3333-3333-333333333333"),
    )
    assert resp.status_code == 201, resp.text
    created = resp.json()["data"]
    assert created["icon"] == "File"
    assert created["created_by"] == "33333333-3333-3333-3333-333333333333"
    assert [(f["field_name"], f["sort_order"]) for f in created["fields"]] == [("price", 0), ("photos", 1)]

    listed = client.get("/api/content-types").json()["data"]
    assert [row["name"] for row in listed] == ["product"]

    detail = client.get(f"/api/content-types/{created['id']}")
    assert detail.json()["data"]["display_name"] == "Product"


def test_content_type_validation(client, seed_content_type):
    assert client.post("/api/content-types", json={"name": "Bad Name", "display_name": "Bad"}).status_code == 400
    assert client.post("/api/content-types", json={"name": "article", "display_name": "Dup"}).status_code == 409
    dup_fields = {
        "name": "page",
        "display_name": "Page",
        "fields": [
            {"field_name": "body", "display_name": "Body", "field_type": "text"},
            {"field_name": "body", "display_name": "Body 2", "field_type": "text"},
        ],
    }
    assert client.post("/api/content-types", json=dup_fields).status_code == 400
    bad_type = {"name": "page", "display_name": "Page", "fields": [{"field_name": "x", "display_name": "X", "field_type": "blob"}]}
    assert client.post("/api/content-types", json=bad_type).status_code == 400
    assert client.get("/api/content-types/999").status_code == 404


def test_delete_content_type_removes_entries_and_versions(client, db, seed_content_type):
    entry_id = client.post(
        "/api/content-entries",
        json={"content_type_id": seed_content_type.id, "title": "Doomed"},
    ).json()["data"]["id"]

    resp = client.delete(f"/api/content-types/{seed_content_type.id}")

    assert resp.status_code == 200
    assert db.query(ContentEntry).filter(ContentEntry.id == entry_id).count() == 0
    assert db.query(ContentEntryVersion).filter(ContentEntryVersion.content_entry_id == entry_id).count() == 0


def test_create_entry_generates_unique_slug(client, seed_content_type):
    first = client.post(
        "/api/content-entries",
        json={"content_type_id": seed_content_type.id, "title": "Hello World!", "fields": {"body": "<p>hi</p>"}},
    )
    second = client.post(
        "/api/content-entries",
        json={"content_type_id": seed_content_type.id, "title": "Hello World", "status": "published"},
    )

    assert first.status_code == 201
    assert first.json()["data"]["slug"] == "hello-world"
    assert first.json()["data"]["data"] == {"title": "Hello World!", "body": "<p>hi</p>"}
    assert first.json()["data"]["content_type"]["name"] == "article"
    assert second.json()["data"]["slug"] == "hello-world-2"
    assert second.json()["data"]["published_at"] is not None


def test_create_entry_validation(client, seed_content_type):
    assert client.post("/api/content-entries", json={"content_type_id": seed_content_type.id}).status_code == 400
    assert client.post("/api/content-entries", json={"content_type_id": 999, "title": "x"}).status_code == 404
    bad_status = {"content_type_id": seed_content_type.id, "title": "x", "status": "deleted"}
    assert client.post("/api/content-entries", json=bad_status).status_code == 400


def test_create_entry_requires_required_fields(client, db, seed_content_type):
    db.add(ContentTypeField(
        content_type_id=seed_content_type.id,
        field_name="summary",
        display_name="Summary",
        field_type="textarea",
        is_required=True,
        sort_order=3,
    ))
    db.commit()

    resp = client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "No summary"})
    assert resp.status_code == 400

    ok = client.post(
        "/api/content-entries",
        json={"content_type_id": seed_content_type.id, "title": "With summary", "fields": {"summary": "short"}},
    )
    assert ok.status_code == 201


def test_create_entry_slug_conflict(client, seed_content_type):
    payload = {"content_type_id": seed_content_type.id, "title": "A", "slug": "fixed"}
    assert client.post("/api/content-entries", json=payload).status_code == 201
    resp = client.post("/api/content-entries", json=payload)
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_list_entries_filters_and_search(client, seed_content_type):
    for title, status in (("Python tips", "published"), ("Rust notes", "draft"), ("More python", "draft")):
        client.post(
            "/api/content-entries",
            json={"content_type_id": seed_content_type.id, "title": title, "status": status},
        )

    searched = client.get("/api/content-entries?search=python").json()["data"]
    assert sorted(e["title"] for e in searched["entries"]) == ["More python", "Python tips"]
    assert searched["pagination"]["total"] == 2

    drafts = client.get(f"/api/content-entries?status=draft&content_type_id={seed_content_type.id}").json()["data"]
    assert sorted(e["title"] for e in drafts["entries"]) == ["More python", "Rust notes"]

    paged = client.get("/api/content-entries?limit=1&page=2").json()["data"]
    assert len(paged["entries"]) == 1
    assert paged["pagination"] == {"page": 2, "limit": 1, "total": 3, "total_pages": 3}


def test_update_entry_merges_fields_and_records_version(client, seed_content_type):
    entry = client.post(
        "/api/content-entries",
        json={"content_type_id": seed_content_type.id, "title": "Post", "fields": {"body": "old", "tags": ["a"]}},
    ).json()["data"]

    resp = client.put(
        f"/api/content-entries/{entry['id']}",
        json={"field_values": {"body": "new"}, "status": "published", "slug": "post-v2"},
    )

    assert resp.status_code == 200
    updated = resp.json()["data"]
    assert updated["data"] == {"title": "Post", "body": "new", "tags": ["a"]}
    assert updated["slug"] == "post-v2"
    assert updated["published_at"] is not None

    version = client.get(f"/api/content-entries/{entry['id']}/versions/2").json()["data"]["version"]
    assert version["comment"] == "Auto-generated on update"
    assert version["is_auto_generated"] is True
    assert version["change_summary"] == {"fields_changed": 1, "status_changed": True, "slug_changed": True}


def test_update_entry_errors(client, seed_content_type):
    first = client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "One"}).json()["data"]
    client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "Two"})

    assert client.put(f"/api/content-entries/{first['id']}", json={}).status_code == 400
    assert client.put(f"/api/content-entries/{first['id']}", json={"slug": "two"}).status_code == 409
    assert client.put("/api/content-entries/999", json={"title": "x"}).status_code == 404


def test_get_and_delete_entry(client, db, seed_content_type):
    entry = client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "Bye"}).json()["data"]

    assert client.get(f"/api/content-entries/{entry['id']}").json()["data"]["title"] == "Bye"
    assert client.delete(f"/api/content-entries/{entry['id']}").status_code == 200
    assert client.get(f"/api/content-entries/{entry['id']}").status_code == 404
    assert db.query(ContentEntryVersion).filter(ContentEntryVersion.content_entry_id == entry["id"]).count() == 0


def test_update_entry_to_taken_slug_records_nothing(client, seed_content_type):
    first = client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "One"}).json()["data"]
    second = client.post("/api/content-entries", json={"content_type_id": seed_content_type.id, "title": "Two"}).json()["data"]

    resp = client.put(f"/api/content-entries/{first['id']}", json={"slug": second["slug"], "title": "Renamed"})

    assert resp.status_code == 409
    assert "slug" in resp.json()["error"]
    current = client.get(f"/api/content-entries/{first['id']}").json()["data"]
    assert current["slug"] == "one"
    assert current["title"] == "One"
    versions = client.get(f"/api/content-entries/{first['id']}/versions").json()["data"]["versions"]
    assert [v["version_number"] for v in versions] == [1]


def test_get_entry_by_slug(client, seed_content_type, seed_tag_type):
    for type_id in (seed_content_type.id, seed_tag_type.id):
        resp = client.post("/api/content-entries", json={"content_type_id": type_id, "title": "Python"})
        assert resp.status_code == 201, resp.text

    resp = client.get("/api/content-entries/slug/python?content_type=tag")
    assert resp.status_code == 200
    assert resp.json()["data"]["content_type_id"] == seed_tag_type.id

    assert client.get("/api/content-entries/slug/python").status_code == 400
    assert client.get("/api/content-entries/slug/missing").status_code == 404
    assert client.get("/api/content-entries/slug/python?content_type=page").status_code == 404
