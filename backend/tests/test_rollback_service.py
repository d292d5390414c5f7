import pytest

from headless_cms.errors import ConflictError, NotFoundError, ValidationError
from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_version import ContentEntryVersion
from headless_cms.schemas.content_entry import ContentEntryUpdate
from headless_cms.services import content_entry_service, rollback_service, version_service


def _versions(db, entry_id):
    return {
        row.version_number: row
        for row in db.query(ContentEntryVersion).filter(ContentEntryVersion.content_entry_id == entry_id).all()
    }


def test_rollback_with_backup_records_backup_and_rollback_versions(db, entry_with_five_versions):
    entry_id = entry_with_five_versions.id

    entry = rollback_service.rollback(db, entry_id=entry_id, target_version_number=2, create_backup=True)

    versions = _versions(db, entry_id)
    assert sorted(versions) == [1, 2, 3, 4, 5, 6, 7]
    assert versions[6].field_values == {"title": "A"}
    assert versions[6].comment == "Backup before rollback to v2"
    assert versions[6].is_auto_generated is True
    assert versions[7].field_values == {"title": "B"}
    assert versions[7].comment == "Rolled back to version 2"
    assert versions[7].is_auto_generated is False
    assert entry.data == {"title": "B"}
    assert entry.updated_at is not None


def test_rollback_without_backup_adds_single_version(db, entry_with_five_versions):
    entry_id = entry_with_five_versions.id

    rollback_service.rollback(
        db,
        entry_id=entry_id,
        target_version_number=3,
        create_backup=False,
        comment="restore C",
        user_id="user-9",
    )

    versions = _versions(db, entry_id)
    assert sorted(versions) == [1, 2, 3, 4, 5, 6]
    assert versions[6].field_values == versions[3].field_values
    assert versions[6].comment == "restore C"
    assert versions[6].created_by == "user-9"


def test_rollback_restores_slug_and_status(db, make_entry):
    entry = make_entry(title="Draft")
    content_entry_service.update_entry(
        db, entry.id, ContentEntryUpdate(slug="renamed", status="published"), user_id=None,
    )

    restored = rollback_service.rollback(db, entry_id=entry.id, target_version_number=1)

    assert restored.slug == "draft"
    assert restored.status == "draft"


def test_rollback_to_missing_version_changes_nothing(db, entry_with_five_versions):
    entry_id = entry_with_five_versions.id

    with pytest.raises(NotFoundError):
        rollback_service.rollback(db, entry_id=entry_id, target_version_number=99)

    assert sorted(_versions(db, entry_id)) == [1, 2, 3, 4, 5]


def test_rollback_into_slug_used_by_another_entry_is_rejected(db, make_entry):
    renamed = make_entry(title="Alpha")
    content_entry_service.update_entry(db, renamed.id, ContentEntryUpdate(slug="alpha-renamed"), user_id=None)
    other = make_entry(title="Alpha")
    assert other.slug == "alpha"

    with pytest.raises(ConflictError) as exc_info:
        rollback_service.rollback(db, entry_id=renamed.id, target_version_number=1)

    assert "slug" in exc_info.value.detail
    assert sorted(_versions(db, renamed.id)) == [1, 2]
    assert version_service.get_entry(db, renamed.id).slug == "alpha-renamed"


def test_rollback_failure_leaves_no_partial_backup(db, entry_with_five_versions, monkeypatch):
    entry_id = entry_with_five_versions.id
    original = version_service.create_version
    calls = []

    def _fail_on_second_write(*args, **kwargs):
        calls.append(1)
        if len(calls) == 2:
            raise RuntimeError("storage unavailable")
        return original(*args, **kwargs)

    monkeypatch.setattr(version_service, "create_version", _fail_on_second_write)

    with pytest.raises(RuntimeError):
        rollback_service.rollback(db, entry_id=entry_id, target_version_number=2, create_backup=True)

    assert sorted(_versions(db, entry_id)) == [1, 2, 3, 4, 5]
    entry = db.query(ContentEntry).filter(ContentEntry.id == entry_id).one()
    assert entry.data == {"title": "A"}


def test_compare_with_current(db, entry_with_five_versions):
    payload = rollback_service.compare(
        db, entry_id=entry_with_five_versions.id, version_number=2, compare_with="current",
    )

    assert payload["version"]["version_number"] == 2
    assert payload["comparison"]["type"] == "current"
    assert payload["comparison"]["diff"] == [
        {"field": "title", "old_value": "B", "new_value": "A", "change_type": "modified"},
    ]


def test_compare_with_other_version(db, make_entry):
    entry = make_entry(title="T", fields={"body": "x"})
    content_entry_service.update_entry(
        db, entry.id, ContentEntryUpdate(field_values={"tags": ["news"]}), user_id=None,
    )

    payload = rollback_service.compare(db, entry_id=entry.id, version_number=1, compare_with="2")

    assert payload["comparison"] == {
        "type": "version",
        "target": "2",
        "diff": [{"field": "tags", "old_value": None, "new_value": ["news"], "change_type": "added"}],
    }


def test_compare_without_target_returns_version_only(db, entry_with_five_versions):
    payload = rollback_service.compare(db, entry_id=entry_with_five_versions.id, version_number=1)

    assert "comparison" not in payload
    assert payload["version"]["field_values"] == {"title": "X"}


@pytest.mark.parametrize("compare_with", ["latest", "0", "-2", "1.5"])
def test_compare_rejects_malformed_target(db, entry_with_five_versions, compare_with):
    with pytest.raises(ValidationError):
        rollback_service.compare(
            db, entry_id=entry_with_five_versions.id, version_number=1, compare_with=compare_with,
        )


def test_compare_missing_versions(db, entry_with_five_versions):
    with pytest.raises(NotFoundError):
        rollback_service.compare(db, entry_id=entry_with_five_versions.id, version_number=9)
    with pytest.raises(NotFoundError):
        rollback_service.compare(db, entry_id=entry_with_five_versions.id, version_number=1, compare_with="9")
