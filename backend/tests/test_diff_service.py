import pytest

from headless_cms.services.diff_service import compute_diff, json_equal, summarize_changes

SNAPSHOTS = [
    {},
    {"title": "Hello"},
    {"title": "Hello", "views": 3, "published": True, "tags": ["a", "b"], "seo": {"title": "t", "keywords": ["x"]}},
    {"body": None, "nested": {"deep": {"list": [1, {"k": "v"}]}}},
]


def _by_field(diff):
    return {item["field"]: item for item in diff}


@pytest.mark.parametrize("snapshot", SNAPSHOTS)
def test_identical_snapshots_have_no_diff(snapshot):
    assert compute_diff(snapshot, dict(snapshot)) == []


def test_classifies_added_modified_deleted():
    old = {"title": "Old", "body": "text", "views": 1}
    new = {"title": "New", "views": 1, "summary": "short"}

    diff = _by_field(compute_diff(old, new))

    assert set(diff) == {"title", "body", "summary"}
    assert diff["title"] == {"field": "title", "old_value": "Old", "new_value": "New", "change_type": "modified"}
    assert diff["body"] == {"field": "body", "old_value": "text", "new_value": None, "change_type": "deleted"}
    assert diff["summary"] == {"field": "summary", "old_value": None, "new_value": "short", "change_type": "added"}


def test_reversed_comparison_swaps_added_and_deleted():
    a = {"title": "A", "body": "x", "tags": ["one"]}
    b = {"title": "B", "tags": ["one"], "cover": {"url": "/c.png"}}

    forward = _by_field(compute_diff(a, b))
    backward = _by_field(compute_diff(b, a))
    swapped = {"added": "deleted", "deleted": "added", "modified": "modified"}

    assert set(forward) == set(backward)
    for field, item in forward.items():
        assert backward[field]["change_type"] == swapped[item["change_type"]]


def test_reordered_nested_objects_are_equal():
    old = {"seo": {"title": "T", "meta": {"a": 1, "b": [1, 2]}}}
    new = {"seo": {"meta": {"b": [1, 2], "a": 1}, "title": "T"}}

    assert compute_diff(old, new) == []


def test_list_order_is_significant():
    diff = compute_diff({"tags": ["a", "b"]}, {"tags": ["b", "a"]})

    assert [item["change_type"] for item in diff] == ["modified"]


def test_null_value_is_present_not_missing():
    diff = compute_diff({"body": None}, {})

    assert diff == [{"field": "body", "old_value": None, "new_value": None, "change_type": "deleted"}]


def test_json_equal_distinguishes_booleans_from_numbers():
    assert not json_equal(True, 1)
    assert not json_equal(0, False)
    assert json_equal(1, 1.0)
    assert json_equal({"x": [True, None]}, {"x": [True, None]})
    assert not json_equal({"x": 1}, [1])
    assert not json_equal("1", 1)


def test_empty_inputs():
    assert compute_diff(None, None) == []
    assert compute_diff({}, {"a": 1}) == [{"field": "a", "old_value": None, "new_value": 1, "change_type": "added"}]


def test_summarize_changes():
    summary = summarize_changes(
        {"title": "A", "body": "x"},
        {"title": "B", "body": "x", "extra": 1},
        old_status="draft",
        new_status="published",
        old_slug="a",
        new_slug="a",
    )

    assert summary == {"fields_changed": 2, "status_changed": True, "slug_changed": False}
