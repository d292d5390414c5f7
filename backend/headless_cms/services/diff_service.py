"""두 필드 값 스냅샷을 키 단위로 비교하는 순수 함수 모음입니다."""

from typing import Any, Dict, List, Mapping

ADDED = "added"
MODIFIED = "modified"
DELETED = "deleted"


def json_equal(left: Any, right: Any) -> bool:
    """JSON 값의 구조적 동등성. 객체 키 순서는 무시하고 bool 과 숫자는 구분한다."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (dict, list, tuple)) or isinstance(right, (dict, list, tuple)):
        return False
    return left == right


def compute_diff(old_fields: Mapping[str, Any] | None, new_fields: Mapping[str, Any] | None) -> List[Dict[str, Any]]:
    old_fields = old_fields or {}
    new_fields = new_fields or {}

    keys = list(old_fields)
    keys.extend(key for key in new_fields if key not in old_fields)

    diff: List[Dict[str, Any]] = []
    for key in keys:
        in_old = key in old_fields
        in_new = key in new_fields
        if in_new and not in_old:
            diff.append({"field": key, "old_value": None, "new_value": new_fields[key], "change_type": ADDED})
        elif in_old and not in_new:
            diff.append({"field": key, "old_value": old_fields[key], "new_value": None, "change_type": DELETED})
        elif not json_equal(old_fields[key], new_fields[key]):
            diff.append({
                "field": key,
                "old_value": old_fields[key],
                "new_value": new_fields[key],
                "change_type": MODIFIED,
            })
    return diff


def summarize_changes(
    old_fields: Mapping[str, Any] | None,
    new_fields: Mapping[str, Any] | None,
    *,
    old_status: str | None = None,
    new_status: str | None = None,
    old_slug: str | None = None,
    new_slug: str | None = None,
) -> Dict[str, Any]:
    return {
        "fields_changed": len(compute_diff(old_fields, new_fields)),
        "status_changed": old_status != new_status,
        "slug_changed": old_slug != new_slug,
    }
