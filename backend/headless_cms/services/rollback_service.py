"""버전 롤백과 버전 비교를 조합하는 서비스입니다."""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from headless_cms.errors import ConflictError, NotFoundError, ValidationError
from headless_cms.models.content_entry import ContentEntry
from headless_cms.services import content_entry_service, version_service
from headless_cms.services.diff_service import compute_diff

logger = logging.getLogger(__name__)

COMPARE_CURRENT = "current"


def rollback(
    db: Session,
    *,
    entry_id: int,
    target_version_number: int,
    create_backup: bool = True,
    comment: Optional[str] = None,
    user_id: Optional[str] = None,
    retries: int = 3,
) -> ContentEntry:
    """엔트리를 대상 버전의 내용으로 되돌린다.

    백업 버전 생성, 엔트리 갱신, 롤백 기록 버전 생성이 하나의 트랜잭션에서
    수행되므로 중간에 실패하면 백업만 남는 일 없이 모두 취소된다.
    """

    def _operation() -> ContentEntry:
        target = version_service.get_version(db, entry_id=entry_id, version_number=target_version_number)
        entry = version_service.get_entry(db, entry_id)
        restored = version_service.version_snapshot(target)
        if restored["slug"] != entry.slug and content_entry_service.slug_taken(
            db, entry.content_type_id, restored["slug"], exclude_id=entry.id
        ):
            raise ConflictError(
                f"v{target_version_number} 의 slug '{restored['slug']}' 를 다른 엔트리가 사용 중이라 롤백할 수 없습니다."
            )

        if create_backup:
            version_service.create_version(
                db,
                entry,
                comment=f"Backup before rollback to v{target_version_number}",
                created_by=user_id,
                is_auto_generated=True,
            )

        entry.slug = restored["slug"]
        entry.status = restored["status"]
        entry.data = copy.deepcopy(restored["field_values"])
        entry.updated_at = datetime.now(timezone.utc)
        entry.updated_by = user_id
        if entry.status == "published" and entry.published_at is None:
            entry.published_at = entry.updated_at

        version_service.create_version(
            db,
            entry,
            comment=comment or f"Rolled back to version {target_version_number}",
            created_by=user_id,
            is_auto_generated=False,
            snapshot=restored,
            change_summary={"rollback_to": target_version_number},
        )
        return entry

    entry = version_service.run_in_transaction(db, _operation, retries=retries)
    db.refresh(entry)
    logger.info("entry %s rolled back to v%s (backup=%s)", entry_id, target_version_number, create_backup)
    return entry


def parse_compare_target(compare_with: Optional[str]) -> Optional[str | int]:
    if compare_with is None or compare_with == "":
        return None
    if compare_with == COMPARE_CURRENT:
        return COMPARE_CURRENT
    try:
        number = int(compare_with)
    except ValueError:
        raise ValidationError("compare_with 는 버전 번호 또는 'current' 여야 합니다.")
    if number < 1:
        raise ValidationError("compare_with 버전 번호는 1 이상이어야 합니다.")
    return number


def compare(
    db: Session,
    *,
    entry_id: int,
    version_number: int,
    compare_with: Optional[str] = None,
) -> Dict[str, Any]:
    """버전 상세를 조회하고, 요청 시 다른 버전 또는 현재 엔트리와의 차이를 함께 반환한다."""
    target = parse_compare_target(compare_with)
    version = version_service.get_version(db, entry_id=entry_id, version_number=version_number)
    creators = version_service.resolve_creators(db, [version])
    payload: Dict[str, Any] = {"version": version_service.to_response(version, creators)}
    if target is None:
        return payload

    if target == COMPARE_CURRENT:
        entry = version_service.get_entry(db, entry_id)
        compare_fields = entry.data or {}
    else:
        other = version_service.find_version(db, entry_id=entry_id, version_number=target)
        if not other:
            raise NotFoundError("비교 대상 버전을 찾을 수 없습니다.")
        compare_fields = other.field_values or {}

    payload["comparison"] = {
        "type": COMPARE_CURRENT if target == COMPARE_CURRENT else "version",
        "target": str(target),
        "diff": compute_diff(version.field_values or {}, compare_fields),
    }
    return payload
