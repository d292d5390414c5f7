"""콘텐츠 엔트리 버전 저장/조회/삭제를 담당하는 도메인 서비스입니다.

이 모듈의 쓰기 함수는 flush 까지만 수행합니다. commit 은 호출 측이
``run_in_transaction`` 으로 한 번에 수행하므로, 여러 버전 쓰기와 엔트리 갱신이
하나의 트랜잭션으로 묶입니다.
"""

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from headless_cms.errors import ConflictError, ForbiddenError, InternalError, NotFoundError
from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_version import ContentEntryVersion
from headless_cms.models.user_profile import UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROTECTED_RECENT_VERSIONS = 3

VERSION_CONFLICT_MESSAGE = "동시 변경으로 버전 번호가 충돌했습니다. 다시 시도해 주세요."
SLUG_CONFLICT_MESSAGE = "같은 콘텐츠 타입에 동일한 slug 가 이미 존재합니다."
INTEGRITY_CONFLICT_MESSAGE = "데이터 무결성 제약을 위반했습니다."

# 제약 이름(PostgreSQL) 또는 컬럼 목록(sqlite) 으로 위반된 제약을 구분한다.
_VERSION_NUMBER_MARKERS = ("uq_content_entry_versions_number", "content_entry_versions.version_number")
_SLUG_MARKERS = ("uq_content_entries_type_slug", "content_entries.slug")


def is_version_number_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _VERSION_NUMBER_MARKERS)


def integrity_conflict(exc: IntegrityError) -> ConflictError:
    message = str(exc.orig)
    if any(marker in message for marker in _SLUG_MARKERS):
        return ConflictError(SLUG_CONFLICT_MESSAGE)
    return ConflictError(INTEGRITY_CONFLICT_MESSAGE)


def run_in_transaction(db: Session, operation: Callable[[], T], *, retries: int = 3) -> T:
    """operation 을 실행하고 commit 한다.

    버전 번호 유니크 제약 위반은 전체 작업을 롤백한 뒤 재시도하고, 재시도가 모두
    실패하면 ConflictError 로 보고한다. 다른 제약 위반은 재시도 없이 해당 사유의
    ConflictError 로, 그 밖의 예외는 롤백 후 그대로 전파한다.
    """
    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            if not is_version_number_conflict(exc):
                logger.warning("integrity violation: %s", exc.orig)
                raise integrity_conflict(exc) from exc
            logger.warning("version write conflict (attempt %s/%s): %s", attempt, attempts, exc.orig)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("storage failure during versioned write")
            raise InternalError("데이터 저장 중 오류가 발생했습니다.") from exc
        except Exception:
            db.rollback()
            raise
    raise ConflictError(VERSION_CONFLICT_MESSAGE)


def snapshot_entry(entry: ContentEntry) -> Dict[str, Any]:
    # 라이브 엔트리와 참조를 공유하지 않도록 값 복사한다.
    data = copy.deepcopy(entry.data or {})
    return {
        "title": data.get("title") or entry.slug,
        "slug": entry.slug,
        "status": entry.status,
        "field_values": data,
    }


def version_snapshot(version: ContentEntryVersion) -> Dict[str, Any]:
    return {
        "title": version.title,
        "slug": version.slug,
        "status": version.status,
        "field_values": copy.deepcopy(version.field_values or {}),
    }


def get_entry(db: Session, entry_id: int) -> ContentEntry:
    entry = db.query(ContentEntry).filter(ContentEntry.id == entry_id).first()
    if not entry:
        raise NotFoundError("콘텐츠 엔트리를 찾을 수 없습니다.")
    return entry


def find_version(db: Session, *, entry_id: int, version_number: int) -> Optional[ContentEntryVersion]:
    return (
        db.query(ContentEntryVersion)
        .filter(
            ContentEntryVersion.content_entry_id == entry_id,
            ContentEntryVersion.version_number == version_number,
        )
        .first()
    )


def get_version(db: Session, *, entry_id: int, version_number: int) -> ContentEntryVersion:
    row = find_version(db, entry_id=entry_id, version_number=version_number)
    if not row:
        raise NotFoundError("버전을 찾을 수 없습니다.")
    return row


def list_versions(db: Session, *, entry_id: int, page: int, limit: int) -> Tuple[List[ContentEntryVersion], int]:
    q = db.query(ContentEntryVersion).filter(ContentEntryVersion.content_entry_id == entry_id)
    total = q.count()
    rows = (
        q.order_by(ContentEntryVersion.version_number.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def latest_version_number(db: Session, entry_id: int) -> int:
    current_max = (
        db.query(func.max(ContentEntryVersion.version_number))
        .filter(ContentEntryVersion.content_entry_id == entry_id)
        .scalar()
    )
    return current_max or 0


def next_version_number(db: Session, entry_id: int) -> int:
    """엔트리 행을 잠근 상태에서 버전 카운터를 증가시켜 다음 번호를 발급한다.

    카운터는 삭제와 무관하게 단조 증가하므로 번호가 재사용되지 않는다.
    카운터가 없던 기존 데이터는 현재 최대 버전 번호를 기준으로 이어간다.
    """
    db.flush()
    locked = (
        db.query(ContentEntry)
        .populate_existing()
        .with_for_update()
        .filter(ContentEntry.id == entry_id)
        .first()
    )
    if not locked:
        raise NotFoundError("콘텐츠 엔트리를 찾을 수 없습니다.")
    number = max(locked.version_counter or 0, latest_version_number(db, entry_id)) + 1
    locked.version_counter = number
    return number


def create_version(
    db: Session,
    entry: ContentEntry,
    *,
    comment: Optional[str],
    created_by: Optional[str],
    is_auto_generated: bool,
    default_comment: Optional[str] = None,
    snapshot: Optional[Dict[str, Any]] = None,
    change_summary: Optional[Dict[str, Any]] = None,
) -> ContentEntryVersion:
    # 잠금 조회가 엔트리 속성을 다시 읽기 전에 스냅샷을 먼저 떠 둔다.
    data = copy.deepcopy(snapshot) if snapshot is not None else snapshot_entry(entry)
    version_number = next_version_number(db, entry.id)
    row = ContentEntryVersion(
        content_entry_id=entry.id,
        version_number=version_number,
        title=data["title"],
        slug=data["slug"],
        status=data["status"],
        field_values=data["field_values"],
        created_by=created_by,
        comment=comment or (default_comment.format(version_number=version_number) if default_comment else None),
        is_auto_generated=is_auto_generated,
        change_summary=change_summary,
    )
    db.add(row)
    db.flush()
    return row


def checkpoint(
    db: Session,
    *,
    entry_id: int,
    comment: Optional[str],
    created_by: Optional[str],
    retries: int = 3,
) -> ContentEntryVersion:
    def _operation() -> ContentEntryVersion:
        entry = get_entry(db, entry_id)
        return create_version(
            db,
            entry,
            comment=comment,
            default_comment="Manual checkpoint v{version_number}",
            created_by=created_by,
            is_auto_generated=False,
        )

    row = run_in_transaction(db, _operation, retries=retries)
    db.refresh(row)
    logger.info("entry %s checkpointed as v%s", entry_id, row.version_number)
    return row


def delete_version(
    db: Session,
    *,
    entry_id: int,
    version_number: int,
    protected_recent: int = PROTECTED_RECENT_VERSIONS,
) -> None:
    get_entry(db, entry_id)
    if version_number == 1:
        raise ForbiddenError("첫 번째 버전은 삭제할 수 없습니다.")
    row = get_version(db, entry_id=entry_id, version_number=version_number)
    latest = latest_version_number(db, entry_id)
    if version_number > latest - protected_recent:
        raise ForbiddenError(f"최근 {protected_recent}개 버전은 삭제할 수 없습니다.")

    def _operation() -> None:
        db.delete(row)

    run_in_transaction(db, _operation, retries=1)
    logger.info("entry %s version v%s deleted", entry_id, version_number)


def resolve_creators(db: Session, versions: List[ContentEntryVersion]) -> Dict[str, Dict[str, Any]]:
    user_ids = {row.created_by for row in versions if row.created_by}
    if not user_ids:
        return {}
    profiles = db.query(UserProfile).filter(UserProfile.id.in_(user_ids)).all()
    return {
        profile.id: {"id": profile.id, "display_name": profile.display_name, "email": profile.email}
        for profile in profiles
    }


def to_response(row: ContentEntryVersion, creators: Optional[Dict[str, Dict[str, Any]]] = None) -> Dict[str, Any]:
    creators = creators or {}
    return {
        "id": row.id,
        "content_entry_id": row.content_entry_id,
        "version_number": row.version_number,
        "title": row.title,
        "slug": row.slug,
        "status": row.status,
        "field_values": row.field_values or {},
        "created_by": row.created_by,
        "created_by_user": creators.get(row.created_by) if row.created_by else None,
        "comment": row.comment,
        "is_auto_generated": bool(row.is_auto_generated),
        "change_summary": row.change_summary,
        "created_at": row.created_at,
    }


def version_stats(db: Session, *, entry_id: int) -> Dict[str, Any]:
    get_entry(db, entry_id)
    total, latest, first_at, latest_at, manual = (
        db.query(
            func.count(ContentEntryVersion.id),
            func.max(ContentEntryVersion.version_number),
            func.min(ContentEntryVersion.created_at),
            func.max(ContentEntryVersion.created_at),
            func.sum(case((ContentEntryVersion.is_auto_generated.is_(False), 1), else_=0)),
        )
        .filter(ContentEntryVersion.content_entry_id == entry_id)
        .one()
    )
    total = total or 0
    manual = manual or 0
    return {
        "content_entry_id": entry_id,
        "total_versions": total,
        "latest_version": latest,
        "first_version_at": first_at,
        "latest_version_at": latest_at,
        "manual_versions": manual,
        "auto_versions": total - manual,
    }


def cleanup_old_versions(
    db: Session,
    *,
    retention_days: int = 90,
    keep_manual: bool = True,
    keep_recent: int = 10,
    dry_run: bool = True,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """보존 기간이 지난 오래된 버전을 정리한다.

    엔트리별 최신 ``keep_recent`` 개와 1번 버전은 항상 남기며, ``keep_manual`` 이면
    수동 체크포인트/롤백 기록도 남긴다. 최신 보호 구간보다 좁게 설정할 수는 없다.
    """
    keep_recent = max(keep_recent, PROTECTED_RECENT_VERSIONS)
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)

    ranked = (
        db.query(
            ContentEntryVersion.id.label("id"),
            func.row_number()
            .over(
                partition_by=ContentEntryVersion.content_entry_id,
                order_by=ContentEntryVersion.version_number.desc(),
            )
            .label("row_num"),
        )
        .subquery()
    )
    q = (
        db.query(ContentEntryVersion)
        .join(ranked, ranked.c.id == ContentEntryVersion.id)
        .filter(
            ranked.c.row_num > keep_recent,
            ContentEntryVersion.version_number > 1,
            ContentEntryVersion.created_at < cutoff,
        )
    )
    if keep_manual:
        q = q.filter(ContentEntryVersion.is_auto_generated.is_(True))
    rows = q.order_by(ContentEntryVersion.content_entry_id, ContentEntryVersion.version_number).all()
    candidates = [{"content_entry_id": row.content_entry_id, "version_number": row.version_number} for row in rows]

    deleted_count = 0
    if rows and not dry_run:
        def _operation() -> int:
            for row in rows:
                db.delete(row)
            return len(rows)

        deleted_count = run_in_transaction(db, _operation, retries=1)
        logger.info("cleaned up %s old versions (retention_days=%s)", deleted_count, retention_days)

    return {
        "dry_run": dry_run,
        "cutoff": cutoff,
        "candidate_count": len(candidates),
        "deleted_count": deleted_count,
        "candidates": candidates,
    }
