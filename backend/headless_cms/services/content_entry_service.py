"""콘텐츠 엔트리 CRUD 서비스입니다. 생성/수정 시 버전 이력을 함께 기록합니다."""

import copy
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from headless_cms.errors import ConflictError, NotFoundError, ValidationError
from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_type import ContentType
from headless_cms.schemas.content_entry import ContentEntryCreate, ContentEntryUpdate
from headless_cms.services import content_type_service, version_service
from headless_cms.services.diff_service import summarize_changes
from headless_cms.utils.helpers import slugify

logger = logging.getLogger(__name__)

PUBLIC_SORT_FIELDS = ("created_at", "updated_at", "published_at", "slug")


def list_entries(
    db: Session,
    *,
    content_type_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[ContentEntry], int]:
    q = db.query(ContentEntry)
    if content_type_id is not None:
        q = q.filter(ContentEntry.content_type_id == content_type_id)
    if status:
        q = q.filter(ContentEntry.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            ContentEntry.data["title"].as_string().ilike(pattern),
            ContentEntry.slug.ilike(pattern),
        ))
    total = q.count()
    rows = (
        q.options(joinedload(ContentEntry.content_type))
        .order_by(ContentEntry.created_at.desc(), ContentEntry.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def slug_taken(db: Session, content_type_id: int, slug: str, *, exclude_id: Optional[int] = None) -> bool:
    q = db.query(ContentEntry.id).filter(
        ContentEntry.content_type_id == content_type_id,
        ContentEntry.slug == slug,
    )
    if exclude_id is not None:
        q = q.filter(ContentEntry.id != exclude_id)
    return q.first() is not None


def generate_unique_slug(db: Session, content_type_id: int, title: str) -> str:
    base = slugify(title)
    slug = base
    suffix = 2
    while slug_taken(db, content_type_id, slug):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def _missing_required(required: List[str], data: dict) -> List[str]:
    return [name for name in required if data.get(name) in (None, "", [])]


def create_entry(
    db: Session,
    data: ContentEntryCreate,
    *,
    user_id: Optional[str],
    retries: int = 3,
) -> ContentEntry:
    content_type = content_type_service.get_content_type(db, data.content_type_id, active_only=True)
    values = {"title": data.title, **copy.deepcopy(data.fields)}
    missing = _missing_required(content_type_service.required_field_names(content_type), values)
    if missing:
        raise ValidationError(f"필수 필드가 누락되었습니다: {', '.join(missing)}")

    if data.slug:
        slug = data.slug
        if slug_taken(db, content_type.id, slug):
            raise ConflictError(version_service.SLUG_CONFLICT_MESSAGE)
    else:
        slug = generate_unique_slug(db, content_type.id, data.title)

    published_at = None
    if data.status == "published":
        published_at = data.published_at or datetime.now(timezone.utc)

    def _operation() -> ContentEntry:
        entry = ContentEntry(
            content_type_id=content_type.id,
            slug=slug,
            status=data.status,
            data=values,
            meta_data=data.meta_data,
            published_at=published_at,
            version_counter=0,
            created_by=user_id,
            updated_by=user_id,
        )
        db.add(entry)
        db.flush()
        version_service.create_version(
            db,
            entry,
            comment="Initial version",
            created_by=user_id,
            is_auto_generated=True,
            change_summary={"initial_version": True},
        )
        return entry

    entry = version_service.run_in_transaction(db, _operation, retries=retries)
    db.refresh(entry)
    logger.info("content entry %s created (type=%s, slug=%s)", entry.id, content_type.name, entry.slug)
    return entry


def update_entry(
    db: Session,
    entry_id: int,
    data: ContentEntryUpdate,
    *,
    user_id: Optional[str],
    retries: int = 3,
) -> ContentEntry:
    payload = data.model_dump(exclude_none=True)
    if not payload:
        raise ValidationError("변경할 데이터가 없습니다.")

    def _operation() -> ContentEntry:
        entry = version_service.get_entry(db, entry_id)
        before = version_service.snapshot_entry(entry)

        new_data = copy.deepcopy(entry.data or {})
        if data.field_values:
            new_data.update(copy.deepcopy(data.field_values))
        if data.title:
            new_data["title"] = data.title

        if data.slug and data.slug != entry.slug:
            if slug_taken(db, entry.content_type_id, data.slug, exclude_id=entry.id):
                raise ConflictError(version_service.SLUG_CONFLICT_MESSAGE)
            entry.slug = data.slug
        if data.status:
            entry.status = data.status
            if data.status == "published" and entry.published_at is None:
                entry.published_at = datetime.now(timezone.utc)
        if data.meta_data is not None:
            entry.meta_data = data.meta_data
        entry.data = new_data
        entry.updated_by = user_id
        entry.updated_at = datetime.now(timezone.utc)

        version_service.create_version(
            db,
            entry,
            comment="Auto-generated on update",
            created_by=user_id,
            is_auto_generated=True,
            change_summary=summarize_changes(
                before["field_values"],
                new_data,
                old_status=before["status"],
                new_status=entry.status,
                old_slug=before["slug"],
                new_slug=entry.slug,
            ),
        )
        return entry

    entry = version_service.run_in_transaction(db, _operation, retries=retries)
    db.refresh(entry)
    logger.info("content entry %s updated", entry_id)
    return entry


def delete_entry(db: Session, entry_id: int) -> None:
    entry = version_service.get_entry(db, entry_id)

    def _operation() -> None:
        db.delete(entry)

    version_service.run_in_transaction(db, _operation, retries=1)
    logger.info("content entry %s deleted", entry_id)


def get_entry_by_slug(db: Session, slug: str, *, content_type_name: Optional[str] = None) -> ContentEntry:
    """slug 로 엔트리를 찾는다. slug 는 콘텐츠 타입 안에서만 유일하다."""
    q = db.query(ContentEntry).options(joinedload(ContentEntry.content_type)).filter(ContentEntry.slug == slug)
    if content_type_name:
        content_type = content_type_service.get_content_type_by_name(db, content_type_name)
        q = q.filter(ContentEntry.content_type_id == content_type.id)
    rows = q.limit(2).all()
    if not rows:
        raise NotFoundError("콘텐츠 엔트리를 찾을 수 없습니다.")
    if len(rows) > 1:
        raise ValidationError("여러 콘텐츠 타입에 같은 slug 가 있습니다. content_type 을 지정하세요.")
    return rows[0]


def list_public_entries(
    db: Session,
    *,
    content_type_name: str,
    status: str = "published",
    sort: str = "created_at",
    order: str = "desc",
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[ContentEntry], int, ContentType]:
    content_type = content_type_service.get_content_type_by_name(db, content_type_name)
    if sort not in PUBLIC_SORT_FIELDS:
        raise ValidationError(f"sort 는 {', '.join(PUBLIC_SORT_FIELDS)} 중 하나여야 합니다.")
    column = getattr(ContentEntry, sort)
    q = db.query(ContentEntry).filter(
        ContentEntry.content_type_id == content_type.id,
        ContentEntry.status == status,
    )
    total = q.count()
    ordering = column.asc() if order == "asc" else column.desc()
    rows = q.order_by(ordering, ContentEntry.id.desc()).offset(offset).limit(limit).all()
    return rows, total, content_type


def get_public_entry(db: Session, *, content_type_name: str, slug: str) -> Tuple[ContentEntry, ContentType]:
    content_type = content_type_service.get_content_type_by_name(db, content_type_name)
    entry = (
        db.query(ContentEntry)
        .filter(
            ContentEntry.content_type_id == content_type.id,
            ContentEntry.slug == slug,
            ContentEntry.status == "published",
        )
        .first()
    )
    if not entry:
        raise NotFoundError("콘텐츠 엔트리를 찾을 수 없습니다.")
    return entry, content_type
