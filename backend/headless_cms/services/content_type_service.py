"""콘텐츠 타입(스키마 정의) 관리 서비스입니다."""

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from headless_cms.errors import ConflictError, NotFoundError, ValidationError
from headless_cms.models.content_type import ContentType, ContentTypeField
from headless_cms.schemas.content_type import ContentTypeCreate
from headless_cms.services.version_service import run_in_transaction

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def list_content_types(db: Session) -> List[ContentType]:
    return (
        db.query(ContentType)
        .options(selectinload(ContentType.fields))
        .filter(ContentType.is_active.is_(True))
        .order_by(ContentType.display_name.asc())
        .all()
    )


def get_content_type(db: Session, content_type_id: int, *, active_only: bool = False) -> ContentType:
    q = db.query(ContentType).filter(ContentType.id == content_type_id)
    if active_only:
        q = q.filter(ContentType.is_active.is_(True))
    row = q.first()
    if not row:
        raise NotFoundError("콘텐츠 타입을 찾을 수 없습니다.")
    return row


def create_content_type(db: Session, data: ContentTypeCreate, *, user_id: Optional[str]) -> ContentType:
    if not _NAME_PATTERN.match(data.name):
        raise ValidationError("name 은 소문자로 시작하고 소문자/숫자/밑줄만 사용할 수 있습니다.")
    if db.query(ContentType.id).filter(ContentType.name == data.name).first():
        raise ConflictError("같은 이름의 콘텐츠 타입이 이미 존재합니다.")
    field_names = [field.field_name for field in data.fields]
    if len(field_names) != len(set(field_names)):
        raise ValidationError("필드 이름이 중복되었습니다.")

    def _operation() -> ContentType:
        row = ContentType(
            name=data.name,
            display_name=data.display_name,
            description=data.description,
            icon=data.icon or "File",
            created_by=user_id,
        )
        for index, field in enumerate(data.fields):
            row.fields.append(ContentTypeField(
                field_name=field.field_name,
                display_name=field.display_name,
                field_type=field.field_type,
                is_required=field.is_required,
                sort_order=field.sort_order if field.sort_order is not None else index,
            ))
        db.add(row)
        db.flush()
        return row

    row = run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    logger.info("content type %s created (id=%s)", row.name, row.id)
    return row


def delete_content_type(db: Session, content_type_id: int) -> None:
    row = get_content_type(db, content_type_id)

    def _operation() -> None:
        db.delete(row)

    run_in_transaction(db, _operation, retries=1)
    logger.info("content type %s deleted", content_type_id)


def required_field_names(content_type: ContentType) -> List[str]:
    return [field.field_name for field in content_type.fields if field.is_required]


def get_content_type_by_name(db: Session, name: str) -> ContentType:
    row = (
        db.query(ContentType)
        .filter(ContentType.name == name, ContentType.is_active.is_(True))
        .first()
    )
    if not row:
        raise NotFoundError("콘텐츠 타입을 찾을 수 없습니다.")
    return row
