"""콘텐츠 관계 정의와 엔트리 간 관계를 관리하는 서비스입니다.

관계 수 제한(max/min), one_to_one / one_to_many 유일성, 콘텐츠 타입 일치 여부를
저장 전에 검사합니다. 쓰기 함수는 ``run_in_transaction`` 으로 한 번에 commit 합니다.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from headless_cms.errors import ConflictError, NotFoundError, ValidationError
from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_relation import ContentRelation, ContentRelationDefinition
from headless_cms.models.content_type import ContentType
from headless_cms.schemas.relation import (
    EntryRelationsUpdate,
    RelationCreate,
    RelationDefinitionCreate,
    RelationDefinitionUpdate,
    RelationUpdate,
)
from headless_cms.services.version_service import get_entry, run_in_transaction

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
DUPLICATE_RELATION_MESSAGE = "이미 존재하는 관계입니다."


def list_definitions(
    db: Session,
    *,
    content_type_id: Optional[int] = None,
    relation_type: Optional[str] = None,
    include_inactive: bool = False,
) -> List[ContentRelationDefinition]:
    q = db.query(ContentRelationDefinition).options(
        joinedload(ContentRelationDefinition.source_content_type),
        joinedload(ContentRelationDefinition.target_content_type),
    )
    if not include_inactive:
        q = q.filter(ContentRelationDefinition.is_active.is_(True))
    if content_type_id is not None:
        q = q.filter(or_(
            ContentRelationDefinition.source_content_type_id == content_type_id,
            ContentRelationDefinition.target_content_type_id == content_type_id,
        ))
    if relation_type:
        q = q.filter(ContentRelationDefinition.relation_type == relation_type)
    return q.order_by(ContentRelationDefinition.sort_order, ContentRelationDefinition.name).all()


def get_definition(db: Session, definition_id: int) -> ContentRelationDefinition:
    row = db.query(ContentRelationDefinition).filter(ContentRelationDefinition.id == definition_id).first()
    if not row:
        raise NotFoundError("관계 정의를 찾을 수 없습니다.")
    return row


def _check_min_max(min_relations: int, max_relations: Optional[int]) -> None:
    if max_relations is not None and max_relations < min_relations:
        raise ValidationError("max_relations 는 min_relations 보다 작을 수 없습니다.")


def create_definition(db: Session, data: RelationDefinitionCreate, *, user_id: Optional[str]) -> ContentRelationDefinition:
    if not _NAME_PATTERN.match(data.name):
        raise ValidationError("name 은 소문자로 시작하고 소문자/숫자/밑줄만 사용할 수 있습니다.")
    _check_min_max(data.min_relations, data.max_relations)
    if data.is_bidirectional and not data.target_field_name:
        raise ValidationError("양방향 관계에는 target_field_name 이 필요합니다.")
    type_ids = {data.source_content_type_id, data.target_content_type_id}
    if db.query(func.count(ContentType.id)).filter(ContentType.id.in_(type_ids)).scalar() != len(type_ids):
        raise ValidationError("원본 또는 대상 콘텐츠 타입이 존재하지 않습니다.")
    if db.query(ContentRelationDefinition.id).filter(ContentRelationDefinition.name == data.name).first():
        raise ConflictError("같은 이름의 관계 정의가 이미 존재합니다.")
    if db.query(ContentRelationDefinition.id).filter(
        ContentRelationDefinition.source_content_type_id == data.source_content_type_id,
        ContentRelationDefinition.source_field_name == data.source_field_name,
    ).first():
        raise ConflictError("원본 콘텐츠 타입에 같은 필드 이름의 관계가 이미 존재합니다.")

    def _operation() -> ContentRelationDefinition:
        row = ContentRelationDefinition(**data.model_dump(), created_by=user_id)
        db.add(row)
        db.flush()
        return row

    row = run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    logger.info("relation definition %s created (id=%s)", row.name, row.id)
    return row


def update_definition(db: Session, definition_id: int, data: RelationDefinitionUpdate) -> ContentRelationDefinition:
    row = get_definition(db, definition_id)
    payload = data.model_dump(exclude_unset=True)
    if not payload:
        raise ValidationError("변경할 데이터가 없습니다.")
    min_relations = payload.get("min_relations", row.min_relations)
    if min_relations is None:
        raise ValidationError("min_relations 는 비워 둘 수 없습니다.")
    _check_min_max(min_relations, payload.get("max_relations", row.max_relations))
    is_bidirectional = payload.get("is_bidirectional", row.is_bidirectional)
    if is_bidirectional and not payload.get("target_field_name", row.target_field_name):
        raise ValidationError("양방향 관계에는 target_field_name 이 필요합니다.")

    def _operation() -> ContentRelationDefinition:
        for key, value in payload.items():
            setattr(row, key, value)
        db.flush()
        return row

    run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    return row


def delete_definition(db: Session, definition_id: int) -> None:
    row = get_definition(db, definition_id)

    def _operation() -> None:
        db.delete(row)

    run_in_transaction(db, _operation, retries=1)
    logger.info("relation definition %s deleted", definition_id)


def _active_definition(db: Session, definition_id: int) -> ContentRelationDefinition:
    row = (
        db.query(ContentRelationDefinition)
        .filter(ContentRelationDefinition.id == definition_id, ContentRelationDefinition.is_active.is_(True))
        .first()
    )
    if not row:
        raise ValidationError("관계 정의가 없거나 비활성 상태입니다.")
    return row


def _count_from_source(db: Session, definition_id: int, source_entry_id: int) -> int:
    return (
        db.query(func.count(ContentRelation.id))
        .filter(
            ContentRelation.relation_definition_id == definition_id,
            ContentRelation.source_entry_id == source_entry_id,
        )
        .scalar()
    )


def _target_taken(db: Session, definition_id: int, target_entry_id: int) -> bool:
    return db.query(ContentRelation.id).filter(
        ContentRelation.relation_definition_id == definition_id,
        ContentRelation.target_entry_id == target_entry_id,
    ).first() is not None


def _validate_new_relation(
    db: Session,
    definition: ContentRelationDefinition,
    source_entry_id: int,
    target_entry_id: int,
) -> None:
    if source_entry_id == target_entry_id:
        raise ValidationError("엔트리는 자기 자신과 관계를 맺을 수 없습니다.")
    entries = {
        row.id: row
        for row in db.query(ContentEntry).filter(ContentEntry.id.in_([source_entry_id, target_entry_id])).all()
    }
    source, target = entries.get(source_entry_id), entries.get(target_entry_id)
    if not source or not target:
        raise ValidationError("원본 또는 대상 엔트리를 찾을 수 없습니다.")
    if (
        source.content_type_id != definition.source_content_type_id
        or target.content_type_id != definition.target_content_type_id
    ):
        raise ValidationError("엔트리의 콘텐츠 타입이 관계 정의와 일치하지 않습니다.")

    if db.query(ContentRelation.id).filter(
        ContentRelation.relation_definition_id == definition.id,
        ContentRelation.source_entry_id == source_entry_id,
        ContentRelation.target_entry_id == target_entry_id,
    ).first():
        raise ConflictError(DUPLICATE_RELATION_MESSAGE)

    current = _count_from_source(db, definition.id, source_entry_id)
    if definition.max_relations is not None and current >= definition.max_relations:
        raise ConflictError(f"원본 엔트리당 최대 관계 수({definition.max_relations})를 초과했습니다.")
    if definition.relation_type == "one_to_one":
        if current > 0:
            raise ConflictError("one_to_one 관계: 원본 엔트리에 이미 관계가 있습니다.")
        if _target_taken(db, definition.id, target_entry_id):
            raise ConflictError("one_to_one 관계: 대상 엔트리에 이미 관계가 있습니다.")
    elif definition.relation_type == "one_to_many":
        if _target_taken(db, definition.id, target_entry_id):
            raise ConflictError("one_to_many 관계: 대상 엔트리가 이미 다른 원본에 속해 있습니다.")


def _add_relation(
    db: Session,
    definition: ContentRelationDefinition,
    *,
    source_entry_id: int,
    target_entry_id: int,
    relation_data: Dict[str, Any],
    sort_order: int,
    user_id: Optional[str],
) -> ContentRelation:
    _validate_new_relation(db, definition, source_entry_id, target_entry_id)
    row = ContentRelation(
        relation_definition_id=definition.id,
        source_entry_id=source_entry_id,
        target_entry_id=target_entry_id,
        relation_data=relation_data or {},
        sort_order=sort_order,
        created_by=user_id,
    )
    db.add(row)
    db.flush()
    return row


def create_relation(db: Session, data: RelationCreate, *, user_id: Optional[str]) -> ContentRelation:
    def _operation() -> ContentRelation:
        definition = _active_definition(db, data.relation_definition_id)
        return _add_relation(
            db,
            definition,
            source_entry_id=data.source_entry_id,
            target_entry_id=data.target_entry_id,
            relation_data=data.relation_data,
            sort_order=data.sort_order,
            user_id=user_id,
        )

    row = run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    logger.info(
        "relation %s created (definition=%s, %s -> %s)",
        row.id, row.relation_definition_id, row.source_entry_id, row.target_entry_id,
    )
    return row


def get_relation(db: Session, relation_id: int) -> ContentRelation:
    row = db.query(ContentRelation).filter(ContentRelation.id == relation_id).first()
    if not row:
        raise NotFoundError("관계를 찾을 수 없습니다.")
    return row


def update_relation(db: Session, relation_id: int, data: RelationUpdate) -> ContentRelation:
    row = get_relation(db, relation_id)
    payload = data.model_dump(exclude_none=True)
    if not payload:
        raise ValidationError("변경할 데이터가 없습니다.")

    def _operation() -> ContentRelation:
        for key, value in payload.items():
            setattr(row, key, value)
        db.flush()
        return row

    run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    return row


def delete_relation(db: Session, relation_id: int) -> None:
    row = get_relation(db, relation_id)
    min_relations = row.definition.min_relations or 0
    if min_relations > 0 and _count_from_source(db, row.relation_definition_id, row.source_entry_id) <= min_relations:
        raise ConflictError(f"원본 엔트리에는 최소 {min_relations}개의 관계가 필요합니다.")

    def _operation() -> None:
        db.delete(row)

    run_in_transaction(db, _operation, retries=1)
    logger.info("relation %s deleted", relation_id)


def list_relations(
    db: Session,
    *,
    source_entry_id: Optional[int] = None,
    target_entry_id: Optional[int] = None,
    relation_definition_id: Optional[int] = None,
    relation_name: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[ContentRelation], int]:
    q = db.query(ContentRelation)
    if source_entry_id is not None:
        q = q.filter(ContentRelation.source_entry_id == source_entry_id)
    if target_entry_id is not None:
        q = q.filter(ContentRelation.target_entry_id == target_entry_id)
    if relation_definition_id is not None:
        q = q.filter(ContentRelation.relation_definition_id == relation_definition_id)
    if relation_name:
        q = q.join(ContentRelation.definition).filter(ContentRelationDefinition.name == relation_name)
    total = q.count()
    rows = (
        q.order_by(ContentRelation.sort_order, ContentRelation.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def _related_item(entry: ContentEntry, relation: ContentRelation, include_metadata: bool) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "slug": entry.slug,
        "title": entry.title,
        "content_type": entry.content_type.name,
        "status": entry.status,
        "published_at": entry.published_at,
        "sort_order": relation.sort_order,
        "data": entry.data if include_metadata else None,
        "relation_data": relation.relation_data if include_metadata else None,
    }


def entry_relations(
    db: Session,
    entry_id: int,
    *,
    relation_name: Optional[str] = None,
    include_metadata: bool = False,
) -> Dict[str, Any]:
    """엔트리의 관계를 source_field_name 별로 묶어 반환한다.

    양방향 정의에서 이 엔트리가 대상인 경우 target_field_name 아래에 역방향으로 담는다.
    """
    entry = get_entry(db, entry_id)
    groups: Dict[str, Any] = {}

    outgoing = (
        db.query(ContentRelationDefinition)
        .filter(
            ContentRelationDefinition.source_content_type_id == entry.content_type_id,
            ContentRelationDefinition.is_active.is_(True),
        )
        .order_by(ContentRelationDefinition.sort_order, ContentRelationDefinition.name)
        .all()
    )
    for definition in outgoing:
        if relation_name and definition.name != relation_name:
            continue
        rows = (
            db.query(ContentRelation)
            .options(joinedload(ContentRelation.target_entry).joinedload(ContentEntry.content_type))
            .filter(
                ContentRelation.relation_definition_id == definition.id,
                ContentRelation.source_entry_id == entry.id,
            )
            .all()
        )
        if not rows:
            continue
        rows.sort(key=lambda r: (r.sort_order, r.target_entry.slug))
        items = [_related_item(row.target_entry, row, include_metadata) for row in rows]
        groups[definition.source_field_name] = {
            "type": definition.relation_type,
            "definition_id": definition.id,
            "display_name": definition.display_name,
            "is_bidirectional": definition.is_bidirectional,
            "is_reverse": False,
            "items": items,
            "count": len(items),
        }

    incoming = (
        db.query(ContentRelationDefinition)
        .filter(
            ContentRelationDefinition.target_content_type_id == entry.content_type_id,
            ContentRelationDefinition.is_active.is_(True),
            ContentRelationDefinition.is_bidirectional.is_(True),
            ContentRelationDefinition.target_field_name.isnot(None),
        )
        .order_by(ContentRelationDefinition.sort_order, ContentRelationDefinition.name)
        .all()
    )
    for definition in incoming:
        if relation_name and definition.target_field_name != relation_name:
            continue
        rows = (
            db.query(ContentRelation)
            .options(joinedload(ContentRelation.source_entry).joinedload(ContentEntry.content_type))
            .filter(
                ContentRelation.relation_definition_id == definition.id,
                ContentRelation.target_entry_id == entry.id,
            )
            .all()
        )
        if not rows:
            continue
        rows.sort(key=lambda r: (r.sort_order, r.source_entry.slug))
        items = [_related_item(row.source_entry, row, include_metadata) for row in rows]
        groups[definition.target_field_name] = {
            "type": definition.relation_type,
            "definition_id": definition.id,
            "display_name": f"{definition.display_name} (reverse)",
            "is_bidirectional": True,
            "is_reverse": True,
            "items": items,
            "count": len(items),
        }

    return {
        "id": entry.id,
        "slug": entry.slug,
        "title": entry.title,
        "content_type": entry.content_type.name,
        "status": entry.status,
        "published_at": entry.published_at,
        "data": entry.data or {},
        "relations": groups,
    }


def update_entry_relations(
    db: Session,
    entry_id: int,
    data: EntryRelationsUpdate,
    *,
    user_id: Optional[str],
) -> Dict[str, Any]:
    """관계 정의 name 별로 관계를 추가(또는 replace 시 교체)한다.

    개별 항목의 검증 실패는 errors 로 모으고 나머지는 저장한다. 이미 있는 관계는 건너뛴다.
    replace 결과가 min_relations 를 만족하지 못하면 요청 전체를 취소한다.
    """
    entry = get_entry(db, entry_id)

    def _operation() -> Dict[str, Any]:
        created = 0
        errors: List[str] = []
        for name, targets in data.relations.items():
            definition = (
                db.query(ContentRelationDefinition)
                .filter(ContentRelationDefinition.name == name, ContentRelationDefinition.is_active.is_(True))
                .first()
            )
            if not definition:
                errors.append(f"관계 정의 '{name}' 가 없거나 비활성 상태입니다.")
                continue
            if definition.source_content_type_id != entry.content_type_id:
                errors.append(f"관계 정의 '{name}' 는 이 엔트리의 콘텐츠 타입에 속하지 않습니다.")
                continue

            if data.replace:
                db.query(ContentRelation).filter(
                    ContentRelation.relation_definition_id == definition.id,
                    ContentRelation.source_entry_id == entry.id,
                ).delete(synchronize_session="fetch")
                db.flush()

            for target in targets:
                try:
                    _add_relation(
                        db,
                        definition,
                        source_entry_id=entry.id,
                        target_entry_id=target.target_entry_id,
                        relation_data=target.relation_data,
                        sort_order=target.sort_order,
                        user_id=user_id,
                    )
                    created += 1
                except ConflictError as exc:
                    if exc.detail != DUPLICATE_RELATION_MESSAGE:
                        errors.append(f"{name}: {exc.detail}")
                except ValidationError as exc:
                    errors.append(f"{name}: {exc.detail}")

            remaining = _count_from_source(db, definition.id, entry.id)
            if data.replace and remaining < (definition.min_relations or 0):
                raise ConflictError(
                    f"관계 정의 '{name}' 에는 최소 {definition.min_relations}개의 관계가 필요합니다."
                )
        return {"updated_relations": created, "errors": errors}

    result = run_in_transaction(db, _operation, retries=1)
    logger.info("entry %s relations updated (created=%s, errors=%s)", entry_id, result["updated_relations"], len(result["errors"]))
    return result
