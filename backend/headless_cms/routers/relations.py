"""콘텐츠 관계 API 라우터입니다. 관계 정의, 엔트리 간 관계, 엔트리별 관계 조회/갱신을 제공합니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from headless_cms.config import Settings, get_settings
from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import get_optional_user_id
from headless_cms.schemas.common import ApiResponse
from headless_cms.schemas.relation import (
    EntryRelationsUpdate,
    EntryRelationsUpdateResult,
    EntryWithRelations,
    RelationCreate,
    RelationDefinitionCreate,
    RelationDefinitionOut,
    RelationDefinitionUpdate,
    RelationOut,
    RelationPage,
    RelationType,
    RelationUpdate,
)
from headless_cms.services import relation_service
from headless_cms.utils.helpers import clamp_page, pagination_meta

router = APIRouter(prefix="/api/relations", tags=["relations"])
entry_router = APIRouter(prefix="/api/content-entries/{entry_id}/relations", tags=["relations"])


@router.get("/definitions", response_model=ApiResponse[List[RelationDefinitionOut]])
def list_relation_definitions(
    content_type_id: Optional[int] = None,
    relation_type: Optional[RelationType] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
):
    rows = relation_service.list_definitions(
        db,
        content_type_id=content_type_id,
        relation_type=relation_type,
        include_inactive=include_inactive,
    )
    return ApiResponse(data=[RelationDefinitionOut.model_validate(row) for row in rows])


@router.post("/definitions", response_model=ApiResponse[RelationDefinitionOut], status_code=201)
def create_relation_definition(
    data: RelationDefinitionCreate,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    row = relation_service.create_definition(db, data, user_id=user_id)
    return ApiResponse(data=RelationDefinitionOut.model_validate(row), message="Relation definition created successfully")


@router.get("/definitions/{definition_id}", response_model=ApiResponse[RelationDefinitionOut])
def get_relation_definition(definition_id: int, db: Session = Depends(get_db)):
    row = relation_service.get_definition(db, definition_id)
    return ApiResponse(data=RelationDefinitionOut.model_validate(row))


@router.put("/definitions/{definition_id}", response_model=ApiResponse[RelationDefinitionOut])
def update_relation_definition(definition_id: int, data: RelationDefinitionUpdate, db: Session = Depends(get_db)):
    row = relation_service.update_definition(db, definition_id, data)
    return ApiResponse(data=RelationDefinitionOut.model_validate(row), message="Relation definition updated successfully")


@router.delete("/definitions/{definition_id}", response_model=ApiResponse[None])
def delete_relation_definition(definition_id: int, db: Session = Depends(get_db)):
    relation_service.delete_definition(db, definition_id)
    return ApiResponse(message="Relation definition deleted successfully")


@router.get("", response_model=ApiResponse[RelationPage])
def list_relations(
    source_entry_id: Optional[int] = None,
    target_entry_id: Optional[int] = None,
    relation_definition_id: Optional[int] = None,
    relation_name: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    page, limit = clamp_page(page, limit, default_limit=settings.DEFAULT_PAGE_SIZE, max_limit=settings.MAX_PAGE_SIZE)
    rows, total = relation_service.list_relations(
        db,
        source_entry_id=source_entry_id,
        target_entry_id=target_entry_id,
        relation_definition_id=relation_definition_id,
        relation_name=relation_name,
        page=page,
        limit=limit,
    )
    return ApiResponse(data={
        "relations": [RelationOut.model_validate(row) for row in rows],
        "pagination": pagination_meta(page, limit, total),
    })


@router.post("", response_model=ApiResponse[RelationOut], status_code=201)
def create_relation(
    data: RelationCreate,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    row = relation_service.create_relation(db, data, user_id=user_id)
    return ApiResponse(data=RelationOut.model_validate(row), message="Content relation created successfully")


@router.get("/{relation_id}", response_model=ApiResponse[RelationOut])
def get_relation(relation_id: int, db: Session = Depends(get_db)):
    row = relation_service.get_relation(db, relation_id)
    return ApiResponse(data=RelationOut.model_validate(row))


@router.put("/{relation_id}", response_model=ApiResponse[RelationOut])
def update_relation(relation_id: int, data: RelationUpdate, db: Session = Depends(get_db)):
    row = relation_service.update_relation(db, relation_id, data)
    return ApiResponse(data=RelationOut.model_validate(row), message="Content relation updated successfully")


@router.delete("/{relation_id}", response_model=ApiResponse[None])
def delete_relation(relation_id: int, db: Session = Depends(get_db)):
    relation_service.delete_relation(db, relation_id)
    return ApiResponse(message="Content relation deleted successfully")


@entry_router.get("", response_model=ApiResponse[EntryWithRelations])
def get_entry_relations(
    entry_id: int,
    relation_name: Optional[str] = None,
    include_metadata: bool = False,
    db: Session = Depends(get_db),
):
    data = relation_service.entry_relations(
        db, entry_id, relation_name=relation_name, include_metadata=include_metadata,
    )
    return ApiResponse(data=data)


@entry_router.put("", response_model=ApiResponse[EntryRelationsUpdateResult])
def update_entry_relations(
    entry_id: int,
    data: EntryRelationsUpdate,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    result = relation_service.update_entry_relations(db, entry_id, data, user_id=user_id)
    count = result["updated_relations"]
    if result["errors"]:
        message = f"Updated {count} relations with {len(result['errors'])} errors"
    else:
        message = f"Successfully updated {count} relations"
    return ApiResponse(data=result, message=message)
