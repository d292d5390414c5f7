"""콘텐츠 관계 정의/관계 요청·응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from headless_cms.schemas.common import Pagination
from headless_cms.schemas.content_type import ContentTypeSummary

RelationType = Literal["one_to_one", "one_to_many", "many_to_many"]


class RelationDefinitionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    source_content_type_id: int
    source_field_name: str = Field(..., min_length=1, max_length=100)
    target_content_type_id: int
    target_field_name: Optional[str] = Field(None, max_length=100)
    relation_type: RelationType = "many_to_many"
    is_bidirectional: bool = False
    max_relations: Optional[int] = Field(None, ge=1)
    min_relations: int = Field(0, ge=0)
    sort_order: int = 0


class RelationDefinitionUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    target_field_name: Optional[str] = Field(None, max_length=100)
    is_bidirectional: Optional[bool] = None
    max_relations: Optional[int] = Field(None, ge=1)
    min_relations: Optional[int] = Field(None, ge=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class RelationDefinitionOut(BaseModel):
    id: int
    name: str
    display_name: str
    description: Optional[str] = None
    source_content_type_id: int
    source_field_name: str
    target_content_type_id: int
    target_field_name: Optional[str] = None
    relation_type: str
    is_bidirectional: bool
    max_relations: Optional[int] = None
    min_relations: int
    sort_order: int
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    source_content_type: Optional[ContentTypeSummary] = None
    target_content_type: Optional[ContentTypeSummary] = None

    model_config = {"from_attributes": True}


class RelationCreate(BaseModel):
    relation_definition_id: int
    source_entry_id: int
    target_entry_id: int
    relation_data: Dict[str, Any] = {}
    sort_order: int = 0


class RelationUpdate(BaseModel):
    relation_data: Optional[Dict[str, Any]] = None
    sort_order: Optional[int] = None


class RelationOut(BaseModel):
    id: int
    relation_definition_id: int
    source_entry_id: int
    target_entry_id: int
    relation_data: Dict[str, Any]
    sort_order: int
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RelationPage(BaseModel):
    relations: List[RelationOut]
    pagination: Pagination


class RelationTarget(BaseModel):
    target_entry_id: int
    relation_data: Dict[str, Any] = {}
    sort_order: int = 0


class EntryRelationsUpdate(BaseModel):
    """relation 정의 name 별 대상 목록. replace 이면 기존 관계를 교체한다."""

    relations: Dict[str, List[RelationTarget]]
    replace: bool = False


class EntryRelationsUpdateResult(BaseModel):
    updated_relations: int
    errors: List[str] = []


class RelatedEntry(BaseModel):
    id: int
    slug: str
    title: str
    content_type: str
    status: str
    published_at: Optional[datetime] = None
    sort_order: int
    data: Optional[Dict[str, Any]] = None
    relation_data: Optional[Dict[str, Any]] = None


class RelationGroup(BaseModel):
    type: str
    definition_id: int
    display_name: str
    is_bidirectional: bool
    is_reverse: bool = False
    items: List[RelatedEntry]
    count: int


class EntryWithRelations(BaseModel):
    id: int
    slug: str
    title: str
    content_type: str
    status: str
    published_at: Optional[datetime] = None
    data: Dict[str, Any]
    relations: Dict[str, RelationGroup]
