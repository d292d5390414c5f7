"""Content entry 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from headless_cms.schemas.common import Pagination
from headless_cms.schemas.content_type import ContentTypeSummary

EntryStatus = Literal["draft", "published", "archived"]


class ContentEntryCreate(BaseModel):
    content_type_id: int
    title: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, max_length=255)
    status: EntryStatus = "draft"
    fields: Dict[str, Any] = {}
    meta_data: Optional[Dict[str, Any]] = None
    published_at: Optional[datetime] = None


class ContentEntryUpdate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = Field(None, max_length=255)
    status: Optional[EntryStatus] = None
    field_values: Optional[Dict[str, Any]] = None
    meta_data: Optional[Dict[str, Any]] = None


class ContentEntryOut(BaseModel):
    id: int
    content_type_id: int
    title: str
    slug: str
    status: str
    data: Dict[str, Any]
    meta_data: Optional[Dict[str, Any]] = None
    published_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    content_type: Optional[ContentTypeSummary] = None

    model_config = {"from_attributes": True}


class ContentEntryPage(BaseModel):
    entries: List[ContentEntryOut]
    pagination: Pagination


class PublicEntryOut(BaseModel):
    id: int
    slug: str
    title: str
    status: str
    data: Dict[str, Any]
    meta_data: Optional[Dict[str, Any]] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PublicEntryMeta(BaseModel):
    total: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    content_type: ContentTypeSummary


class PublicEntryPage(BaseModel):
    entries: List[PublicEntryOut]
    meta: PublicEntryMeta


class PublicEntryDetail(BaseModel):
    entry: PublicEntryOut
    meta: PublicEntryMeta
