"""Content type 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

FieldType = Literal[
    "text", "textarea", "rich_text", "number", "boolean", "date", "datetime",
    "email", "url", "select", "multi_select", "media", "relation", "json",
]


class ContentTypeFieldIn(BaseModel):
    field_name: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    field_type: FieldType
    is_required: bool = False
    sort_order: Optional[int] = None


class ContentTypeFieldOut(BaseModel):
    id: int
    field_name: str
    display_name: str
    field_type: str
    is_required: bool
    sort_order: int

    model_config = {"from_attributes": True}


class ContentTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    fields: List[ContentTypeFieldIn] = []


class ContentTypeSummary(BaseModel):
    id: int
    name: str
    display_name: str
    icon: Optional[str] = None

    model_config = {"from_attributes": True}


class ContentTypeOut(ContentTypeSummary):
    description: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    fields: List[ContentTypeFieldOut] = []
