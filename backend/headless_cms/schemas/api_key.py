"""API key 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

KeyType = Literal["production", "development", "test"]


class ApiKeyCreate(BaseModel):
    key_name: str = Field(..., min_length=1, max_length=100)
    key_type: KeyType = "production"
    expires_at: Optional[datetime] = None


class ApiKeyUpdate(BaseModel):
    is_active: bool


class ApiKeyOut(BaseModel):
    id: int
    key_name: str
    key_type: str
    key_value: str
    key_prefix: str
    is_active: bool
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
