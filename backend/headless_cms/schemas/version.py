"""콘텐츠 엔트리 버전 이력 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from headless_cms.schemas.common import Pagination


class CreatorOut(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


class ContentEntryVersionOut(BaseModel):
    id: int
    content_entry_id: int
    version_number: int
    title: Optional[str] = None
    slug: str
    status: str
    field_values: Dict[str, Any]
    created_by: Optional[str] = None
    created_by_user: Optional[CreatorOut] = None
    comment: Optional[str] = None
    is_auto_generated: bool
    change_summary: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class VersionDiffOut(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None
    change_type: Literal["added", "modified", "deleted"]


class VersionComparison(BaseModel):
    type: Literal["current", "version"]
    target: str
    diff: List[VersionDiffOut]


class VersionDetail(BaseModel):
    version: ContentEntryVersionOut
    comparison: Optional[VersionComparison] = None


class VersionList(BaseModel):
    versions: List[ContentEntryVersionOut]
    current_data: Dict[str, Any]
    pagination: Pagination


class CheckpointRequest(BaseModel):
    comment: Optional[str] = None


class RollbackRequest(BaseModel):
    create_backup: bool = True
    comment: Optional[str] = None


class VersionStats(BaseModel):
    content_entry_id: int
    total_versions: int
    latest_version: Optional[int] = None
    first_version_at: Optional[datetime] = None
    latest_version_at: Optional[datetime] = None
    manual_versions: int
    auto_versions: int
