"""프론트엔드 소비자용 공개 읽기 API 라우터입니다. 발행된 엔트리를 content type name 기준으로 제공합니다."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from headless_cms.config import Settings, get_settings
from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import require_api_key
from headless_cms.models.api_key import ApiKey
from headless_cms.schemas.common import ApiResponse
from headless_cms.schemas.content_entry import (
    EntryStatus,
    PublicEntryDetail,
    PublicEntryOut,
    PublicEntryPage,
)
from headless_cms.schemas.content_type import ContentTypeSummary
from headless_cms.services import content_entry_service

router = APIRouter(prefix="/api/public/content-entries", tags=["public"])


@router.get("", response_model=ApiResponse[PublicEntryPage])
def list_public_entries(
    content_type: str = Query(..., min_length=1),
    status: EntryStatus = "published",
    sort: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    limit: Optional[int] = None,
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    api_key: Optional[ApiKey] = Depends(require_api_key),
):
    limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)
    rows, total, content_type_row = content_entry_service.list_public_entries(
        db,
        content_type_name=content_type,
        status=status,
        sort=sort,
        order=order,
        limit=limit,
        offset=offset,
    )
    return ApiResponse(data={
        "entries": [PublicEntryOut.model_validate(row) for row in rows],
        "meta": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "content_type": ContentTypeSummary.model_validate(content_type_row),
        },
    })


@router.get("/{slug}", response_model=ApiResponse[PublicEntryDetail])
def get_public_entry(
    slug: str,
    content_type: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    api_key: Optional[ApiKey] = Depends(require_api_key),
):
    entry, content_type_row = content_entry_service.get_public_entry(
        db, content_type_name=content_type, slug=slug,
    )
    return ApiResponse(data={
        "entry": PublicEntryOut.model_validate(entry),
        "meta": {"content_type": ContentTypeSummary.model_validate(content_type_row)},
    })
