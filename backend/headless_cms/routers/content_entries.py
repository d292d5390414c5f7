"""Content entries API 라우터입니다. 요청을 검증하고 서비스 레이어로 위임합니다."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from headless_cms.config import Settings, get_settings
from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import get_optional_user_id
from headless_cms.schemas.common import ApiResponse
from headless_cms.schemas.content_entry import (
    ContentEntryCreate,
    ContentEntryOut,
    ContentEntryPage,
    ContentEntryUpdate,
    EntryStatus,
)
from headless_cms.services import content_entry_service, version_service
from headless_cms.utils.helpers import clamp_page, pagination_meta

router = APIRouter(prefix="/api/content-entries", tags=["content-entries"])


@router.get("", response_model=ApiResponse[ContentEntryPage])
def list_content_entries(
    content_type_id: Optional[int] = None,
    status: Optional[EntryStatus] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    page, limit = clamp_page(page, limit, default_limit=settings.DEFAULT_PAGE_SIZE, max_limit=settings.MAX_PAGE_SIZE)
    rows, total = content_entry_service.list_entries(
        db,
        content_type_id=content_type_id,
        status=status,
        search=search,
        page=page,
        limit=limit,
    )
    return ApiResponse(data={
        "entries": [ContentEntryOut.model_validate(row) for row in rows],
        "pagination": pagination_meta(page, limit, total),
    })


@router.post("", response_model=ApiResponse[ContentEntryOut], status_code=201)
def create_content_entry(
    data: ContentEntryCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    entry = content_entry_service.create_entry(
        db, data, user_id=user_id, retries=settings.VERSION_NUMBER_MAX_RETRIES,
    )
    return ApiResponse(data=ContentEntryOut.model_validate(entry), message="Content entry created successfully")


@router.get("/slug/{slug}", response_model=ApiResponse[ContentEntryOut])
def get_content_entry_by_slug(slug: str, content_type: Optional[str] = None, db: Session = Depends(get_db)):
    entry = content_entry_service.get_entry_by_slug(db, slug, content_type_name=content_type)
    return ApiResponse(data=ContentEntryOut.model_validate(entry))


@router.get("/{entry_id}", response_model=ApiResponse[ContentEntryOut])
def get_content_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = version_service.get_entry(db, entry_id)
    return ApiResponse(data=ContentEntryOut.model_validate(entry))


@router.put("/{entry_id}", response_model=ApiResponse[ContentEntryOut])
def update_content_entry(
    entry_id: int,
    data: ContentEntryUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    entry = content_entry_service.update_entry(
        db, entry_id, data, user_id=user_id, retries=settings.VERSION_NUMBER_MAX_RETRIES,
    )
    return ApiResponse(data=ContentEntryOut.model_validate(entry), message="Content entry updated successfully")


@router.delete("/{entry_id}", response_model=ApiResponse[None])
def delete_content_entry(entry_id: int, db: Session = Depends(get_db)):
    content_entry_service.delete_entry(db, entry_id)
    return ApiResponse(message="Content entry deleted successfully")
