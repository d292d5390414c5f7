"""Content entry 버전 이력 API 라우터입니다. 체크포인트, 비교, 롤백, 삭제를 제공합니다."""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from headless_cms.config import Settings, get_settings
from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import get_optional_user_id
from headless_cms.schemas.common import ApiResponse
from headless_cms.schemas.content_entry import ContentEntryOut
from headless_cms.schemas.version import (
    CheckpointRequest,
    ContentEntryVersionOut,
    RollbackRequest,
    VersionDetail,
    VersionList,
    VersionStats,
)
from headless_cms.services import rollback_service, version_service
from headless_cms.utils.helpers import clamp_page, pagination_meta

router = APIRouter(prefix="/api/content-entries/{entry_id}/versions", tags=["versions"])


@router.get("", response_model=ApiResponse[VersionList])
def list_entry_versions(
    entry_id: int,
    page: int = 1,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    entry = version_service.get_entry(db, entry_id)
    page, limit = clamp_page(page, limit, default_limit=settings.DEFAULT_PAGE_SIZE, max_limit=settings.MAX_PAGE_SIZE)
    rows, total = version_service.list_versions(db, entry_id=entry_id, page=page, limit=limit)
    creators = version_service.resolve_creators(db, rows)
    return ApiResponse(data={
        "versions": [version_service.to_response(row, creators) for row in rows],
        "current_data": entry.data or {},
        "pagination": pagination_meta(page, limit, total),
    })


@router.post("", response_model=ApiResponse[ContentEntryVersionOut])
def create_checkpoint(
    entry_id: int,
    data: Optional[CheckpointRequest] = Body(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    row = version_service.checkpoint(
        db,
        entry_id=entry_id,
        comment=data.comment if data else None,
        created_by=user_id,
        retries=settings.VERSION_NUMBER_MAX_RETRIES,
    )
    creators = version_service.resolve_creators(db, [row])
    return ApiResponse(
        data=version_service.to_response(row, creators),
        message=f"Version {row.version_number} created successfully",
    )


@router.get("/stats", response_model=ApiResponse[VersionStats])
def get_version_stats(entry_id: int, db: Session = Depends(get_db)):
    return ApiResponse(data=version_service.version_stats(db, entry_id=entry_id))


@router.get("/{version_number}", response_model=ApiResponse[VersionDetail])
def get_entry_version(
    entry_id: int,
    version_number: int,
    compare_with: Optional[str] = None,
    db: Session = Depends(get_db),
):
    payload = rollback_service.compare(
        db,
        entry_id=entry_id,
        version_number=version_number,
        compare_with=compare_with,
    )
    return ApiResponse(data=payload)


@router.post("/{version_number}", response_model=ApiResponse[ContentEntryOut])
def rollback_to_version(
    entry_id: int,
    version_number: int,
    data: Optional[RollbackRequest] = Body(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    data = data or RollbackRequest()
    entry = rollback_service.rollback(
        db,
        entry_id=entry_id,
        target_version_number=version_number,
        create_backup=data.create_backup,
        comment=data.comment,
        user_id=user_id,
        retries=settings.VERSION_NUMBER_MAX_RETRIES,
    )
    return ApiResponse(
        data=ContentEntryOut.model_validate(entry),
        message=f"Successfully rolled back to version {version_number}",
    )


@router.delete("/{version_number}", response_model=ApiResponse[None])
def delete_entry_version(
    entry_id: int,
    version_number: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    version_service.delete_version(
        db,
        entry_id=entry_id,
        version_number=version_number,
        protected_recent=settings.VERSION_PROTECTED_RECENT,
    )
    return ApiResponse(message=f"Version {version_number} deleted successfully")
