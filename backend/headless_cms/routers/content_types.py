"""Content types API 라우터입니다. 요청을 검증하고 서비스 레이어로 위임합니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import get_optional_user_id
from headless_cms.schemas.common import ApiResponse
from headless_cms.schemas.content_type import ContentTypeCreate, ContentTypeOut
from headless_cms.services import content_type_service

router = APIRouter(prefix="/api/content-types", tags=["content-types"])


@router.get("", response_model=ApiResponse[List[ContentTypeOut]])
def list_content_types(db: Session = Depends(get_db)):
    rows = content_type_service.list_content_types(db)
    return ApiResponse(data=[ContentTypeOut.model_validate(row) for row in rows])


@router.post("", response_model=ApiResponse[ContentTypeOut], status_code=201)
def create_content_type(
    data: ContentTypeCreate,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_optional_user_id),
):
    row = content_type_service.create_content_type(db, data, user_id=user_id)
    return ApiResponse(data=ContentTypeOut.model_validate(row), message="Content type created successfully")


@router.get("/{content_type_id}", response_model=ApiResponse[ContentTypeOut])
def get_content_type(content_type_id: int, db: Session = Depends(get_db)):
    row = content_type_service.get_content_type(db, content_type_id)
    return ApiResponse(data=ContentTypeOut.model_validate(row))


@router.delete("/{content_type_id}", response_model=ApiResponse[None])
def delete_content_type(content_type_id: int, db: Session = Depends(get_db)):
    content_type_service.delete_content_type(db, content_type_id)
    return ApiResponse(message="Content type deleted successfully")
