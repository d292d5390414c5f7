"""API key 관리 라우터입니다. 로그인 사용자는 자신의 key 만 조회/발급/수정/삭제할 수 있습니다."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from headless_cms.database import get_db
from headless_cms.middleware.auth_middleware import get_current_user_id
from headless_cms.schemas.api_key import ApiKeyCreate, ApiKeyOut, ApiKeyUpdate
from headless_cms.schemas.common import ApiResponse
from headless_cms.services import api_key_service

router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])


@router.get("", response_model=ApiResponse[List[ApiKeyOut]])
def list_api_keys(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    rows = api_key_service.list_api_keys(db, user_id)
    return ApiResponse(data=[api_key_service.to_response(row) for row in rows])


@router.post("", response_model=ApiResponse[ApiKeyOut], status_code=201)
def create_api_key(
    data: ApiKeyCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    row = api_key_service.create_api_key(db, data, user_id=user_id)
    return ApiResponse(data=api_key_service.to_response(row, reveal=True), message="API key generated successfully")


@router.put("/{key_id}", response_model=ApiResponse[ApiKeyOut])
def update_api_key(
    key_id: int,
    data: ApiKeyUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    row = api_key_service.set_api_key_active(db, key_id, user_id=user_id, is_active=data.is_active)
    return ApiResponse(data=api_key_service.to_response(row), message="API key updated successfully")


@router.delete("/{key_id}", response_model=ApiResponse[None])
def delete_api_key(key_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    api_key_service.delete_api_key(db, key_id, user_id=user_id)
    return ApiResponse(message="API key deleted successfully")
