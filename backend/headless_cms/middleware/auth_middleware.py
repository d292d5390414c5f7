import uuid
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from headless_cms.config import Settings, get_settings
from headless_cms.database import get_db
from headless_cms.errors import UnauthorizedError
from headless_cms.models.api_key import ApiKey
from headless_cms.services import api_key_service

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
        )
    except JWTError:
        return None


def user_id_from_token(token: str, settings: Settings) -> Optional[str]:
    payload = decode_token(token, settings)
    if not payload or not payload.get("sub"):
        return None
    # auth.users.id 는 UUID 이다. 그 외 형식의 sub 는 작성자로 기록하지 않는다.
    try:
        return str(uuid.UUID(str(payload["sub"])))
    except ValueError:
        return None


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    # 인증은 Supabase Auth 가 담당한다. 여기서는 작성자 기록용 sub 만 읽는다.
    if credentials is None:
        return None
    return user_id_from_token(credentials.credentials, settings)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    if credentials is None:
        raise UnauthorizedError()
    user_id = user_id_from_token(credentials.credentials, settings)
    if not user_id:
        raise UnauthorizedError("유효하지 않은 인증 토큰입니다.")
    return user_id


def require_api_key(
    x_api_key: Optional[str] = Header(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[ApiKey]:
    """공개 API 용 API key 검증. x-api-key 헤더 또는 Bearer 토큰으로 받는다."""
    if not settings.PUBLIC_API_KEY_REQUIRED:
        return None
    key_value = x_api_key or (credentials.credentials if credentials else None)
    if not key_value:
        raise UnauthorizedError("API key 가 필요합니다. x-api-key 헤더 또는 Authorization Bearer 토큰을 사용하세요.")
    return api_key_service.validate_api_key(db, key_value)
