"""공개 API 용 API key 발급/관리/검증 서비스입니다."""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from headless_cms.errors import NotFoundError, UnauthorizedError
from headless_cms.models.api_key import ApiKey, KEY_PREFIXES
from headless_cms.schemas.api_key import ApiKeyCreate
from headless_cms.services.version_service import run_in_transaction

logger = logging.getLogger(__name__)

MASK_SUFFIX = "****-****-****-****"


def generate_key_value(key_type: str) -> str:
    prefix = KEY_PREFIXES.get(key_type, KEY_PREFIXES["production"])
    return f"{prefix}-{secrets.token_hex(16)}"


def mask_key(key_value: str) -> str:
    return key_value[:8] + MASK_SUFFIX


def to_response(row: ApiKey, *, reveal: bool = False) -> Dict[str, Any]:
    # 전체 key 값은 발급 직후 한 번만 보여준다.
    return {
        "id": row.id,
        "key_name": row.key_name,
        "key_type": row.key_type,
        "key_value": row.key_value if reveal else mask_key(row.key_value),
        "key_prefix": row.key_prefix,
        "is_active": bool(row.is_active),
        "last_used_at": row.last_used_at,
        "expires_at": row.expires_at,
        "created_at": row.created_at,
    }


def list_api_keys(db: Session, user_id: str) -> List[ApiKey]:
    return (
        db.query(ApiKey)
        .filter(ApiKey.user_id == user_id)
        .order_by(ApiKey.created_at.desc(), ApiKey.id.desc())
        .all()
    )


def create_api_key(db: Session, data: ApiKeyCreate, *, user_id: str) -> ApiKey:
    def _operation() -> ApiKey:
        key_value = generate_key_value(data.key_type)
        row = ApiKey(
            user_id=user_id,
            key_name=data.key_name,
            key_type=data.key_type,
            key_value=key_value,
            key_prefix=KEY_PREFIXES[data.key_type],
            expires_at=data.expires_at,
            permissions={},
        )
        db.add(row)
        db.flush()
        return row

    row = run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    logger.info("api key %s issued for user %s (%s)", row.id, user_id, row.key_type)
    return row


def get_own_api_key(db: Session, key_id: int, *, user_id: str) -> ApiKey:
    row = db.query(ApiKey).filter(ApiKey.id == key_id, ApiKey.user_id == user_id).first()
    if not row:
        raise NotFoundError("API key 를 찾을 수 없습니다.")
    return row


def set_api_key_active(db: Session, key_id: int, *, user_id: str, is_active: bool) -> ApiKey:
    row = get_own_api_key(db, key_id, user_id=user_id)

    def _operation() -> ApiKey:
        row.is_active = is_active
        row.updated_at = datetime.now(timezone.utc)
        return row

    run_in_transaction(db, _operation, retries=1)
    db.refresh(row)
    return row


def delete_api_key(db: Session, key_id: int, *, user_id: str) -> None:
    row = get_own_api_key(db, key_id, user_id=user_id)

    def _operation() -> None:
        db.delete(row)

    run_in_transaction(db, _operation, retries=1)
    logger.info("api key %s deleted", key_id)


def _as_utc(value: datetime) -> datetime:
    # sqlite 는 timezone 정보 없이 돌려준다.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def validate_api_key(db: Session, key_value: str, *, now: Optional[datetime] = None) -> ApiKey:
    now = now or datetime.now(timezone.utc)
    row = db.query(ApiKey).filter(ApiKey.key_value == key_value).first()
    if not row:
        raise UnauthorizedError("유효하지 않은 API key 입니다.")
    if not row.is_active:
        raise UnauthorizedError("비활성화된 API key 입니다.")
    if row.expires_at is not None and _as_utc(row.expires_at) < now:
        raise UnauthorizedError("만료된 API key 입니다.")

    def _operation() -> ApiKey:
        row.last_used_at = now
        return row

    return run_in_transaction(db, _operation, retries=1)
