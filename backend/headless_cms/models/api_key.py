"""공개 API 호출용 API key SQLAlchemy 모델입니다."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from sqlalchemy.sql import func

from headless_cms.database import Base, JSONVariant

KEY_PREFIXES = {
    "production": "sk-prod",
    "development": "sk-dev",
    "test": "sk-test",
}


class ApiKey(Base):
    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False)  # auth.users.id
    key_name = Column(String(100), nullable=False)
    key_type = Column(String(20), nullable=False, default="production")
    key_value = Column(String(255), unique=True, nullable=False)
    key_prefix = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True))
    permissions = Column(JSONVariant, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_api_keys_user_id", "user_id"),
    )
