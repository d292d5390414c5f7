"""작성자 표시 정보를 위한 사용자 프로필 모델입니다. 인증 자체는 Supabase Auth 가 담당합니다."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from headless_cms.database import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True)  # auth.users.id
    display_name = Column(String(255))
    email = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
