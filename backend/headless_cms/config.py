"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pathlib import Path
from typing import List

from fastapi import Request
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Headless CMS Content API"
    DATABASE_URL: str = "sqlite:///./headless_cms.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Supabase Auth 가 발급한 access token 검증용 (발급은 하지 않는다)
    JWT_SECRET: str = "change-me-to-the-supabase-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Versioning
    VERSION_PROTECTED_RECENT: int = 3
    VERSION_RETENTION_DAYS: int = 90
    VERSION_KEEP_RECENT: int = 10
    VERSION_NUMBER_MAX_RETRIES: int = 3

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Public API
    PUBLIC_API_KEY_REQUIRED: bool = True

    class Config:
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
