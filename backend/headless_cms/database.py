"""DB 엔진/세션 핸들과 요청 단위 세션 의존성을 제공합니다.

엔진은 모듈 import 시점이 아니라 앱 팩토리에서 명시적으로 생성되어
``app.state.database`` 에 보관되고, lifespan 종료 시 dispose 됩니다.
"""

from typing import Iterator

from fastapi import Request
from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


Base = declarative_base()

# PostgreSQL 에서는 JSONB(GIN 인덱스 대상), 그 외 방언에서는 일반 JSON
JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class Database:
    def __init__(self, url: str, *, echo: bool = False):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, connect_args=connect_args, pool_pre_ping=True)
        self.session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False)

    def create_all(self) -> None:
        import headless_cms.models  # noqa: F401 - 모델 import로 metadata 등록

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()

