"""FastAPI 애플리케이션 진입점. 설정/DB 핸들 생성, 미들웨어, 예외 핸들러, 라우터를 등록합니다."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from headless_cms.config import Settings, settings as default_settings
from headless_cms.database import Database
from headless_cms.routers import api_keys, content_entries, content_types, public, relations, versions
from headless_cms.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "요청 형식이 올바르지 않습니다.", exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        settings: Settings = request.app.state.settings
        return _error_response(500, str(exc) if settings.DEBUG else "Internal server error")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_handle = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)
        db_handle.create_all()
        app.state.database = db_handle
        logger.info("database ready (%s)", db_handle.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            db_handle.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="콘텐츠 타입/엔트리 관리와 엔트리 버전 이력(비교, 롤백)을 제공하는 Headless CMS API",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(content_types.router)
    app.include_router(content_entries.router)
    app.include_router(versions.router)
    app.include_router(relations.router)
    app.include_router(relations.entry_router)
    app.include_router(api_keys.router)
    app.include_router(public.router)

    @app.get("/api/health")
    def health_check():
        return {"status": "ok", "service": settings.APP_NAME}

    return app


app = create_app()
