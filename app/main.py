"""FastAPI 애플리케이션 진입점."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.cors import CORSMiddleware

from app.api import places
from app.core.config import get_settings
from app.core.errors import PlaceServiceError
from app.core.logger import get_logger
from app.core.logging_config import configure_logging
from app.core.readiness import collect_readiness_status
from app.core.timeout_policy import get_timeout_policy
from app.database import create_tables

configure_logging()
logger = get_logger(__name__)
settings = get_settings()
timeout_policy = get_timeout_policy(settings)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_docs_mode(mode: str) -> str:
    normalized = (mode or "").strip().lower()
    if normalized in {"disabled", "public"}:
        return normalized
    logger.warning("유효하지 않은 DOCS_MODE 값입니다. disabled로 대체합니다: %s", mode)
    return "disabled"


def _configure_cors(app_: FastAPI) -> None:
    origins = _split_csv(settings.CORS_ALLOW_ORIGINS)
    if not origins:
        return

    allow_methods = _split_csv(settings.CORS_ALLOW_METHODS) or ["GET"]
    allow_headers = _split_csv(settings.CORS_ALLOW_HEADERS) or ["Content-Type"]
    allow_credentials = settings.CORS_ALLOW_CREDENTIALS

    if "*" in origins and allow_credentials:
        logger.warning(
            "CORS_ALLOW_ORIGINS에 '*'와 CORS_ALLOW_CREDENTIALS=true가 함께 설정되어 "
            "allow_credentials를 false로 강제합니다."
        )
        allow_credentials = False

    app_.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )


@asynccontextmanager
async def lifespan(app_: FastAPI) -> AsyncIterator[None]:
    """시작 시 테이블을 준비합니다. 마이그레이션은 수행하지 않습니다."""
    if settings.CREATE_TABLES_ON_STARTUP:
        create_tables()
        logger.info("Database tables ensured")
    yield


docs_mode = _resolve_docs_mode(settings.DOCS_MODE)

app = FastAPI(
    title="Place Service",
    lifespan=lifespan,
    docs_url="/docs" if docs_mode == "public" else None,
    redoc_url="/redoc" if docs_mode == "public" else None,
    openapi_url="/openapi.json" if docs_mode == "public" else None,
)

_configure_cors(app)

app.include_router(places.router)


@app.middleware("http")
async def enforce_request_timeout(request: Request, call_next) -> Response:
    """요청 전체 처리 시간을 `REQUEST_TIMEOUT_SECONDS`로 제한합니다."""
    try:
        return await asyncio.wait_for(call_next(request), timeout=timeout_policy.request_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Request timed out: %s %s", request.method, request.url.path)
        return JSONResponse(status_code=504, content={"detail": "요청 처리 시간이 초과되었습니다."})


@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    """기본 보안 헤더를 응답에 추가합니다."""
    response = await call_next(request)
    if not settings.SECURITY_HEADERS_ENABLED:
        return response

    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


@app.exception_handler(PlaceServiceError)
async def place_service_exception_handler(request: Request, exc: PlaceServiceError) -> JSONResponse:
    """서비스 예외를 종류에 맞는 상태 코드로 변환합니다."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: kind=%s error=%s", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.warning("%s %s rejected: kind=%s error=%s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.kind})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외를 표준 형식으로 처리합니다."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    message = str(exc) if settings.EXPOSE_INTERNAL_ERRORS else "내부 서버 오류가 발생했습니다."
    return JSONResponse(status_code=500, content={"detail": message, "error": "internal"})


@app.get("/")
def health_check() -> dict:
    """헬스 체크 엔드포인트."""
    return {"status": "ok", "message": "Place Service is running"}


@app.get("/health/ready")
async def readiness_check() -> JSONResponse:
    """DB와 브로커 준비 상태를 반환합니다."""
    result = await collect_readiness_status()
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(status_code=status_code, content=result)
