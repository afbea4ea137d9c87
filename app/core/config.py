"""애플리케이션 전역 설정을 관리하는 모듈."""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수 기반 설정 모델."""

    DATABASE_URL: str = "sqlite:///./places.db"
    CREATE_TABLES_ON_STARTUP: bool = True
    PLACE_ADDED_TOPIC: str = "place-added"
    PUBSUB_BACKEND: str = "memory"
    PUBSUB_URL: str | None = None
    REQUEST_TIMEOUT_SECONDS: int = 30
    DATABASE_TIMEOUT_SECONDS: int = 10
    PUBLISH_TIMEOUT_SECONDS: int = 5
    STRICT_PLACE_VALIDATION: bool = False
    LIST_MAX_LIMIT: int = 500
    APP_ENV: str = "development"
    DOCS_MODE: str = "public"
    EXPOSE_INTERNAL_ERRORS: bool = False
    CORS_ALLOW_ORIGINS: str = ""
    CORS_ALLOW_METHODS: str = "GET,POST,DELETE,OPTIONS"
    CORS_ALLOW_HEADERS: str = "Content-Type"
    CORS_ALLOW_CREDENTIALS: bool = False
    SECURITY_HEADERS_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("PUBSUB_BACKEND", mode="before")
    @classmethod
    def _normalize_pubsub_backend(cls, value: object) -> str:
        normalized = str(value or "memory").strip().lower()
        if normalized not in {"memory", "http"}:
            raise ValueError(f"지원하지 않는 PUBSUB_BACKEND 값입니다: {value}")
        return normalized

    @field_validator("LIST_MAX_LIMIT", mode="before")
    @classmethod
    def _clamp_list_max_limit(cls, value: object) -> int:
        try:
            numeric = int(value) if value is not None else 500
        except (TypeError, ValueError):
            numeric = 500
        return min(10_000, max(1, numeric))

    @model_validator(mode="after")
    def _require_pubsub_url_for_http(self) -> "Settings":
        if self.PUBSUB_BACKEND == "http" and not (self.PUBSUB_URL or "").strip():
            raise ValueError("PUBSUB_BACKEND=http에는 PUBSUB_URL 설정이 필요합니다.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Settings 인스턴스를 반환한다. 최초 호출 시에만 생성되고 이후 캐싱된다."""
    return Settings()
