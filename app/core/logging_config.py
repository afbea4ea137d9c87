"""Uvicorn 기본 포맷에 맞춘 로깅 설정."""

from __future__ import annotations

import copy
import logging.config
import os
from typing import Any

from uvicorn.config import LOGGING_CONFIG as UVICORN_LOGGING_CONFIG

# SQL 문 로깅은 명시적으로 요청할 때만 켠다.
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def _resolve_log_level(level: str | None = None) -> str:
    """인자 또는 환경변수에서 로그 레벨을 결정합니다."""
    if level:
        return level.upper()
    return os.getenv("LOG_LEVEL", "INFO").upper()


def build_logging_config(level: str | None = None, *, echo_sql: bool = False) -> dict[str, Any]:
    """Uvicorn 기본 포맷터와 동일한 로깅 설정을 생성합니다."""
    log_level = _resolve_log_level(level)
    config = copy.deepcopy(UVICORN_LOGGING_CONFIG)

    config["root"] = {"handlers": ["default"], "level": log_level}

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        config["loggers"][name]["level"] = log_level

    sql_level = "INFO" if echo_sql else "WARNING"
    for name in _SQLALCHEMY_LOGGERS:
        config["loggers"][name] = {"level": sql_level, "propagate": True}

    return config


def configure_logging(level: str | None = None, *, echo_sql: bool | None = None) -> None:
    """dictConfig로 로깅을 구성합니다."""
    if echo_sql is None:
        echo_sql = os.getenv("LOG_SQL", "").strip().lower() in {"1", "true", "yes", "on"}
    logging.config.dictConfig(build_logging_config(level, echo_sql=echo_sql))
