"""전역 타임아웃 정책 정의."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from app.core.config import Settings, get_settings
from app.core.errors import CancelledError

_MIN_TIMEOUT_SECONDS = 1
_MAX_CONNECT_TIMEOUT_SECONDS = 5.0
_CONNECT_TIMEOUT_RATIO = 0.3

T = TypeVar("T")


def _normalize_timeout(value: int | float | None, default: int, *, upper_bound: int | None = None) -> int:
    """타임아웃 값을 정수 초 단위로 정규화합니다."""
    try:
        seconds = int(value) if value is not None else int(default)
    except (TypeError, ValueError):
        seconds = int(default)

    seconds = max(_MIN_TIMEOUT_SECONDS, seconds)
    if upper_bound is not None:
        seconds = min(seconds, upper_bound)
    return seconds


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """애플리케이션 전체 타임아웃 정책."""

    request_timeout_seconds: int
    database_timeout_seconds: int
    publish_timeout_seconds: int


def build_timeout_policy(settings: Settings) -> TimeoutPolicy:
    """설정값으로부터 일관된 타임아웃 정책을 생성합니다."""
    request_timeout = _normalize_timeout(settings.REQUEST_TIMEOUT_SECONDS, default=30)
    database_timeout = _normalize_timeout(
        settings.DATABASE_TIMEOUT_SECONDS,
        default=10,
        upper_bound=request_timeout,
    )
    publish_timeout = _normalize_timeout(
        settings.PUBLISH_TIMEOUT_SECONDS,
        default=5,
        upper_bound=request_timeout,
    )

    return TimeoutPolicy(
        request_timeout_seconds=request_timeout,
        database_timeout_seconds=database_timeout,
        publish_timeout_seconds=publish_timeout,
    )


def get_timeout_policy(settings: Settings | None = None) -> TimeoutPolicy:
    """현재 설정을 기반으로 타임아웃 정책을 반환합니다."""
    resolved_settings = settings or get_settings()
    return build_timeout_policy(resolved_settings)


def to_requests_timeout(total_timeout_seconds: int) -> tuple[float, float]:
    """requests용 (connect, read) 타임아웃 튜플을 생성합니다."""
    total = float(max(_MIN_TIMEOUT_SECONDS, int(total_timeout_seconds)))
    connect_timeout = min(_MAX_CONNECT_TIMEOUT_SECONDS, max(1.0, total * _CONNECT_TIMEOUT_RATIO))
    read_timeout = max(1.0, total - connect_timeout) if total > connect_timeout else max(0.5, total * 0.5)
    return (connect_timeout, read_timeout)


def raise_if_cancelled(cancel: threading.Event | None, operation: str) -> None:
    """취소 신호가 설정되어 있으면 `CancelledError`를 발생시킵니다."""
    if cancel is not None and cancel.is_set():
        raise CancelledError(f"{operation} 작업이 취소되었습니다.")


async def run_with_deadline(
    func: Callable[[threading.Event], T],
    timeout_seconds: float,
    *,
    operation: str,
) -> T:
    """블로킹 작업을 워커 스레드에서 실행하고 기한이 지나면 `CancelledError`를 발생시킵니다.

    작업에는 취소 신호(`threading.Event`)가 전달된다. 기한이 지나거나 호출자가 취소되면
    신호가 설정되고, 작업은 다음 확인 지점에서 커밋이나 발행 없이 중단된다.
    """
    cancel = threading.Event()
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, cancel), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        cancel.set()
        raise CancelledError(f"{operation} 작업이 {timeout_seconds}초 안에 완료되지 않았습니다.") from exc
    except asyncio.CancelledError:
        cancel.set()
        raise
