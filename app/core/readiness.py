"""DB와 Pub/Sub 브로커 준비성(readiness) 체크."""

from __future__ import annotations

import asyncio
import socket
from collections.abc import Callable
from urllib.parse import urlparse

from sqlalchemy import text

from app.core.config import get_settings
from app.core.timeout_policy import get_timeout_policy
from app.database import get_engine

ReadinessCheck = dict[str, str | bool]


def _check_result(status: str, detail: str, *, required: bool = True) -> ReadinessCheck:
    return {"status": status, "ok": status != "fail", "required": required, "detail": detail}


def _ping_database() -> None:
    with get_engine().connect() as connection:
        connection.execute(text("SELECT 1"))


def _ping_broker(url: str, timeout_seconds: int) -> None:
    parsed = urlparse(url)
    if not parsed.hostname:
        raise ValueError(f"브로커 호스트를 파싱할 수 없습니다: {url}")
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    with socket.create_connection((parsed.hostname, port), timeout=timeout_seconds):
        return None


async def _run_check(label: str, ping: Callable[[], None], timeout_seconds: int) -> ReadinessCheck:
    try:
        await asyncio.wait_for(asyncio.to_thread(ping), timeout=timeout_seconds)
    except Exception as exc:
        return _check_result("fail", f"{label} 연결 실패: {exc}")
    return _check_result("ok", f"{label} 연결 확인 완료")


async def _skip_check(detail: str) -> ReadinessCheck:
    return _check_result("skip", detail, required=False)


async def collect_readiness_status() -> dict[str, object]:
    """DB/브로커 의존성 준비 상태를 점검합니다."""
    settings = get_settings()
    timeout_policy = get_timeout_policy(settings)

    db_check = _run_check("DB", _ping_database, timeout_policy.database_timeout_seconds)
    if settings.PUBSUB_BACKEND == "http":
        publish_timeout = timeout_policy.publish_timeout_seconds
        pubsub_check = _run_check(
            "Pub/Sub 브로커",
            lambda: _ping_broker(settings.PUBSUB_URL or "", publish_timeout),
            publish_timeout,
        )
    else:
        pubsub_check = _skip_check("인메모리 토픽을 사용하므로 브로커 체크를 건너뜁니다.")

    db_result, pubsub_result = await asyncio.gather(db_check, pubsub_check)
    checks: dict[str, ReadinessCheck] = {"db": db_result, "pubsub": pubsub_result}
    required_checks_ok = all(bool(check["ok"]) for check in checks.values() if bool(check["required"]))

    return {
        "status": "ready" if required_checks_ok else "not_ready",
        "checks": checks,
    }
