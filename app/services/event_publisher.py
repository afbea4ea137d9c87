"""`place-added` 토픽 발행기."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from functools import lru_cache
from typing import Any

import requests

from app.core.config import get_settings
from app.core.errors import PublishError
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy, to_requests_timeout
from app.schemas.place import Place

logger = get_logger(__name__)

Subscriber = Callable[[dict[str, Any]], None]


class EventPublisher(ABC):
    """새로 생성된 장소를 토픽에 발행하는 인터페이스.

    전달 보장은 at-least-once이며 중복 제거 키를 붙이지 않는다.
    구독자는 같은 메시지를 여러 번 받아도 안전해야 한다.
    """

    def __init__(self, topic: str) -> None:
        self.topic = topic

    @abstractmethod
    def publish(self, place: Place) -> None:
        """장소를 토픽에 발행합니다. 브로커가 수신을 확인할 때까지 반환하지 않습니다.

        Raises:
            PublishError: 토픽을 사용할 수 없거나 메시지가 거부된 경우.
        """
        raise NotImplementedError


class InMemoryTopic(EventPublisher):
    """프로세스 내부 토픽. 로컬 개발과 테스트에서 사용한다."""

    def __init__(self, topic: str, history_size: int = 1000) -> None:
        super().__init__(topic)
        self._lock = threading.Lock()
        # 최근 메시지만 보관한다.
        self._messages: deque[dict[str, Any]] = deque(maxlen=history_size)
        self._subscribers: list[Subscriber] = []

    @property
    def messages(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._messages)

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def publish(self, place: Place) -> None:
        message = place.model_dump(mode="json")
        with self._lock:
            self._messages.append(message)
            subscribers = list(self._subscribers)

        for subscriber in subscribers:
            try:
                subscriber(message)
            except Exception as exc:
                raise PublishError(f"'{self.topic}' 구독자가 메시지를 거부했습니다: {exc}") from exc

        logger.info("Event published: topic=%s place_id=%d", self.topic, place.id)


class HttpTopic(EventPublisher):
    """HTTP 브로커 엔드포인트로 메시지를 전송하는 토픽.

    한 번만 전송하며 재시도는 브로커의 전달 보장에 맡긴다.
    """

    def __init__(self, topic: str, url: str, timeout_seconds: int = 5) -> None:
        if not url:
            raise ValueError("PUBSUB_URL이 설정되지 않았습니다.")
        super().__init__(topic)
        self._url = url
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls) -> HttpTopic:
        """애플리케이션 설정으로 토픽 인스턴스를 생성합니다."""
        settings = get_settings()
        timeout_policy = get_timeout_policy(settings)
        return cls(
            topic=settings.PLACE_ADDED_TOPIC,
            url=settings.PUBSUB_URL or "",
            timeout_seconds=timeout_policy.publish_timeout_seconds,
        )

    def publish(self, place: Place) -> None:
        payload = {"topic": self.topic, "message": place.model_dump(mode="json")}
        try:
            response = requests.post(
                self._url,
                json=payload,
                timeout=to_requests_timeout(self._timeout_seconds),
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            status_code = None
            if isinstance(exc, requests.HTTPError) and exc.response is not None:
                status_code = exc.response.status_code
            logger.error(
                "Event publish failed: topic=%s place_id=%d url=%s status_code=%s error=%s",
                self.topic,
                place.id,
                self._url,
                status_code,
                exc,
            )
            raise PublishError(f"'{self.topic}' 토픽에 이벤트를 발행하지 못했습니다.") from exc

        logger.info("Event published: topic=%s place_id=%d", self.topic, place.id)


@lru_cache
def get_event_publisher() -> EventPublisher:
    """설정된 백엔드의 발행기를 반환한다. 프로세스 전체에서 공유된다."""
    settings = get_settings()
    if settings.PUBSUB_BACKEND == "http":
        return HttpTopic.from_settings()
    return InMemoryTopic(settings.PLACE_ADDED_TOPIC)
