"""API 의존성 모음."""

from fastapi import Depends

from app.core.config import get_settings
from app.database import get_session_local
from app.services.event_publisher import EventPublisher, get_event_publisher
from app.services.place_service import PlaceService
from app.services.place_store import PlaceStore


def get_place_store() -> PlaceStore:
    """공유 세션 팩토리에 묶인 장소 저장소를 제공합니다."""
    return PlaceStore(get_session_local())


def get_publisher() -> EventPublisher:
    """공유 이벤트 발행기를 제공합니다."""
    return get_event_publisher()


def get_place_service(
    store: PlaceStore = Depends(get_place_store),  # noqa: B008
    publisher: EventPublisher = Depends(get_publisher),  # noqa: B008
) -> PlaceService:
    """저장소와 발행기를 주입한 장소 서비스를 제공합니다."""
    return PlaceService(store, publisher, strict_validation=get_settings().STRICT_PLACE_VALIDATION)
