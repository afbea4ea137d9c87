"""장소 요청 처리 서비스."""

from __future__ import annotations

import threading

from app.core.errors import ValidationError
from app.core.logger import get_logger
from app.core.timeout_policy import raise_if_cancelled
from app.schemas.place import ListResponse, Menu, Place, Product, ProductCreate
from app.services.event_publisher import EventPublisher
from app.services.place_store import PlaceStore

logger = get_logger(__name__)


class PlaceService:
    """장소 추가/조회/삭제/목록 연산.

    요청 간 상태를 갖지 않으며, 저장소와 발행기에서 발생한 예외를
    복구 없이 그대로 전달한다.
    """

    def __init__(self, store: PlaceStore, publisher: EventPublisher, *, strict_validation: bool = False) -> None:
        self._store = store
        self._publisher = publisher
        self._strict_validation = strict_validation

    def _validate(self, name: str, address: str) -> None:
        missing = [field for field, value in (("name", name), ("address", address)) if not value.strip()]
        if missing:
            raise ValidationError(f"필수 값이 비어 있습니다: {', '.join(missing)}")

    def add(self, name: str, address: str, cancel: threading.Event | None = None) -> Place:
        """장소를 저장한 뒤 `place-added` 이벤트를 발행합니다.

        발행이 실패하면 장소가 이미 저장된 상태여도 `PublishError`를 그대로 전달한다.
        저장 전, 커밋 전, 발행 전에 취소 신호를 확인한다.
        """
        if self._strict_validation:
            self._validate(name, address)

        raise_if_cancelled(cancel, "add")
        place = self._store.create(name, address, cancel=cancel)
        try:
            raise_if_cancelled(cancel, "add")
            self._publisher.publish(place)
        except Exception:
            logger.warning("Place persisted but publish did not complete: id=%d", place.id)
            raise
        return place

    def get(self, place_id: int) -> Place:
        """ID로 장소를 조회합니다."""
        return self._store.find_by_id(place_id)

    def delete(self, place_id: int, cancel: threading.Event | None = None) -> None:
        """ID로 장소를 삭제합니다. 이미 없는 장소여도 성공합니다."""
        self._store.delete_by_id(place_id, cancel=cancel)

    def list_places(self, limit: int | None = None, offset: int = 0) -> ListResponse:
        """등록된 장소 목록을 반환합니다."""
        return ListResponse(places=self._store.find_all(limit=limit, offset=offset))

    def add_product(self, place_id: int, product: ProductCreate, cancel: threading.Event | None = None) -> Product:
        return self._store.add_product(place_id, product, cancel=cancel)

    def menu(self, place_id: int) -> Menu:
        return self._store.find_menu(place_id)
