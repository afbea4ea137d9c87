"""장소 서비스 테스트."""

from __future__ import annotations

import threading

import pytest

from app import database
from app.core.config import get_settings
from app.core.errors import CancelledError, NotFoundError, PublishError, ValidationError
from app.services.event_publisher import InMemoryTopic
from app.services.place_service import PlaceService
from app.services.place_store import PlaceStore


@pytest.fixture()
def store(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'places.db'}")
    get_settings.cache_clear()
    database.get_engine.cache_clear()
    database.get_session_local.cache_clear()
    database.create_tables()

    yield PlaceStore(database.get_session_local())

    database.get_engine().dispose()
    database.get_engine.cache_clear()
    database.get_session_local.cache_clear()
    get_settings.cache_clear()


def test_add_persists_and_publishes(store) -> None:
    topic = InMemoryTopic("place-added")
    service = PlaceService(store, topic)

    place = service.add("Cafe Roma", "12 Main St")

    assert place.id > 0
    assert service.get(place.id) == place
    assert topic.messages == [{"id": place.id, "name": "Cafe Roma", "address": "12 Main St"}]


def test_add_reports_publish_failure_but_row_is_kept(store) -> None:
    topic = InMemoryTopic("place-added")
    delivered: list[dict] = []

    def _broken_subscriber(message: dict) -> None:
        delivered.append(message)
        raise RuntimeError("broker unavailable")

    topic.subscribe(_broken_subscriber)
    service = PlaceService(store, topic)

    with pytest.raises(PublishError):
        service.add("Cafe Roma", "12 Main St")

    assert len(delivered) == 1
    persisted = service.get(delivered[0]["id"])
    assert persisted.name == "Cafe Roma"
    assert persisted.address == "12 Main St"


def test_list_contains_every_added_place(store) -> None:
    service = PlaceService(store, InMemoryTopic("place-added"))
    added = [service.add(f"Place {index}", f"{index} Main St") for index in range(3)]

    response = service.list_places()

    assert sorted(place.id for place in response.places) == sorted(place.id for place in added)


def test_delete_twice_then_get_is_not_found(store) -> None:
    service = PlaceService(store, InMemoryTopic("place-added"))
    place = service.add("Cafe Roma", "12 Main St")

    service.delete(place.id)
    service.delete(place.id)

    with pytest.raises(NotFoundError):
        service.get(place.id)


def test_strict_validation_rejects_blank_fields(store) -> None:
    topic = InMemoryTopic("place-added")
    service = PlaceService(store, topic, strict_validation=True)

    with pytest.raises(ValidationError):
        service.add("   ", "12 Main St")

    assert topic.messages == []
    assert service.list_places().places == []


def test_loose_validation_accepts_empty_strings(store) -> None:
    service = PlaceService(store, InMemoryTopic("place-added"))

    place = service.add("", "")

    assert place.id > 0


def test_add_cancelled_before_start_does_nothing(store) -> None:
    topic = InMemoryTopic("place-added")
    service = PlaceService(store, topic)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(CancelledError):
        service.add("Cafe Roma", "12 Main St", cancel=cancel)

    assert topic.messages == []
    assert service.list_places().places == []


def test_add_cancelled_during_create_skips_commit_and_publish(store, monkeypatch) -> None:
    topic = InMemoryTopic("place-added")
    service = PlaceService(store, topic)
    cancel = threading.Event()
    original_create = PlaceStore.create

    def _create_then_cancel(self, name, address, cancel=None):
        # 저장 도중 기한이 만료된 상황
        cancel.set()
        return original_create(self, name, address, cancel=cancel)

    monkeypatch.setattr(PlaceStore, "create", _create_then_cancel)

    with pytest.raises(CancelledError):
        service.add("Cafe Roma", "12 Main St", cancel=cancel)

    assert topic.messages == []
    assert service.list_places().places == []
