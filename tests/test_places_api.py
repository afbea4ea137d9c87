"""장소 API 엔드투엔드 테스트."""

from __future__ import annotations

import importlib
import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app import database
from app.api.dependencies import get_place_service, get_publisher
from app.core.config import get_settings
from app.services.event_publisher import InMemoryTopic, get_event_publisher


def _set_required_env(monkeypatch, tmp_path, **overrides: str) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'places.db'}")
    monkeypatch.setenv("PUBSUB_BACKEND", "memory")
    monkeypatch.setenv("DOCS_MODE", "disabled")
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    get_event_publisher.cache_clear()
    database.get_engine.cache_clear()
    database.get_session_local.cache_clear()


def _load_main_module():
    import app.main as main_module

    return importlib.reload(main_module)


@pytest.fixture()
def topic() -> InMemoryTopic:
    return InMemoryTopic("place-added")


@pytest.fixture()
def client(monkeypatch, tmp_path, topic):
    _set_required_env(monkeypatch, tmp_path)
    main_module = _load_main_module()
    main_module.app.dependency_overrides[get_publisher] = lambda: topic

    with TestClient(main_module.app) as test_client:
        yield test_client

    main_module.app.dependency_overrides.clear()
    database.get_engine().dispose()
    database.get_engine.cache_clear()
    database.get_session_local.cache_clear()
    get_settings.cache_clear()


def test_cafe_roma_lifecycle(client, topic) -> None:
    created = client.post("/place", json={"name": "Cafe Roma", "address": "12 Main St"})
    assert created.status_code == 200
    body = created.json()
    place_id = body["id"]
    assert place_id > 0
    assert body == {"id": place_id, "name": "Cafe Roma", "address": "12 Main St"}
    assert topic.messages == [body]

    fetched = client.get(f"/place/{place_id}")
    assert fetched.status_code == 200
    assert fetched.json() == body

    listed = client.get("/place")
    assert listed.status_code == 200
    assert listed.json() == {"place": [body]}

    assert client.delete(f"/place/{place_id}").status_code == 204

    missing = client.get(f"/place/{place_id}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    assert client.delete(f"/place/{place_id}").status_code == 204


def test_list_empty_table_returns_empty_envelope(client) -> None:
    response = client.get("/place")

    assert response.status_code == 200
    assert response.json() == {"place": []}


def test_list_pagination_parameters(client) -> None:
    for index in range(3):
        client.post("/place", json={"name": f"Place {index}", "address": "somewhere"})

    assert len(client.get("/place").json()["place"]) == 3
    assert len(client.get("/place", params={"limit": 2}).json()["place"]) == 2
    assert len(client.get("/place", params={"limit": 5, "offset": 2}).json()["place"]) == 1
    assert client.get("/place", params={"limit": 0}).status_code == 422


def test_get_unknown_place_is_not_found(client) -> None:
    response = client.get("/place/12345")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_add_requires_name_and_address(client) -> None:
    response = client.post("/place", json={"name": "Cafe Roma"})

    assert response.status_code == 422


def test_publish_failure_returns_error_but_place_persists(client, topic) -> None:
    def _broken_subscriber(message: dict) -> None:
        raise RuntimeError("broker unavailable")

    topic.subscribe(_broken_subscriber)

    response = client.post("/place", json={"name": "Cafe Roma", "address": "12 Main St"})

    assert response.status_code == 502
    assert response.json()["error"] == "publish"

    place_id = topic.messages[0]["id"]
    persisted = client.get(f"/place/{place_id}")
    assert persisted.status_code == 200
    assert persisted.json()["name"] == "Cafe Roma"


def test_product_and_menu_flow(client) -> None:
    place_id = client.post("/place", json={"name": "Cafe Roma", "address": "12 Main St"}).json()["id"]

    created = client.post(
        f"/place/{place_id}/products",
        json={"name": "Espresso", "price": 2.5, "categories": ["coffee"], "taste_rating": 4.5},
    )
    assert created.status_code == 201
    product = created.json()
    assert product["_id"] > 0
    assert product["place"] == place_id

    menu = client.get(f"/place/{place_id}/menu")
    assert menu.status_code == 200
    assert menu.json()["place"]["id"] == place_id
    assert [item["name"] for item in menu.json()["products"]] == ["Espresso"]

    conflict = client.delete(f"/place/{place_id}")
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "conflict"


def test_product_rejects_negative_price_and_out_of_range_rating(client) -> None:
    place_id = client.post("/place", json={"name": "Cafe Roma", "address": "12 Main St"}).json()["id"]

    assert client.post(f"/place/{place_id}/products", json={"name": "x", "price": -1}).status_code == 422
    assert client.post(f"/place/{place_id}/products", json={"name": "x", "taste_rating": 6}).status_code == 422


def test_menu_for_unknown_place_is_not_found(client) -> None:
    assert client.get("/place/999/menu").status_code == 404


def test_strict_validation_rejects_blank_name(monkeypatch, tmp_path) -> None:
    _set_required_env(monkeypatch, tmp_path, STRICT_PLACE_VALIDATION="true")
    main_module = _load_main_module()

    with TestClient(main_module.app) as test_client:
        response = test_client.post("/place", json={"name": " ", "address": "12 Main St"})

    assert response.status_code == 422
    assert response.json()["error"] == "validation"
    database.get_engine().dispose()


def test_slow_storage_call_surfaces_cancelled_error(monkeypatch, tmp_path) -> None:
    _set_required_env(monkeypatch, tmp_path, DATABASE_TIMEOUT_SECONDS="1")
    main_module = _load_main_module()

    class _SlowService:
        def get(self, place_id: int):
            time.sleep(1.5)
            raise AssertionError("should have been cancelled")

    main_module.app.dependency_overrides[get_place_service] = lambda: _SlowService()

    with TestClient(main_module.app) as test_client:
        response = test_client.get("/place/1")

    main_module.app.dependency_overrides.clear()
    database.get_engine().dispose()

    assert response.status_code == 504
    assert response.json()["error"] == "cancelled"


def test_add_past_deadline_leaves_no_row_and_no_message(monkeypatch, tmp_path, topic) -> None:
    _set_required_env(monkeypatch, tmp_path, DATABASE_TIMEOUT_SECONDS="1", PUBLISH_TIMEOUT_SECONDS="1")
    main_module = _load_main_module()
    main_module.app.dependency_overrides[get_publisher] = lambda: topic
    original_flush = Session.flush
    calls = {"slowed": False}

    def _slow_first_flush(self, *args, **kwargs):
        if not calls["slowed"]:
            calls["slowed"] = True
            time.sleep(2.5)
        return original_flush(self, *args, **kwargs)

    monkeypatch.setattr(Session, "flush", _slow_first_flush)

    with TestClient(main_module.app) as test_client:
        response = test_client.post("/place", json={"name": "Cafe Roma", "address": "12 Main St"})
        assert response.status_code == 504
        assert response.json()["error"] == "cancelled"

        # 작업 스레드가 지연을 마칠 때까지 기다린다
        time.sleep(1.5)
        listed = test_client.get("/place")

    main_module.app.dependency_overrides.clear()
    database.get_engine().dispose()

    assert listed.json() == {"place": []}
    assert topic.messages == []


def test_ids_beyond_integer_range_are_not_found(client) -> None:
    missing = client.get("/place/99999999999999999999")

    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"
    assert client.delete("/place/99999999999999999999").status_code == 204
    assert client.get("/place/99999999999999999999/menu").status_code == 404
