"""`places` 테이블에 대한 영속성 어댑터."""

from __future__ import annotations

import threading

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import ConflictError, NotFoundError, StorageError
from app.core.logger import get_logger
from app.core.timeout_policy import raise_if_cancelled
from app.models.place import PlaceRecord
from app.models.product import ProductRecord
from app.schemas.place import Menu, Place, Product, ProductCreate

logger = get_logger(__name__)

# 저장소가 부여할 수 있는 ID 범위 (64비트 정수 기본키)
MAX_PLACE_ID = 2**63 - 1


def _is_assignable_id(place_id: int) -> bool:
    return 0 < place_id <= MAX_PLACE_ID


def _to_place(record: PlaceRecord) -> Place:
    return Place.model_validate(record)


def _to_product(record: ProductRecord) -> Product:
    return Product(
        id=record.id,
        place=record.place_id,
        name=record.name,
        description=record.description,
        price=record.price,
        images=list(record.images or []),
        categories=list(record.categories or []),
        impact_rating=record.impact_rating,
        taste_rating=record.taste_rating,
        impact_url=record.impact_url,
    )


class PlaceStore:
    """장소 CRUD 연산을 SQL 문으로 1:1 변환하는 저장소.

    여러 문장에 걸친 트랜잭션이나 배치는 없다. 세션 팩토리는 생성자에서 주입받으며,
    연산마다 호출 스레드에서 세션을 열고 닫는다.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, name: str, address: str, cancel: threading.Event | None = None) -> Place:
        """장소를 추가하고 저장소가 생성한 ID를 포함해 반환합니다.

        커밋 직전에 취소 신호를 확인하며, 취소되었으면 행을 남기지 않는다.

        Raises:
            StorageError: 연결 실패나 제약 조건 위반으로 쓰기가 실패한 경우.
            CancelledError: 커밋 전에 취소된 경우.
        """
        with self._session_factory() as session:
            record = PlaceRecord(name=name, address=address)
            try:
                session.add(record)
                session.flush()
                raise_if_cancelled(cancel, "add")
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Place insert failed: name=%s error=%s", name, exc)
                raise StorageError("장소를 저장하지 못했습니다.") from exc

            logger.info("Place created: id=%d", record.id)
            return _to_place(record)

    def find_by_id(self, place_id: int) -> Place:
        """ID로 장소를 조회합니다.

        Raises:
            NotFoundError: 일치하는 행이 없는 경우.
            StorageError: 그 밖의 읽기 실패.
        """
        if not _is_assignable_id(place_id):
            raise NotFoundError(f"장소를 찾을 수 없습니다: {place_id}")

        with self._session_factory() as session:
            try:
                record = session.get(PlaceRecord, place_id)
            except SQLAlchemyError as exc:
                logger.error("Place lookup failed: id=%d error=%s", place_id, exc)
                raise StorageError("장소를 조회하지 못했습니다.") from exc

            if record is None:
                raise NotFoundError(f"장소를 찾을 수 없습니다: {place_id}")
            return _to_place(record)

    def delete_by_id(self, place_id: int, cancel: threading.Event | None = None) -> None:
        """ID로 장소를 삭제합니다. 일치하는 행이 없어도 성공으로 처리합니다.

        상품이 참조하지 않는 경우에만 삭제하는 단일 조건부 DELETE 문을 사용한다.

        Raises:
            ConflictError: 해당 장소를 참조하는 상품이 남아 있는 경우.
            StorageError: 삭제 실패.
        """
        if not _is_assignable_id(place_id):
            return

        has_products = select(ProductRecord.id).where(ProductRecord.place_id == place_id).exists()
        stmt = delete(PlaceRecord).where(PlaceRecord.id == place_id, ~has_products)

        with self._session_factory() as session:
            try:
                rowcount = session.execute(stmt).rowcount or 0
                if not rowcount:
                    dependents = session.scalar(
                        select(func.count()).select_from(ProductRecord).where(ProductRecord.place_id == place_id)
                    )
                    if dependents:
                        raise ConflictError(
                            f"상품 {dependents}개가 참조 중인 장소는 삭제할 수 없습니다: {place_id}"
                        )
                raise_if_cancelled(cancel, "delete")
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(f"상품이 참조 중인 장소는 삭제할 수 없습니다: {place_id}") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Place delete failed: id=%d error=%s", place_id, exc)
                raise StorageError("장소를 삭제하지 못했습니다.") from exc

        logger.info("Place delete: id=%d rows=%d", place_id, rowcount)

    def find_all(self, limit: int | None = None, offset: int = 0) -> list[Place]:
        """모든 장소를 반환합니다. 정렬은 보장하지 않습니다.

        `limit`이 없으면 테이블 전체를 읽는다.
        """
        stmt = select(PlaceRecord)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._session_factory() as session:
            try:
                records = session.execute(stmt).scalars().all()
            except SQLAlchemyError as exc:
                logger.error("Place list failed: error=%s", exc)
                raise StorageError("장소 목록을 조회하지 못했습니다.") from exc

            return [_to_place(record) for record in records]

    def add_product(self, place_id: int, product: ProductCreate, cancel: threading.Event | None = None) -> Product:
        """장소에 상품을 추가합니다."""
        self.find_by_id(place_id)

        with self._session_factory() as session:
            record = ProductRecord(place_id=place_id, **product.model_dump())
            try:
                session.add(record)
                session.flush()
                raise_if_cancelled(cancel, "add_product")
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise NotFoundError(f"장소를 찾을 수 없습니다: {place_id}") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Product insert failed: place_id=%d error=%s", place_id, exc)
                raise StorageError("상품을 저장하지 못했습니다.") from exc

            logger.info("Product created: id=%d place_id=%d", record.id, place_id)
            return _to_product(record)

    def find_menu(self, place_id: int) -> Menu:
        """장소와 상품 목록(ID 순)을 묶어 메뉴로 반환합니다."""
        place = self.find_by_id(place_id)

        stmt = select(ProductRecord).where(ProductRecord.place_id == place_id).order_by(ProductRecord.id)
        with self._session_factory() as session:
            try:
                records = session.execute(stmt).scalars().all()
            except SQLAlchemyError as exc:
                logger.error("Menu lookup failed: place_id=%d error=%s", place_id, exc)
                raise StorageError("메뉴를 조회하지 못했습니다.") from exc

            return Menu(place=place, products=[_to_product(record) for record in records])
