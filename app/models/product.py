# app/models/product.py
from sqlalchemy import JSON, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


# Product 테이블 정의 (여러 상품이 하나의 장소를 참조)
class ProductRecord(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # 장소 삭제 시 연쇄 삭제하지 않는다. 참조 중인 장소는 삭제가 거부된다.
    place_id: Mapped[int] = mapped_column(ForeignKey("places.id"), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # 순서가 있는 이미지 URL 목록, 카테고리 라벨 목록
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    categories: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    impact_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    taste_rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    impact_url: Mapped[str] = mapped_column(String(1024), default="", nullable=False)

    def __repr__(self):
        return f"<ProductRecord(id={self.id}, place_id={self.place_id}, name={self.name})>"
