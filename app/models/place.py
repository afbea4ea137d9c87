# app/models/place.py
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


# Place 테이블 정의
class PlaceRecord(Base):
    __tablename__ = "places"

    # 저장소가 생성하는 기본키
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)

    def __repr__(self):
        return f"<PlaceRecord(id={self.id}, name={self.name})>"
