# app/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """장소 서비스의 모든 테이블 모델이 상속하는 선언적 기본 클래스.

    `places`, `products` 테이블이 같은 메타데이터 레지스트리를 공유하므로
    `Base.metadata.create_all` 한 번으로 스키마 전체를 만들 수 있다.
    """

    pass
