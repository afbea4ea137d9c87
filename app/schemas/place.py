"""장소, 주소, 상품, 메뉴 API 스키마."""

from collections import Counter

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AddPlace(BaseModel):
    """장소 등록 요청 파라미터."""

    name: str = Field(..., description="장소 이름")
    address: str = Field(..., description="장소 주소")


class Place(BaseModel):
    """등록된 장소. `id`가 0이면 아직 저장소가 ID를 부여하지 않은 상태이다."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(default=0, description="저장소가 생성한 장소 ID")
    address: str = Field(..., description="장소 주소")
    name: str = Field(..., description="장소 이름")


class ListResponse(BaseModel):
    """장소 목록 응답. 직렬화 키는 `place`이다."""

    model_config = ConfigDict(populate_by_name=True)

    places: list[Place] = Field(default_factory=list, alias="place", description="장소 목록 (순서 보장 없음)")


class Address(BaseModel):
    """사용자의 배송 주소. 현재 노출된 엔드포인트는 없다."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(default=0, alias="_id", description="주소 ID")
    user_id: int = Field(..., alias="userID", description="사용자 ID (참조 무결성 미검증)")
    default: bool = Field(default=False, description="기본 주소 여부")
    street: str = Field(default="", description="도로명")
    number: str = Field(default="", description="번지")
    zip_code: str = Field(default="", alias="zipCode", description="우편번호")
    city: str = Field(default="", description="도시")
    country: str = Field(default="", description="국가")
    description: str = Field(default="", description="배송 메모")


def has_single_default(addresses: list[Address]) -> bool:
    """사용자별 기본 주소가 최대 하나인지 확인한다."""
    defaults = Counter(address.user_id for address in addresses if address.default)
    return all(count <= 1 for count in defaults.values())


class ProductCreate(BaseModel):
    """상품 등록 요청 파라미터."""

    name: str = Field(..., description="상품 이름")
    description: str = Field(default="", description="상품 설명")
    price: float = Field(default=0.0, ge=0, description="가격 (음수 불가)")
    images: list[str] = Field(default_factory=list, description="이미지 URL 목록 (순서 유지)")
    categories: list[str] = Field(default_factory=list, description="카테고리 라벨")
    impact_rating: float = Field(default=0.0, ge=0, le=5, description="환경 영향 점수 (0~5)")
    taste_rating: float = Field(default=0.0, ge=0, le=5, description="맛 점수 (0~5)")
    impact_url: str = Field(default="", description="환경 영향 근거 URL")

    @field_validator("categories")
    @classmethod
    def _dedupe_categories(cls, value: list[str]) -> list[str]:
        # 카테고리는 집합이므로 첫 등장 순서만 남긴다.
        return list(dict.fromkeys(value))


class Product(ProductCreate):
    """장소에서 판매하는 상품."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int = Field(default=0, alias="_id", description="상품 ID")
    place: int = Field(..., description="상품이 속한 장소 ID")


class Menu(BaseModel):
    """장소와 그 상품 목록을 묶은 집계 뷰. 별도로 저장되지 않는다."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(default=0, alias="_id", description="메뉴 ID (저장되지 않으므로 기본값 0)")
    place: Place = Field(..., description="장소")
    products: list[Product] = Field(default_factory=list, description="상품 목록 (ID 순)")
