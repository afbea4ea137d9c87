"""장소 CRUD 엔드포인트."""

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import get_place_service
from app.core.config import get_settings
from app.core.logger import get_logger
from app.core.timeout_policy import get_timeout_policy, run_with_deadline
from app.schemas.place import AddPlace, ListResponse, Menu, Place, Product, ProductCreate
from app.services.place_service import PlaceService

router = APIRouter(tags=["place"])
logger = get_logger(__name__)

PLACE_ERROR_RESPONSES = {
    404: {
        "description": "장소 없음",
        "content": {"application/json": {"example": {"detail": "장소를 찾을 수 없습니다: 42", "error": "not_found"}}},
    },
    503: {
        "description": "저장소 오류",
        "content": {"application/json": {"example": {"detail": "장소를 조회하지 못했습니다.", "error": "storage"}}},
    },
    504: {
        "description": "기한 초과",
        "content": {
            "application/json": {
                "example": {"detail": "get 작업이 10초 안에 완료되지 않았습니다.", "error": "cancelled"},
            }
        },
    },
}


def _database_timeout() -> int:
    return get_timeout_policy().database_timeout_seconds


@router.post(
    "/place",
    response_model=Place,
    responses={
        502: {"description": "이벤트 발행 실패 (장소는 이미 저장되었을 수 있음)"},
        503: PLACE_ERROR_RESPONSES[503],
    },
)
async def add_place(request: AddPlace, service: PlaceService = Depends(get_place_service)) -> Place:  # noqa: B008
    """장소를 등록하고 `place-added` 이벤트를 발행합니다."""
    policy = get_timeout_policy()
    place = await run_with_deadline(
        lambda cancel: service.add(request.name, request.address, cancel=cancel),
        policy.database_timeout_seconds + policy.publish_timeout_seconds,
        operation="add",
    )
    logger.info("Add completed: id=%d", place.id)
    return place


@router.get("/place/{place_id}", response_model=Place, responses={k: PLACE_ERROR_RESPONSES[k] for k in (404, 503, 504)})
async def get_place(place_id: int, service: PlaceService = Depends(get_place_service)) -> Place:  # noqa: B008
    """ID로 장소를 조회합니다."""
    return await run_with_deadline(lambda _cancel: service.get(place_id), _database_timeout(), operation="get")


@router.delete(
    "/place/{place_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={409: {"description": "상품이 참조 중인 장소"}, 503: PLACE_ERROR_RESPONSES[503]},
)
async def delete_place(place_id: int, service: PlaceService = Depends(get_place_service)) -> Response:  # noqa: B008
    """ID로 장소를 삭제합니다. 존재하지 않는 ID도 성공으로 응답합니다."""
    await run_with_deadline(
        lambda cancel: service.delete(place_id, cancel=cancel),
        _database_timeout(),
        operation="delete",
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/place", response_model=ListResponse, responses={503: PLACE_ERROR_RESPONSES[503]})
async def list_places(
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    service: PlaceService = Depends(get_place_service),  # noqa: B008
) -> ListResponse:
    """등록된 장소 목록을 반환합니다. `limit`을 생략하면 전체를 반환합니다."""
    if limit is not None:
        limit = min(limit, get_settings().LIST_MAX_LIMIT)
    result = await run_with_deadline(
        lambda _cancel: service.list_places(limit=limit, offset=offset),
        _database_timeout(),
        operation="list",
    )
    logger.info("List completed: %d places", len(result.places))
    return result


@router.post(
    "/place/{place_id}/products",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    responses={k: PLACE_ERROR_RESPONSES[k] for k in (404, 503)},
)
async def add_product(
    place_id: int,
    request: ProductCreate,
    service: PlaceService = Depends(get_place_service),  # noqa: B008
) -> Product:
    """장소에 상품을 등록합니다."""
    return await run_with_deadline(
        lambda cancel: service.add_product(place_id, request, cancel=cancel),
        _database_timeout(),
        operation="add_product",
    )


@router.get("/place/{place_id}/menu", response_model=Menu, responses={k: PLACE_ERROR_RESPONSES[k] for k in (404, 503)})
async def get_menu(place_id: int, service: PlaceService = Depends(get_place_service)) -> Menu:  # noqa: B008
    """장소와 상품 목록을 메뉴로 묶어 반환합니다."""
    return await run_with_deadline(lambda _cancel: service.menu(place_id), _database_timeout(), operation="menu")
