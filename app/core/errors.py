"""장소 서비스 예외 계층."""

from __future__ import annotations


class PlaceServiceError(Exception):
    """서비스 계층에서 발생하는 모든 예외의 기반 클래스.

    각 하위 클래스는 HTTP 경계에서 사용할 상태 코드와 오류 종류를 가진다.
    핸들러는 이 예외들을 복구하지 않고 그대로 호출자에게 전달한다.
    """

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PlaceServiceError):
    """필수 입력이 비어 있거나 형식이 잘못된 경우."""

    status_code = 422
    kind = "validation"


class NotFoundError(PlaceServiceError):
    """ID로 조회한 레코드가 존재하지 않는 경우."""

    status_code = 404
    kind = "not_found"


class ConflictError(PlaceServiceError):
    """다른 레코드가 참조 중이라 작업을 수행할 수 없는 경우."""

    status_code = 409
    kind = "conflict"


class StorageError(PlaceServiceError):
    """저장소 연결 실패 또는 쓰기/읽기 거부."""

    status_code = 503
    kind = "storage"


class PublishError(PlaceServiceError):
    """이벤트 토픽이 메시지를 받지 못한 경우."""

    status_code = 502
    kind = "publish"


class CancelledError(PlaceServiceError):
    """호출자의 기한이 작업 완료 전에 만료된 경우."""

    status_code = 504
    kind = "cancelled"
