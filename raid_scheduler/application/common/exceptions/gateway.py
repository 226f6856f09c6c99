"""Backend Gateway Exceptions."""

from raid_scheduler.application.common.exceptions.base import ApplicationError


class BackendRequestError(ApplicationError):
    """백엔드가 2xx 이외의 응답을 반환.

    Attributes:
        status_code: HTTP 상태 코드
    """

    def __init__(self, status_code: int, reason: str) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP Error: {status_code} - {reason}")


class BackendUnavailableError(ApplicationError):
    """백엔드 통신 실패 (연결 거부, 타임아웃 등)."""

    def __init__(self, reason: str = "Backend unavailable") -> None:
        super().__init__(reason)


class BackendResponseError(ApplicationError):
    """백엔드가 2xx로 응답했지만 본문을 해석할 수 없음 (JSON 아님, 필드 누락 등)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid response: {reason}")
