"""Backend HTTP Client.

httpx 기반 공용 클라이언트.

- Lazy connection (첫 호출 시 AsyncClient 생성)
- 2xx 이외 응답은 BackendRequestError
- 해석할 수 없는 2xx 본문은 BackendResponseError
- 연결/타임아웃 등 전송 실패는 BackendUnavailableError
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from raid_scheduler.application.common.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def path_segment(value: str) -> str:
    """경로 세그먼트 인코딩 (한글, 공백, '/' 포함)."""
    return quote(value, safe="")


class BackendHttpClient:
    """백엔드 API 클라이언트.

    Usage:
        client = BackendHttpClient("http://localhost:8080/api")
        raids = await client.request("GET", "/raids")
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """초기화.

        Args:
            base_url: API 기본 주소
            timeout: 요청 타임아웃 (초)
            transport: 테스트용 transport (MockTransport, ASGITransport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_client(self) -> httpx.AsyncClient:
        """Lazy HTTP 클라이언트 생성."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
            logger.info("backend_http_client_created", extra={"base_url": self._base_url})
        return self._client

    async def request(self, method: str, path: str, json_body: Any = None) -> Any:
        """요청을 보내고 JSON 응답 본문을 반환합니다.

        Returns:
            JSON 본문, 본문이 없으면 None

        Raises:
            BackendRequestError: 2xx 이외 응답
            BackendResponseError: JSON이 아닌 본문
            BackendUnavailableError: 전송 실패
        """
        response = await self._send(method, path, json_body)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("backend_invalid_json", extra={"method": method, "path": path})
            raise BackendResponseError(f"{method} {path} 응답이 JSON이 아닙니다") from e

    async def send(self, method: str, path: str, json_body: Any = None) -> None:
        """응답 본문을 쓰지 않는 변경 요청 (본문은 텍스트 메시지일 수 있음)."""
        await self._send(method, path, json_body)

    async def _send(self, method: str, path: str, json_body: Any) -> httpx.Response:
        client = self.get_client()
        try:
            response = await client.request(method, path, json=json_body)
        except httpx.TimeoutException as e:
            logger.error("backend_timeout", extra={"method": method, "path": path})
            raise BackendUnavailableError(f"요청 시간 초과: {method} {path}") from e
        except httpx.TransportError as e:
            logger.error("backend_transport_error", extra={"method": method, "path": path, "error": str(e)})
            raise BackendUnavailableError(f"서버에 연결할 수 없습니다: {e}") from e

        if response.is_error:
            reason = response.text[:200] if response.text else response.reason_phrase
            logger.error(
                "backend_http_error",
                extra={"method": method, "path": path, "status_code": response.status_code, "detail": reason},
            )
            raise BackendRequestError(response.status_code, reason)

        return response

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

