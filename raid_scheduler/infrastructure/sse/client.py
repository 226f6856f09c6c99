"""httpx 기반 SSE 이벤트 스트림.

EventStreamSource 포트 구현체입니다.
알 수 없는 이벤트 이름은 건너뜁니다.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import httpx

from raid_scheduler.application.common.exceptions import (
    BackendRequestError,
    BackendUnavailableError,
)
from raid_scheduler.application.common.ports import (
    EventStream,
    EventStreamSource,
    LiveEvent,
    LiveEventType,
)
from raid_scheduler.infrastructure.http.base import BackendHttpClient
from raid_scheduler.infrastructure.sse.parser import parse_sse_lines

logger = logging.getLogger(__name__)

_KNOWN_EVENTS = {event.value: event for event in LiveEventType}

# 백엔드가 camelCase로 보내는 제어 이벤트
_EVENT_ALIASES = {"lastUpdated": LiveEventType.LAST_UPDATED}


def to_live_event(name: str, data: str, event_id: str | None = None) -> LiveEvent | None:
    """SSE 이벤트 이름을 LiveEventType으로 변환합니다. 모르는 이름이면 None."""
    event_type = _KNOWN_EVENTS.get(name) or _EVENT_ALIASES.get(name)
    if event_type is None:
        return None
    return LiveEvent(type=event_type, data=data, event_id=event_id)


class HttpxEventStream(EventStream):
    """열린 SSE 응답."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._closed = False

    async def __aiter__(self) -> AsyncIterator[LiveEvent]:
        try:
            async for raw in parse_sse_lines(self._response.aiter_lines()):
                event = to_live_event(raw.event, raw.data, raw.id)
                if event is None:
                    logger.debug("sse_unknown_event_ignored", extra={"event": raw.event})
                    continue
                yield event
        except httpx.HTTPError as e:
            if self._closed:
                return
            raise BackendUnavailableError(f"이벤트 스트림 연결이 끊어졌습니다: {e}") from e

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()


class HttpxEventStreamSource(EventStreamSource):
    """GET {api_base_url}{events_path} 로 SSE 채널을 엽니다."""

    def __init__(self, client: BackendHttpClient, events_path: str = "/events/updates") -> None:
        self._client = client
        self._events_path = events_path

    async def open(self) -> EventStream:
        http = self._client.get_client()
        request = http.build_request(
            "GET",
            self._events_path,
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            # 스트림은 읽기 타임아웃 없이 유지 (heartbeat로 생존 확인)
            timeout=httpx.Timeout(10.0, read=None),
        )
        try:
            response = await http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise BackendUnavailableError(f"이벤트 스트림에 연결할 수 없습니다: {e}") from e

        if response.is_error:
            await response.aclose()
            raise BackendRequestError(response.status_code, response.reason_phrase)

        logger.info("sse_stream_opened", extra={"path": self._events_path})
        return HttpxEventStream(response)
