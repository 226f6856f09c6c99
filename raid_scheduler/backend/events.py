"""Reference Backend SSE 엔드포인트.

GET /api/events/updates
- 구독 직후 connected, last_updated 이벤트 전송
- 이후 변경 이벤트 + last_updated 이벤트를 순서대로 전달
- 일정 시간 이벤트가 없으면 heartbeat 전송
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from raid_scheduler.application.common.ports import LiveEventType
from raid_scheduler.backend.store import BackendStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"])


async def event_generator(
    request: Request,
    store: BackendStore,
    keepalive_interval: float,
) -> AsyncGenerator[dict[str, str], None]:
    """SSE 이벤트 제너레이터.

    Args:
        request: 연결 상태 확인용 Request
        store: 브로드캐스터를 가진 저장소
        keepalive_interval: heartbeat 주기 (초)

    Yields:
        SSE 이벤트 딕셔너리 (event, data, id)
    """
    subscriber = store.broadcaster.subscribe()
    try:
        yield {"event": LiveEventType.CONNECTED.value, "data": "SSE 연결 성공"}
        yield {"event": LiveEventType.LAST_UPDATED.value, "data": str(store.last_updated)}

        while True:
            if await request.is_disconnected():
                logger.info("sse_client_disconnected")
                break
            try:
                event = await asyncio.wait_for(subscriber.queue.get(), timeout=keepalive_interval)
            except asyncio.TimeoutError:
                yield {"event": LiveEventType.HEARTBEAT.value, "data": str(store.last_updated)}
                continue
            yield event
    finally:
        store.broadcaster.unsubscribe(subscriber)


@router.get(
    "/events/updates",
    summary="변경 이벤트 스트림 구독",
    responses={200: {"description": "SSE 스트림", "content": {"text/event-stream": {}}}},
)
async def stream_updates(request: Request) -> EventSourceResponse:
    """변경 이벤트 SSE 스트림."""
    logger.info(
        "sse_stream_started",
        extra={"client_ip": request.client.host if request.client else "unknown"},
    )
    return EventSourceResponse(
        event_generator(request, request.app.state.store, request.app.state.keepalive_interval),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
