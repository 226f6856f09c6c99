"""Live Reconciliation Channel.

서버 푸시 채널(SSE)로 원격 변경을 감지하고 전체 리로드로 로컬 상태를 맞춥니다.

연결 상태:
    disconnected → connecting → connected → disconnected

규칙:
- 데이터 변경 이벤트는 재진입 방지된 리로드를 트리거합니다.
- heartbeat/connected는 연결 상태만 갱신하고, last_updated는 타임스탬프만 기록합니다.
- 에러/종료 시 핸들을 닫고, 페이지가 보이고 종료 중이 아닐 때만 5초 후 재연결합니다.
- 페이지가 숨겨지면 연결을 먼저 닫고, 다시 보이면 즉시 재연결합니다.
- 재연결 타이머는 하나만 존재하며 동시 연결 시도는 없습니다.
- 채널을 열지 못하면 last-updated 엔드포인트를 10초마다 폴링합니다 (연결되면 중단).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from raid_scheduler.application.common.exceptions import ApplicationError
from raid_scheduler.application.common.ports import (
    EventStream,
    EventStreamSource,
    LiveEvent,
    LiveEventType,
    SystemGateway,
)
from raid_scheduler.metrics import (
    LIVE_CONNECTED,
    LIVE_EVENTS_RECEIVED,
    LIVE_POLL_TOTAL,
    LIVE_RECONNECT_ATTEMPTS,
)

logger = logging.getLogger(__name__)

ReloadCallable = Callable[[], Awaitable[None]]


class ConnectionState(str, Enum):
    """푸시 채널 연결 상태."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class LiveReconciliationChannel:
    """라이브 동기화 채널.

    Attributes:
        state: 연결 상태
        visible: 페이지 표시 여부
        last_updated: 마지막으로 관측한 서버 변경 시각 (epoch ms)
    """

    def __init__(
        self,
        source: EventStreamSource,
        system: SystemGateway,
        reload: ReloadCallable,
        reconnect_delay: float = 5.0,
        poll_interval: float = 10.0,
    ) -> None:
        self._source = source
        self._system = system
        self._reload = reload
        self._reconnect_delay = reconnect_delay
        self._poll_interval = poll_interval

        self.state = ConnectionState.DISCONNECTED
        self.visible = True
        self.last_updated: int | None = None

        self._closing = False
        self._stream: EventStream | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._checking = False
        self._reload_tasks: set[asyncio.Task[None]] = set()

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def has_pending_reconnect(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 생명주기
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def start(self) -> None:
        self._closing = False
        await self.connect()

    async def connect(self) -> None:
        """채널을 엽니다.

        연결 시도가 진행 중이면 새로 열지 않고 그 시도가 끝나기를 기다립니다.
        이미 연결된 경우 아무것도 하지 않습니다.
        """
        if self._closing or not self.visible:
            return
        if self._connect_task is None or self._connect_task.done():
            if self.state is not ConnectionState.DISCONNECTED:
                return
            self._connect_task = asyncio.create_task(self._open())
        task = self._connect_task
        # 호출자(재연결 타이머 등)가 취소되어도 연결 시도는 계속됨
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # shutdown이 연결 시도를 취소한 경우
            if not (self._closing and task.cancelled()):
                raise

    async def _open(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        try:
            stream = await self._source.open()
        except ApplicationError as e:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.warning("live_channel_connect_failed", extra={"error": e.message})
            self._start_polling()
            self._schedule_reconnect()
            return

        if self._closing or not self.visible:
            # 연결하는 동안 숨김/종료됨
            await stream.aclose()
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._stream = stream
        self._set_state(ConnectionState.CONNECTED)
        self._stop_polling()
        self._reader_task = asyncio.create_task(self._read(stream))
        logger.info("live_channel_connected")

    async def set_visible(self, visible: bool) -> None:
        """페이지 표시 상태 변경."""
        self.visible = visible
        if not visible:
            self._cancel_reconnect()
            self._stop_polling()
            await self._close_stream()
            logger.info("live_channel_hidden")
            return

        if self.state is ConnectionState.DISCONNECTED and not self._closing:
            self._cancel_reconnect()
            LIVE_RECONNECT_ATTEMPTS.labels(trigger="visible").inc()
            await self.connect()

    async def shutdown(self) -> None:
        """종료: 타이머/폴링/연결 시도를 멈추고 채널을 닫습니다. 진행 중인 리로드는 끝까지 기다립니다."""
        self._closing = True
        self._cancel_reconnect()
        self._stop_polling()
        connect_task, self._connect_task = self._connect_task, None
        if connect_task is not None and not connect_task.done():
            connect_task.cancel()
            await asyncio.gather(connect_task, return_exceptions=True)
        await self._close_stream()
        if self._reload_tasks:
            await asyncio.gather(*self._reload_tasks, return_exceptions=True)
        logger.info("live_channel_shutdown")

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 수신
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _read(self, stream: EventStream) -> None:
        reason = "closed"
        try:
            async for event in stream:
                self.handle_event(event)
        except ApplicationError as e:
            reason = e.message
        await self._on_stream_lost(stream, reason)

    def handle_event(self, event: LiveEvent) -> None:
        """수신 이벤트 처리."""
        LIVE_EVENTS_RECEIVED.labels(event=event.type.value).inc()

        if event.type.is_substantive:
            logger.info("live_event_received", extra={"event": event.type.value})
            self._spawn_reload()
            return

        if event.type is LiveEventType.LAST_UPDATED:
            try:
                self.last_updated = int(event.data)
            except ValueError:
                logger.debug("last_updated_unparsable", extra={"data": event.data})
        elif self._stream is not None:
            # heartbeat / connected
            self._set_state(ConnectionState.CONNECTED)

    async def _on_stream_lost(self, stream: EventStream, reason: str) -> None:
        if self._stream is not stream:
            return
        self._stream = None
        self._reader_task = None
        self._set_state(ConnectionState.DISCONNECTED)
        await stream.aclose()
        logger.warning("live_channel_disconnected", extra={"reason": reason})
        self._schedule_reconnect()

    async def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        task, self._reader_task = self._reader_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if stream is not None:
            await stream.aclose()
        self._set_state(ConnectionState.DISCONNECTED)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 재연결 / 폴링
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _schedule_reconnect(self) -> None:
        if self._closing or not self.visible or self.has_pending_reconnect:
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self._reconnect_delay)
        self._reconnect_task = None
        LIVE_RECONNECT_ATTEMPTS.labels(trigger="timer").inc()
        await self.connect()

    def _cancel_reconnect(self) -> None:
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _start_polling(self) -> None:
        if self._closing or not self.visible or self.is_polling:
            return
        logger.info("live_polling_started", extra={"interval": self._poll_interval})
        self._poll_task = asyncio.create_task(self._poll_loop())

    def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("live_polling_stopped")

    async def _poll_loop(self) -> None:
        while not self._closing:
            try:
                await self.check_for_updates()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                LIVE_POLL_TOTAL.labels(result="error").inc()
                logger.error("live_poll_error", extra={"error": str(e)})
            await asyncio.sleep(self._poll_interval)

    async def check_for_updates(self) -> bool:
        """last-updated를 한 번 조회하고, 더 새로우면 리로드합니다.

        Returns:
            리로드했으면 True
        """
        if self._checking:
            return False

        self._checking = True
        try:
            timestamp = await self._system.get_last_updated()
        except ApplicationError as e:
            LIVE_POLL_TOTAL.labels(result="error").inc()
            logger.warning("live_poll_failed", extra={"error": e.message})
            self._checking = False
            return False

        try:
            if self.last_updated is None:
                LIVE_POLL_TOTAL.labels(result="baseline").inc()
                self.last_updated = timestamp
                return False
            if timestamp <= self.last_updated:
                LIVE_POLL_TOTAL.labels(result="unchanged").inc()
                return False

            LIVE_POLL_TOTAL.labels(result="changed").inc()
            logger.info("live_poll_change_detected", extra={"timestamp": timestamp})
            await self._reload()
            self.last_updated = timestamp
            return True
        finally:
            self._checking = False

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _spawn_reload(self) -> None:
        task = asyncio.create_task(self._reload_safely())
        self._reload_tasks.add(task)
        task.add_done_callback(self._reload_tasks.discard)

    async def _reload_safely(self) -> None:
        try:
            await self._reload()
        except ApplicationError as e:
            logger.error("live_reload_failed", extra={"error": e.message})

    def _set_state(self, state: ConnectionState) -> None:
        self.state = state
        LIVE_CONNECTED.set(1 if state is ConnectionState.CONNECTED else 0)
