"""LiveReconciliationChannel 테스트.

FakeSource/FakeStream으로 푸시 채널을 흉내냅니다.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from raid_scheduler.application.common.exceptions import BackendResponseError, BackendUnavailableError
from raid_scheduler.application.common.ports import (
    EventStream,
    EventStreamSource,
    LiveEvent,
    LiveEventType,
)
from raid_scheduler.application.sync import ConnectionState, LiveReconciliationChannel

RECONNECT_DELAY = 0.02
POLL_INTERVAL = 0.02


class FakeStream(EventStream):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[LiveEvent | Exception | None] = asyncio.Queue()
        self.closed = False

    async def __aiter__(self):
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def aclose(self) -> None:
        self.closed = True

    def push(self, event_type: LiveEventType, data: str = "") -> None:
        self.queue.put_nowait(LiveEvent(type=event_type, data=data))

    def end(self) -> None:
        self.queue.put_nowait(None)

    def fail(self) -> None:
        self.queue.put_nowait(BackendUnavailableError("stream lost"))


class FakeSource(EventStreamSource):
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.open_count = 0
        self.streams: list[FakeStream] = []

    async def open(self) -> EventStream:
        self.open_count += 1
        if self.failures:
            self.failures -= 1
            raise BackendUnavailableError("connection refused")
        stream = FakeStream()
        self.streams.append(stream)
        return stream


class GatedSource(FakeSource):
    """release가 set될 때까지 open이 끝나지 않는 소스."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def open(self) -> EventStream:
        self.open_count += 1
        await self.release.wait()
        stream = FakeStream()
        self.streams.append(stream)
        return stream


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def reload() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest_asyncio.fixture
async def channel(source, gateways, reload):
    channel = LiveReconciliationChannel(
        source,
        gateways.system,
        reload,
        reconnect_delay=RECONNECT_DELAY,
        poll_interval=POLL_INTERVAL,
    )
    yield channel
    await channel.shutdown()


class TestConnection:
    """연결 생명주기 테스트."""

    @pytest.mark.asyncio
    async def test_start_connects(self, channel, source):
        await channel.start()

        assert channel.state is ConnectionState.CONNECTED
        assert channel.is_polling is False
        assert source.open_count == 1

    @pytest.mark.asyncio
    async def test_no_duplicate_concurrent_connects(self, channel, source):
        await asyncio.gather(channel.connect(), channel.connect())

        assert source.open_count == 1

    @pytest.mark.asyncio
    async def test_stream_error_reconnects_after_delay(self, channel, source):
        """에러 시 핸들을 닫고 지연 후 재연결."""
        await channel.start()
        first = source.streams[0]

        first.fail()
        await wait_until(lambda: channel.state is ConnectionState.DISCONNECTED)

        assert first.closed is True
        assert channel.has_pending_reconnect is True

        await wait_until(lambda: len(source.streams) == 2 and channel.is_connected)
        assert channel.has_pending_reconnect is False

    @pytest.mark.asyncio
    async def test_stream_close_reconnects(self, channel, source):
        await channel.start()

        source.streams[0].end()

        await wait_until(lambda: len(source.streams) == 2 and channel.is_connected)


class TestVisibility:
    """페이지 표시 상태 테스트."""

    @pytest.mark.asyncio
    async def test_hidden_closes_and_does_not_reconnect(self, channel, source):
        await channel.start()

        await channel.set_visible(False)

        assert source.streams[0].closed is True
        assert channel.state is ConnectionState.DISCONNECTED
        assert channel.has_pending_reconnect is False

        await asyncio.sleep(RECONNECT_DELAY * 3)
        assert source.open_count == 1

    @pytest.mark.asyncio
    async def test_hidden_cancels_pending_reconnect(self, channel, source):
        await channel.start()
        source.streams[0].fail()
        await wait_until(lambda: channel.has_pending_reconnect)

        await channel.set_visible(False)
        await asyncio.sleep(RECONNECT_DELAY * 3)

        assert source.open_count == 1

    @pytest.mark.asyncio
    async def test_visible_again_reconnects_immediately(self, channel, source):
        await channel.start()
        await channel.set_visible(False)

        await channel.set_visible(True)

        assert channel.is_connected is True
        assert source.open_count == 2

    @pytest.mark.asyncio
    async def test_hide_and_show_while_opening_keeps_single_stream(self, gateways, reload):
        """연결 중 숨김->표시 시 새 연결을 열지 않고 진행 중인 연결을 이어받음."""
        source = GatedSource()
        channel = LiveReconciliationChannel(source, gateways.system, reload, reconnect_delay=RECONNECT_DELAY)
        try:
            connecting = asyncio.create_task(channel.connect())
            await wait_until(lambda: source.open_count == 1)

            await channel.set_visible(False)
            showing = asyncio.create_task(channel.set_visible(True))
            await asyncio.sleep(RECONNECT_DELAY)
            assert source.open_count == 1

            source.release.set()
            await asyncio.gather(connecting, showing)

            assert source.open_count == 1
            assert channel.is_connected is True
            assert [s.closed for s in source.streams] == [False]

            source.streams[0].push(LiveEventType.RAID_CREATED)
            await wait_until(lambda: reload.await_count == 1)
        finally:
            await channel.shutdown()

        assert source.streams[0].closed is True

    @pytest.mark.asyncio
    async def test_hidden_while_opening_discards_stream(self, gateways, reload):
        source = GatedSource()
        channel = LiveReconciliationChannel(source, gateways.system, reload, reconnect_delay=RECONNECT_DELAY)
        try:
            connecting = asyncio.create_task(channel.connect())
            await wait_until(lambda: source.open_count == 1)

            await channel.set_visible(False)
            source.release.set()
            await connecting

            assert source.streams[0].closed is True
            assert channel.state is ConnectionState.DISCONNECTED
            await asyncio.sleep(RECONNECT_DELAY * 3)
            assert source.open_count == 1
        finally:
            await channel.shutdown()

    @pytest.mark.asyncio
    async def test_connect_while_hidden_is_noop(self, channel, source):
        channel.visible = False

        await channel.connect()

        assert source.open_count == 0


class TestEvents:
    """이벤트 처리 테스트."""

    @pytest.mark.asyncio
    async def test_substantive_event_triggers_reload(self, channel, source, reload):
        await channel.start()

        source.streams[0].push(LiveEventType.SCHEDULE_UPDATED, "P1-R1")

        await wait_until(lambda: reload.await_count == 1)

    @pytest.mark.asyncio
    async def test_heartbeat_does_not_reload(self, channel, source, reload):
        await channel.start()
        stream = source.streams[0]

        stream.push(LiveEventType.HEARTBEAT)
        stream.push(LiveEventType.LAST_UPDATED, "1700000000000")
        stream.push(LiveEventType.WEEK_ADVANCED)

        await wait_until(lambda: reload.await_count == 1)
        assert channel.is_connected is True
        assert channel.last_updated == 1700000000000

    @pytest.mark.asyncio
    async def test_reload_failure_does_not_break_channel(self, channel, source, reload):
        reload.side_effect = BackendUnavailableError("down")
        await channel.start()

        source.streams[0].push(LiveEventType.RAID_CREATED)
        await wait_until(lambda: reload.await_count == 1)

        assert channel.is_connected is True


class TestPollingFallback:
    """폴링 폴백 테스트."""

    @pytest.mark.asyncio
    async def test_connect_failure_starts_polling_until_connected(self, gateways, reload):
        """연결 실패 시 폴링, 연결되면 폴링 중단."""
        source = FakeSource(failures=1)
        gateways.system.get_last_updated.return_value = 100
        channel = LiveReconciliationChannel(
            source,
            gateways.system,
            reload,
            reconnect_delay=RECONNECT_DELAY,
            poll_interval=POLL_INTERVAL,
        )
        try:
            await channel.start()

            assert channel.state is ConnectionState.DISCONNECTED
            assert channel.is_polling is True
            assert channel.has_pending_reconnect is True

            await wait_until(lambda: channel.is_connected)
            assert channel.is_polling is False
            assert channel.last_updated == 100
            reload.assert_not_awaited()
        finally:
            await channel.shutdown()

    @pytest.mark.asyncio
    async def test_poll_reloads_only_when_strictly_newer(self, channel, gateways, reload):
        """첫 조회는 기준값, 이후 더 새로울 때만 리로드."""
        gateways.system.get_last_updated.side_effect = [100, 100, 99, 200]

        assert await channel.check_for_updates() is False
        assert await channel.check_for_updates() is False
        assert await channel.check_for_updates() is False
        assert await channel.check_for_updates() is True

        reload.assert_awaited_once()
        assert channel.last_updated == 200

    @pytest.mark.asyncio
    async def test_polling_survives_reload_error(self, gateways, reload):
        """리로드가 응답 오류로 실패해도 폴링은 계속됨."""
        source = FakeSource(failures=100)
        gateways.system.get_last_updated.side_effect = [100, 200, 300, 300, 300, 300, 300, 300]
        reload.side_effect = [BackendResponseError("/raids: 1 invalid field(s)"), None]
        channel = LiveReconciliationChannel(
            source,
            gateways.system,
            reload,
            reconnect_delay=10,
            poll_interval=POLL_INTERVAL,
        )
        try:
            await channel.start()

            await wait_until(lambda: reload.await_count == 2)
            assert channel.is_polling is True
            assert channel.last_updated == 300
        finally:
            await channel.shutdown()

    @pytest.mark.asyncio
    async def test_poll_error_is_ignored(self, channel, gateways, reload):
        gateways.system.get_last_updated.side_effect = BackendUnavailableError("down")

        assert await channel.check_for_updates() is False
        reload.assert_not_awaited()


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_stops_reconnect(self, channel, source):
        await channel.start()
        source.streams[0].fail()
        await wait_until(lambda: channel.has_pending_reconnect)

        await channel.shutdown()
        await asyncio.sleep(RECONNECT_DELAY * 3)

        assert source.open_count == 1
        assert channel.state is ConnectionState.DISCONNECTED
