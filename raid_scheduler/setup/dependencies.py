"""Dependency Wiring.

설정으로부터 SchedulerSession 의존성 그래프를 구성합니다.
"""

from __future__ import annotations

import logging

import httpx

from raid_scheduler.application.common.ports import AutoSaver, NoopAutoSaver
from raid_scheduler.application.interaction import DragStateMachine, ScheduleInteractionService
from raid_scheduler.application.persistence import AutoSaveService, SaveAllCommand
from raid_scheduler.application.session import SchedulerSession
from raid_scheduler.application.sync import LiveReconciliationChannel, LoadDataService
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.grid_state import GridState
from raid_scheduler.infrastructure.http import BackendHttpClient, build_http_gateways
from raid_scheduler.infrastructure.sse import HttpxEventStreamSource
from raid_scheduler.setup.config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_session(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SchedulerSession:
    """세션 생성.

    Args:
        settings: 설정 (기본: get_settings())
        transport: httpx transport 오버라이드 (테스트용)

    Returns:
        초기 로드 전의 SchedulerSession
    """
    settings = settings or get_settings()

    client = BackendHttpClient(
        settings.api_base_url,
        timeout=settings.http_timeout_seconds,
        transport=transport,
    )
    gateways = build_http_gateways(client)

    grid = GridState(parties=settings.default_parties)
    tracker = ChangeTracker()

    auto_saver: AutoSaver
    if settings.auto_save_enabled:
        auto_saver = AutoSaveService(
            gateways,
            tracker,
            schedule_debounce_seconds=settings.schedule_debounce_seconds,
            user_schedule_debounce_seconds=settings.user_schedule_debounce_seconds,
        )
    else:
        auto_saver = NoopAutoSaver()

    loader = LoadDataService(grid, tracker, gateways)
    channel = LiveReconciliationChannel(
        HttpxEventStreamSource(client, events_path=settings.live_events_path),
        gateways.system,
        loader.reload,
        reconnect_delay=settings.live_reconnect_delay_seconds,
        poll_interval=settings.live_poll_interval_seconds,
    )

    logger.info(
        "session_configured",
        extra={"api_base_url": settings.api_base_url, "auto_save": settings.auto_save_enabled},
    )
    return SchedulerSession(
        grid=grid,
        tracker=tracker,
        interaction=ScheduleInteractionService(grid, tracker, DragStateMachine(), auto_saver),
        auto_saver=auto_saver,
        save_all_command=SaveAllCommand(grid, tracker, gateways),
        loader=loader,
        channel=channel,
        gateways=gateways,
        close_backend=client.aclose,
    )
