"""Scheduler Session.

하나의 편집 세션(그리드, 추적기, 상호작용, 저장, 동기화)을 묶는 파사드입니다.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date

from raid_scheduler.application.common.ports import AutoSaver, BackendGateways
from raid_scheduler.application.interaction import ScheduleInteractionService
from raid_scheduler.application.persistence import SaveAllCommand, SaveAllResult
from raid_scheduler.application.sync import LiveReconciliationChannel, LoadDataService
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import User
from raid_scheduler.domain.exceptions import UnknownUserError
from raid_scheduler.domain.grid_state import GridState
from raid_scheduler.domain.services import WeekInfo, calculate_week_info

logger = logging.getLogger(__name__)


class SchedulerSession:
    """스케줄 편집 세션.

    Attributes:
        grid: 그리드 상태
        tracker: 변경 추적기
        interaction: 편집 진입점
        auto_saver: 즉시 저장 능력 (AutoSaveService 또는 NoopAutoSaver)
        loader: 전체 로드/리로드
        channel: 라이브 동기화 채널
    """

    def __init__(
        self,
        grid: GridState,
        tracker: ChangeTracker,
        interaction: ScheduleInteractionService,
        auto_saver: AutoSaver,
        save_all_command: SaveAllCommand,
        loader: LoadDataService,
        channel: LiveReconciliationChannel,
        gateways: BackendGateways,
        close_backend: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.grid = grid
        self.tracker = tracker
        self.interaction = interaction
        self.auto_saver = auto_saver
        self.loader = loader
        self.channel = channel
        self._save_all_command = save_all_command
        self._gateways = gateways
        self._close_backend = close_backend
        self.week_info = calculate_week_info()

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 생명주기
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def start(self, live: bool = True) -> None:
        """초기 로드 후 라이브 채널을 엽니다."""
        await self.loader.reload()
        if live:
            await self.channel.start()

    async def aclose(self) -> None:
        await self.channel.shutdown()
        await self.auto_saver.drain()
        if self._close_backend is not None:
            await self._close_backend()
        logger.info("session_closed")

    async def set_visible(self, visible: bool) -> None:
        await self.channel.set_visible(visible)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 저장 / 로드
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def reload(self) -> None:
        await self.loader.reload()

    async def save_all(self) -> SaveAllResult:
        """예약된 즉시 저장을 먼저 마친 뒤 남은 변경사항을 일괄 저장합니다."""
        await self.auto_saver.drain()
        result = await self._save_all_command.execute()
        logger.info("save_all_result", extra={"summary": result.summary()})
        return result

    async def advance_week(self) -> WeekInfo:
        """주차 전환: 2주차 일정을 1주차로 옮기고 유저 일정을 다시 읽습니다."""
        await self._gateways.user_schedules.advance_week()
        await self.loader.reload_user_schedules()
        self.week_info = calculate_week_info()
        logger.info("week_advanced", extra={"week1": self.week_info.week1_date_range})
        return self.week_info

    def refresh_week_info(self, today: date | None = None) -> WeekInfo:
        self.week_info = calculate_week_info(today)
        return self.week_info

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 유저 관리
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def create_user(self, name: str, color: str) -> User:
        user = await self._gateways.users.create_user(User(name=name, color=color))
        await self.loader.reload_users()
        return user

    async def update_user_color(self, name: str, color: str) -> User:
        """유저 색상 변경.

        Raises:
            UnknownUserError: 현재 유저 목록에 없는 이름
        """
        if not any(user.name == name for user in self.grid.users):
            raise UnknownUserError(name)
        user = await self._gateways.users.update_user(User(name=name, color=color))
        await self.loader.reload_users()
        return user

    async def delete_user(self, name: str) -> None:
        if not any(user.name == name for user in self.grid.users):
            raise UnknownUserError(name)
        await self._gateways.users.delete_user(name)
        await self.loader.reload_users()
