"""공용 테스트 픽스처."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from raid_scheduler.application.common.ports import (
    AutoSaver,
    BackendGateways,
    CharacterGateway,
    RaidGateway,
    ScheduleGateway,
    SystemGateway,
    UserGateway,
    UserScheduleGateway,
)
from raid_scheduler.application.interaction import DragStateMachine, ScheduleInteractionService
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import Character, Raid, User
from raid_scheduler.domain.grid_state import GridState

PARTIES = ("P1", "P2", "P3")


def make_grid() -> GridState:
    """유저 3명, 레이드 4개, 캐릭터 5개가 있는 빈 그리드."""
    grid = GridState(parties=PARTIES)
    grid.replace_users([User("A", "#ff0000"), User("B", "#00ff00"), User("C", "#0000ff")])
    grid.replace_raids([Raid("R1", 1), Raid("R2", 2), Raid("R3", 3), Raid("R4", 4)])
    grid.replace_characters(
        {
            "A": [Character("a1", "A", seq=1), Character("a2", "A", is_supporter=True, seq=2)],
            "B": [Character("b1", "B", seq=1)],
            "C": [Character("c1", "C", seq=1), Character("c2", "C", seq=2)],
        }
    )
    return grid


@pytest.fixture
def grid() -> GridState:
    return make_grid()


@pytest.fixture
def tracker() -> ChangeTracker:
    return ChangeTracker()


@pytest.fixture
def gateways() -> BackendGateways:
    """AsyncMock 기반 백엔드 포트 묶음 (기본 응답은 빈 목록)."""
    raids = AsyncMock(spec=RaidGateway)
    raids.list_raids.return_value = []
    characters = AsyncMock(spec=CharacterGateway)
    characters.list_characters.return_value = {}
    schedules = AsyncMock(spec=ScheduleGateway)
    schedules.list_schedules.return_value = []
    users = AsyncMock(spec=UserGateway)
    users.list_users.return_value = []
    user_schedules = AsyncMock(spec=UserScheduleGateway)
    user_schedules.list_user_schedules.return_value = {}
    system = AsyncMock(spec=SystemGateway)
    system.get_last_updated.return_value = 0
    return BackendGateways(
        raids=raids,
        characters=characters,
        schedules=schedules,
        users=users,
        user_schedules=user_schedules,
        system=system,
    )


@pytest.fixture
def auto_saver() -> MagicMock:
    return MagicMock(spec=AutoSaver)


@pytest.fixture
def interaction(grid, tracker, auto_saver) -> ScheduleInteractionService:
    return ScheduleInteractionService(grid, tracker, DragStateMachine(), auto_saver)
