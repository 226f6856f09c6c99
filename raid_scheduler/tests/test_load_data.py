"""LoadDataService 테스트."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from raid_scheduler.application.common.dto import ScheduleRecord
from raid_scheduler.application.common.exceptions import BackendUnavailableError
from raid_scheduler.application.sync import LoadDataService
from raid_scheduler.application.sync.defaults import DEFAULT_RAIDS, DEFAULT_USERS
from raid_scheduler.application.sync.load_data import UNKNOWN_USER, build_cells, nest_user_schedules
from raid_scheduler.domain.entities import (
    CellKey,
    Character,
    Raid,
    User,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.domain.grid_state import GridState
from raid_scheduler.infrastructure.http import BackendHttpClient, build_http_gateways


@pytest.fixture
def empty_grid() -> GridState:
    return GridState(parties=["P1", "P2"])


@pytest.fixture
def loader(empty_grid, tracker, gateways) -> LoadDataService:
    return LoadDataService(empty_grid, tracker, gateways)


class TestLoad:
    """전체 로드 테스트."""

    @pytest.mark.asyncio
    async def test_load_replaces_all_collections(self, empty_grid, tracker, gateways, loader):
        gateways.users.list_users.return_value = [User("A", "#111111")]
        gateways.raids.list_raids.return_value = [Raid("R2", 2), Raid("R1", 1)]
        gateways.characters.list_characters.return_value = {"A": [Character("a1", "A", seq=1)]}
        gateways.schedules.list_schedules.return_value = [ScheduleRecord("P1", "R1", "a1", False)]
        gateways.user_schedules.list_user_schedules.return_value = {
            UserScheduleKey("A", 1, "월"): UserScheduleEntry("x", False)
        }
        tracker.mark_schedule_changed()

        await loader.reload()

        assert empty_grid.users == (User("A", "#111111"),)
        assert empty_grid.raid_names == ("R1", "R2")
        assert [c.name for c in empty_grid.get_cell("P1", "R1")] == ["a1"]
        assert empty_grid.get_cell("P1", "R1")[0].user_id == "A"
        assert empty_grid.user_schedules["A"][1]["월"] == UserScheduleEntry("x", False)
        assert tracker.has_changes() is False
        assert loader.has_loaded is True

    @pytest.mark.asyncio
    async def test_initial_failure_uses_defaults(self, empty_grid, gateways, loader):
        """최초 로드 실패 시 컬렉션별 기본값."""
        gateways.users.list_users.side_effect = BackendUnavailableError("down")
        gateways.raids.list_raids.side_effect = BackendUnavailableError("down")
        gateways.characters.list_characters.return_value = {"A": [Character("a1", "A")]}

        await loader.reload()

        assert empty_grid.users == DEFAULT_USERS
        assert empty_grid.raids == DEFAULT_RAIDS
        assert list(empty_grid.characters) == ["A"]

    @pytest.mark.asyncio
    async def test_reload_failure_keeps_current(self, empty_grid, gateways, loader):
        """이후 리로드 실패는 현재 값을 유지 (기본값 미사용)."""
        gateways.raids.list_raids.return_value = [Raid("R1", 1)]
        await loader.reload()

        gateways.raids.list_raids.side_effect = BackendUnavailableError("down")
        await loader.reload()

        assert empty_grid.raid_names == ("R1",)

    @pytest.mark.asyncio
    async def test_malformed_response_keeps_current(self, empty_grid, tracker):
        """필드가 빠진 응답은 해당 컬렉션만 실패로 처리하고 현재 값을 유지."""
        raids_body: list[dict] = [{"name": "R1", "seq": 1}]

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/raids":
                return httpx.Response(200, json=raids_body)
            if request.url.path == "/api/users":
                return httpx.Response(200, json=[{"name": "A", "color": "#111111"}])
            return httpx.Response(200, json=[])

        client = BackendHttpClient("http://backend.test/api", transport=httpx.MockTransport(handler))
        loader = LoadDataService(empty_grid, tracker, build_http_gateways(client))
        try:
            await loader.reload()
            assert empty_grid.raid_names == ("R1",)

            raids_body[:] = [{"seq": 1}]
            await loader.reload()

            assert empty_grid.raid_names == ("R1",)
            assert empty_grid.users == (User("A", "#111111"),)
            assert loader.is_loading is False
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_initial_response_uses_defaults(self, empty_grid, tracker):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/raids":
                return httpx.Response(200, json={"unexpected": True})
            return httpx.Response(200, json=[])

        client = BackendHttpClient("http://backend.test/api", transport=httpx.MockTransport(handler))
        loader = LoadDataService(empty_grid, tracker, build_http_gateways(client))
        try:
            await loader.reload()

            assert empty_grid.raids == DEFAULT_RAIDS
            assert loader.has_loaded is True
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_overlapping_reloads_collapse(self, gateways, loader):
        """진행 중인 로드에 합류하여 백엔드 조회는 1회."""
        release = asyncio.Event()

        async def slow_users():
            await release.wait()
            return []

        gateways.users.list_users.side_effect = slow_users

        first = asyncio.create_task(loader.reload())
        await asyncio.sleep(0)
        second = asyncio.create_task(loader.reload())
        await asyncio.sleep(0)
        assert loader.is_loading is True

        release.set()
        await asyncio.gather(first, second)

        assert gateways.users.list_users.await_count == 1
        assert loader.is_loading is False

    @pytest.mark.asyncio
    async def test_reload_user_schedules_only(self, empty_grid, tracker, gateways, loader):
        key = UserScheduleKey("A", 2, "금")
        tracker.track_user_schedule(key, UserScheduleEntry("old"))
        gateways.user_schedules.list_user_schedules.return_value = {key: UserScheduleEntry("new")}

        await loader.reload_user_schedules()

        assert empty_grid.get_user_schedule(key).text == "new"
        assert tracker.user_schedule_changed is False
        gateways.raids.list_raids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reload_users_failure_keeps_current(self, empty_grid, gateways, loader):
        empty_grid.replace_users([User("A")])
        gateways.users.list_users.side_effect = BackendUnavailableError("down")

        await loader.reload_users()

        assert empty_grid.users == (User("A"),)


class TestBuildCells:
    """스케줄 레코드 그룹화 테스트."""

    def test_unknown_owner_and_marker_record(self):
        records = [
            ScheduleRecord("P1", "R1", "a1", True),
            ScheduleRecord("P1", "R1", "ghost", True),
            ScheduleRecord("P2", "R1", None, True),
            ScheduleRecord("P3", "R2", "a1", False),
        ]
        characters = {"A": [Character("a1", "A", is_supporter=True)]}

        cells, finished = build_cells(records, characters)

        assert [(c.name, c.user_id, c.is_supporter) for c in cells[CellKey("P1", "R1")]] == [
            ("a1", "A", True),
            ("ghost", UNKNOWN_USER, False),
        ]
        assert CellKey("P2", "R1") not in cells
        assert finished == {CellKey("P1", "R1"): True, CellKey("P2", "R1"): True}

    def test_nest_user_schedules(self):
        entries = {
            UserScheduleKey("A", 1, "월"): UserScheduleEntry("x"),
            UserScheduleKey("A", 2, "월"): UserScheduleEntry("y"),
        }

        nested = nest_user_schedules(entries)

        assert nested == {"A": {1: {"월": UserScheduleEntry("x")}, 2: {"월": UserScheduleEntry("y")}}}
