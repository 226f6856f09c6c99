"""SaveAllCommand 테스트."""

from __future__ import annotations

import pytest

from raid_scheduler.application.common.dto import CellSnapshot
from raid_scheduler.application.common.exceptions import BackendRequestError
from raid_scheduler.application.persistence import SaveAllCommand, SaveStep
from raid_scheduler.domain.entities import (
    CellKey,
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)


@pytest.fixture
def command(grid, tracker, gateways) -> SaveAllCommand:
    return SaveAllCommand(grid, tracker, gateways)


class TestSaveAllOrder:
    """단계 순서 테스트."""

    @pytest.mark.asyncio
    async def test_no_changes(self, command, gateways):
        result = await command.execute()

        assert result.is_success is True
        assert result.has_changes is False
        assert result.summary() == "저장할 변경사항이 없습니다."
        gateways.characters.upsert_characters.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_steps_run_in_fixed_order(self, grid, tracker, gateways, command):
        """캐릭터 → 레이드 → 레이드 순서 → 스케줄 → 유저 일정."""
        calls: list[str] = []
        gateways.characters.upsert_characters.side_effect = lambda *_: calls.append("characters")
        gateways.characters.delete_character.side_effect = lambda *_: calls.append("character_delete")
        gateways.raids.create_raid.side_effect = lambda *_, **__: calls.append("raid_create")
        gateways.raids.update_order.side_effect = lambda *_: calls.append("raid_order")
        gateways.schedules.save_all.side_effect = lambda *_: calls.append("schedule")
        gateways.user_schedules.save_all.side_effect = lambda *_: calls.append("user_schedule")

        new_character = Character("a3", "A", seq=3)
        grid.add_character(new_character)
        tracker.track_new_character(new_character)
        tracker.track_deleted_character("old")
        new_raid = Raid("R5", 5)
        grid.add_raid(new_raid)
        tracker.track_new_raid(new_raid)
        tracker.mark_raid_order_changed()
        tracker.mark_schedule_changed()
        tracker.track_user_schedule(UserScheduleKey("A", 1, "월"), UserScheduleEntry("x"))

        result = await command.execute()

        assert calls == [
            "characters",
            "character_delete",
            "raid_create",
            "raid_order",
            "schedule",
            "user_schedule",
        ]
        assert result.saved_steps == [
            SaveStep.CHARACTERS,
            SaveStep.RAIDS,
            SaveStep.RAID_ORDER,
            SaveStep.SCHEDULE,
            SaveStep.USER_SCHEDULE,
        ]
        assert result.is_success is True
        assert tracker.has_changes() is False
        assert "캐릭터" in result.summary()


class TestSaveAllSteps:
    """단계별 페이로드 테스트."""

    @pytest.mark.asyncio
    async def test_characters_include_reordered_users(self, grid, tracker, gateways, command):
        tracker.track_reordered_user("C")
        new_character = Character("b2", "B", seq=2)
        grid.add_character(new_character)
        tracker.track_new_character(new_character)

        await command.execute()

        (upserts,) = gateways.characters.upsert_characters.await_args.args
        assert [c.name for c in upserts] == ["b2", "c1", "c2"]
        assert tracker.characters_changed is False

    @pytest.mark.asyncio
    async def test_new_raid_seq_follows_existing_max(self, grid, tracker, gateways, command):
        """새 레이드 seq = 기존 최대 seq + index + 1."""
        for name in ("R5", "R6"):
            raid = Raid(name, 99)
            grid.add_raid(raid)
            tracker.track_new_raid(raid)

        await command.execute()

        assert [call.args + (call.kwargs["seq"],) for call in gateways.raids.create_raid.await_args_list] == [
            ("R5", 5),
            ("R6", 6),
        ]

    @pytest.mark.asyncio
    async def test_raid_order_renumbers_grid(self, grid, tracker, gateways, command):
        grid.set_raids([Raid("R3", 7), Raid("R1", 2), Raid("R2", 5), Raid("R4", 9)])
        tracker.mark_raid_order_changed()

        await command.execute()

        expected = [Raid("R3", 1), Raid("R1", 2), Raid("R2", 3), Raid("R4", 4)]
        gateways.raids.update_order.assert_awaited_once_with(expected)
        assert list(grid.raids) == expected

    @pytest.mark.asyncio
    async def test_schedule_snapshot_includes_empty_finished_cells(self, grid, tracker, gateways, command):
        grid.place_character(grid.find_character("a1"), "P1", "R1")
        grid.toggle_finished("P1", "R1")
        grid.toggle_finished("P2", "R2")
        tracker.mark_schedule_changed()

        await command.execute()

        (cells,) = gateways.schedules.save_all.await_args.args
        assert cells == [
            CellSnapshot("P1", "R1", ("a1",), True),
            CellSnapshot("P2", "R2", (), True),
        ]
        assert tracker.schedule_changed is False

    @pytest.mark.asyncio
    async def test_deleted_raid_is_removed_remotely(self, tracker, gateways, command):
        tracker.track_deleted_raid("R4")

        result = await command.execute()

        gateways.raids.delete_raid.assert_awaited_once_with("R4")
        assert result.saved_steps == [SaveStep.RAIDS]
        assert tracker.deleted_raids == []


class TestSaveAllFailure:
    """부분 실패 테스트."""

    @pytest.mark.asyncio
    async def test_raid_order_failure_after_raid_creation(self, grid, tracker, gateways, command):
        """레이드 생성은 반영되고 순서 저장 실패가 보고됨."""
        new_raid = Raid("R5", 5)
        grid.add_raid(new_raid)
        tracker.track_new_raid(new_raid)
        tracker.mark_raid_order_changed()
        tracker.mark_schedule_changed()
        gateways.raids.update_order.side_effect = BackendRequestError(500, "order failed")

        result = await command.execute()

        gateways.raids.create_raid.assert_awaited_once_with("R5", seq=5)
        gateways.schedules.save_all.assert_not_awaited()
        assert result.is_success is False
        assert result.is_partial is True
        assert result.saved_steps == [SaveStep.RAIDS]
        assert result.failed_step is SaveStep.RAID_ORDER
        assert result.error == "레이드 순서 저장에 실패했습니다: HTTP Error: 500 - order failed"
        assert result.summary() == result.error
        assert tracker.new_raids == []
        assert tracker.raid_order_changed is True
        assert tracker.schedule_changed is True

    @pytest.mark.asyncio
    async def test_first_step_failure_is_not_partial(self, grid, tracker, gateways, command):
        new_character = Character("a3", "A", seq=3)
        grid.add_character(new_character)
        tracker.track_new_character(new_character)
        gateways.characters.upsert_characters.side_effect = BackendRequestError(400, "bad")

        result = await command.execute()

        assert result.failed_step is SaveStep.CHARACTERS
        assert result.is_partial is False
        assert result.error.startswith("새 캐릭터 저장에 실패했습니다")
        assert tracker.new_characters == [new_character]
