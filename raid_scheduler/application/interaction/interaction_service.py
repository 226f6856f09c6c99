"""Schedule Interaction Service.

사용자 상호작용(드래그/드롭, 우클릭, 더블클릭, 편집)을 그리드 변경으로 옮깁니다.

흐름:
    interaction → drag state machine → placement policy → grid mutation
    → change tracker → auto saver (즉시/디바운스 저장 또는 Noop)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from raid_scheduler.application.common.ports import AutoSaver
from raid_scheduler.application.interaction.drag_state import DragStateMachine, move_item
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import (
    WEEK_NUMBERS,
    AssignedCharacter,
    CellKey,
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.domain.enums import DragKind, PlacementResult
from raid_scheduler.domain.exceptions import (
    DuplicateCharacterError,
    DuplicateRaidError,
    InvalidWeekNumberError,
)
from raid_scheduler.domain.grid_state import GridState
from raid_scheduler.metrics import PLACEMENT_TOTAL

logger = logging.getLogger(__name__)


class ScheduleInteractionService:
    """그리드 편집 진입점.

    모든 메서드는 동기이며 await 지점이 없으므로,
    검사 후 변경(check-then-write)이 다른 코루틴에 대해 원자적입니다.
    """

    def __init__(
        self,
        grid: GridState,
        tracker: ChangeTracker,
        drag: DragStateMachine,
        auto_saver: AutoSaver,
    ) -> None:
        self._grid = grid
        self._tracker = tracker
        self._drag = drag
        self._auto_saver = auto_saver

    @property
    def drag(self) -> DragStateMachine:
        return self._drag

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 드롭
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def drop_on_cell(self, party: str, raid: str) -> PlacementResult | None:
        """캐릭터 드래그를 셀에 드롭합니다.

        Returns:
            배치 판정 결과. 캐릭터 드래그 중이 아니었으면 None (취소)
        """
        state = self._drag.finish(DragKind.CHARACTER)
        if state is None:
            return None

        character: Character = state.payload
        result = self._grid.place_character(character, party, raid)
        PLACEMENT_TOTAL.labels(result=result.value).inc()

        if result.is_allowed:
            self._cell_changed(party, raid)
        else:
            logger.info(
                "placement_denied",
                extra={"character": character.name, "cell": f"{party}-{raid}", "reason": result.value},
            )
        return result

    def drop_raid_header(self, target_index: int) -> bool:
        """레이드 컬럼 순서를 변경합니다. 변경이 있으면 True."""
        state = self._drag.finish(DragKind.RAID_HEADER)
        if state is None:
            return False
        source = _index_of(self._grid.raid_names, state.payload)
        if source is None or source == target_index:
            return False

        moved = move_item(self._grid.raids, source, target_index)
        raids = [replace(raid, seq=index + 1) for index, raid in enumerate(moved)]
        self._grid.set_raids(raids)
        self._tracker.mark_raid_order_changed()
        self._auto_saver.raid_order_changed(raids)
        return True

    def drop_party_row(self, target_index: int) -> bool:
        """파티 행 순서를 변경합니다 (로컬 전용, 저장 대상 아님)."""
        state = self._drag.finish(DragKind.PARTY_ROW)
        if state is None:
            return False
        source = _index_of(self._grid.parties, state.payload)
        if source is None or source == target_index:
            return False

        self._grid.set_parties(move_item(self._grid.parties, source, target_index))
        return True

    def drop_character_order(self, user_id: str, target_index: int) -> bool:
        """같은 유저 내에서 캐릭터 순서를 변경하고 seq를 1..n으로 다시 매깁니다."""
        state = self._drag.finish(DragKind.CHARACTER_ORDER, owner_key=user_id)
        if state is None:
            return False
        current = self._grid.user_characters(user_id)
        source = _index_of([character.name for character in current], state.payload.name)
        if source is None or source == target_index:
            return False

        moved = move_item(current, source, target_index)
        characters = [replace(character, seq=index + 1) for index, character in enumerate(moved)]
        self._grid.set_user_characters(user_id, characters)
        self._tracker.track_reordered_user(user_id)
        self._auto_saver.characters_reordered(characters)
        return True

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 셀 조작
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def secondary_activate(
        self,
        party: str,
        raid: str,
        character_index: int | None = None,
    ) -> bool | None:
        """우클릭: 빈 영역이면 셀 완료 상태를 토글합니다.

        Args:
            character_index: 캐릭터 슬롯 위에서 활성화된 경우 그 위치

        Returns:
            토글된 완료 상태. 캐릭터 슬롯 위였으면 None
        """
        if character_index is not None:
            return None

        finished = self._grid.toggle_finished(party, raid)
        self._cell_changed(party, raid)
        return finished

    def double_activate(self, party: str, raid: str, index: int) -> AssignedCharacter | None:
        """더블클릭: index 위치의 캐릭터를 셀에서 제거합니다."""
        removed = self._grid.remove_character_at(party, raid, index)
        if removed is not None:
            self._cell_changed(party, raid)
        return removed

    def _cell_changed(self, party: str, raid: str) -> None:
        self._tracker.mark_schedule_changed()
        self._auto_saver.schedule_cell_changed(
            CellKey(party, raid),
            self._grid.get_cell(party, raid),
            self._grid.is_finished(party, raid),
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 캐릭터 / 레이드 관리
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def add_character(self, user_id: str, name: str, is_supporter: bool = False) -> Character:
        """유저에 캐릭터를 추가합니다 (seq = 유저 내 최대 seq + 1).

        Raises:
            DuplicateCharacterError: 같은 유저에 동일한 이름이 존재
        """
        existing = self._grid.user_characters(user_id)
        if any(character.name == name for character in existing):
            raise DuplicateCharacterError(user_id, name)

        max_seq = max((character.seq for character in existing), default=0)
        character = Character(name=name, user_id=user_id, is_supporter=is_supporter, seq=max_seq + 1)
        self._grid.add_character(character)
        self._tracker.track_new_character(character)
        self._auto_saver.character_created(character)
        return character

    def delete_character(self, user_id: str, name: str) -> Character | None:
        """캐릭터를 삭제합니다. 저장 전인 캐릭터는 서버 삭제 대상이 되지 않습니다."""
        removed = self._grid.remove_character(user_id, name)
        if removed is None:
            logger.warning("character_not_found", extra={"user_id": user_id, "character": name})
            return None

        self._tracker.track_deleted_character(name)
        self._auto_saver.character_deleted(name)
        return removed

    def add_raid(self, name: str) -> Raid:
        """레이드 컬럼을 끝에 추가합니다.

        Raises:
            DuplicateRaidError: 동일한 이름의 레이드가 존재
        """
        if self._grid.find_raid(name) is not None:
            raise DuplicateRaidError(name)

        max_seq = max((raid.seq for raid in self._grid.raids), default=0)
        raid = Raid(name=name, seq=max_seq + 1)
        self._grid.add_raid(raid)
        self._tracker.track_new_raid(raid)
        return raid

    def delete_raid(self, name: str) -> Raid | None:
        """레이드 컬럼과 그 셀/완료 상태를 로컬에서 제거합니다."""
        had_cells = any(key.raid == name for key in (*self._grid.cells, *self._grid.finished))
        removed = self._grid.remove_raid(name)
        if removed is None:
            return None

        self._tracker.track_deleted_raid(name)
        if had_cells:
            self._tracker.mark_schedule_changed()
        return removed

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 유저 일정
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def update_user_schedule_text(
        self,
        user_id: str,
        day_of_week: str,
        week_number: int,
        text: str,
    ) -> UserScheduleEntry:
        key = _user_schedule_key(user_id, day_of_week, week_number)
        entry = replace(self._grid.get_user_schedule(key), text=text)
        self._user_schedule_changed(key, entry)
        return entry

    def toggle_user_schedule_enabled(
        self,
        user_id: str,
        day_of_week: str,
        week_number: int,
    ) -> UserScheduleEntry:
        key = _user_schedule_key(user_id, day_of_week, week_number)
        current = self._grid.get_user_schedule(key)
        entry = replace(current, is_enabled=not current.is_enabled)
        self._user_schedule_changed(key, entry)
        return entry

    def _user_schedule_changed(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        self._grid.set_user_schedule(key, entry)
        self._tracker.track_user_schedule(key, entry)
        self._auto_saver.user_schedule_changed(key, entry)


def _index_of(names: Sequence[str], name: str) -> int | None:
    """현재 목록에서의 위치. 드래그 중 리로드로 사라졌으면 None."""
    try:
        return list(names).index(name)
    except ValueError:
        return None

def _user_schedule_key(user_id: str, day_of_week: str, week_number: int) -> UserScheduleKey:
    if week_number not in WEEK_NUMBERS:
        raise InvalidWeekNumberError(week_number)
    return UserScheduleKey(user_id=user_id, week_number=week_number, day_of_week=day_of_week)
