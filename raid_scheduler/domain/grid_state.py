"""Grid State.

파티 × 레이드 배치 현황과 셀 완료 상태, 유저 일정을 보관하는 집합체입니다.

규칙:
- 모든 변경은 이 클래스의 메서드로만 수행합니다.
- 캐릭터가 없는 셀은 매핑에서 제거합니다 (빈 리스트를 남기지 않음).
- 로드/리로드 시 최상위 컬렉션 단위로 통째로 교체합니다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from raid_scheduler.domain.entities import (
    AssignedCharacter,
    CellKey,
    Character,
    Raid,
    User,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.domain.enums import PlacementResult
from raid_scheduler.domain.services.placement_policy import evaluate_placement

logger = logging.getLogger(__name__)

DEFAULT_PARTIES = ("1파티", "2파티", "3파티", "4파티", "5파티", "6파티")

UserSchedules = dict[str, dict[int, dict[str, UserScheduleEntry]]]


class GridState:
    """그리드 상태 집합체.

    Attributes:
        raids: 레이드 목록 (컬럼 순서)
        parties: 파티 목록 (행 순서, 로컬 전용)
        users: 유저 목록
        characters: 유저별 캐릭터 목록 (seq 순)
        cells: 셀 키별 배치 캐릭터
        finished: 셀 키별 완료 여부
        user_schedules: user_id → week → day → 일정
    """

    def __init__(self, parties: Sequence[str] = DEFAULT_PARTIES) -> None:
        self._raids: list[Raid] = []
        self._parties: list[str] = list(parties)
        self._users: list[User] = []
        self._characters: dict[str, list[Character]] = {}
        self._cells: dict[CellKey, list[AssignedCharacter]] = {}
        self._finished: dict[CellKey, bool] = {}
        self._user_schedules: UserSchedules = {}

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    @property
    def raids(self) -> tuple[Raid, ...]:
        return tuple(self._raids)

    @property
    def raid_names(self) -> tuple[str, ...]:
        return tuple(raid.name for raid in self._raids)

    @property
    def parties(self) -> tuple[str, ...]:
        return tuple(self._parties)

    @property
    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    @property
    def characters(self) -> Mapping[str, list[Character]]:
        return MappingProxyType(self._characters)

    @property
    def cells(self) -> Mapping[CellKey, list[AssignedCharacter]]:
        return MappingProxyType(self._cells)

    @property
    def finished(self) -> Mapping[CellKey, bool]:
        return MappingProxyType(self._finished)

    @property
    def user_schedules(self) -> Mapping[str, dict[int, dict[str, UserScheduleEntry]]]:
        return MappingProxyType(self._user_schedules)

    def get_cell(self, party: str, raid: str) -> tuple[AssignedCharacter, ...]:
        """셀에 배치된 캐릭터 (없으면 빈 튜플)."""
        return tuple(self._cells.get(CellKey(party, raid), ()))

    def is_finished(self, party: str, raid: str) -> bool:
        return self._finished.get(CellKey(party, raid), False)

    def character_raids(self, character_name: str) -> list[str]:
        """캐릭터가 배치된 레이드 목록 (중복 제거, 등장 순)."""
        raids: list[str] = []
        for key, assigned_list in self._cells.items():
            if key.raid in raids:
                continue
            if any(assigned.name == character_name for assigned in assigned_list):
                raids.append(key.raid)
        return raids

    def user_characters(self, user_id: str) -> tuple[Character, ...]:
        return tuple(self._characters.get(user_id, ()))

    def find_character(self, name: str) -> Character | None:
        """이름으로 캐릭터를 찾습니다 (유저 순회)."""
        for characters in self._characters.values():
            for character in characters:
                if character.name == name:
                    return character
        return None

    def find_raid(self, name: str) -> Raid | None:
        return next((raid for raid in self._raids if raid.name == name), None)

    def get_user_schedule(self, key: UserScheduleKey) -> UserScheduleEntry:
        """유저 일정 조회 (없으면 기본값)."""
        return (
            self._user_schedules.get(key.user_id, {})
            .get(key.week_number, {})
            .get(key.day_of_week, UserScheduleEntry())
        )

    def schedule_snapshot(self) -> dict[CellKey, tuple[str, ...]]:
        """일괄 저장용 셀별 캐릭터 이름 스냅샷."""
        return {
            key: tuple(assigned.name for assigned in assigned_list)
            for key, assigned_list in self._cells.items()
        }

    def finished_snapshot(self) -> dict[CellKey, bool]:
        return {key: True for key, value in self._finished.items() if value}

    # ------------------------------------------------------------------
    # 셀 변경
    # ------------------------------------------------------------------

    def place_character(self, character: Character, party: str, raid: str) -> PlacementResult:
        """배치 정책을 통과하면 캐릭터를 셀 끝에 추가합니다.

        Returns:
            판정 결과 (ALLOW일 때만 상태가 변경됨)
        """
        result = evaluate_placement(self, character, party, raid)
        if not result.is_allowed:
            logger.debug(
                "placement_rejected",
                extra={"character": character.name, "party": party, "raid": raid, "reason": result.value},
            )
            return result

        key = CellKey(party, raid)
        self._cells.setdefault(key, []).append(AssignedCharacter.place(character, key))
        return result

    def remove_character_at(self, party: str, raid: str, index: int) -> AssignedCharacter | None:
        """셀의 index 위치 캐릭터를 제거합니다. 비게 된 셀은 삭제합니다."""
        key = CellKey(party, raid)
        assigned_list = self._cells.get(key)
        if not assigned_list or not 0 <= index < len(assigned_list):
            return None

        removed = assigned_list.pop(index)
        if not assigned_list:
            del self._cells[key]
        return removed

    def toggle_finished(self, party: str, raid: str) -> bool:
        """셀 완료 상태를 토글하고 새 값을 반환합니다."""
        key = CellKey(party, raid)
        finished = not self._finished.get(key, False)
        if finished:
            self._finished[key] = True
        else:
            self._finished.pop(key, None)
        return finished

    # ------------------------------------------------------------------
    # 순서/목록 변경 (새 리스트로 교체)
    # ------------------------------------------------------------------

    def set_raids(self, raids: Iterable[Raid]) -> None:
        self._raids = list(raids)

    def set_parties(self, parties: Iterable[str]) -> None:
        self._parties = list(parties)

    def set_user_characters(self, user_id: str, characters: Iterable[Character]) -> None:
        self._characters[user_id] = list(characters)

    def add_character(self, character: Character) -> None:
        self._characters.setdefault(character.user_id, []).append(character)

    def remove_character(self, user_id: str, name: str) -> Character | None:
        characters = self._characters.get(user_id)
        if not characters:
            return None
        for index, character in enumerate(characters):
            if character.name == name:
                return characters.pop(index)
        return None

    def add_raid(self, raid: Raid) -> None:
        self._raids = [*self._raids, raid]

    def remove_raid(self, name: str) -> Raid | None:
        """레이드와 해당 레이드의 셀/완료 상태를 제거합니다."""
        raid = self.find_raid(name)
        if raid is None:
            return None
        self._raids = [r for r in self._raids if r.name != name]
        self._cells = {key: value for key, value in self._cells.items() if key.raid != name}
        self._finished = {key: value for key, value in self._finished.items() if key.raid != name}
        return raid

    def set_user_schedule(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        self._user_schedules.setdefault(key.user_id, {}).setdefault(key.week_number, {})[
            key.day_of_week
        ] = entry

    # ------------------------------------------------------------------
    # 통째 교체 (로드/리로드)
    # ------------------------------------------------------------------

    def replace_users(self, users: Iterable[User]) -> None:
        self._users = list(users)

    def replace_raids(self, raids: Iterable[Raid]) -> None:
        self._raids = sorted(raids, key=lambda raid: raid.seq)

    def replace_characters(self, characters: Mapping[str, Iterable[Character]]) -> None:
        self._characters = {
            user_id: sorted(user_characters, key=lambda c: c.seq)
            for user_id, user_characters in characters.items()
        }

    def replace_schedule(
        self,
        cells: Mapping[CellKey, Iterable[AssignedCharacter]],
        finished: Mapping[CellKey, bool],
    ) -> None:
        copied = {key: list(value) for key, value in cells.items()}
        self._cells = {key: value for key, value in copied.items() if value}
        self._finished = {key: True for key, value in finished.items() if value}

    def replace_user_schedules(self, user_schedules: UserSchedules) -> None:
        self._user_schedules = {
            user_id: {week: dict(days) for week, days in weeks.items()}
            for user_id, weeks in user_schedules.items()
        }
