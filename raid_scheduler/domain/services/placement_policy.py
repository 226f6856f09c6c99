"""Placement Policy.

캐릭터를 그리드 셀에 배치할 수 있는지 판정하는 순수 정책입니다.

판정 순서 (처음 실패한 사유가 결과):
1. cell-finished: 완료 처리된 셀
2. duplicate-in-cell: 같은 셀에 이미 배치된 캐릭터
3. duplicate-raid-other-party: 같은 레이드의 다른 파티에 이미 배치
4. raid-limit-exceeded: 이미 3개 레이드에 배치 (대상 레이드 제외)
5. duplicate-user-in-cell: 같은 유저의 다른 캐릭터가 셀에 존재
6. cell-full: 파티 정원 초과

부작용이 없으며 그리드 상태를 변경하지 않습니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from raid_scheduler.domain.entities import CellKey, Character
from raid_scheduler.domain.enums import PlacementResult

if TYPE_CHECKING:
    from raid_scheduler.domain.grid_state import GridState

MAX_RAIDS_PER_CHARACTER = 3
MAX_PARTY_SIZE = 4


def evaluate_placement(
    grid: GridState,
    character: Character,
    party: str,
    raid: str,
) -> PlacementResult:
    """배치 가능 여부를 판정합니다.

    Args:
        grid: 현재 그리드 상태
        character: 배치할 캐릭터
        party: 대상 파티
        raid: 대상 레이드

    Returns:
        PlacementResult.ALLOW 또는 첫 번째 거부 사유
    """
    key = CellKey(party, raid)
    cell = grid.get_cell(party, raid)

    if grid.is_finished(party, raid):
        return PlacementResult.CELL_FINISHED

    if any(assigned.name == character.name for assigned in cell):
        return PlacementResult.DUPLICATE_IN_CELL

    for other_key, assigned_list in grid.cells.items():
        if other_key.raid != raid or other_key == key:
            continue
        if any(assigned.name == character.name for assigned in assigned_list):
            return PlacementResult.DUPLICATE_RAID_OTHER_PARTY

    raids = grid.character_raids(character.name)
    if len(raids) >= MAX_RAIDS_PER_CHARACTER and raid not in raids:
        return PlacementResult.RAID_LIMIT_EXCEEDED

    if any(assigned.user_id == character.user_id for assigned in cell):
        return PlacementResult.DUPLICATE_USER_IN_CELL

    if len(cell) >= MAX_PARTY_SIZE:
        return PlacementResult.CELL_FULL

    return PlacementResult.ALLOW


def is_character_maxed(grid: GridState, character_name: str) -> bool:
    """캐릭터가 최대 레이드 수에 도달했는지 여부."""
    return len(grid.character_raids(character_name)) >= MAX_RAIDS_PER_CHARACTER
