"""Schedule DTOs."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ScheduleRecord:
    """백엔드 스케줄 레코드 (평탄화된 행).

    Attributes:
        party: 파티 이름 (wire 필드명 id)
        raid_name: 레이드 이름
        character_name: 캐릭터 이름 (캐릭터 없이 완료된 셀이면 None)
        is_finished: 셀 완료 여부
    """

    party: str
    raid_name: str
    character_name: str | None
    is_finished: bool = False


@dataclass(frozen=True, slots=True)
class CellSnapshot:
    """일괄 저장용 셀 스냅샷.

    Attributes:
        party: 파티 이름
        raid_name: 레이드 이름
        character_names: 배치 순서대로의 캐릭터 이름
        is_finished: 셀 완료 여부
    """

    party: str
    raid_name: str
    character_names: tuple[str, ...]
    is_finished: bool = False
