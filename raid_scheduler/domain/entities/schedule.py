"""Schedule Cell Entities.

파티 × 레이드 그리드의 셀 키와 셀에 배치된 캐릭터 참조입니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from raid_scheduler.domain.entities.character import Character


@dataclass(frozen=True, order=True)
class CellKey:
    """그리드 셀 키 (party, raid)."""

    party: str
    raid: str

    def __str__(self) -> str:
        return f"{self.party}-{self.raid}"


def new_schedule_id() -> str:
    """저장 전까지 사용하는 임시 배치 ID."""
    return uuid4().hex


@dataclass(frozen=True)
class AssignedCharacter:
    """셀에 배치된 캐릭터 참조.

    Attributes:
        name: 캐릭터 이름
        user_id: 소유 유저
        is_supporter: 서포터 여부
        raid_name: 배치된 레이드
        party_name: 배치된 파티
        schedule_id: 로컬 임시 ID (서버 저장 전)
    """

    name: str
    user_id: str
    is_supporter: bool
    raid_name: str
    party_name: str
    schedule_id: str = field(default_factory=new_schedule_id)

    @property
    def key(self) -> CellKey:
        return CellKey(self.party_name, self.raid_name)

    @classmethod
    def place(cls, character: Character, key: CellKey) -> AssignedCharacter:
        """캐릭터를 셀에 배치한 참조를 생성합니다."""
        return cls(
            name=character.name,
            user_id=character.user_id,
            is_supporter=character.is_supporter,
            raid_name=key.raid,
            party_name=key.party,
        )
