"""Auto Saver Port.

편집 직후 저장(auto-save) 능력. 인터랙션 계층은 이 포트를 항상 보유하며,
일괄 저장 전용 구성에서는 NoopAutoSaver를 주입합니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from raid_scheduler.domain.entities import (
    AssignedCharacter,
    CellKey,
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)


class AutoSaver(ABC):
    """변경 직후 저장 포트."""

    @abstractmethod
    def schedule_cell_changed(
        self,
        key: CellKey,
        characters: Sequence[AssignedCharacter],
        finished: bool,
    ) -> None:
        ...

    @abstractmethod
    def user_schedule_changed(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        ...

    @abstractmethod
    def character_created(self, character: Character) -> None:
        ...

    @abstractmethod
    def character_deleted(self, name: str) -> None:
        ...

    @abstractmethod
    def characters_reordered(self, characters: Sequence[Character]) -> None:
        ...

    @abstractmethod
    def raid_order_changed(self, raids: Sequence[Raid]) -> None:
        ...

    async def drain(self) -> None:
        """예약/진행 중인 저장이 모두 끝날 때까지 기다립니다."""
        return None


class NoopAutoSaver(AutoSaver):
    """일괄 저장 전용 구성 (즉시 저장 없음)."""

    def schedule_cell_changed(
        self,
        key: CellKey,
        characters: Sequence[AssignedCharacter],
        finished: bool,
    ) -> None:
        pass

    def user_schedule_changed(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        pass

    def character_created(self, character: Character) -> None:
        pass

    def character_deleted(self, name: str) -> None:
        pass

    def characters_reordered(self, characters: Sequence[Character]) -> None:
        pass

    def raid_order_changed(self, raids: Sequence[Raid]) -> None:
        pass
