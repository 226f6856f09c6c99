"""Schedule Gateway Port."""

from abc import ABC, abstractmethod
from typing import Sequence

from raid_scheduler.application.common.dto import CellSnapshot, ScheduleRecord


class ScheduleGateway(ABC):
    """스케줄 백엔드 포트."""

    @abstractmethod
    async def list_schedules(self) -> list[ScheduleRecord]:
        ...

    @abstractmethod
    async def create_schedule(self, record: ScheduleRecord) -> None:
        ...

    @abstractmethod
    async def save_all(self, cells: Sequence[CellSnapshot]) -> None:
        """전체 스케줄 스냅샷과 완료 상태를 저장합니다 (기존 데이터 교체)."""
        ...

    @abstractmethod
    async def delete_by_cell(self, party: str, raid_name: str) -> None:
        """(party, raid) 셀의 모든 배치를 삭제합니다."""
        ...
