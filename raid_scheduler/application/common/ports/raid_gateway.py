"""Raid Gateway Port."""

from abc import ABC, abstractmethod
from typing import Sequence

from raid_scheduler.domain.entities import Raid


class RaidGateway(ABC):
    """레이드 백엔드 포트."""

    @abstractmethod
    async def list_raids(self) -> list[Raid]:
        """seq 순으로 정렬된 레이드 목록."""
        ...

    @abstractmethod
    async def create_raid(self, name: str, seq: int | None = None) -> Raid:
        """레이드를 생성합니다. seq가 없으면 백엔드가 결정합니다."""
        ...

    @abstractmethod
    async def delete_raid(self, name: str) -> None:
        ...

    @abstractmethod
    async def update_order(self, raids: Sequence[Raid]) -> None:
        """레이드 순서를 일괄 갱신합니다 (각 raid.seq 사용)."""
        ...

    @abstractmethod
    async def update_order_single(self, name: str, seq: int) -> None:
        ...
