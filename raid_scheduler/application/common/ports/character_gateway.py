"""Character Gateway Port."""

from abc import ABC, abstractmethod
from typing import Sequence

from raid_scheduler.domain.entities import Character


class CharacterGateway(ABC):
    """캐릭터 백엔드 포트."""

    @abstractmethod
    async def list_characters(self) -> dict[str, list[Character]]:
        """유저별로 그룹화된 캐릭터 목록."""
        ...

    @abstractmethod
    async def create_character(self, character: Character) -> None:
        ...

    @abstractmethod
    async def update_character(self, character: Character) -> None:
        ...

    @abstractmethod
    async def delete_character(self, name: str) -> None:
        ...

    @abstractmethod
    async def upsert_characters(self, characters: Sequence[Character]) -> None:
        """캐릭터 일괄 저장 (이름 기준 upsert)."""
        ...
