"""User Schedule Gateway Port."""

from abc import ABC, abstractmethod
from typing import Mapping

from raid_scheduler.domain.entities import UserScheduleEntry, UserScheduleKey


class UserScheduleGateway(ABC):
    """유저 일정 백엔드 포트."""

    @abstractmethod
    async def list_user_schedules(self) -> dict[UserScheduleKey, UserScheduleEntry]:
        ...

    @abstractmethod
    async def upsert(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        """(user_id, day, week) 키 기준 생성/수정."""
        ...

    @abstractmethod
    async def save_all(self, entries: Mapping[UserScheduleKey, UserScheduleEntry]) -> None:
        ...

    @abstractmethod
    async def advance_week(self) -> None:
        """2주차 일정을 1주차로 옮기고 2주차를 비웁니다."""
        ...
