"""User Schedule Entities.

유저별 2주차 요일 일정입니다.
"""

from __future__ import annotations

from dataclasses import dataclass

WEEK_NUMBERS = (1, 2)


@dataclass(frozen=True, order=True)
class UserScheduleKey:
    """유저 일정 키 (user_id, week_number, day_of_week)."""

    user_id: str
    week_number: int
    day_of_week: str

    def __str__(self) -> str:
        return f"{self.user_id}-{self.day_of_week}-week{self.week_number}"


@dataclass(frozen=True)
class UserScheduleEntry:
    """유저 일정 값.

    Attributes:
        text: 일정 메모
        is_enabled: 해당 요일 참여 가능 여부
    """

    text: str = ""
    is_enabled: bool = True
