"""Week Calendar.

2주차 시스템의 주차 범위 계산.
주간 리셋은 수요일이므로 수요일을 한 주의 시작으로 봅니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

RESET_WEEKDAY = 2  # date.weekday(): 월=0 ... 수=2


@dataclass(frozen=True, slots=True)
class WeekInfo:
    """주차 정보.

    Attributes:
        week1_start: 1주차 시작일 (이번 주 수요일)
        week2_start: 2주차 시작일 (다음 주 수요일)
    """

    week1_start: date
    week2_start: date

    @property
    def week1_end(self) -> date:
        return self.week1_start + timedelta(days=6)

    @property
    def week2_end(self) -> date:
        return self.week2_start + timedelta(days=6)

    @property
    def week1_date_range(self) -> str:
        return _format_range(self.week1_start, self.week1_end)

    @property
    def week2_date_range(self) -> str:
        return _format_range(self.week2_start, self.week2_end)


def _format_range(start: date, end: date) -> str:
    return f"{start.month}/{start.day}~{end.month}/{end.day}"


def calculate_week_info(today: date | None = None) -> WeekInfo:
    """기준일이 속한 주차 정보를 계산합니다.

    Args:
        today: 기준일 (기본: 오늘)

    Returns:
        1주차(이번 수요일~다음 화요일), 2주차(그 다음 주) 정보
    """
    if today is None:
        today = date.today()

    days_from_reset = (today.weekday() - RESET_WEEKDAY) % 7
    week1_start = today - timedelta(days=days_from_reset)
    return WeekInfo(week1_start=week1_start, week2_start=week1_start + timedelta(days=7))
