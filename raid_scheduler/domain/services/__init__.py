"""Domain Services."""

from raid_scheduler.domain.services.placement_policy import (
    MAX_PARTY_SIZE,
    MAX_RAIDS_PER_CHARACTER,
    evaluate_placement,
    is_character_maxed,
)
from raid_scheduler.domain.services.week_calendar import WeekInfo, calculate_week_info

__all__ = [
    "MAX_PARTY_SIZE",
    "MAX_RAIDS_PER_CHARACTER",
    "WeekInfo",
    "calculate_week_info",
    "evaluate_placement",
    "is_character_maxed",
]
