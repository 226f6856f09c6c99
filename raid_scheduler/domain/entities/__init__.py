"""Domain Entities."""

from raid_scheduler.domain.entities.character import Character
from raid_scheduler.domain.entities.raid import Raid
from raid_scheduler.domain.entities.schedule import AssignedCharacter, CellKey, new_schedule_id
from raid_scheduler.domain.entities.user import User
from raid_scheduler.domain.entities.user_schedule import (
    WEEK_NUMBERS,
    UserScheduleEntry,
    UserScheduleKey,
)

__all__ = [
    "AssignedCharacter",
    "CellKey",
    "Character",
    "Raid",
    "User",
    "UserScheduleEntry",
    "UserScheduleKey",
    "WEEK_NUMBERS",
    "new_schedule_id",
]
