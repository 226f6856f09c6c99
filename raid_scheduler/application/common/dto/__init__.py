"""Application DTOs."""

from raid_scheduler.application.common.dto.schedule import CellSnapshot, ScheduleRecord

__all__ = ["CellSnapshot", "ScheduleRecord"]
