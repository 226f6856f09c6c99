"""Raid Scheduler Domain Enums."""

from raid_scheduler.domain.enums.placement import PlacementResult
from raid_scheduler.domain.enums.schedule import DragKind, SaveTarget

__all__ = ["DragKind", "PlacementResult", "SaveTarget"]
