"""Persistence Pipeline."""

from raid_scheduler.application.persistence.auto_save import AutoSaveService
from raid_scheduler.application.persistence.debouncer import KeyedDebouncer
from raid_scheduler.application.persistence.save_all import (
    SaveAllCommand,
    SaveAllResult,
    SaveStep,
)

__all__ = [
    "AutoSaveService",
    "KeyedDebouncer",
    "SaveAllCommand",
    "SaveAllResult",
    "SaveStep",
]
