"""Live Sync Layer."""

from raid_scheduler.application.sync.live_channel import (
    ConnectionState,
    LiveReconciliationChannel,
)
from raid_scheduler.application.sync.load_data import LoadDataService

__all__ = [
    "ConnectionState",
    "LiveReconciliationChannel",
    "LoadDataService",
]
