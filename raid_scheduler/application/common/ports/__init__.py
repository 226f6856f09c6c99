"""Application Ports."""

from raid_scheduler.application.common.ports.auto_saver import AutoSaver, NoopAutoSaver
from raid_scheduler.application.common.ports.backend import BackendGateways
from raid_scheduler.application.common.ports.character_gateway import CharacterGateway
from raid_scheduler.application.common.ports.event_stream import (
    EventStream,
    EventStreamSource,
    LiveEvent,
    LiveEventType,
)
from raid_scheduler.application.common.ports.raid_gateway import RaidGateway
from raid_scheduler.application.common.ports.schedule_gateway import ScheduleGateway
from raid_scheduler.application.common.ports.system_gateway import SystemGateway
from raid_scheduler.application.common.ports.user_gateway import UserGateway
from raid_scheduler.application.common.ports.user_schedule_gateway import UserScheduleGateway

__all__ = [
    "AutoSaver",
    "BackendGateways",
    "CharacterGateway",
    "EventStream",
    "EventStreamSource",
    "LiveEvent",
    "LiveEventType",
    "NoopAutoSaver",
    "RaidGateway",
    "ScheduleGateway",
    "SystemGateway",
    "UserGateway",
    "UserScheduleGateway",
]
