"""Backend Gateways 묶음."""

from dataclasses import dataclass

from raid_scheduler.application.common.ports.character_gateway import CharacterGateway
from raid_scheduler.application.common.ports.raid_gateway import RaidGateway
from raid_scheduler.application.common.ports.schedule_gateway import ScheduleGateway
from raid_scheduler.application.common.ports.system_gateway import SystemGateway
from raid_scheduler.application.common.ports.user_gateway import UserGateway
from raid_scheduler.application.common.ports.user_schedule_gateway import UserScheduleGateway


@dataclass(frozen=True)
class BackendGateways:
    """엔티티 종류별 백엔드 포트 묶음."""

    raids: RaidGateway
    characters: CharacterGateway
    schedules: ScheduleGateway
    users: UserGateway
    user_schedules: UserScheduleGateway
    system: SystemGateway
