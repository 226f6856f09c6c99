"""HTTP Backend Adapters."""

from raid_scheduler.infrastructure.http.base import BackendHttpClient
from raid_scheduler.infrastructure.http.gateways import (
    HttpCharacterGateway,
    HttpRaidGateway,
    HttpScheduleGateway,
    HttpSystemGateway,
    HttpUserGateway,
    HttpUserScheduleGateway,
    build_http_gateways,
)

__all__ = [
    "BackendHttpClient",
    "HttpCharacterGateway",
    "HttpRaidGateway",
    "HttpScheduleGateway",
    "HttpSystemGateway",
    "HttpUserGateway",
    "HttpUserScheduleGateway",
    "build_http_gateways",
]
