"""HTTP Gateway Adapters.

application/common/ports의 백엔드 포트를 REST API로 구현합니다.

Routes (base: {api_base_url}):
- /raids, /raids/{name}, /raids/order, /raids/{name}/order
- /characters, /characters/{name}, /characters/batch
- /schedules, /schedules/batch, /schedules/party/{party}/raid/{raid}
- /users, /users/{name}
- /user-schedules, /user-schedules/batch, /user-schedules/advance-week
- /last-updated
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from raid_scheduler.application.common.dto import CellSnapshot, ScheduleRecord
from raid_scheduler.application.common.exceptions import BackendResponseError
from raid_scheduler.application.common.ports import (
    BackendGateways,
    CharacterGateway,
    RaidGateway,
    ScheduleGateway,
    SystemGateway,
    UserGateway,
    UserScheduleGateway,
)
from raid_scheduler.domain.entities import (
    Character,
    Raid,
    User,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.infrastructure.http.base import BackendHttpClient, path_segment
from raid_scheduler.infrastructure.http.schemas import (
    CharacterSchema,
    LastUpdatedSchema,
    RaidSchema,
    ScheduleCellSchema,
    ScheduleSchema,
    UserSchema,
    UserScheduleSchema,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def parse_model(schema: type[M], data: Any, path: str) -> M:
    """응답 본문을 와이어 모델로 검증합니다.

    Raises:
        BackendResponseError: 필드 누락/타입 불일치
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error("backend_response_invalid", extra={"path": path, "errors": e.error_count()})
        raise BackendResponseError(f"{path}: {e.error_count()} invalid field(s)") from e


def parse_list(schema: type[M], data: Any, path: str) -> list[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        logger.error("backend_response_invalid", extra={"path": path, "type": type(data).__name__})
        raise BackendResponseError(f"{path}: expected a list")
    return [parse_model(schema, item, path) for item in data]


class HttpRaidGateway(RaidGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def list_raids(self) -> list[Raid]:
        data = await self._client.request("GET", "/raids")
        raids = [schema.to_domain() for schema in parse_list(RaidSchema, data, "/raids")]
        return sorted(raids, key=lambda raid: raid.seq)

    async def create_raid(self, name: str, seq: int | None = None) -> Raid:
        body = RaidSchema(name=name, seq=seq).to_wire()
        data = await self._client.request("POST", "/raids", body)
        if isinstance(data, dict) and "name" in data:
            return parse_model(RaidSchema, data, "/raids").to_domain()
        return Raid(name=name, seq=seq or 0)

    async def delete_raid(self, name: str) -> None:
        await self._client.send("DELETE", f"/raids/{path_segment(name)}")

    async def update_order(self, raids: Sequence[Raid]) -> None:
        body = [RaidSchema.from_domain(raid).to_wire() for raid in raids]
        await self._client.send("PUT", "/raids/order", body)

    async def update_order_single(self, name: str, seq: int) -> None:
        await self._client.send("PUT", f"/raids/{path_segment(name)}/order", {"seq": seq})


class HttpCharacterGateway(CharacterGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def list_characters(self) -> dict[str, list[Character]]:
        """평탄한 캐릭터 목록을 유저별로 그룹화합니다 (유저 내 seq 순)."""
        data = await self._client.request("GET", "/characters")
        grouped: dict[str, list[Character]] = {}
        for schema in parse_list(CharacterSchema, data, "/characters"):
            character = schema.to_domain()
            grouped.setdefault(character.user_id, []).append(character)
        for characters in grouped.values():
            characters.sort(key=lambda c: c.seq)
        return grouped

    async def create_character(self, character: Character) -> None:
        await self._client.send("POST", "/characters", CharacterSchema.from_domain(character).to_wire())

    async def update_character(self, character: Character) -> None:
        await self._client.send(
            "PUT",
            f"/characters/{path_segment(character.name)}",
            CharacterSchema.from_domain(character).to_wire(),
        )

    async def delete_character(self, name: str) -> None:
        await self._client.send("DELETE", f"/characters/{path_segment(name)}")

    async def upsert_characters(self, characters: Sequence[Character]) -> None:
        body = [CharacterSchema.from_domain(character).to_wire() for character in characters]
        await self._client.send("PUT", "/characters/batch", body)


class HttpScheduleGateway(ScheduleGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def list_schedules(self) -> list[ScheduleRecord]:
        data = await self._client.request("GET", "/schedules")
        return [schema.to_domain() for schema in parse_list(ScheduleSchema, data, "/schedules")]

    async def create_schedule(self, record: ScheduleRecord) -> None:
        await self._client.send("POST", "/schedules", ScheduleSchema.from_domain(record).to_wire())

    async def save_all(self, cells: Sequence[CellSnapshot]) -> None:
        body = [ScheduleCellSchema.from_domain(cell).to_wire() for cell in cells]
        await self._client.send("POST", "/schedules/batch", body)

    async def delete_by_cell(self, party: str, raid_name: str) -> None:
        await self._client.send(
            "DELETE",
            f"/schedules/party/{path_segment(party)}/raid/{path_segment(raid_name)}",
        )


class HttpUserGateway(UserGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def list_users(self) -> list[User]:
        data = await self._client.request("GET", "/users")
        return [schema.to_domain() for schema in parse_list(UserSchema, data, "/users")]

    async def create_user(self, user: User) -> User:
        data = await self._client.request("POST", "/users", UserSchema.from_domain(user).to_wire())
        if isinstance(data, dict) and "name" in data:
            return parse_model(UserSchema, data, "/users").to_domain()
        return user

    async def update_user(self, user: User) -> User:
        data = await self._client.request(
            "PUT",
            f"/users/{path_segment(user.name)}",
            UserSchema.from_domain(user).to_wire(),
        )
        if isinstance(data, dict) and "name" in data:
            return parse_model(UserSchema, data, "/users").to_domain()
        return user

    async def delete_user(self, name: str) -> None:
        await self._client.send("DELETE", f"/users/{path_segment(name)}")


class HttpUserScheduleGateway(UserScheduleGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def list_user_schedules(self) -> dict[UserScheduleKey, UserScheduleEntry]:
        data = await self._client.request("GET", "/user-schedules")
        entries: dict[UserScheduleKey, UserScheduleEntry] = {}
        for schema in parse_list(UserScheduleSchema, data, "/user-schedules"):
            entries[schema.key] = schema.to_entry()
        return entries

    async def upsert(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        await self._client.send("POST", "/user-schedules", UserScheduleSchema.from_domain(key, entry).to_wire())

    async def save_all(self, entries: Mapping[UserScheduleKey, UserScheduleEntry]) -> None:
        body = [UserScheduleSchema.from_domain(key, entry).to_wire() for key, entry in entries.items()]
        await self._client.send("POST", "/user-schedules/batch", body)

    async def advance_week(self) -> None:
        await self._client.send("POST", "/user-schedules/advance-week")


class HttpSystemGateway(SystemGateway):
    def __init__(self, client: BackendHttpClient) -> None:
        self._client = client

    async def get_last_updated(self) -> int:
        data = await self._client.request("GET", "/last-updated")
        return parse_model(LastUpdatedSchema, data, "/last-updated").epoch_milli


def build_http_gateways(client: BackendHttpClient) -> BackendGateways:
    """하나의 HTTP 클라이언트를 공유하는 게이트웨이 묶음을 생성합니다."""
    return BackendGateways(
        raids=HttpRaidGateway(client),
        characters=HttpCharacterGateway(client),
        schedules=HttpScheduleGateway(client),
        users=HttpUserGateway(client),
        user_schedules=HttpUserScheduleGateway(client),
        system=HttpSystemGateway(client),
    )
