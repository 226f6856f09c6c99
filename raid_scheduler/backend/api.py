"""Reference Backend REST 라우터.

경로는 /api 하위에 마운트됩니다.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from raid_scheduler.backend.store import BackendStore
from raid_scheduler.infrastructure.http.schemas import (
    CharacterSchema,
    LastUpdatedSchema,
    RaidOrderSchema,
    RaidSchema,
    ScheduleCellSchema,
    ScheduleSchema,
    UserSchema,
    UserScheduleSchema,
)

router = APIRouter()


def get_store(request: Request) -> BackendStore:
    return request.app.state.store


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Raids
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/raids", tags=["Raids"])
async def list_raids(store: BackendStore = Depends(get_store)) -> list[dict]:
    return [raid.to_wire() for raid in store.list_raids()]


@router.post("/raids", tags=["Raids"])
async def create_raid(raid: RaidSchema, store: BackendStore = Depends(get_store)) -> dict:
    return store.create_raid(raid).to_wire()


@router.put("/raids/order", tags=["Raids"])
async def update_raid_order(raids: list[RaidSchema], store: BackendStore = Depends(get_store)) -> dict:
    store.update_raid_order(raids)
    return {"message": "레이드 순서가 저장되었습니다."}


@router.put("/raids/{name}/order", tags=["Raids"])
async def update_raid_order_single(
    name: str,
    order: RaidOrderSchema,
    store: BackendStore = Depends(get_store),
) -> dict:
    return store.update_raid_order_single(name, order.seq).to_wire()


@router.delete("/raids/{name}", tags=["Raids"])
async def delete_raid(name: str, store: BackendStore = Depends(get_store)) -> dict:
    store.delete_raid(name)
    return {"message": "레이드가 삭제되었습니다."}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Characters
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/characters", tags=["Characters"])
async def list_characters(store: BackendStore = Depends(get_store)) -> list[dict]:
    return [character.to_wire() for character in store.list_characters()]


@router.post("/characters", tags=["Characters"])
async def create_character(character: CharacterSchema, store: BackendStore = Depends(get_store)) -> dict:
    return store.create_character(character).to_wire()


@router.put("/characters/batch", tags=["Characters"])
async def upsert_characters(
    characters: list[CharacterSchema],
    store: BackendStore = Depends(get_store),
) -> dict:
    store.upsert_characters(characters)
    return {"message": "캐릭터가 저장되었습니다.", "count": len(characters)}


@router.put("/characters/{name}", tags=["Characters"])
async def update_character(
    name: str,
    character: CharacterSchema,
    store: BackendStore = Depends(get_store),
) -> dict:
    return store.update_character(name, character).to_wire()


@router.delete("/characters/{name}", tags=["Characters"])
async def delete_character(name: str, store: BackendStore = Depends(get_store)) -> dict:
    store.delete_character(name)
    return {"message": "캐릭터가 삭제되었습니다."}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Schedules
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/schedules", tags=["Schedules"])
async def list_schedules(store: BackendStore = Depends(get_store)) -> list[dict]:
    return [schedule.to_wire() for schedule in store.list_schedules()]


@router.post("/schedules", tags=["Schedules"])
async def create_schedule(schedule: ScheduleSchema, store: BackendStore = Depends(get_store)) -> dict:
    return store.create_schedule(schedule).to_wire()


@router.post("/schedules/batch", tags=["Schedules"])
async def save_all_schedules(
    cells: list[ScheduleCellSchema],
    store: BackendStore = Depends(get_store),
) -> dict:
    store.save_all_schedules(cells)
    return {"message": "스케줄이 저장되었습니다."}


@router.delete("/schedules/party/{party}/raid/{raid}", tags=["Schedules"])
async def delete_schedules_by_cell(party: str, raid: str, store: BackendStore = Depends(get_store)) -> dict:
    deleted = store.delete_schedules_by_cell(party, raid)
    return {"message": "스케줄이 삭제되었습니다.", "deleted": deleted}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/users", tags=["Users"])
async def list_users(store: BackendStore = Depends(get_store)) -> list[dict]:
    return [user.to_wire() for user in store.list_users()]


@router.post("/users", tags=["Users"])
async def create_user(user: UserSchema, store: BackendStore = Depends(get_store)) -> dict:
    return store.create_user(user).to_wire()


@router.put("/users/{name}", tags=["Users"])
async def update_user(name: str, user: UserSchema, store: BackendStore = Depends(get_store)) -> dict:
    return store.update_user(name, user).to_wire()


@router.delete("/users/{name}", tags=["Users"])
async def delete_user(name: str, store: BackendStore = Depends(get_store)) -> dict:
    store.delete_user(name)
    return {"message": "유저가 삭제되었습니다."}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# User schedules
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/user-schedules", tags=["UserSchedules"])
async def list_user_schedules(store: BackendStore = Depends(get_store)) -> list[dict]:
    return [schedule.to_wire() for schedule in store.list_user_schedules()]


@router.post("/user-schedules", tags=["UserSchedules"])
async def upsert_user_schedule(
    schedule: UserScheduleSchema,
    store: BackendStore = Depends(get_store),
) -> dict:
    return store.upsert_user_schedule(schedule).to_wire()


@router.post("/user-schedules/batch", tags=["UserSchedules"])
async def save_all_user_schedules(
    schedules: list[UserScheduleSchema],
    store: BackendStore = Depends(get_store),
) -> dict:
    store.save_all_user_schedules(schedules)
    return {"message": "일정이 성공적으로 저장되었습니다."}


@router.post("/user-schedules/advance-week", tags=["UserSchedules"])
async def advance_week(store: BackendStore = Depends(get_store)) -> dict:
    store.advance_week()
    return {"message": "주차 전환이 완료되었습니다."}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# System
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@router.get("/last-updated", tags=["System"])
async def last_updated(store: BackendStore = Depends(get_store)) -> dict:
    timestamp = datetime.fromtimestamp(store.last_updated / 1000, tz=timezone.utc).isoformat()
    return LastUpdatedSchema(timestamp=timestamp, epoch_milli=store.last_updated).to_wire()
