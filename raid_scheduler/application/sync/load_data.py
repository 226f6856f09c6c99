"""Load Data Service.

백엔드에서 전체 데이터를 다시 읽어 그리드 상태를 통째로 교체합니다.

- 재진입 방지: 로드가 진행 중일 때 들어온 reload()는 진행 중인 로드를 함께 기다립니다.
- 최초 로드 실패 시 컬렉션별로 기본값을 사용하고, 이후 리로드 실패는 현재 값을 유지합니다.
- 로드가 끝나면 변경 추적기를 모두 초기화합니다.

Note:
    리로드는 아직 저장되지 않은 로컬 편집을 덮어쓸 수 있습니다 (추적기도 함께 초기화).
    라이브 채널의 이벤트 주도 리로드와 로컬 편집 사이의 경합은 알려진 단순화입니다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence

from raid_scheduler.application.common.dto import ScheduleRecord
from raid_scheduler.application.common.exceptions import ApplicationError
from raid_scheduler.application.common.ports import BackendGateways
from raid_scheduler.application.sync.defaults import (
    DEFAULT_RAIDS,
    DEFAULT_USERS,
    default_characters,
)
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import (
    AssignedCharacter,
    CellKey,
    Character,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.domain.grid_state import GridState, UserSchedules
from raid_scheduler.metrics import RELOAD_LATENCY, RELOAD_TOTAL

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"


class LoadDataService:
    """전체 로드/리로드 서비스."""

    def __init__(self, grid: GridState, tracker: ChangeTracker, gateways: BackendGateways) -> None:
        self._grid = grid
        self._tracker = tracker
        self._gateways = gateways
        self._task: asyncio.Task[None] | None = None
        self._loaded = False

    @property
    def is_loading(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def has_loaded(self) -> bool:
        return self._loaded

    async def reload(self) -> None:
        """전체 리로드. 진행 중인 로드가 있으면 그 로드에 합류합니다."""
        if self.is_loading:
            RELOAD_TOTAL.labels(result="collapsed").inc()
            logger.debug("reload_collapsed")
        else:
            self._task = asyncio.create_task(self._load())
        # 호출자가 취소되어도 진행 중인 로드는 끝까지 수행
        await asyncio.shield(self._task)

    async def _load(self) -> None:
        initial = not self._loaded
        start = time.perf_counter()
        fallback = False

        try:
            users = await self._gateways.users.list_users()
            self._grid.replace_users(users)
        except ApplicationError as e:
            fallback |= self._fallback("users", e, initial, lambda: self._grid.replace_users(DEFAULT_USERS))

        try:
            raids = await self._gateways.raids.list_raids()
            self._grid.replace_raids(raids)
        except ApplicationError as e:
            fallback |= self._fallback("raids", e, initial, lambda: self._grid.replace_raids(DEFAULT_RAIDS))

        try:
            characters = await self._gateways.characters.list_characters()
            self._grid.replace_characters(characters)
        except ApplicationError as e:
            fallback |= self._fallback(
                "characters", e, initial, lambda: self._grid.replace_characters(default_characters())
            )

        try:
            records = await self._gateways.schedules.list_schedules()
            self._grid.replace_schedule(*build_cells(records, self._grid.characters))
        except ApplicationError as e:
            fallback |= self._fallback("schedules", e, initial, lambda: self._grid.replace_schedule({}, {}))

        await self.reload_user_schedules(initial=initial)

        self._tracker.clear()
        self._loaded = True

        RELOAD_TOTAL.labels(result="fallback" if fallback else "success").inc()
        RELOAD_LATENCY.observe(time.perf_counter() - start)
        logger.info(
            "data_loaded",
            extra={
                "initial": initial,
                "fallback": fallback,
                "raids": len(self._grid.raids),
                "cells": len(self._grid.cells),
            },
        )

    def _fallback(self, collection: str, error: ApplicationError, initial: bool, apply_default) -> bool:
        if initial:
            logger.warning("load_failed_using_defaults", extra={"collection": collection, "error": error.message})
            apply_default()
            return True
        logger.warning("reload_failed_keeping_current", extra={"collection": collection, "error": error.message})
        return False

    async def reload_users(self) -> None:
        """유저 목록만 다시 읽습니다."""
        try:
            self._grid.replace_users(await self._gateways.users.list_users())
        except ApplicationError as e:
            logger.warning("reload_failed_keeping_current", extra={"collection": "users", "error": e.message})

    async def reload_user_schedules(self, initial: bool = False) -> None:
        """유저 일정만 다시 읽습니다 (주차 전환 이후 등)."""
        try:
            entries = await self._gateways.user_schedules.list_user_schedules()
            self._grid.replace_user_schedules(nest_user_schedules(entries))
        except ApplicationError as e:
            self._fallback("user_schedules", e, initial, lambda: self._grid.replace_user_schedules({}))
            return
        self._tracker.reset_user_schedules()


def build_cells(
    records: Sequence[ScheduleRecord],
    characters: Mapping[str, Sequence[Character]],
) -> tuple[dict[CellKey, list[AssignedCharacter]], dict[CellKey, bool]]:
    """평탄화된 스케줄 레코드를 셀 매핑과 완료 상태로 그룹화합니다.

    캐릭터 소유자는 현재 캐릭터 목록에서 찾고, 없으면 "Unknown"으로 둡니다.
    character_name이 없는 레코드는 완료 상태만 반영합니다.
    """
    lookup = {
        character.name: character
        for user_characters in characters.values()
        for character in user_characters
    }

    cells: dict[CellKey, list[AssignedCharacter]] = {}
    finished: dict[CellKey, bool] = {}
    for record in records:
        key = CellKey(record.party, record.raid_name)
        if record.is_finished:
            finished[key] = True
        if not record.character_name:
            continue

        owner = lookup.get(record.character_name)
        cells.setdefault(key, []).append(
            AssignedCharacter(
                name=record.character_name,
                user_id=owner.user_id if owner else UNKNOWN_USER,
                is_supporter=owner.is_supporter if owner else False,
                raid_name=record.raid_name,
                party_name=record.party,
            )
        )
    return cells, finished


def nest_user_schedules(entries: Mapping[UserScheduleKey, UserScheduleEntry]) -> UserSchedules:
    """(user, week, day) 키 매핑을 user → week → day 중첩 구조로 변환합니다."""
    nested: UserSchedules = {}
    for key, entry in entries.items():
        nested.setdefault(key.user_id, {}).setdefault(key.week_number, {})[key.day_of_week] = entry
    return nested
