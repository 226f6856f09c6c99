"""Auto Save Service.

편집 직후 저장 파이프라인입니다.

저장 정책:
- 스케줄 셀 변경: 셀 키별 500ms 디바운스, 셀 삭제 후 재생성
- 유저 일정 변경: (user, week, day) 키별 1000ms 디바운스, upsert
- 캐릭터 생성/삭제, 캐릭터 순서, 레이드 순서: 즉시 저장

대상별 in-flight 플래그는 호출 전에 세워지고 성공/실패 모두에서 내려갑니다.
대상별 마지막 에러 메시지는 다음 저장 시작 시 초기화됩니다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from raid_scheduler.application.common.dto import ScheduleRecord
from raid_scheduler.application.common.exceptions import ApplicationError
from raid_scheduler.application.common.ports import AutoSaver, BackendGateways
from raid_scheduler.application.persistence.debouncer import KeyedDebouncer
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import (
    AssignedCharacter,
    CellKey,
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)
from raid_scheduler.domain.enums import SaveTarget
from raid_scheduler.metrics import SAVE_LATENCY, SAVE_TOTAL

logger = logging.getLogger(__name__)

SaveListener = Callable[[SaveTarget], None]


class AutoSaveService(AutoSaver):
    """변경 직후 저장 서비스.

    성공한 저장은 대응하는 변경 추적 항목을 제거합니다 (이미 서버에 반영됨).
    """

    def __init__(
        self,
        gateways: BackendGateways,
        tracker: ChangeTracker,
        schedule_debounce_seconds: float = 0.5,
        user_schedule_debounce_seconds: float = 1.0,
    ) -> None:
        self._gateways = gateways
        self._tracker = tracker
        self._schedule_debouncer = KeyedDebouncer(schedule_debounce_seconds, name="schedule")
        self._user_schedule_debouncer = KeyedDebouncer(user_schedule_debounce_seconds, name="user_schedule")

        self._in_flight: dict[SaveTarget, int] = {target: 0 for target in SaveTarget}
        self.errors: dict[SaveTarget, str | None] = {target: None for target in SaveTarget}

        # 즉시 저장은 대상별로 제출 순서대로 실행 (생성 → 삭제 순서 보장)
        self._locks: dict[SaveTarget, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._failed_cells: set[CellKey] = set()
        # 생성 저장이 실패해 서버에 없는 캐릭터
        self._unsaved_characters: set[str] = set()
        self._listeners: list[SaveListener] = []

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 상태
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    @property
    def saving(self) -> dict[SaveTarget, bool]:
        return {target: count > 0 for target, count in self._in_flight.items()}

    def is_any_saving(self) -> bool:
        return any(count > 0 for count in self._in_flight.values())

    def has_any_error(self) -> bool:
        return any(error is not None for error in self.errors.values())

    def clear_errors(self) -> None:
        for target in self.errors:
            self.errors[target] = None

    def add_listener(self, listener: SaveListener) -> None:
        """저장 완료 시 저장 대상과 함께 호출될 콜백을 등록합니다."""
        self._listeners.append(listener)

    @asynccontextmanager
    async def _saving(self, target: SaveTarget) -> AsyncIterator[None]:
        self._in_flight[target] += 1
        self.errors[target] = None
        start = time.perf_counter()
        try:
            yield
        except ApplicationError as e:
            self.errors[target] = e.message
            SAVE_TOTAL.labels(mode="auto", target=target.value, result="error").inc()
            raise
        else:
            SAVE_TOTAL.labels(mode="auto", target=target.value, result="success").inc()
            for listener in self._listeners:
                listener(target)
        finally:
            self._in_flight[target] -= 1
            SAVE_LATENCY.labels(mode="auto", target=target.value).observe(time.perf_counter() - start)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 개별 저장 (await 가능, 실패 시 예외 전파)
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def save_character_created(self, character: Character) -> None:
        try:
            async with self._saving(SaveTarget.CHARACTER):
                await self._gateways.characters.create_character(character)
        except ApplicationError:
            self._unsaved_characters.add(character.name)
            raise
        self._unsaved_characters.discard(character.name)
        self._tracker.forget_new_character(character.name)
        logger.info("character_created_saved", extra={"character": character.name, "user_id": character.user_id})

    async def save_character_deleted(self, name: str) -> None:
        """캐릭터 삭제를 저장합니다. 생성 저장이 실패했던 캐릭터는 서버에 없으므로 호출하지 않습니다."""
        unsaved = name in self._unsaved_characters
        self._unsaved_characters.discard(name)
        # 일괄 저장으로 뒤늦게 생성된 경우 삭제 추적 목록에 올라가 있음
        if unsaved and name not in self._tracker.deleted_characters:
            logger.info("character_delete_skipped_unsaved", extra={"character": name})
            return

        async with self._saving(SaveTarget.CHARACTER):
            await self._gateways.characters.delete_character(name)
        self._tracker.forget_deleted_character(name)
        logger.info("character_deleted_saved", extra={"character": name})

    async def save_character_order(self, characters: Sequence[Character]) -> None:
        """한 유저의 캐릭터 순서를 일괄 upsert로 저장합니다."""
        if not characters:
            return
        async with self._saving(SaveTarget.CHARACTER):
            await self._gateways.characters.upsert_characters(characters)
        self._tracker.forget_reordered_user(characters[0].user_id)

    async def save_schedule_cell(
        self,
        key: CellKey,
        character_names: Sequence[str],
        finished: bool,
    ) -> None:
        """셀 하나를 저장합니다: (party, raid) 기존 배치 삭제 후 현재 내용으로 재생성.

        캐릭터 없이 완료된 셀은 character_name=None 레코드 하나로 저장합니다.
        """
        records = [
            ScheduleRecord(party=key.party, raid_name=key.raid, character_name=name, is_finished=finished)
            for name in character_names
            if name and name.strip()
        ]
        if not records and finished:
            records.append(ScheduleRecord(party=key.party, raid_name=key.raid, character_name=None, is_finished=True))

        try:
            async with self._saving(SaveTarget.SCHEDULE):
                await self._gateways.schedules.delete_by_cell(key.party, key.raid)
                for record in records:
                    await self._gateways.schedules.create_schedule(record)
        except ApplicationError:
            self._failed_cells.add(key)
            raise

        self._failed_cells.discard(key)
        logger.info("schedule_cell_saved", extra={"cell": str(key), "characters": len(records)})

        # 다른 셀 저장이 남아있지 않을 때만 스케줄 변경 플래그 해제
        if not self._failed_cells and not self._schedule_debouncer.pending_keys:
            self._tracker.reset_schedule()

    async def save_user_schedule(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        async with self._saving(SaveTarget.USER_SCHEDULE):
            await self._gateways.user_schedules.upsert(key, entry)
        self._tracker.forget_user_schedule(key, entry)
        logger.info("user_schedule_saved", extra={"key": str(key)})

    async def save_raid_order(self, raids: Sequence[Raid]) -> None:
        """레이드 순서를 레이드별로 seq = i + 1로 저장합니다. 저장 전인 레이드는 건너뜁니다."""
        skipped = False
        async with self._saving(SaveTarget.RAID):
            for index, raid in enumerate(raids):
                if self._tracker.is_new_raid(raid.name):
                    skipped = True
                    continue
                await self._gateways.raids.update_order_single(raid.name, index + 1)

        # 새 레이드가 있으면 일괄 저장에서 전체 순서를 다시 보내야 함
        if not skipped:
            self._tracker.reset_raid_order()
        logger.info("raid_order_saved", extra={"raids": len(raids)})

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # AutoSaver 포트 (동기 트리거)
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def schedule_cell_changed(
        self,
        key: CellKey,
        characters: Sequence[AssignedCharacter],
        finished: bool,
    ) -> None:
        names = tuple(assigned.name for assigned in characters)
        self._schedule_debouncer.schedule(key, lambda: self.save_schedule_cell(key, names, finished))

    def user_schedule_changed(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        self._user_schedule_debouncer.schedule(key, lambda: self.save_user_schedule(key, entry))

    def character_created(self, character: Character) -> None:
        self._spawn(SaveTarget.CHARACTER, self.save_character_created(character))

    def character_deleted(self, name: str) -> None:
        self._spawn(SaveTarget.CHARACTER, self.save_character_deleted(name))

    def characters_reordered(self, characters: Sequence[Character]) -> None:
        self._spawn(SaveTarget.CHARACTER, self.save_character_order(tuple(characters)))

    def raid_order_changed(self, raids: Sequence[Raid]) -> None:
        self._spawn(SaveTarget.RAID, self.save_raid_order(tuple(raids)))

    def _spawn(self, target: SaveTarget, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(self._run_immediate(target, coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_immediate(self, target: SaveTarget, coro: Coroutine[Any, Any, None]) -> None:
        lock = self._locks.setdefault(target, asyncio.Lock())
        async with lock:
            try:
                await coro
            except ApplicationError as e:
                logger.warning("auto_save_failed", extra={"target": target.value, "error": e.message})

    async def drain(self) -> None:
        """예약/진행 중인 모든 저장이 끝날 때까지 기다립니다."""
        while self._tasks or self._schedule_debouncer.has_pending() or self._user_schedule_debouncer.has_pending():
            await asyncio.gather(*self._tasks, return_exceptions=True)
            await self._schedule_debouncer.wait_idle()
            await self._user_schedule_debouncer.wait_idle()
