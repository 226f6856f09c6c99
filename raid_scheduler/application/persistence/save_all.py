"""Save All Command.

누적된 로컬 변경사항을 정해진 순서로 서버에 일괄 저장합니다.

단계 (순서 고정):
1. 캐릭터: 새 캐릭터 + 순서 변경된 유저의 캐릭터 일괄 upsert, 이후 삭제
2. 레이드: 새 레이드 생성 (seq = 기존 최대 seq + index + 1), 이후 삭제
3. 레이드 순서: 현재 컬럼 순서대로 seq = index + 1
4. 스케줄: 전체 셀 스냅샷 + 완료 상태
5. 유저 일정: 변경된 항목

첫 실패에서 중단하며, 앞서 성공한 단계는 되돌리지 않습니다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum

from raid_scheduler.application.common.dto import CellSnapshot
from raid_scheduler.application.common.exceptions import ApplicationError, BatchSaveStepError
from raid_scheduler.application.common.ports import BackendGateways
from raid_scheduler.domain.change_tracker import ChangeTracker
from raid_scheduler.domain.entities import Character, Raid
from raid_scheduler.domain.grid_state import GridState
from raid_scheduler.metrics import SAVE_LATENCY, SAVE_TOTAL

logger = logging.getLogger(__name__)


class SaveStep(str, Enum):
    """일괄 저장 단계."""

    CHARACTERS = "characters"
    RAIDS = "raids"
    RAID_ORDER = "raid_order"
    SCHEDULE = "schedule"
    USER_SCHEDULE = "user_schedule"

    @property
    def label(self) -> str:
        return _STEP_LABELS[self]


_STEP_LABELS = {
    SaveStep.CHARACTERS: "캐릭터",
    SaveStep.RAIDS: "레이드",
    SaveStep.RAID_ORDER: "레이드 순서",
    SaveStep.SCHEDULE: "스케줄",
    SaveStep.USER_SCHEDULE: "유저 일정",
}


@dataclass
class SaveAllResult:
    """일괄 저장 결과.

    Attributes:
        saved_steps: 저장에 성공한 단계 (실행 순서)
        failed_step: 실패한 단계 (없으면 None)
        error: 실패 메시지
    """

    saved_steps: list[SaveStep] = field(default_factory=list)
    failed_step: SaveStep | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.failed_step is None

    @property
    def is_partial(self) -> bool:
        return self.failed_step is not None and bool(self.saved_steps)

    @property
    def has_changes(self) -> bool:
        return bool(self.saved_steps) or self.failed_step is not None

    def summary(self) -> str:
        if not self.is_success:
            return self.error or "저장에 실패했습니다"
        if not self.saved_steps:
            return "저장할 변경사항이 없습니다."
        return f"저장이 완료되었습니다! 저장된 항목: {', '.join(step.label for step in self.saved_steps)}"


class SaveAllCommand:
    """일괄 저장 커맨드.

    동시에 두 번 실행되지 않도록 내부 락으로 직렬화합니다.
    """

    def __init__(self, grid: GridState, tracker: ChangeTracker, gateways: BackendGateways) -> None:
        self._grid = grid
        self._tracker = tracker
        self._gateways = gateways
        self._lock = asyncio.Lock()

    async def execute(self) -> SaveAllResult:
        result = SaveAllResult()

        async with self._lock:
            steps = (
                (SaveStep.CHARACTERS, self._tracker.characters_changed, self._save_characters),
                (SaveStep.RAIDS, self._tracker.raids_changed, self._save_raids),
                (SaveStep.RAID_ORDER, self._tracker.raid_order_changed, self._save_raid_order),
                (SaveStep.SCHEDULE, self._tracker.schedule_changed, self._save_schedule),
                (SaveStep.USER_SCHEDULE, self._tracker.user_schedule_changed, self._save_user_schedules),
            )
            for step, changed, run in steps:
                if not changed:
                    continue
                start = time.perf_counter()
                try:
                    await run()
                except BatchSaveStepError as e:
                    SAVE_TOTAL.labels(mode="batch", target=step.value, result="error").inc()
                    logger.error(
                        "save_all_step_failed",
                        extra={"step": step.value, "error": e.message, "saved_steps": [s.value for s in result.saved_steps]},
                    )
                    result.failed_step = e.step
                    result.error = e.message
                    return result
                finally:
                    SAVE_LATENCY.labels(mode="batch", target=step.value).observe(time.perf_counter() - start)

                SAVE_TOTAL.labels(mode="batch", target=step.value, result="success").inc()
                result.saved_steps.append(step)

        logger.info("save_all_completed", extra={"saved_steps": [s.value for s in result.saved_steps]})
        return result

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # 단계
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    async def _save_characters(self) -> None:
        upserts = self._character_upserts()
        if upserts:
            try:
                await self._gateways.characters.upsert_characters(upserts)
            except ApplicationError as e:
                raise BatchSaveStepError(SaveStep.CHARACTERS, "새 캐릭터 저장에 실패했습니다", e.message) from e
            for character in upserts:
                self._tracker.forget_new_character(character.name)
            self._tracker.reordered_users.clear()

        for name in list(self._tracker.deleted_characters):
            try:
                await self._gateways.characters.delete_character(name)
            except ApplicationError as e:
                raise BatchSaveStepError(SaveStep.CHARACTERS, "캐릭터 삭제에 실패했습니다", e.message) from e
            self._tracker.forget_deleted_character(name)

        self._tracker.reset_characters()

    def _character_upserts(self) -> list[Character]:
        """새 캐릭터와 순서가 바뀐 유저의 캐릭터 (그리드의 현재 seq 기준)."""
        new_names = {character.name for character in self._tracker.new_characters}
        upserts: list[Character] = []
        for user_id, characters in self._grid.characters.items():
            for character in characters:
                if user_id in self._tracker.reordered_users or character.name in new_names:
                    upserts.append(character)
        return upserts

    async def _save_raids(self) -> None:
        new_names = {raid.name for raid in self._tracker.new_raids}
        saved_raids = [raid for raid in self._grid.raids if raid.name not in new_names]
        current_max_seq = max((raid.seq for raid in saved_raids), default=0)

        for index, raid in enumerate(list(self._tracker.new_raids)):
            try:
                await self._gateways.raids.create_raid(raid.name, seq=current_max_seq + index + 1)
            except ApplicationError as e:
                raise BatchSaveStepError(SaveStep.RAIDS, f"레이드 '{raid.name}' 추가에 실패했습니다", e.message) from e
            self._tracker.forget_new_raid(raid.name)

        for name in list(self._tracker.deleted_raids):
            try:
                await self._gateways.raids.delete_raid(name)
            except ApplicationError as e:
                raise BatchSaveStepError(SaveStep.RAIDS, f"레이드 '{name}' 삭제에 실패했습니다", e.message) from e
            self._tracker.forget_deleted_raid(name)

    async def _save_raid_order(self) -> None:
        ordered = [Raid(name=raid.name, seq=index + 1) for index, raid in enumerate(self._grid.raids)]
        try:
            await self._gateways.raids.update_order(ordered)
        except ApplicationError as e:
            raise BatchSaveStepError(SaveStep.RAID_ORDER, "레이드 순서 저장에 실패했습니다", e.message) from e
        self._grid.set_raids(ordered)
        self._tracker.reset_raid_order()

    async def _save_schedule(self) -> None:
        cells = self._schedule_snapshot()
        try:
            await self._gateways.schedules.save_all(cells)
        except ApplicationError as e:
            raise BatchSaveStepError(SaveStep.SCHEDULE, "스케줄 저장에 실패했습니다", e.message) from e
        self._tracker.reset_schedule()

    def _schedule_snapshot(self) -> list[CellSnapshot]:
        names = self._grid.schedule_snapshot()
        finished = self._grid.finished_snapshot()
        keys = [*names, *(key for key in finished if key not in names)]
        return [
            CellSnapshot(
                party=key.party,
                raid_name=key.raid,
                character_names=names.get(key, ()),
                is_finished=finished.get(key, False),
            )
            for key in keys
        ]

    async def _save_user_schedules(self) -> None:
        entries = dict(self._tracker.changed_user_schedules)
        try:
            await self._gateways.user_schedules.save_all(entries)
        except ApplicationError as e:
            raise BatchSaveStepError(SaveStep.USER_SCHEDULE, "유저 일정 저장에 실패했습니다", e.message) from e
        for key, entry in entries.items():
            self._tracker.forget_user_schedule(key, entry)
