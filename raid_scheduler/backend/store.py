"""In-memory Backend Store.

레퍼런스 백엔드의 메모리 저장소와 푸시 채널 브로드캐스터입니다.
개발/통합 테스트용이며 영속성은 없습니다.

모든 변경은 last_updated(epoch ms, 단조 증가)를 갱신하고
구독자에게 이벤트 + last_updated 이벤트를 전송합니다.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from raid_scheduler.application.common.ports import LiveEventType
from raid_scheduler.infrastructure.http.schemas import (
    CharacterSchema,
    RaidSchema,
    ScheduleCellSchema,
    ScheduleSchema,
    UserSchema,
    UserScheduleSchema,
)
from raid_scheduler.metrics import BACKEND_EVENTS_BROADCAST, BACKEND_SUBSCRIBERS

logger = logging.getLogger(__name__)

UserScheduleId = tuple[str, str, int]  # (user_id, day_of_week, week_number)


class NotFoundError(Exception):
    """대상 리소스 없음 (404)."""


class ConflictError(Exception):
    """이미 존재하는 리소스 (409)."""


class InvalidRequestError(Exception):
    """잘못된 요청 (400)."""


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Broadcaster
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Subscriber:
    """구독자별 Bounded Queue.

    Drop 정책: Queue가 가득 차면 가장 오래된 이벤트를 제거합니다.
    """

    queue: asyncio.Queue[dict[str, str]] = field(default_factory=lambda: asyncio.Queue(maxsize=100))
    created_at: float = field(default_factory=time.time)

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other

    def put(self, event: dict[str, str]) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            logger.warning("backend_subscriber_queue_dropped")
        self.queue.put_nowait(event)


class Broadcaster:
    """메모리 Fan-out 브로드캐스터."""

    def __init__(self) -> None:
        self._subscribers: set[Subscriber] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscriber:
        subscriber = Subscriber()
        self._subscribers.add(subscriber)
        BACKEND_SUBSCRIBERS.set(len(self._subscribers))
        logger.info("backend_subscriber_added", extra={"subscribers": len(self._subscribers)})
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.discard(subscriber)
        BACKEND_SUBSCRIBERS.set(len(self._subscribers))
        logger.info("backend_subscriber_removed", extra={"subscribers": len(self._subscribers)})

    def publish(self, event: str, data: str) -> None:
        message = {"event": event, "data": data, "id": str(int(time.time() * 1000))}
        for subscriber in list(self._subscribers):
            subscriber.put(message)
        BACKEND_EVENTS_BROADCAST.labels(event=event).inc()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Store
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class BackendStore:
    """메모리 저장소."""

    def __init__(self, broadcaster: Broadcaster | None = None) -> None:
        self.broadcaster = broadcaster or Broadcaster()
        self.raids: dict[str, RaidSchema] = {}
        self.characters: dict[str, CharacterSchema] = {}
        self.schedules: list[ScheduleSchema] = []
        self.users: dict[str, UserSchema] = {}
        self.user_schedules: dict[UserScheduleId, UserScheduleSchema] = {}
        self.last_updated = int(time.time() * 1000)

    def _changed(self, event: LiveEventType, data: Any = "") -> None:
        # 같은 ms 안의 연속 변경도 구분되도록 단조 증가
        self.last_updated = max(int(time.time() * 1000), self.last_updated + 1)
        self.broadcaster.publish(event.value, str(data))
        self.broadcaster.publish(LiveEventType.LAST_UPDATED.value, str(self.last_updated))

    # ─────────────────────────────────────────────────────────────────────
    # Raids
    # ─────────────────────────────────────────────────────────────────────

    def list_raids(self) -> list[RaidSchema]:
        return sorted(self.raids.values(), key=lambda raid: raid.seq or 0)

    def create_raid(self, raid: RaidSchema) -> RaidSchema:
        if raid.name in self.raids:
            raise ConflictError(f"이미 존재하는 레이드입니다: {raid.name}")
        seq = raid.seq if raid.seq is not None else max((r.seq or 0 for r in self.raids.values()), default=0) + 1
        saved = RaidSchema(name=raid.name, seq=seq)
        self.raids[raid.name] = saved
        self._changed(LiveEventType.RAID_CREATED, raid.name)
        return saved

    def delete_raid(self, name: str) -> None:
        if self.raids.pop(name, None) is None:
            raise NotFoundError(f"레이드를 찾을 수 없습니다: {name}")
        self.schedules = [s for s in self.schedules if s.raid_name != name]
        self._changed(LiveEventType.RAID_DELETED, name)

    def update_raid_order(self, raids: list[RaidSchema]) -> None:
        for raid in raids:
            if raid.name in self.raids:
                self.raids[raid.name] = RaidSchema(name=raid.name, seq=raid.seq)
        self._changed(LiveEventType.RAID_BATCH_SAVED, len(raids))

    def update_raid_order_single(self, name: str, seq: int) -> RaidSchema:
        if name not in self.raids:
            raise NotFoundError(f"레이드를 찾을 수 없습니다: {name}")
        self.raids[name] = RaidSchema(name=name, seq=seq)
        self._changed(LiveEventType.RAID_UPDATED, name)
        return self.raids[name]

    # ─────────────────────────────────────────────────────────────────────
    # Characters
    # ─────────────────────────────────────────────────────────────────────

    def list_characters(self) -> list[CharacterSchema]:
        return sorted(self.characters.values(), key=lambda c: (c.user_id, c.seq or 0))

    def create_character(self, character: CharacterSchema) -> CharacterSchema:
        if character.name in self.characters:
            raise ConflictError(f"이미 존재하는 캐릭터입니다: {character.name}")
        self.characters[character.name] = character
        self._changed(LiveEventType.CHARACTER_CREATED, character.name)
        return character

    def update_character(self, name: str, character: CharacterSchema) -> CharacterSchema:
        if name not in self.characters:
            raise NotFoundError(f"캐릭터를 찾을 수 없습니다: {name}")
        self.characters[name] = character
        self._changed(LiveEventType.CHARACTER_UPDATED, name)
        return character

    def delete_character(self, name: str) -> None:
        if self.characters.pop(name, None) is None:
            raise NotFoundError(f"캐릭터를 찾을 수 없습니다: {name}")
        self._changed(LiveEventType.CHARACTER_DELETED, name)

    def upsert_characters(self, characters: list[CharacterSchema]) -> None:
        for character in characters:
            self.characters[character.name] = character
        self._changed(LiveEventType.CHARACTER_BATCH_SAVED, len(characters))

    # ─────────────────────────────────────────────────────────────────────
    # Schedules
    # ─────────────────────────────────────────────────────────────────────

    def list_schedules(self) -> list[ScheduleSchema]:
        return list(self.schedules)

    def create_schedule(self, schedule: ScheduleSchema) -> ScheduleSchema:
        self.schedules.append(schedule)
        self._changed(LiveEventType.SCHEDULE_CREATED, f"{schedule.party}-{schedule.raid_name}")
        return schedule

    def save_all_schedules(self, cells: list[ScheduleCellSchema]) -> None:
        """전체 스케줄 교체. 캐릭터 없이 완료된 셀은 characterName=None 레코드로 저장."""
        schedules: list[ScheduleSchema] = []
        for cell in cells:
            names = [name for name in cell.character_names if name]
            if not names and cell.is_finish == "Y":
                schedules.append(ScheduleSchema(party=cell.party, raid_name=cell.raid_name, is_finish="Y"))
            for name in names:
                schedules.append(
                    ScheduleSchema(
                        party=cell.party,
                        raid_name=cell.raid_name,
                        character_name=name,
                        is_finish=cell.is_finish,
                    )
                )
        self.schedules = schedules
        self._changed(LiveEventType.SCHEDULE_BATCH_SAVED, len(schedules))

    def delete_schedules_by_cell(self, party: str, raid_name: str) -> int:
        before = len(self.schedules)
        self.schedules = [s for s in self.schedules if not (s.party == party and s.raid_name == raid_name)]
        deleted = before - len(self.schedules)
        self._changed(LiveEventType.SCHEDULE_DELETED, f"{party}-{raid_name}")
        return deleted

    # ─────────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────────

    def list_users(self) -> list[UserSchema]:
        return list(self.users.values())

    def create_user(self, user: UserSchema) -> UserSchema:
        if user.name in self.users:
            raise ConflictError(f"이미 존재하는 유저입니다: {user.name}")
        self.users[user.name] = user
        self._changed(LiveEventType.USER_CREATED, user.name)
        return user

    def update_user(self, name: str, user: UserSchema) -> UserSchema:
        if name not in self.users:
            raise NotFoundError(f"유저를 찾을 수 없습니다: {name}")
        self.users[name] = user
        self._changed(LiveEventType.USER_UPDATED, name)
        return user

    def delete_user(self, name: str) -> None:
        if self.users.pop(name, None) is None:
            raise NotFoundError(f"유저를 찾을 수 없습니다: {name}")
        self._changed(LiveEventType.USER_DELETED, name)

    # ─────────────────────────────────────────────────────────────────────
    # User schedules
    # ─────────────────────────────────────────────────────────────────────

    def list_user_schedules(self) -> list[UserScheduleSchema]:
        return list(self.user_schedules.values())

    def upsert_user_schedule(self, schedule: UserScheduleSchema) -> UserScheduleSchema:
        self._put_user_schedule(schedule)
        self._changed(LiveEventType.USER_SCHEDULE_UPDATED, schedule.user_id)
        return schedule

    def save_all_user_schedules(self, schedules: list[UserScheduleSchema]) -> None:
        for schedule in schedules:
            self._put_user_schedule(schedule)
        self._changed(LiveEventType.USER_SCHEDULE_BATCH_SAVED, len(schedules))

    def _put_user_schedule(self, schedule: UserScheduleSchema) -> None:
        if schedule.week_number not in (1, 2):
            raise InvalidRequestError(f"유효하지 않은 주차입니다: {schedule.week_number}")
        self.user_schedules[(schedule.user_id, schedule.day_of_week, schedule.week_number)] = schedule

    def advance_week(self) -> None:
        """2주차 일정을 1주차로 옮기고 2주차를 비웁니다."""
        advanced: dict[UserScheduleId, UserScheduleSchema] = {}
        for (user_id, day, week), schedule in self.user_schedules.items():
            if week == 2:
                advanced[(user_id, day, 1)] = schedule.model_copy(update={"week_number": 1})
        self.user_schedules = advanced
        logger.info("backend_week_advanced", extra={"entries": len(advanced)})
        self._changed(LiveEventType.WEEK_ADVANCED)
