"""Change Tracker.

마지막 동기화 이후 서버와 달라진 로컬 변경사항을 엔티티 종류별로 기록합니다.

- 새 캐릭터/삭제 캐릭터는 상호 배타적입니다. 서버가 모르는 캐릭터는 삭제 요청 대상이 아닙니다.
- 레이드 추가/삭제도 같은 규칙을 따릅니다.
- 스케줄 변경은 셀 단위가 아닌 단일 플래그입니다.
- 유저 일정은 (user_id, day, week) 키로 중복 제거되며 나중 값이 앞의 값을 덮어씁니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from raid_scheduler.domain.entities import (
    Character,
    Raid,
    UserScheduleEntry,
    UserScheduleKey,
)


@dataclass
class ChangeTracker:
    """로컬 변경 추적기."""

    new_characters: list[Character] = field(default_factory=list)
    deleted_characters: list[str] = field(default_factory=list)
    reordered_users: set[str] = field(default_factory=set)
    new_raids: list[Raid] = field(default_factory=list)
    deleted_raids: list[str] = field(default_factory=list)
    raid_order_changed: bool = False
    schedule_changed: bool = False
    changed_user_schedules: dict[UserScheduleKey, UserScheduleEntry] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # 캐릭터
    # ------------------------------------------------------------------

    def track_new_character(self, character: Character) -> None:
        self.new_characters.append(character)

    def track_deleted_character(self, name: str) -> bool:
        """캐릭터 삭제를 기록합니다.

        Returns:
            서버 삭제가 필요하면 True, 아직 저장되지 않은 캐릭터였으면 False
        """
        for index, character in enumerate(self.new_characters):
            if character.name == name:
                del self.new_characters[index]
                return False
        if name not in self.deleted_characters:
            self.deleted_characters.append(name)
        return True

    def track_reordered_user(self, user_id: str) -> None:
        self.reordered_users.add(user_id)

    def forget_reordered_user(self, user_id: str) -> None:
        self.reordered_users.discard(user_id)

    def forget_new_character(self, name: str) -> None:
        self.new_characters = [c for c in self.new_characters if c.name != name]

    def forget_deleted_character(self, name: str) -> None:
        self.deleted_characters = [n for n in self.deleted_characters if n != name]

    # ------------------------------------------------------------------
    # 레이드
    # ------------------------------------------------------------------

    def track_new_raid(self, raid: Raid) -> None:
        self.new_raids.append(raid)

    def track_deleted_raid(self, name: str) -> bool:
        """레이드 삭제를 기록합니다. 반환값 의미는 track_deleted_character와 동일."""
        for index, raid in enumerate(self.new_raids):
            if raid.name == name:
                del self.new_raids[index]
                return False
        if name not in self.deleted_raids:
            self.deleted_raids.append(name)
        return True

    def is_new_raid(self, name: str) -> bool:
        return any(raid.name == name for raid in self.new_raids)

    def forget_new_raid(self, name: str) -> None:
        self.new_raids = [r for r in self.new_raids if r.name != name]

    def forget_deleted_raid(self, name: str) -> None:
        self.deleted_raids = [n for n in self.deleted_raids if n != name]

    def mark_raid_order_changed(self) -> None:
        self.raid_order_changed = True

    def reset_raid_order(self) -> None:
        self.raid_order_changed = False

    # ------------------------------------------------------------------
    # 스케줄 / 유저 일정
    # ------------------------------------------------------------------

    def mark_schedule_changed(self) -> None:
        self.schedule_changed = True

    def track_user_schedule(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        # dict 갱신은 기존 키의 위치를 유지한 채 값만 덮어씀
        self.changed_user_schedules[key] = entry

    def forget_user_schedule(self, key: UserScheduleKey, entry: UserScheduleEntry) -> None:
        """저장된 값과 같을 때만 추적 항목을 제거합니다."""
        if self.changed_user_schedules.get(key) == entry:
            del self.changed_user_schedules[key]

    @property
    def user_schedule_changed(self) -> bool:
        return bool(self.changed_user_schedules)

    # ------------------------------------------------------------------
    # 요약 / 초기화
    # ------------------------------------------------------------------

    @property
    def characters_changed(self) -> bool:
        return bool(self.new_characters or self.deleted_characters or self.reordered_users)

    @property
    def raids_changed(self) -> bool:
        return bool(self.new_raids or self.deleted_raids)

    def has_changes(self) -> bool:
        return (
            self.characters_changed
            or self.raids_changed
            or self.raid_order_changed
            or self.schedule_changed
            or self.user_schedule_changed
        )

    def total_changes(self) -> int:
        total = (
            len(self.new_characters)
            + len(self.deleted_characters)
            + len(self.reordered_users)
            + len(self.new_raids)
            + len(self.deleted_raids)
        )
        if self.raid_order_changed:
            total += 1
        if self.schedule_changed:
            total += 1
        if self.user_schedule_changed:
            total += 1
        return total

    def reset_characters(self) -> None:
        self.new_characters = []
        self.deleted_characters = []
        self.reordered_users = set()

    def reset_raids(self) -> None:
        self.new_raids = []
        self.deleted_raids = []
        self.raid_order_changed = False

    def reset_schedule(self) -> None:
        self.schedule_changed = False

    def reset_user_schedules(self) -> None:
        self.changed_user_schedules = {}

    def clear(self) -> None:
        self.reset_characters()
        self.reset_raids()
        self.reset_schedule()
        self.reset_user_schedules()
