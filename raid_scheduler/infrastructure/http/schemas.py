"""Wire Schemas.

백엔드 API의 JSON 형식 (camelCase, 'Y'/'N' 플래그).
HTTP 게이트웨이와 레퍼런스 백엔드가 함께 사용합니다.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from raid_scheduler.application.common.dto import CellSnapshot, ScheduleRecord
from raid_scheduler.domain.entities import (
    Character,
    Raid,
    User,
    UserScheduleEntry,
    UserScheduleKey,
)

YesNo = Literal["Y", "N"]


def to_flag(value: bool) -> YesNo:
    return "Y" if value else "N"


def from_flag(value: str | None) -> bool:
    return value == "Y"


def _coerce_flag(value: object) -> object:
    if isinstance(value, bool):
        return to_flag(value)
    if value is None:
        return "N"
    return value


# bool도 허용 (True -> "Y")
Flag = Annotated[YesNo, BeforeValidator(_coerce_flag)]


class WireModel(BaseModel):
    """camelCase alias 공용 베이스."""

    model_config = {"populate_by_name": True}

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class RaidSchema(WireModel):
    name: str
    seq: int | None = None

    @classmethod
    def from_domain(cls, raid: Raid) -> RaidSchema:
        return cls(name=raid.name, seq=raid.seq)

    def to_domain(self) -> Raid:
        return Raid(name=self.name, seq=self.seq or 0)


class RaidOrderSchema(WireModel):
    seq: int


class CharacterSchema(WireModel):
    name: str
    user_id: str = Field(alias="userId")
    is_supporter: Flag = Field(default="N", alias="isSupporter")
    seq: int | None = None

    @classmethod
    def from_domain(cls, character: Character) -> CharacterSchema:
        return cls(
            name=character.name,
            user_id=character.user_id,
            is_supporter=to_flag(character.is_supporter),
            seq=character.seq,
        )

    def to_domain(self) -> Character:
        return Character(
            name=self.name,
            user_id=self.user_id,
            is_supporter=from_flag(self.is_supporter),
            seq=self.seq or 0,
        )


class ScheduleSchema(WireModel):
    """스케줄 레코드. 파티 이름은 id 필드로 전송됩니다."""

    party: str = Field(alias="id")
    raid_name: str = Field(alias="raidName")
    character_name: str | None = Field(default=None, alias="characterName")
    is_finish: Flag = Field(default="N", alias="isFinish")

    @classmethod
    def from_domain(cls, record: ScheduleRecord) -> ScheduleSchema:
        return cls(
            party=record.party,
            raid_name=record.raid_name,
            character_name=record.character_name,
            is_finish=to_flag(record.is_finished),
        )

    def to_domain(self) -> ScheduleRecord:
        return ScheduleRecord(
            party=self.party,
            raid_name=self.raid_name,
            character_name=self.character_name,
            is_finished=from_flag(self.is_finish),
        )


class ScheduleCellSchema(WireModel):
    """일괄 저장용 셀."""

    party: str = Field(alias="id")
    raid_name: str = Field(alias="raidName")
    character_names: list[str] = Field(default_factory=list, alias="characterNames")
    is_finish: Flag = Field(default="N", alias="isFinish")

    @classmethod
    def from_domain(cls, cell: CellSnapshot) -> ScheduleCellSchema:
        return cls(
            party=cell.party,
            raid_name=cell.raid_name,
            character_names=list(cell.character_names),
            is_finish=to_flag(cell.is_finished),
        )


class UserSchema(WireModel):
    name: str
    color: str = "#cccccc"

    @classmethod
    def from_domain(cls, user: User) -> UserSchema:
        return cls(name=user.name, color=user.color)

    def to_domain(self) -> User:
        return User(name=self.name, color=self.color)


class UserScheduleSchema(WireModel):
    user_id: str = Field(alias="userId")
    day_of_week: str = Field(alias="dayOfWeek")
    week_number: int = Field(alias="weekNumber")
    schedule_text: str = Field(default="", alias="scheduleText")
    enabled: Flag = "Y"

    @field_validator("schedule_text", mode="before")
    @classmethod
    def blank_text_for_null(cls, value: object) -> object:
        return "" if value is None else value

    @classmethod
    def from_domain(cls, key: UserScheduleKey, entry: UserScheduleEntry) -> UserScheduleSchema:
        return cls(
            user_id=key.user_id,
            day_of_week=key.day_of_week,
            week_number=key.week_number,
            schedule_text=entry.text,
            enabled=to_flag(entry.is_enabled),
        )

    @property
    def key(self) -> UserScheduleKey:
        return UserScheduleKey(
            user_id=self.user_id,
            week_number=self.week_number,
            day_of_week=self.day_of_week,
        )

    def to_entry(self) -> UserScheduleEntry:
        return UserScheduleEntry(text=self.schedule_text, is_enabled=from_flag(self.enabled))


class LastUpdatedSchema(WireModel):
    timestamp: str | None = None
    epoch_milli: int = Field(alias="epochMilli")
