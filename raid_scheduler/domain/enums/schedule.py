"""Schedule Domain Enums."""

from enum import Enum


class DragKind(str, Enum):
    """드래그 대상 종류."""

    CHARACTER = "character"
    RAID_HEADER = "raid-header"
    PARTY_ROW = "party-row"
    CHARACTER_ORDER = "character-order"


class SaveTarget(str, Enum):
    """저장 대상 엔티티 종류 (저장 상태/에러 추적 단위)."""

    CHARACTER = "character"
    SCHEDULE = "schedule"
    USER_SCHEDULE = "user_schedule"
    RAID = "raid"
