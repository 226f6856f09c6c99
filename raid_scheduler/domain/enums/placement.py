"""Placement Result Enum."""

from enum import Enum


class PlacementResult(str, Enum):
    """캐릭터 배치 판정 결과.

    ALLOW 외의 값은 거부 사유이며, 판정 순서는 배치 정책에서 고정됩니다.
    """

    ALLOW = "allow"
    CELL_FINISHED = "cell-finished"
    DUPLICATE_IN_CELL = "duplicate-in-cell"
    DUPLICATE_RAID_OTHER_PARTY = "duplicate-raid-other-party"
    RAID_LIMIT_EXCEEDED = "raid-limit-exceeded"
    DUPLICATE_USER_IN_CELL = "duplicate-user-in-cell"
    CELL_FULL = "cell-full"

    @property
    def is_allowed(self) -> bool:
        """배치 허용 여부."""
        return self is PlacementResult.ALLOW
