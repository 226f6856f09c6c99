"""Character Entity.

유저가 보유한 게임 캐릭터 엔티티입니다.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Character:
    """캐릭터 엔티티.

    Attributes:
        name: 캐릭터 이름 (소유 유저 내 unique)
        user_id: 소유 유저 이름
        is_supporter: 서포터 여부
        seq: 유저 내 표시/우선순위 순서
    """

    name: str
    user_id: str
    is_supporter: bool = False
    seq: int = 0
