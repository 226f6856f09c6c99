"""초기 로드 실패 시 사용하는 기본 데이터.

로컬 표시용이며 서버로 저장하지 않습니다.
"""

from __future__ import annotations

from raid_scheduler.domain.entities import Character, Raid, User

DEFAULT_USERS = (
    User(name="혀니", color="#9d4edd"),
    User(name="샷건", color="#f4d03f"),
    User(name="도당", color="#85c1e9"),
)

DEFAULT_RAIDS = (
    Raid(name="베히모스", seq=1),
    Raid(name="하기르", seq=2),
    Raid(name="노브", seq=3),
    Raid(name="노르둠", seq=4),
)


def default_characters() -> dict[str, list[Character]]:
    """유저별 기본 캐릭터 (seq는 목록 순서)."""
    owned = {
        "혀니": [("비내", False), ("메딕", True)],
        "샷건": [("샷건", False), ("마리", False), ("붓먹", True)],
        "도당": [("포우", False), ("포포", False)],
    }
    return {
        user_id: [
            Character(name=name, user_id=user_id, is_supporter=is_supporter, seq=index + 1)
            for index, (name, is_supporter) in enumerate(characters)
        ]
        for user_id, characters in owned.items()
    }
