"""스케줄 편집 관련 도메인 예외."""

from raid_scheduler.domain.exceptions.base import DomainError


class DuplicateCharacterError(DomainError):
    """같은 유저에 동일한 이름의 캐릭터가 이미 존재."""

    def __init__(self, user_id: str, name: str) -> None:
        self.user_id = user_id
        self.name = name
        super().__init__(f"이미 존재하는 캐릭터입니다: {user_id}/{name}")


class DuplicateRaidError(DomainError):
    """동일한 이름의 레이드가 이미 존재."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"이미 존재하는 레이드입니다: {name}")


class InvalidWeekNumberError(DomainError):
    """주차는 1 또는 2만 허용."""

    def __init__(self, week_number: int) -> None:
        self.week_number = week_number
        super().__init__(f"유효하지 않은 주차입니다: {week_number} (허용: 1, 2)")


class UnknownUserError(DomainError):
    """존재하지 않는 유저."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"유저를 찾을 수 없습니다: {user_id}")
