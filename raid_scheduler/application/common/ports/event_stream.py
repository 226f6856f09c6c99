"""Live Event Stream Port.

서버 푸시 채널(SSE)로 수신하는 이벤트와 스트림 추상화입니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum


class LiveEventType(str, Enum):
    """푸시 채널 이벤트 이름."""

    RAID_CREATED = "raid_created"
    RAID_UPDATED = "raid_updated"
    RAID_DELETED = "raid_deleted"
    RAID_BATCH_SAVED = "raid_batch_saved"
    CHARACTER_CREATED = "character_created"
    CHARACTER_UPDATED = "character_updated"
    CHARACTER_DELETED = "character_deleted"
    CHARACTER_BATCH_SAVED = "character_batch_saved"
    SCHEDULE_CREATED = "schedule_created"
    SCHEDULE_UPDATED = "schedule_updated"
    SCHEDULE_DELETED = "schedule_deleted"
    SCHEDULE_BATCH_SAVED = "schedule_batch_saved"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    USER_BATCH_SAVED = "user_batch_saved"
    USER_SCHEDULE_CREATED = "user_schedule_created"
    USER_SCHEDULE_UPDATED = "user_schedule_updated"
    USER_SCHEDULE_DELETED = "user_schedule_deleted"
    USER_SCHEDULE_BATCH_SAVED = "user_schedule_batch_saved"
    WEEK_ADVANCED = "week_advanced"
    HEARTBEAT = "heartbeat"
    LAST_UPDATED = "last_updated"
    CONNECTED = "connected"

    @property
    def is_substantive(self) -> bool:
        """데이터 변경을 의미하는 이벤트인지 (리로드 대상)."""
        return self not in _CONTROL_EVENTS


_CONTROL_EVENTS = frozenset(
    {LiveEventType.HEARTBEAT, LiveEventType.LAST_UPDATED, LiveEventType.CONNECTED}
)


@dataclass(frozen=True, slots=True)
class LiveEvent:
    """푸시 채널 이벤트.

    Attributes:
        type: 이벤트 종류
        data: 원본 data 필드
        event_id: SSE id 필드
    """

    type: LiveEventType
    data: str = ""
    event_id: str | None = None


class EventStream(ABC):
    """열린 푸시 채널 핸들."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[LiveEvent]:
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """연결을 닫습니다. 여러 번 호출해도 안전해야 합니다."""
        ...


class EventStreamSource(ABC):
    """푸시 채널 연결 팩토리."""

    @abstractmethod
    async def open(self) -> EventStream:
        """채널을 엽니다.

        Raises:
            BackendUnavailableError: 연결 실패
            BackendRequestError: 2xx 이외 응답
        """
        ...
