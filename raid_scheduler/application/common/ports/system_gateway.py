"""System Gateway Port."""

from abc import ABC, abstractmethod


class SystemGateway(ABC):
    """시스템 상태 포트."""

    @abstractmethod
    async def get_last_updated(self) -> int:
        """서버 데이터의 마지막 변경 시각 (epoch milliseconds)."""
        ...
