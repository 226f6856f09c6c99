"""User Gateway Port."""

from abc import ABC, abstractmethod

from raid_scheduler.domain.entities import User


class UserGateway(ABC):
    """유저 백엔드 포트."""

    @abstractmethod
    async def list_users(self) -> list[User]:
        ...

    @abstractmethod
    async def create_user(self, user: User) -> User:
        ...

    @abstractmethod
    async def update_user(self, user: User) -> User:
        ...

    @abstractmethod
    async def delete_user(self, name: str) -> None:
        ...
