"""Domain Exceptions."""

from raid_scheduler.domain.exceptions.base import DomainError
from raid_scheduler.domain.exceptions.schedule import (
    DuplicateCharacterError,
    DuplicateRaidError,
    InvalidWeekNumberError,
    UnknownUserError,
)

__all__ = [
    "DomainError",
    "DuplicateCharacterError",
    "DuplicateRaidError",
    "InvalidWeekNumberError",
    "UnknownUserError",
]
