"""Application Exceptions."""

from raid_scheduler.application.common.exceptions.base import ApplicationError
from raid_scheduler.application.common.exceptions.gateway import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)
from raid_scheduler.application.common.exceptions.save import BatchSaveStepError

__all__ = [
    "ApplicationError",
    "BackendRequestError",
    "BackendResponseError",
    "BackendUnavailableError",
    "BatchSaveStepError",
]
