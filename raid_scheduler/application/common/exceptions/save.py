"""Save Pipeline Exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from raid_scheduler.application.common.exceptions.base import ApplicationError

if TYPE_CHECKING:
    from raid_scheduler.application.persistence.save_all import SaveStep


class BatchSaveStepError(ApplicationError):
    """일괄 저장의 특정 단계 실패.

    Attributes:
        step: 실패한 단계
        reason: 원인 메시지
    """

    def __init__(self, step: SaveStep, message: str, reason: str) -> None:
        self.step = step
        self.reason = reason
        super().__init__(f"{message}: {reason}")
