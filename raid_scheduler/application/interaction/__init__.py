"""Interaction Layer."""

from raid_scheduler.application.interaction.drag_state import (
    DragState,
    DragStateMachine,
    move_item,
)
from raid_scheduler.application.interaction.interaction_service import (
    ScheduleInteractionService,
)

__all__ = [
    "DragState",
    "DragStateMachine",
    "ScheduleInteractionService",
    "move_item",
]
