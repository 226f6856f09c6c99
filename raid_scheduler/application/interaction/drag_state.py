"""Drag State Machine.

포인터 드래그 상호작용 상태 기계입니다.

상태:
- idle
- dragging(kind, payload, source_index?, owner_key?)

규칙:
- start → dragging
- drop / cancel → idle (배치가 거부되어도 무조건 idle로 복귀)
- 현재 kind와 다른 drop은 취소로 처리
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from raid_scheduler.domain.entities import Character
from raid_scheduler.domain.enums import DragKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class DragState:
    """드래그 상태 스냅샷.

    Attributes:
        kind: 드래그 종류 (None이면 idle)
        payload: 드래그 대상 (캐릭터, 레이드 이름, 파티 이름 등)
        source_index: 재정렬 드래그의 원래 위치
        owner_key: 캐릭터 순서 드래그의 소유 유저
    """

    kind: DragKind | None = None
    payload: Any = None
    source_index: int | None = None
    owner_key: str | None = None

    @property
    def is_idle(self) -> bool:
        return self.kind is None


IDLE = DragState()


class DragStateMachine:
    """드래그 상태 기계."""

    def __init__(self) -> None:
        self._state = IDLE

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return not self._state.is_idle

    def start(
        self,
        kind: DragKind,
        payload: Any,
        source_index: int | None = None,
        owner_key: str | None = None,
    ) -> DragState:
        """드래그를 시작합니다. 진행 중인 드래그는 대체됩니다."""
        self._state = DragState(
            kind=kind,
            payload=payload,
            source_index=source_index,
            owner_key=owner_key,
        )
        return self._state

    def start_character(self, character: Character) -> DragState:
        return self.start(DragKind.CHARACTER, character)

    def start_raid_header(self, raid_name: str, index: int) -> DragState:
        return self.start(DragKind.RAID_HEADER, raid_name, source_index=index)

    def start_party_row(self, party: str, index: int) -> DragState:
        return self.start(DragKind.PARTY_ROW, party, source_index=index)

    def start_character_order(self, character: Character, index: int) -> DragState:
        return self.start(
            DragKind.CHARACTER_ORDER,
            character,
            source_index=index,
            owner_key=character.user_id,
        )

    def cancel(self) -> None:
        self._state = IDLE

    def finish(self, expected: DragKind, owner_key: str | None = None) -> DragState | None:
        """드롭 처리: 항상 idle로 복귀하고, 종류(와 소유자)가 맞을 때만 이전 상태를 반환합니다.

        Args:
            expected: 드롭 대상이 받는 드래그 종류
            owner_key: 캐릭터 순서 드롭 대상의 소유 유저

        Returns:
            일치하면 드롭 직전 상태, 아니면 None (취소)
        """
        state = self._state
        self._state = IDLE

        if state.kind is not expected:
            if not state.is_idle:
                logger.debug(
                    "drag_kind_mismatch",
                    extra={"expected": expected.value, "actual": state.kind.value},
                )
            return None
        if owner_key is not None and state.owner_key != owner_key:
            return None
        return state


def move_item(items: Sequence[T], source: int, target: int) -> list[T]:
    """source 위치의 항목을 target 위치로 옮긴 새 리스트를 반환합니다.

    target == source면 원래 순서의 복사본을 반환합니다.
    """
    moved = list(items)
    if source == target:
        return moved
    item = moved.pop(source)
    moved.insert(target, item)
    return moved
