"""드래그 상태 기계 테스트."""

from __future__ import annotations

from raid_scheduler.application.interaction import DragStateMachine, move_item
from raid_scheduler.domain.entities import Character
from raid_scheduler.domain.enums import DragKind


class TestDragStateMachine:
    """상태 전이 테스트."""

    def test_initial_state_is_idle(self):
        drag = DragStateMachine()

        assert drag.state.is_idle is True
        assert drag.is_dragging is False

    def test_start_captures_payload(self):
        drag = DragStateMachine()
        character = Character("a1", "A")

        state = drag.start_character_order(character, 1)

        assert state.kind is DragKind.CHARACTER_ORDER
        assert state.payload == character
        assert state.source_index == 1
        assert state.owner_key == "A"
        assert drag.is_dragging is True

    def test_finish_matching_kind_returns_state(self):
        drag = DragStateMachine()
        drag.start_raid_header("R1", 0)

        state = drag.finish(DragKind.RAID_HEADER)

        assert state is not None and state.payload == "R1"
        assert drag.is_dragging is False

    def test_mismatched_drop_is_cancellation(self):
        """종류가 다른 드롭은 취소로 처리되고 idle로 복귀."""
        drag = DragStateMachine()
        drag.start_party_row("P1", 0)

        assert drag.finish(DragKind.CHARACTER) is None
        assert drag.is_dragging is False

    def test_owner_mismatch_is_cancellation(self):
        drag = DragStateMachine()
        drag.start_character_order(Character("a1", "A"), 0)

        assert drag.finish(DragKind.CHARACTER_ORDER, owner_key="B") is None
        assert drag.is_dragging is False

    def test_finish_while_idle(self):
        assert DragStateMachine().finish(DragKind.CHARACTER) is None

    def test_cancel(self):
        drag = DragStateMachine()
        drag.start_character(Character("a1", "A"))

        drag.cancel()

        assert drag.state.is_idle is True


class TestMoveItem:
    """재정렬 테스트."""

    def test_move_forward(self):
        assert move_item(["A", "B", "C", "D"], 0, 2) == ["B", "C", "A", "D"]

    def test_move_backward(self):
        assert move_item(["A", "B", "C", "D"], 3, 1) == ["A", "D", "B", "C"]

    def test_same_index_is_noop_copy(self):
        items = ["A", "B", "C", "D"]

        moved = move_item(items, 2, 2)

        assert moved == items
        assert moved is not items

    def test_source_is_not_mutated(self):
        items = ("A", "B", "C")

        move_item(items, 0, 2)

        assert items == ("A", "B", "C")
