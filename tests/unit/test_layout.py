"""
Unit tests for the grid layout engine.

Tests row packing, drop target resolution, reordering, resizing and the
drag/resize interaction manager.
"""

from __future__ import annotations

import pytest

from gridboard.dashboards.layout import (
    DragDropManager,
    DragState,
    Rect,
    build_row_end_map,
    build_row_map,
    compute_resize,
    last_widget_of_row,
    reorder,
    resolve_drop_target,
    row_count,
    row_of,
)
from gridboard.exceptions import InteractionInProgressError


# =============================================================================
# Row packing
# =============================================================================

class TestRowMap:
    """Tests for greedy row assignment."""

    def test_two_halves_then_wrap(self, make_widgets):
        """Test spans [6, 6, 4] land on rows [1, 1, 2]."""
        widgets = make_widgets([6, 6, 4])
        rows = build_row_map(widgets)
        assert [rows[w.id] for w in widgets] == [1, 1, 2]

    def test_full_width_pushes_next(self, make_widgets):
        """Test spans [12, 1] land on rows [1, 2]."""
        widgets = make_widgets([12, 1])
        rows = build_row_map(widgets)
        assert [rows[w.id] for w in widgets] == [1, 2]

    def test_spans_are_clamped(self, make_widgets):
        """Test out-of-range spans are clamped into 1..12."""
        widgets = make_widgets([20, 0, 11])
        rows = build_row_map(widgets)
        assert [rows[w.id] for w in widgets] == [1, 2, 2]

    def test_recomputed_after_mutation(self, make_widgets):
        """Test the map reflects the current spans on every call."""
        widgets = make_widgets([6, 6])
        assert build_row_map(widgets)["w1"] == 1
        widgets[0].placement.column_span = 8
        assert build_row_map(widgets)["w1"] == 2

    def test_row_end_map(self, make_widgets):
        """Test the last widget of each row is recorded."""
        widgets = make_widgets([4, 4, 4, 6, 6, 3])
        assert build_row_end_map(widgets) == {1: "w2", 2: "w4", 3: "w5"}
        assert last_widget_of_row(widgets, 2) == "w4"
        assert last_widget_of_row(widgets, 9) is None

    def test_row_of_unknown_defaults_to_first(self, make_widgets):
        """Test unknown widget ids report row 1."""
        widgets = make_widgets([12, 12])
        assert row_of(widgets, "w1") == 2
        assert row_of(widgets, "missing") == 1

    def test_row_count(self, make_widgets):
        """Test row counting, including the empty canvas."""
        assert row_count([]) == 0
        assert row_count(make_widgets([6, 6, 4])) == 2


# =============================================================================
# Drop target and reorder
# =============================================================================

class TestDropTarget:
    """Tests for resolve_drop_target."""

    @pytest.fixture
    def boxes(self):
        return {
            "a": Rect(0, 0, 100, 100),
            "b": Rect(110, 0, 100, 100),
            "c": Rect(220, 0, 100, 100),
        }

    def test_containing_box_wins(self, boxes):
        """Test the widget under the release point is the target."""
        assert resolve_drop_target("a", (250, 50), boxes) == "c"

    def test_nearest_center_fallback(self, boxes):
        """Test the nearest box center wins when no box contains the point."""
        assert resolve_drop_target("a", (260, 300), boxes) == "c"
        assert resolve_drop_target("c", (150, 300), boxes) == "b"

    def test_dragged_center_used_for_distance(self, boxes):
        """Test the dragged widget's center is preferred for distance."""
        target = resolve_drop_target("a", (500, 500), boxes, dragged_center=(160, 150))
        assert target == "b"

    def test_source_is_never_a_target(self, boxes):
        """Test the dragged widget is excluded."""
        assert resolve_drop_target("a", (50, 50), boxes) == "b"

    def test_no_other_widgets(self):
        """Test None when the dragged widget is alone."""
        assert resolve_drop_target("a", (50, 50), {"a": Rect(0, 0, 100, 100)}) is None


class TestReorder:
    """Tests for reorder."""

    def test_moves_to_target_index(self, make_widgets):
        """Test dropping w0 on w2 moves w0 to index 2, others keep order."""
        widgets = make_widgets([4, 4, 4, 4])
        result = reorder(widgets, "w0", "w2")
        assert [w.id for w in result] == ["w1", "w2", "w0", "w3"]

    def test_moves_backwards(self, make_widgets):
        """Test dragging a later widget onto an earlier one."""
        widgets = make_widgets([4, 4, 4, 4])
        result = reorder(widgets, "w3", "w1")
        assert [w.id for w in result] == ["w0", "w3", "w1", "w2"]

    def test_noop_cases(self, make_widgets):
        """Test same, missing or unknown targets keep the order."""
        widgets = make_widgets([4, 4])
        assert [w.id for w in reorder(widgets, "w0", "w0")] == ["w0", "w1"]
        assert [w.id for w in reorder(widgets, "w0", None)] == ["w0", "w1"]
        assert [w.id for w in reorder(widgets, "w0", "zz")] == ["w0", "w1"]

    def test_input_not_mutated(self, make_widgets):
        """Test reorder returns a new list."""
        widgets = make_widgets([4, 4])
        reorder(widgets, "w0", "w1")
        assert [w.id for w in widgets] == ["w0", "w1"]


class TestComputeResize:
    """Tests for compute_resize."""

    def test_rounds_deltas(self):
        """Test pixel deltas round to whole columns and rows."""
        assert compute_resize(4, 3, 160, 85, column_width=100, row_height=80) == (6, 4)

    def test_half_rounds_up(self):
        """Test a half column rounds up."""
        assert compute_resize(4, 3, 50, -40, column_width=100, row_height=80) == (5, 3)

    def test_clamped(self):
        """Test spans stay within 1..12 columns and at least one row."""
        assert compute_resize(4, 3, 5000, -5000, column_width=100, row_height=80) == (12, 1)
        assert compute_resize(4, 3, -5000, 0, column_width=100, row_height=80) == (1, 3)


# =============================================================================
# Interaction manager
# =============================================================================

class TestDragDropManager:
    """Tests for DragDropManager."""

    def test_drag_sets_offset_and_resets_on_release(self, make_widgets):
        """Test dragging floats the widget and release snaps it back."""
        widgets = make_widgets([4, 4, 4])
        manager = DragDropManager()
        manager.start_drag(widgets[0], (10, 10))
        manager.update((60, 30))
        assert (widgets[0].placement.offset_x, widgets[0].placement.offset_y) == (50, 20)

        boxes = {
            "w0": Rect(0, 0, 100, 100),
            "w1": Rect(110, 0, 100, 100),
            "w2": Rect(220, 0, 100, 100),
        }
        result = manager.end((250, 50), boxes)

        assert result.was_drag
        assert result.target_id == "w2"
        assert widgets[0].placement.offset_x == 0
        assert widgets[0].placement.offset_y == 0
        assert not manager.is_active

    def test_drag_without_boxes_just_ends(self, make_widgets):
        """Test releasing outside any target keeps the order."""
        widgets = make_widgets([4, 4])
        manager = DragDropManager()
        manager.start_drag(widgets[1], (0, 0))
        result = manager.end()
        assert result.widget_id == "w1"
        assert result.target_id is None

    def test_resize_updates_spans_continuously(self, make_widgets):
        """Test spans change on every pointer move, before release."""
        widgets = make_widgets([4])
        manager = DragDropManager(row_height=80)
        manager.start_resize(widgets[0], (0, 0))
        manager.update((100, 0), column_width=100)
        assert widgets[0].placement.column_span == 5
        manager.update((200, 160), column_width=100)
        assert (widgets[0].placement.column_span, widgets[0].placement.row_span) == (6, 5)

        result = manager.end()
        assert result.was_resize
        assert widgets[0].placement.column_span == 6

    def test_single_interaction_at_a_time(self, make_widgets):
        """Test starting a second interaction raises."""
        widgets = make_widgets([4, 4])
        manager = DragDropManager()
        manager.start_drag(widgets[0], (0, 0))
        with pytest.raises(InteractionInProgressError):
            manager.start_resize(widgets[1], (0, 0))

    def test_cancel_keeps_last_placement(self, make_widgets):
        """Test cancelling does not revert a resize."""
        widgets = make_widgets([4])
        manager = DragDropManager()
        manager.start_resize(widgets[0], (0, 0))
        manager.update((200, 0), column_width=100)
        manager.cancel()
        assert widgets[0].placement.column_span == 6
        assert manager.end() is None

    def test_get_state(self, make_widgets):
        """Test the state snapshot."""
        widgets = make_widgets([4])
        manager = DragDropManager()
        assert manager.get_state() == {"is_active": False, "item": None}
        manager.start_drag(widgets[0], (1, 2))
        state = manager.get_state()
        assert state["is_active"] is True
        assert state["item"]["state"] == DragState.DRAGGING.value
