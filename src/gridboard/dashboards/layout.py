"""
Grid layout engine for Gridboard.

Row membership is derived from widget order with the same greedy
left-to-right wrapping as a CSS auto grid. The maps are rebuilt from the
current order on every call; nothing is cached across mutations.

Also provides pointer-driven drag reordering and resizing. Only one
widget may be dragged or resized at a time, dashboard-wide.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from gridboard.catalog.mock_data import js_round
from gridboard.dashboards.models import Widget
from gridboard.exceptions import InteractionInProgressError

GRID_COLUMNS = 12

Point = Tuple[float, float]


def clamp_span(span: int, columns: int = GRID_COLUMNS) -> int:
    """Clamp a column span into 1..columns."""
    return max(1, min(columns, span or 1))


def _assign_rows(widgets: Sequence[Widget], columns: int) -> List[Tuple[str, int]]:
    assignments: List[Tuple[str, int]] = []
    row = 1
    consumed = 0
    for w in widgets:
        span = clamp_span(w.placement.column_span, columns)
        if consumed + span > columns:
            row += 1
            consumed = 0
        assignments.append((w.id, row))
        consumed += span
    return assignments


def build_row_map(widgets: Sequence[Widget], columns: int = GRID_COLUMNS) -> Dict[str, int]:
    """
    Map each widget id to its 1-based grid row.

    Widgets with spans [6, 6, 4] land on rows [1, 1, 2].
    """
    return dict(_assign_rows(widgets, columns))


def build_row_end_map(widgets: Sequence[Widget], columns: int = GRID_COLUMNS) -> Dict[int, str]:
    """Map each row number to the id of the last widget on that row."""
    row_end: Dict[int, str] = {}
    for widget_id, row in _assign_rows(widgets, columns):
        row_end[row] = widget_id
    return row_end


def row_of(widgets: Sequence[Widget], widget_id: str, columns: int = GRID_COLUMNS) -> int:
    """Row of a widget; unknown ids report row 1."""
    return build_row_map(widgets, columns).get(widget_id, 1)


def last_widget_of_row(
    widgets: Sequence[Widget],
    row: int,
    columns: int = GRID_COLUMNS,
) -> Optional[str]:
    """Id of the last widget on ``row``, where a full-width panel is spliced in."""
    return build_row_end_map(widgets, columns).get(row)


def row_count(widgets: Sequence[Widget], columns: int = GRID_COLUMNS) -> int:
    assignments = _assign_rows(widgets, columns)
    return assignments[-1][1] if assignments else 0


# =============================================================================
# Geometry
# =============================================================================

@dataclass(frozen=True)
class Rect:
    """Bounding box of a rendered widget, in pixels."""
    x: float
    y: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def resolve_drop_target(
    source_id: str,
    release_point: Point,
    boxes: Mapping[str, Rect],
    dragged_center: Optional[Point] = None,
) -> Optional[str]:
    """
    Find the widget a dragged widget was dropped on.

    The widget whose box contains the release point wins; otherwise the
    widget whose box center is nearest to the dragged widget's center
    (or the release point when that is unknown).

    Returns:
        Target widget id, or None when no other widget exists
    """
    others = {wid: box for wid, box in boxes.items() if wid != source_id}
    if not others:
        return None

    for wid, box in others.items():
        if box.contains(release_point):
            return wid

    origin = dragged_center if dragged_center is not None else release_point
    return min(others, key=lambda wid: _distance(others[wid].center, origin))


def reorder(widgets: Sequence[Widget], source_id: str, target_id: Optional[str]) -> List[Widget]:
    """
    Move the source widget to the target widget's index.

    Every other widget keeps its relative order. Unknown ids, a missing
    target, or a target equal to the source leave the order unchanged.
    """
    ordered = list(widgets)
    if target_id is None or target_id == source_id:
        return ordered
    ids = [w.id for w in ordered]
    if source_id not in ids or target_id not in ids:
        return ordered
    target_index = ids.index(target_id)
    moved = ordered.pop(ids.index(source_id))
    ordered.insert(target_index, moved)
    return ordered


def compute_resize(
    start_columns: int,
    start_rows: int,
    dx: float,
    dy: float,
    column_width: float,
    row_height: float,
    columns: int = GRID_COLUMNS,
) -> Tuple[int, int]:
    """
    Spans for a resize gesture moved by (dx, dy) pixels.

    Returns:
        (column_span clamped into 1..columns, row_span of at least 1)
    """
    col_change = js_round(dx / column_width) if column_width > 0 else 0
    row_change = js_round(dy / row_height) if row_height > 0 else 0
    new_columns = max(1, min(columns, start_columns + col_change))
    new_rows = max(1, start_rows + row_change)
    return new_columns, new_rows


# =============================================================================
# Drag and Resize
# =============================================================================

class DragState(Enum):
    """States of the pointer interaction."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass
class DragItem:
    """
    The widget currently being dragged or resized.

    Tracks pointer positions and the placement captured at start.
    """
    widget_id: str
    state: DragState
    start_position: Point = (0, 0)
    current_position: Point = (0, 0)
    start_offset: Point = (0, 0)
    start_columns: int = 0
    start_rows: int = 0
    started_at: Optional[datetime] = None

    def update_position(self, x: float, y: float) -> None:
        self.current_position = (x, y)

    def get_delta(self) -> Point:
        """Get position delta from start."""
        return (
            self.current_position[0] - self.start_position[0],
            self.current_position[1] - self.start_position[1],
        )

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        return {
            "widget_id": self.widget_id,
            "state": self.state.value,
            "start_position": self.start_position,
            "current_position": self.current_position,
        }


@dataclass
class InteractionResult:
    """Outcome of releasing the pointer."""
    widget_id: str
    state: DragState
    target_id: Optional[str] = None

    @property
    def was_drag(self) -> bool:
        return self.state == DragState.DRAGGING

    @property
    def was_resize(self) -> bool:
        return self.state == DragState.RESIZING


class DragDropManager:
    """
    Manages the single active drag or resize.

    While dragging, the widget floats by a pixel offset that plays no part
    in row computation. Resizing updates spans continuously so the row map
    reflects the gesture as it happens. Releasing keeps whatever placement
    was last applied; there is no revert.
    """

    def __init__(self, columns: int = GRID_COLUMNS, row_height: float = 80):
        self.columns = columns
        self.row_height = row_height
        self.current: Optional[DragItem] = None
        self._widget: Optional[Widget] = None

    @property
    def is_active(self) -> bool:
        return self.current is not None

    @property
    def active_widget_id(self) -> Optional[str]:
        return self.current.widget_id if self.current else None

    def _begin(self, widget: Widget, state: DragState, position: Point) -> DragItem:
        if self.current is not None:
            raise InteractionInProgressError(
                f"Widget {self.current.widget_id} is already {self.current.state.value}"
            )
        self._widget = widget
        self.current = DragItem(
            widget_id=widget.id,
            state=state,
            start_position=position,
            current_position=position,
            start_offset=(widget.placement.offset_x, widget.placement.offset_y),
            start_columns=widget.placement.column_span,
            start_rows=widget.placement.row_span,
            started_at=datetime.now(timezone.utc),
        )
        return self.current

    def start_drag(self, widget: Widget, position: Point) -> DragItem:
        """Start dragging a widget from a pointer position."""
        return self._begin(widget, DragState.DRAGGING, position)

    def start_resize(self, widget: Widget, position: Point) -> DragItem:
        """Start resizing a widget from a pointer position."""
        return self._begin(widget, DragState.RESIZING, position)

    def update(self, position: Point, column_width: Optional[float] = None) -> Optional[DragItem]:
        """
        Apply a pointer move to the active widget.

        Args:
            position: Current pointer position
            column_width: Pixel width of one grid column, needed for resize

        Returns:
            The active drag item, or None when idle
        """
        if self.current is None or self._widget is None:
            return None
        self.current.update_position(*position)
        dx, dy = self.current.get_delta()
        placement = self._widget.placement

        if self.current.state == DragState.DRAGGING:
            placement.offset_x = self.current.start_offset[0] + dx
            placement.offset_y = self.current.start_offset[1] + dy
        elif column_width is not None:
            placement.column_span, placement.row_span = compute_resize(
                self.current.start_columns,
                self.current.start_rows,
                dx,
                dy,
                column_width,
                self.row_height,
                self.columns,
            )
        return self.current

    def end(
        self,
        release_point: Optional[Point] = None,
        boxes: Optional[Mapping[str, Rect]] = None,
    ) -> Optional[InteractionResult]:
        """
        Release the pointer.

        A drag resets the floating offset and resolves its drop target from
        the widget boxes; with no release point or boxes it simply ends.
        Boxes are grid positions, without the floating drag offset.

        Returns:
            The interaction result, or None when idle
        """
        if self.current is None or self._widget is None:
            return None
        item = self.current
        widget = self._widget
        self.current = None
        self._widget = None

        result = InteractionResult(widget_id=item.widget_id, state=item.state)
        if item.state != DragState.DRAGGING:
            return result

        offset = (widget.placement.offset_x, widget.placement.offset_y)
        widget.placement.reset_offset()
        if release_point is None or not boxes:
            return result

        dragged_center = None
        source_box = boxes.get(item.widget_id)
        if source_box is not None:
            dragged_center = source_box.translated(*offset).center
        result.target_id = resolve_drop_target(
            item.widget_id, release_point, boxes, dragged_center
        )
        return result

    def cancel(self) -> None:
        """Drop the active interaction, keeping the last applied placement."""
        self.current = None
        self._widget = None

    def get_state(self) -> Dict[str, object]:
        """Get current drag/resize state."""
        return {
            "is_active": self.current is not None,
            "item": self.current.to_dict() if self.current else None,
        }
