"""
Render adapter interface for Gridboard.

The library never draws. It hands the renderer a RenderRequest built from
the query result and the chart's visual options, together with a
callback the renderer invokes when the user clicks a chart point.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from gridboard.dashboards.models import (
    DataLabelMode,
    LabelPosition,
    VisualType,
    Widget,
)
from gridboard.dashboards.query import QueryResult

PointClickCallback = Callable[[str], None]

_HORIZONTAL_ALIGN = {
    LabelPosition.LEFT: "right",
    LabelPosition.RIGHT: "left",
}

_VERTICAL_ALIGN = {
    LabelPosition.TOP: "top",
    LabelPosition.BOTTOM: "bottom",
}


def label_alignment(position: LabelPosition) -> Tuple[str, str]:
    """
    Data label alignment for a label position.

    Returns:
        (horizontal align, vertical align); a left position aligns the
        label's right edge to the point and vice versa
    """
    return (
        _HORIZONTAL_ALIGN.get(position, "center"),
        _VERTICAL_ALIGN.get(position, "middle"),
    )


@dataclass
class RenderRequest:
    """
    Everything a renderer needs to draw one chart widget.

    Attributes:
        widget_id: Widget being drawn
        title: Chart title
        visual_type: Visual type
        result: Query pipeline output
        data_label_mode: What data labels show
        label_position: Data label placement
        combination_enabled: Whether a trend overlay was requested
        width: Column span
        height: Row span
    """
    widget_id: str
    title: str
    visual_type: VisualType
    result: QueryResult
    data_label_mode: DataLabelMode = DataLabelMode.SHOW_VALUES
    label_position: LabelPosition = LabelPosition.BOTTOM
    combination_enabled: bool = False
    width: int = 4
    height: int = 3

    @property
    def has_data(self) -> bool:
        return self.result.kind != "no_data"

    @property
    def data_labels_enabled(self) -> bool:
        return self.data_label_mode != DataLabelMode.NONE

    @property
    def label_align(self) -> Tuple[str, str]:
        return label_alignment(self.label_position)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        align, vertical_align = self.label_align
        return {
            "widget_id": self.widget_id,
            "title": self.title,
            "visual_type": self.visual_type.value,
            "result": self.result.to_dict(),
            "data_labels": {
                "enabled": self.data_labels_enabled,
                "mode": self.data_label_mode.value,
                "align": align,
                "vertical_align": vertical_align,
            },
            "combination_enabled": self.combination_enabled,
            "width": self.width,
            "height": self.height,
        }


def build_render_request(widget: Widget, result: QueryResult) -> RenderRequest:
    """Build the render request of a chart widget from its query result."""
    config = widget.chart
    if config is None:
        raise ValueError(f"Widget {widget.id} is not a chart")
    return RenderRequest(
        widget_id=widget.id,
        title=config.title,
        visual_type=config.visual_type,
        result=result,
        data_label_mode=config.data_label_mode,
        label_position=config.label_position,
        combination_enabled=config.combination_enabled,
        width=widget.placement.column_span,
        height=widget.placement.row_span,
    )


class RenderAdapter(ABC):
    """
    Abstract base class for chart renderers.

    Implementations draw a chart for a request and call ``on_point_click``
    with the clicked category label when the user clicks a point.
    """

    @abstractmethod
    def render(self, request: RenderRequest, on_point_click: PointClickCallback) -> None:
        """
        Draw or redraw one chart widget.

        Args:
            request: What to draw
            on_point_click: Callback receiving the clicked category label
        """
        pass

    def clear(self, widget_id: str) -> None:
        """Remove a widget's drawing; renderers without state may ignore this."""
        pass


class RecordingRenderAdapter(RenderAdapter):
    """
    Renderer that records requests instead of drawing.

    Used by tests and headless embeddings. ``click`` simulates a user
    clicking a point on the last drawing of a widget.
    """

    def __init__(self):
        self.requests: List[RenderRequest] = []
        self._latest: Dict[str, RenderRequest] = {}
        self._callbacks: Dict[str, PointClickCallback] = {}

    def render(self, request: RenderRequest, on_point_click: PointClickCallback) -> None:
        self.requests.append(request)
        self._latest[request.widget_id] = request
        self._callbacks[request.widget_id] = on_point_click

    def clear(self, widget_id: str) -> None:
        self._latest.pop(widget_id, None)
        self._callbacks.pop(widget_id, None)

    def latest(self, widget_id: str) -> Optional[RenderRequest]:
        """Most recent request for a widget."""
        return self._latest.get(widget_id)

    def rendered_ids(self) -> List[str]:
        return [r.widget_id for r in self.requests]

    def click(self, widget_id: str, point_label: str) -> bool:
        """
        Simulate a point click on a drawn widget.

        Returns:
            False when the widget has not been drawn
        """
        callback = self._callbacks.get(widget_id)
        if callback is None:
            return False
        callback(point_label)
        return True

    def reset(self) -> None:
        self.requests.clear()
        self._latest.clear()
        self._callbacks.clear()
