"""
Dashboard canvas data models for Gridboard.

Provides data structures for widgets, pages, page filters, and the
drilldown panel state. A widget is a tagged variant: a chart carrying a
ChartConfig or a text block carrying a TextConfig, sharing placement.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from gridboard.catalog.fields import Field


# =============================================================================
# Enums
# =============================================================================

class WidgetKind(Enum):
    """Kinds of canvas widgets."""
    CHART = "chart"
    TEXT = "text"


class VisualType(Enum):
    """Chart visual types understood by the render adapter."""
    COLUMN = "column"
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    AREA = "area"
    PIE_DRILLDOWN = "pie-drilldown"
    COUNTER = "counter"

    @property
    def supports_combination(self) -> bool:
        """Whether a trend overlay may be drawn over this type."""
        return self in (VisualType.COLUMN, VisualType.BAR)


class Aggregation(Enum):
    """Aggregation applied to a measure."""
    SUM = "Sum"
    AVG = "Avg"
    MIN = "Min"
    MAX = "Max"


class DataLabelMode(Enum):
    """What data labels show on chart points."""
    SHOW_VALUES = "showValues"
    PERCENTAGE = "percentage"
    NONE = "none"


class LabelPosition(Enum):
    """Placement of data labels relative to a point."""
    TOP = "Top"
    BOTTOM = "Btm"
    LEFT = "Lft"
    RIGHT = "Rgt"


class DrilldownStatus(Enum):
    """Health status of a drilldown breakdown row."""
    HEALTHY = "Healthy"
    WATCH = "Watch"
    RISK = "Risk"


ALL_VALUES = "All"


def generate_widget_id() -> str:
    """Generate a process-unique widget id."""
    return "el-" + uuid.uuid4().hex[:9]


def generate_page_id() -> str:
    """Generate a page id."""
    return "page-" + uuid.uuid4().hex[:8]


# =============================================================================
# Widget Configurations
# =============================================================================

@dataclass
class Placement:
    """
    Grid placement of a widget.

    The widget's order is its index in the page list and its row is
    derived from that order by the layout engine; neither is stored here.

    Attributes:
        column_span: Columns covered, 1..12
        row_span: Grid rows covered, at least 1
        offset_x: Free-floating drag offset in pixels
        offset_y: Free-floating drag offset in pixels
    """
    column_span: int = 4
    row_span: int = 3
    offset_x: float = 0
    offset_y: float = 0

    def reset_offset(self) -> None:
        self.offset_x = 0
        self.offset_y = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "column_span": self.column_span,
            "row_span": self.row_span,
            "offset": (self.offset_x, self.offset_y),
        }


@dataclass
class ChartConfig:
    """
    Field bindings and visual options of a chart widget.

    Setters in ``gridboard.dashboards.bindings`` keep the invariants:
    the dimension slots hold dimension fields, ``measures`` holds at most
    two measure fields and ``limit`` stays within 0..10.
    """
    dataset: str = "Invoices"
    dimension: Optional[Field] = None
    measures: List[Field] = field(default_factory=list)
    aggregation_per_measure: Dict[str, Aggregation] = field(default_factory=dict)
    legend: Optional[Field] = None
    drill_down_field: Optional[Field] = None
    columns_field: Optional[Field] = None
    date_column: Optional[Field] = None
    sort_by: Optional[Field] = None
    condition_string: str = ""
    limit: int = 4
    data_label_mode: DataLabelMode = DataLabelMode.SHOW_VALUES
    combination_enabled: bool = False
    label_position: LabelPosition = LabelPosition.BOTTOM
    visual_type: VisualType = VisualType.COLUMN
    title: str = "New Chart"
    title_is_user_edited: bool = False

    @property
    def primary_measure(self) -> Optional[Field]:
        return self.measures[0] if self.measures else None

    @property
    def secondary_measure(self) -> Optional[Field]:
        return self.measures[1] if len(self.measures) > 1 else None

    @property
    def measure_ids(self) -> List[str]:
        return [m.id for m in self.measures]

    def aggregation_for(self, measure: Optional[Field]) -> Aggregation:
        """Aggregation configured for a measure, Sum when absent."""
        if measure is None:
            return Aggregation.SUM
        return self.aggregation_per_measure.get(measure.id, Aggregation.SUM)

    @property
    def primary_aggregation(self) -> Aggregation:
        return self.aggregation_for(self.primary_measure)

    @property
    def has_data_bindings(self) -> bool:
        """A dimension and at least one measure are bound."""
        return self.dimension is not None and len(self.measures) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (field ids, for debugging and state dumps)."""
        def _fid(f: Optional[Field]) -> Optional[str]:
            return f.id if f else None

        return {
            "dataset": self.dataset,
            "dimension": _fid(self.dimension),
            "measures": self.measure_ids,
            "aggregation_per_measure": {
                k: v.value for k, v in self.aggregation_per_measure.items()
            },
            "legend": _fid(self.legend),
            "drill_down_field": _fid(self.drill_down_field),
            "columns_field": _fid(self.columns_field),
            "date_column": _fid(self.date_column),
            "sort_by": _fid(self.sort_by),
            "condition_string": self.condition_string,
            "limit": self.limit,
            "data_label_mode": self.data_label_mode.value,
            "combination_enabled": self.combination_enabled,
            "label_position": self.label_position.value,
            "visual_type": self.visual_type.value,
            "title": self.title,
            "title_is_user_edited": self.title_is_user_edited,
        }


@dataclass
class TextConfig:
    """Content and styling of a text widget."""
    content: str = "Sample text widget. Click to edit content, font size and color."
    font_size: int = 14
    color: str = "#1e293b"
    title: str = "Info Text"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "content": self.content,
            "font_size": self.font_size,
            "color": self.color,
            "title": self.title,
        }


# =============================================================================
# Widget
# =============================================================================

@dataclass
class Widget:
    """
    A chart or text block placed on the canvas.

    Exactly one of ``chart`` and ``text`` is set, matching ``kind``.
    Search text typed into the field pickers is scratch state owned by
    the widget, so it disappears with it.

    Attributes:
        id: Process-unique identifier, stable for the widget lifetime
        kind: Chart or text
        placement: Grid placement
        chart: Chart bindings (chart widgets only)
        text: Text content (text widgets only)
        category_search: Dimension picker search text
        value_search: Measure picker search text
    """
    id: str
    kind: WidgetKind
    placement: Placement = field(default_factory=Placement)
    chart: Optional[ChartConfig] = None
    text: Optional[TextConfig] = None
    category_search: str = ""
    value_search: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = generate_widget_id()
        if self.kind == WidgetKind.CHART and (self.chart is None or self.text is not None):
            raise ValueError("A chart widget carries a ChartConfig and no TextConfig")
        if self.kind == WidgetKind.TEXT and (self.text is None or self.chart is not None):
            raise ValueError("A text widget carries a TextConfig and no ChartConfig")

    @classmethod
    def new_chart(
        cls,
        config: Optional[ChartConfig] = None,
        placement: Optional[Placement] = None,
        widget_id: str = "",
    ) -> Widget:
        """Create a chart widget."""
        return cls(
            id=widget_id,
            kind=WidgetKind.CHART,
            placement=placement or Placement(),
            chart=config or ChartConfig(),
        )

    @classmethod
    def new_text(
        cls,
        config: Optional[TextConfig] = None,
        placement: Optional[Placement] = None,
        widget_id: str = "",
    ) -> Widget:
        """Create a text widget."""
        return cls(
            id=widget_id,
            kind=WidgetKind.TEXT,
            placement=placement or Placement(),
            text=config or TextConfig(),
        )

    @property
    def is_chart(self) -> bool:
        return self.kind == WidgetKind.CHART

    @property
    def is_text(self) -> bool:
        return self.kind == WidgetKind.TEXT

    @property
    def title(self) -> str:
        if self.chart is not None:
            return self.chart.title
        return self.text.title if self.text is not None else ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "placement": self.placement.to_dict(),
        }
        if self.chart is not None:
            data["chart"] = self.chart.to_dict()
        if self.text is not None:
            data["text"] = self.text.to_dict()
        return data


# =============================================================================
# Page Filters and Drilldown
# =============================================================================

@dataclass
class PageFilter:
    """
    A dashboard-wide value constraint on one dimension column.

    A value of "All" leaves the filter inactive.
    """
    column: str
    value: str = ALL_VALUES

    @property
    def is_active(self) -> bool:
        return self.value != ALL_VALUES

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {"column": self.column, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PageFilter:
        """Create from dictionary; a missing or empty value is "All"."""
        return cls(column=str(data["column"]), value=str(data.get("value") or ALL_VALUES))


@dataclass
class DrilldownRow:
    """One row of the drilldown detail table."""
    detail: str
    measure_value: float
    contribution_pct: str
    status: DrilldownStatus
    owner: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "detail": self.detail,
            "measure_value": self.measure_value,
            "contribution_pct": self.contribution_pct,
            "status": self.status.value,
            "owner": self.owner,
        }


@dataclass
class DrilldownState:
    """
    An open drilldown panel.

    Attributes:
        source_widget_id: Chart whose point was clicked
        source_row: Grid row of the source chart when the panel opened
        point_label: Category of the clicked point
        dimension_label: Name of the bound dimension
        measure_label: Bound measure names joined by " / "
        aggregation_label: Aggregation of the primary measure
        rows: Detail rows
    """
    source_widget_id: str
    source_row: int
    point_label: str
    dimension_label: str
    measure_label: str
    aggregation_label: str
    rows: List[DrilldownRow] = field(default_factory=list)

    @property
    def subtitle(self) -> str:
        return f"{self.aggregation_label} of {self.measure_label} by {self.dimension_label}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_widget_id": self.source_widget_id,
            "source_row": self.source_row,
            "point_label": self.point_label,
            "dimension_label": self.dimension_label,
            "measure_label": self.measure_label,
            "aggregation_label": self.aggregation_label,
            "rows": [r.to_dict() for r in self.rows],
        }


# =============================================================================
# Page
# =============================================================================

@dataclass
class Page:
    """
    One page of a dashboard.

    Attributes:
        id: Unique identifier
        name: Display name
        widgets: Widgets in canvas order
        drilldown: The page's open drilldown, if any
    """
    id: str
    name: str
    widgets: List[Widget] = field(default_factory=list)
    drilldown: Optional[DrilldownState] = None

    def __post_init__(self):
        if not self.id:
            self.id = generate_page_id()

    def get_widget(self, widget_id: str) -> Optional[Widget]:
        """Get a widget by ID."""
        for w in self.widgets:
            if w.id == widget_id:
                return w
        return None

    def order_index(self, widget_id: str) -> int:
        """Position of a widget in the page order, -1 when absent."""
        for i, w in enumerate(self.widgets):
            if w.id == widget_id:
                return i
        return -1

    def chart_widgets(self) -> List[Widget]:
        return [w for w in self.widgets if w.is_chart]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "widget_count": len(self.widgets),
            "widgets": [w.to_dict() for w in self.widgets],
            "drilldown": self.drilldown.to_dict() if self.drilldown else None,
        }
