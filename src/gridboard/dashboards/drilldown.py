"""
Drilldown panel for Gridboard.

Clicking a point on a bound chart opens a detail table under the row that
holds the chart. The panel spans the full grid width and is placed right
after the last widget of the source row. Each page has at most one open
drilldown; switching pages swaps in the target page's state.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from gridboard.catalog.mock_data import char_code_seed
from gridboard.config.board_config import DrilldownThresholds
from gridboard.dashboards.layout import GRID_COLUMNS, last_widget_of_row, row_of
from gridboard.dashboards.models import (
    DrilldownRow,
    DrilldownState,
    DrilldownStatus,
    VisualType,
    Widget,
)
from gridboard.observability.logging import get_logger

logger = get_logger("dashboards.drilldown")

DETAIL_LABELS = ("Enterprise", "SMB", "Retail", "Online", "Wholesale")
DETAIL_OWNERS = ("Ops", "Sales", "Finance", "Regional", "HQ")


def classify_share(
    value: float,
    total: float,
    thresholds: Optional[DrilldownThresholds] = None,
) -> DrilldownStatus:
    """
    Status of a row from its share of the total.

    Both comparisons are strict, so a share of exactly 30% or exactly 18%
    is Watch.
    """
    thresholds = thresholds or DrilldownThresholds()
    if value > total * thresholds.healthy_above:
        return DrilldownStatus.HEALTHY
    if value < total * thresholds.risk_below:
        return DrilldownStatus.RISK
    return DrilldownStatus.WATCH


def build_drilldown_rows(
    point_label: str,
    measure_name: str,
    thresholds: Optional[DrilldownThresholds] = None,
) -> List[DrilldownRow]:
    """
    Detail rows for a clicked point.

    Values derive from the character codes of the point label and the
    primary measure name, so the same click always yields the same table.
    """
    seed = char_code_seed(point_label + measure_name)
    values = [650 + ((seed + i * 13) % 7) * 180 for i in range(len(DETAIL_LABELS))]
    total = sum(values) or 1

    rows = []
    for detail, owner, value in zip(DETAIL_LABELS, DETAIL_OWNERS, values):
        rows.append(
            DrilldownRow(
                detail=f"{point_label} / {detail}",
                measure_value=value,
                contribution_pct=f"{value / total * 100:.1f}%",
                status=classify_share(value, total, thresholds),
                owner=owner,
            )
        )
    return rows


def drilldown_panel_row_span(row_count: int) -> int:
    """Grid rows covered by the panel for a table of ``row_count`` rows."""
    if row_count <= 4:
        return 5
    if row_count <= 8:
        return 6
    return 7


def can_drill(widget: Widget) -> bool:
    """Whether a point click on ``widget`` opens the drilldown panel."""
    config = widget.chart
    if config is None or config.visual_type == VisualType.PIE_DRILLDOWN:
        return False
    return config.has_data_bindings


class DrilldownController:
    """
    Open/closed state of the drilldown panel on the current page.

    Args:
        thresholds: Status thresholds for the detail rows
        columns: Grid columns, for locating the source row
    """

    def __init__(
        self,
        thresholds: Optional[DrilldownThresholds] = None,
        columns: int = GRID_COLUMNS,
    ):
        self.thresholds = thresholds or DrilldownThresholds()
        self.columns = columns
        self.state: Optional[DrilldownState] = None

    @property
    def is_open(self) -> bool:
        return self.state is not None

    def open(
        self,
        widget: Widget,
        widgets: Sequence[Widget],
        point_label: str,
    ) -> Optional[DrilldownState]:
        """
        Open the panel for a clicked chart point.

        Args:
            widget: Chart whose point was clicked
            widgets: Widgets of the page in canvas order
            point_label: Category of the clicked point

        Returns:
            The new state, or None when the chart cannot drill
        """
        if not can_drill(widget):
            return None
        config = widget.chart
        source_row = row_of(widgets, widget.id, self.columns)
        rows = build_drilldown_rows(point_label, config.primary_measure.name, self.thresholds)

        self.state = DrilldownState(
            source_widget_id=widget.id,
            source_row=source_row,
            point_label=point_label,
            dimension_label=config.dimension.name,
            measure_label=" / ".join(m.name for m in config.measures),
            aggregation_label=config.primary_aggregation.value,
            rows=rows,
        )
        logger.drilldown_opened(
            widget.id,
            point_label,
            source_row,
            eligible_widget_ids=[w.id for w in widgets if w.chart is not None and w.chart.has_data_bindings],
        )
        return self.state

    def close(self) -> None:
        self.state = None

    def close_if_source(self, widget_id: str) -> bool:
        """Close the panel when ``widget_id`` opened it."""
        if self.state is not None and self.state.source_widget_id == widget_id:
            self.state = None
            return True
        return False

    def swap(self, state: Optional[DrilldownState]) -> Optional[DrilldownState]:
        """Install another page's state, returning the outgoing one."""
        previous = self.state
        self.state = state
        return previous

    def should_render_after(self, widget_id: str, widgets: Sequence[Widget]) -> bool:
        """
        Whether the panel is placed immediately after ``widget_id``.

        The source row is derived from the current order, so the panel
        follows its chart through drags and removals above it.
        """
        if self.state is None:
            return False
        self.state.source_row = row_of(widgets, self.state.source_widget_id, self.columns)
        return last_widget_of_row(widgets, self.state.source_row, self.columns) == widget_id

    def panel_row_span(self) -> int:
        if self.state is None:
            return 0
        return drilldown_panel_row_span(len(self.state.rows))
