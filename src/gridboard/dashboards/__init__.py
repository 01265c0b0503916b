"""
Dashboard canvas for Gridboard.

Provides the canvas core of the dashboard builder:
- Widget, page and drilldown models
- Chart binding setters with automatic titles
- 12-column grid layout with drag reordering and resizing
- Query pipeline turning chart bindings into renderable series
- Page filters shared by every eligible chart
- Drilldown panel placed under the clicked chart's row
- Render and persistence adapter interfaces
- DashboardEditor with multi-page composition and dirty tracking
"""

from gridboard.dashboards.models import (
    # Enums
    WidgetKind,
    VisualType,
    Aggregation,
    DataLabelMode,
    LabelPosition,
    DrilldownStatus,
    # Widgets and pages
    Placement,
    ChartConfig,
    TextConfig,
    Widget,
    PageFilter,
    DrilldownRow,
    DrilldownState,
    Page,
    ALL_VALUES,
)

from gridboard.dashboards.bindings import (
    ChartBinder,
    auto_chart_title,
)

from gridboard.dashboards.layout import (
    GRID_COLUMNS,
    Rect,
    DragState,
    DragItem,
    DragDropManager,
    InteractionResult,
    build_row_map,
    build_row_end_map,
    row_of,
    last_widget_of_row,
    resolve_drop_target,
    reorder,
    compute_resize,
)

from gridboard.dashboards.query import (
    QueryPipeline,
    QueryResult,
    NoDataResult,
    SeriesData,
    SeriesResult,
    CounterResult,
    RegionSlice,
    PieDrilldownResult,
    aggregate,
)

from gridboard.dashboards.filters import (
    PageFilterSet,
    common_filter_columns,
    is_chart_eligible,
)

from gridboard.dashboards.drilldown import (
    DrilldownController,
    build_drilldown_rows,
    classify_share,
    drilldown_panel_row_span,
)

from gridboard.dashboards.render import (
    RenderAdapter,
    RenderRequest,
    RecordingRenderAdapter,
    build_render_request,
    label_alignment,
)

from gridboard.dashboards.persistence import (
    PersistenceAdapter,
    InMemoryPersistenceAdapter,
    FilePersistenceAdapter,
    SaveResponse,
    DashboardDocument,
    build_chart_payload,
    serialize_dashboard,
    deserialize_dashboard,
)

from gridboard.dashboards.editor import (
    DashboardEditor,
    DirtyTracker,
    default_dashboard_page,
)

__all__ = [
    # Models
    "WidgetKind",
    "VisualType",
    "Aggregation",
    "DataLabelMode",
    "LabelPosition",
    "DrilldownStatus",
    "Placement",
    "ChartConfig",
    "TextConfig",
    "Widget",
    "PageFilter",
    "DrilldownRow",
    "DrilldownState",
    "Page",
    "ALL_VALUES",
    # Bindings
    "ChartBinder",
    "auto_chart_title",
    # Layout
    "GRID_COLUMNS",
    "Rect",
    "DragState",
    "DragItem",
    "DragDropManager",
    "InteractionResult",
    "build_row_map",
    "build_row_end_map",
    "row_of",
    "last_widget_of_row",
    "resolve_drop_target",
    "reorder",
    "compute_resize",
    # Query
    "QueryPipeline",
    "QueryResult",
    "NoDataResult",
    "SeriesData",
    "SeriesResult",
    "CounterResult",
    "RegionSlice",
    "PieDrilldownResult",
    "aggregate",
    # Filters
    "PageFilterSet",
    "common_filter_columns",
    "is_chart_eligible",
    # Drilldown
    "DrilldownController",
    "build_drilldown_rows",
    "classify_share",
    "drilldown_panel_row_span",
    # Render
    "RenderAdapter",
    "RenderRequest",
    "RecordingRenderAdapter",
    "build_render_request",
    "label_alignment",
    # Persistence
    "PersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "FilePersistenceAdapter",
    "SaveResponse",
    "DashboardDocument",
    "build_chart_payload",
    "serialize_dashboard",
    "deserialize_dashboard",
    # Editor
    "DashboardEditor",
    "DirtyTracker",
    "default_dashboard_page",
]
