"""
Gridboard - Dashboard canvas layout and chart query pipeline

The core of a visual dashboard builder: widgets on a 12-column grid,
charts bound to dataset fields, and deterministic series ready for any
chart renderer.

Quick Start:
    >>> from gridboard import DashboardEditor
    >>>
    >>> editor = DashboardEditor()
    >>> chart = editor.add_chart()
    >>> editor.set_dataset(chart.id, "Sales")
    >>> editor.set_dimension(chart.id, "s2")
    >>> editor.set_measures(chart.id, ["sm1"])
    >>> chart.chart.title
    'Total Sales by Region'
"""

from __future__ import annotations

__version__ = "0.1.0"

from gridboard.exceptions import (
    GridboardError,
    WidgetNotFoundError,
    PageNotFoundError,
    InteractionInProgressError,
    PersistenceError,
    ConfigurationError,
)

from gridboard.catalog import (
    Field,
    FieldKind,
    FieldCatalog,
    MockDataSource,
)

from gridboard.config import (
    BoardConfiguration,
    load_config_from_env,
)

from gridboard.observability import (
    BoardLogger,
    configure_logging,
    get_logger,
)

from gridboard.dashboards import (
    WidgetKind,
    VisualType,
    Aggregation,
    Widget,
    Page,
    ChartBinder,
    QueryPipeline,
    DashboardEditor,
    InMemoryPersistenceAdapter,
    FilePersistenceAdapter,
    RecordingRenderAdapter,
)

__all__ = [
    "__version__",
    # Exceptions
    "GridboardError",
    "WidgetNotFoundError",
    "PageNotFoundError",
    "InteractionInProgressError",
    "PersistenceError",
    "ConfigurationError",
    # Catalog
    "Field",
    "FieldKind",
    "FieldCatalog",
    "MockDataSource",
    # Config
    "BoardConfiguration",
    "load_config_from_env",
    # Observability
    "BoardLogger",
    "configure_logging",
    "get_logger",
    # Dashboards
    "WidgetKind",
    "VisualType",
    "Aggregation",
    "Widget",
    "Page",
    "ChartBinder",
    "QueryPipeline",
    "DashboardEditor",
    "InMemoryPersistenceAdapter",
    "FilePersistenceAdapter",
    "RecordingRenderAdapter",
]
