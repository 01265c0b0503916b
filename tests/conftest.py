"""
Pytest configuration and fixtures for Gridboard tests.

This module provides common fixtures used across the unit tests.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from gridboard.catalog import FieldCatalog, MockDataSource
from gridboard.config import BoardConfiguration
from gridboard.dashboards.bindings import ChartBinder
from gridboard.dashboards.editor import DashboardEditor
from gridboard.dashboards.models import (
    Aggregation,
    ChartConfig,
    Placement,
    Widget,
)
from gridboard.dashboards.persistence import InMemoryPersistenceAdapter
from gridboard.dashboards.query import QueryPipeline
from gridboard.dashboards.render import RecordingRenderAdapter


# Core collaborators


@pytest.fixture
def catalog() -> FieldCatalog:
    """Return the built-in field catalog."""
    return FieldCatalog()


@pytest.fixture
def data_source() -> MockDataSource:
    """Return the default mock data source."""
    return MockDataSource()


@pytest.fixture
def pipeline(data_source, catalog) -> QueryPipeline:
    """Return a query pipeline over the default catalog and data."""
    return QueryPipeline(data_source, catalog)


@pytest.fixture
def binder(catalog) -> ChartBinder:
    """Return a chart binder over the default catalog."""
    return ChartBinder(catalog)


# Widget factories


@pytest.fixture
def make_chart(catalog) -> Callable[..., Widget]:
    """
    Return a factory building chart widgets from field ids.

    Example:
        make_chart("Sales", "s2", ["sm1"], visual_type=VisualType.PIE)
    """

    def _make(
        dataset: str = "Sales",
        dimension_id: Optional[str] = "s2",
        measure_ids: Optional[List[str]] = None,
        column_span: int = 4,
        aggregation: Optional[Aggregation] = None,
        **options,
    ) -> Widget:
        measures = [
            catalog.find_by_id(dataset, mid)
            for mid in (["sm1"] if measure_ids is None else measure_ids)
        ]
        config = ChartConfig(
            dataset=dataset,
            dimension=catalog.find_by_id(dataset, dimension_id),
            measures=[m for m in measures if m is not None],
            **options,
        )
        if aggregation is not None and config.primary_measure is not None:
            config.aggregation_per_measure[config.primary_measure.id] = aggregation
        return Widget.new_chart(config, Placement(column_span=column_span))

    return _make


@pytest.fixture
def make_widgets() -> Callable[[List[int]], List[Widget]]:
    """Return a factory building text widgets with the given column spans."""

    def _make(spans: List[int]) -> List[Widget]:
        return [
            Widget.new_text(placement=Placement(column_span=span), widget_id=f"w{i}")
            for i, span in enumerate(spans)
        ]

    return _make


# Editor


@pytest.fixture
def renderer() -> RecordingRenderAdapter:
    """Return a renderer recording every request."""
    return RecordingRenderAdapter()


@pytest.fixture
def persistence() -> InMemoryPersistenceAdapter:
    """Return an in-memory persistence adapter answering immediately."""
    return InMemoryPersistenceAdapter()


@pytest.fixture
def editor(catalog, data_source, persistence, renderer) -> DashboardEditor:
    """Return an editor over in-memory collaborators."""
    return DashboardEditor(
        catalog=catalog,
        data_source=data_source,
        persistence=persistence,
        renderer=renderer,
        config=BoardConfiguration(),
    )


@pytest.fixture
def bound_chart(editor) -> Widget:
    """Return a Sales chart bound to Region x Total Sales on the editor's page."""
    chart = editor.add_chart()
    editor.set_dataset(chart.id, "Sales")
    editor.set_dimension(chart.id, "s2")
    editor.set_measures(chart.id, ["sm1"])
    return chart
