"""
Chart query pipeline for Gridboard.

Turns a chart widget's bindings and the active page filters into the
category/value series a renderer draws. The steps run in a fixed order:

1. fetch categories and their values from the data source
2. sort descending by value when a sort field is set
3. truncate to the row limit
4. apply eligible page filters
5. aggregate (counters and series totals)
6. add the secondary measure and trend overlay series

Filtering runs after limiting, so a filter can shrink the list below the
limit but never reveals rows the limit discarded.

The pie-drilldown visual type skips steps 1-4 and reads a fixed region
breakdown; the counter type returns one aggregated value compared with a
derived previous period.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from gridboard.catalog.fields import FieldCatalog
from gridboard.catalog.mock_data import MockDataSource, js_round
from gridboard.dashboards.filters import is_chart_eligible
from gridboard.dashboards.models import (
    Aggregation,
    ChartConfig,
    PageFilter,
    VisualType,
    Widget,
)

SECONDARY_SCALE = 0.74
TREND_SCALE = 0.82

NO_DATA_MESSAGE = "Select a dimension and a measure to display data"
NO_COUNTER_MEASURE_MESSAGE = "Select a measure to display counter"


def aggregate(values: Sequence[float], aggregation: Union[Aggregation, str]) -> float:
    """
    Reduce values with an aggregation; empty input aggregates to 0.

    >>> aggregate([10, 20, 30], Aggregation.AVG)
    20.0
    """
    if not values:
        return 0
    agg = aggregation if isinstance(aggregation, Aggregation) else Aggregation(aggregation)
    if agg == Aggregation.AVG:
        return sum(values) / len(values)
    if agg == Aggregation.MIN:
        return min(values)
    if agg == Aggregation.MAX:
        return max(values)
    return sum(values)


# =============================================================================
# Results
# =============================================================================

@dataclass
class NoDataResult:
    """Bindings are incomplete; the renderer shows a neutral placeholder."""
    message: str = NO_DATA_MESSAGE
    kind: str = "no_data"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


@dataclass
class SeriesData:
    """
    One drawable series.

    Attributes:
        name: Legend name, e.g. "Sum of Total Sales"
        values: One value per category
        role: primary, secondary or trend
        chart_type: Type override (the trend overlay is a line)
    """
    name: str
    values: List[float]
    role: str = "primary"
    chart_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "values": list(self.values), "role": self.role}
        if self.chart_type:
            data["type"] = self.chart_type
        return data


@dataclass
class SeriesResult:
    """Category/value output for column, bar, line, pie and area charts."""
    categories: List[str]
    series: List[SeriesData]
    total: float = 0
    kind: str = "series"

    @property
    def values(self) -> List[float]:
        """Values of the primary series."""
        return list(self.series[0].values) if self.series else []

    def pairs(self) -> List[Tuple[str, float]]:
        return list(zip(self.categories, self.values))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "categories": list(self.categories),
            "series": [s.to_dict() for s in self.series],
            "total": self.total,
        }


@dataclass
class CounterResult:
    """Single aggregated value with a previous-period comparison."""
    title: str
    current: float
    previous: float
    pct_delta: float
    aggregation: Aggregation
    kind: str = "counter"

    @property
    def is_up(self) -> bool:
        return self.pct_delta >= 0

    @property
    def pct_label(self) -> str:
        sign = "+" if self.is_up else ""
        return f"{sign}{self.pct_delta:.1f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "title": self.title,
            "current": self.current,
            "previous": self.previous,
            "pct_delta": self.pct_delta,
            "pct_label": self.pct_label,
            "aggregation": self.aggregation.value,
        }


@dataclass
class RegionSlice:
    """Top-level slice of the pie-drilldown chart."""
    name: str
    value: float
    drilldown_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "y": self.value, "drilldown": self.drilldown_id}


@dataclass
class PieDrilldownResult:
    """Region slices plus one static store breakdown per region."""
    regions: List[RegionSlice]
    breakdowns: Dict[str, List[Tuple[str, float]]] = field(default_factory=dict)
    kind: str = "pie-drilldown"

    @property
    def categories(self) -> List[str]:
        return [r.name for r in self.regions]

    @property
    def values(self) -> List[float]:
        return [r.value for r in self.regions]

    def breakdown_for(self, region_name: str) -> List[Tuple[str, float]]:
        """Nested drill level of a region, empty for unknown regions."""
        for r in self.regions:
            if r.name == region_name:
                return list(self.breakdowns.get(r.drilldown_id, []))
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "regions": [r.to_dict() for r in self.regions],
            "breakdowns": {k: [list(p) for p in v] for k, v in self.breakdowns.items()},
        }


QueryResult = Union[NoDataResult, SeriesResult, CounterResult, PieDrilldownResult]


REGION_DATA: List[Tuple[str, float, str]] = [
    ("North", 4100, "north"),
    ("South", 3200, "south"),
    ("West", 2700, "west"),
    ("East", 2900, "east"),
]

REGION_BREAKDOWNS: Dict[str, List[Tuple[str, float]]] = {
    "north": [("Store A", 1400), ("Store B", 1200), ("Store C", 900), ("Store D", 600)],
    "south": [("Store E", 1100), ("Store F", 900), ("Store G", 700), ("Store H", 500)],
    "west": [("Store I", 1000), ("Store J", 800), ("Store K", 500), ("Store L", 400)],
    "east": [("Store M", 1200), ("Store N", 900), ("Store O", 500), ("Store P", 300)],
}

REGION_COLUMN = "Region"


# =============================================================================
# Pipeline
# =============================================================================

class QueryPipeline:
    """
    Evaluates chart widgets against the data source.

    Args:
        data_source: Source of categories and values
        catalog: Field catalog for page filter eligibility
    """

    def __init__(
        self,
        data_source: Optional[MockDataSource] = None,
        catalog: Optional[FieldCatalog] = None,
    ):
        self.data_source = data_source or MockDataSource()
        self.catalog = catalog or FieldCatalog()

    def evaluate(
        self,
        widget: Widget,
        page_filters: Iterable[PageFilter] = (),
    ) -> QueryResult:
        """
        Evaluate a chart widget.

        Args:
            widget: Chart widget to evaluate
            page_filters: All page filters; inactive and ineligible ones
                are skipped

        Returns:
            A no-data, series, counter or pie-drilldown result
        """
        config = widget.chart
        if config is None:
            return NoDataResult(message="Text widgets have no data")

        filters = self.eligible_filters(widget, page_filters)

        if config.visual_type == VisualType.PIE_DRILLDOWN:
            return self._pie_drilldown(filters)

        if config.visual_type == VisualType.COUNTER and not config.measures:
            return NoDataResult(message=NO_COUNTER_MEASURE_MESSAGE)
        if not config.has_data_bindings:
            return NoDataResult()

        categories, values = self.fetch(config)
        categories, values = self.sort(config, categories, values)
        categories, values = self.limit(config, categories, values)
        categories, values = self.apply_filters(config, categories, values, filters)

        if config.visual_type == VisualType.COUNTER:
            return self._counter(config, values)
        return self._series(config, categories, values)

    def eligible_filters(
        self,
        widget: Widget,
        page_filters: Iterable[PageFilter],
    ) -> List[PageFilter]:
        """Active page filters whose column belongs to the widget's dataset."""
        return [
            f for f in page_filters
            if f.is_active and is_chart_eligible(widget, f.column, self.catalog)
        ]

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def fetch(self, config: ChartConfig) -> Tuple[List[str], List[float]]:
        """Step 1: categories of the bound dimension and their values."""
        if config.dimension is None:
            return [], []
        categories = self.data_source.get_categorical_values(config.dimension.name)
        values = [self.data_source.category_value(c, i) for i, c in enumerate(categories)]
        return categories, values

    def sort(
        self,
        config: ChartConfig,
        categories: List[str],
        values: List[float],
    ) -> Tuple[List[str], List[float]]:
        """Step 2: stable sort descending by value when a sort field is set."""
        if config.sort_by is None:
            return categories, values
        zipped = sorted(zip(categories, values), key=lambda pair: pair[1], reverse=True)
        return [c for c, _ in zipped], [v for _, v in zipped]

    def limit(
        self,
        config: ChartConfig,
        categories: List[str],
        values: List[float],
    ) -> Tuple[List[str], List[float]]:
        """Step 3: keep the first ``limit`` entries; 0 keeps everything."""
        if 1 <= config.limit <= 10:
            return categories[: config.limit], values[: config.limit]
        return categories, values

    def apply_filters(
        self,
        config: ChartConfig,
        categories: List[str],
        values: List[float],
        filters: Iterable[PageFilter],
    ) -> Tuple[List[str], List[float]]:
        """
        Step 4: apply eligible page filters.

        A filter on the axis dimension keeps matching categories, or leaves
        the list alone when nothing matches. A filter on another dimension
        damps every value by a factor derived from the filter value.
        """
        dimension_name = config.dimension.name if config.dimension else None
        for f in filters:
            if f.column == dimension_name:
                matched = [(c, v) for c, v in zip(categories, values) if c == f.value]
                if matched:
                    categories = [c for c, _ in matched]
                    values = [v for _, v in matched]
            else:
                factor = self.data_source.damping_factor(f.value)
                values = [js_round(v * factor) for v in values]
        return categories, values

    # -------------------------------------------------------------------------
    # Result shapes
    # -------------------------------------------------------------------------

    def _series(
        self,
        config: ChartConfig,
        categories: List[str],
        values: List[float],
    ) -> SeriesResult:
        primary = config.primary_measure
        primary_agg = config.aggregation_for(primary)
        series = [
            SeriesData(
                name=f"{primary_agg.value} of {primary.name if primary else 'Value'}",
                values=list(values),
            )
        ]

        secondary = config.secondary_measure
        if secondary is not None and config.visual_type != VisualType.PIE:
            secondary_agg = config.aggregation_for(secondary)
            series.append(
                SeriesData(
                    name=f"{secondary_agg.value} of {secondary.name}",
                    values=[js_round(v * SECONDARY_SCALE) for v in values],
                    role="secondary",
                )
            )

        if config.combination_enabled and config.visual_type.supports_combination:
            series.append(
                SeriesData(
                    name=f"Trend {primary.name if primary else 'Value'}",
                    values=[js_round(v * TREND_SCALE) for v in values],
                    role="trend",
                    chart_type="line",
                )
            )

        return SeriesResult(
            categories=list(categories),
            series=series,
            total=aggregate(values, primary_agg),
        )

    def _counter(self, config: ChartConfig, values: List[float]) -> CounterResult:
        primary = config.primary_measure
        agg = config.primary_aggregation
        current = aggregate(values, agg)
        trend_seed = len(primary.name) + (config.limit or 0)
        trend_factor = 0.82 + (trend_seed % 7) / 25
        previous = current * trend_factor
        pct_delta = 0.0 if previous == 0 else ((current - previous) / previous) * 100
        return CounterResult(
            title=f"{agg.value} of {primary.name}",
            current=current,
            previous=previous,
            pct_delta=pct_delta,
            aggregation=agg,
        )

    def _pie_drilldown(self, filters: Iterable[PageFilter]) -> PieDrilldownResult:
        regions = [RegionSlice(name=n, value=v, drilldown_id=d) for n, v, d in REGION_DATA]
        for f in filters:
            if f.column == REGION_COLUMN:
                regions = [r for r in regions if r.name == f.value]
            else:
                factor = self.data_source.damping_factor(f.value)
                regions = [
                    RegionSlice(name=r.name, value=js_round(r.value * factor), drilldown_id=r.drilldown_id)
                    for r in regions
                ]
        return PieDrilldownResult(
            regions=regions,
            breakdowns={k: list(v) for k, v in REGION_BREAKDOWNS.items()},
        )
