"""
Page filters for Gridboard.

A page filter constrains every eligible chart on the dashboard to one
value of a dimension column. A chart is eligible when its dataset has a
dimension with the filter's column name. Selectable columns are those
shared by every dataset in use by a chart.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from gridboard.catalog.fields import FieldCatalog
from gridboard.catalog.mock_data import MockDataSource
from gridboard.dashboards.models import ALL_VALUES, PageFilter, Widget


def is_chart_eligible(widget: Widget, column: str, catalog: FieldCatalog) -> bool:
    """Whether a page filter on ``column`` applies to ``widget``."""
    if widget.chart is None:
        return False
    return column in catalog.dimension_names(widget.chart.dataset)


def common_filter_columns(widgets: Iterable[Widget], catalog: FieldCatalog) -> List[str]:
    """
    Dimension names shared by every dataset used by a chart, sorted.

    Returns an empty list when there are no charts.
    """
    datasets: List[str] = []
    for w in widgets:
        if w.chart is not None and w.chart.dataset not in datasets:
            datasets.append(w.chart.dataset)
    if not datasets:
        return []

    common = catalog.dimension_names(datasets[0])
    for dataset in datasets[1:]:
        dims = set(catalog.dimension_names(dataset))
        common = [column for column in common if column in dims]
    return sorted(common, key=str.lower)


class PageFilterSet:
    """
    Ordered set of page filters, one per column.

    Args:
        catalog: Field catalog for eligibility checks
        data_source: Source of selectable filter values
    """

    def __init__(
        self,
        catalog: FieldCatalog,
        data_source: MockDataSource,
        filters: Optional[Iterable[PageFilter]] = None,
    ):
        self.catalog = catalog
        self.data_source = data_source
        self._filters: List[PageFilter] = []
        for f in filters or []:
            if self.get(f.column) is None:
                self._filters.append(PageFilter(column=f.column, value=f.value))

    def __iter__(self):
        return iter(list(self._filters))

    def __len__(self) -> int:
        return len(self._filters)

    def get(self, column: str) -> Optional[PageFilter]:
        for f in self._filters:
            if f.column == column:
                return f
        return None

    def columns(self) -> List[str]:
        return [f.column for f in self._filters]

    def active(self) -> List[PageFilter]:
        """Filters whose value is not "All"."""
        return [f for f in self._filters if f.is_active]

    def add_columns(self, columns: Iterable[str]) -> List[PageFilter]:
        """
        Add filters for newly picked columns, starting at "All".

        Columns that already have a filter are skipped.

        Returns:
            The filters that were added
        """
        added: List[PageFilter] = []
        for column in columns:
            if self.get(column) is None:
                pf = PageFilter(column=column)
                self._filters.append(pf)
                added.append(pf)
        return added

    def remove(self, column: str) -> bool:
        """Remove the filter on ``column``."""
        before = len(self._filters)
        self._filters = [f for f in self._filters if f.column != column]
        return len(self._filters) != before

    def set_value(self, column: str, value: str) -> Optional[PageFilter]:
        """Set the value of an existing filter; unknown columns are ignored."""
        pf = self.get(column)
        if pf is None:
            return None
        pf.value = value or ALL_VALUES
        return pf

    def clear(self) -> None:
        self._filters = []

    def options_for(self, column: str) -> List[str]:
        """Selectable values for a column, "All" first."""
        options = [ALL_VALUES]
        for value in self.data_source.get_categorical_values(column):
            if value not in options:
                options.append(value)
        return options

    def eligible_charts(self, widgets: Sequence[Widget], column: str) -> List[Widget]:
        return [w for w in widgets if is_chart_eligible(w, column, self.catalog)]

    def show_ineligible_warning(self, widgets: Sequence[Widget], column: str) -> bool:
        """True when some, but not all, charts are eligible for ``column``."""
        charts = [w for w in widgets if w.is_chart]
        if not charts:
            return False
        eligible = len(self.eligible_charts(charts, column))
        return 0 < eligible < len(charts)

    def to_list(self) -> List[dict]:
        return [f.to_dict() for f in self._filters]
