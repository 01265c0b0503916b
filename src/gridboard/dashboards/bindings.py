"""
Chart binding setters for Gridboard.

Every sidebar edit of a chart goes through ChartBinder, which validates
at the setter boundary so a ChartConfig satisfies its invariants between
operations: dimension slots only hold dimension fields, at most two
measures are bound, the row limit stays within 0..10. A field of the
wrong kind leaves its slot unset instead of raising.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional, Type, TypeVar, Union

from gridboard.catalog.fields import Field, FieldCatalog, FieldKind
from gridboard.dashboards.models import (
    Aggregation,
    ChartConfig,
    DataLabelMode,
    LabelPosition,
    TextConfig,
    VisualType,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

DIMENSION_SLOTS = ("dimension", "legend", "drill_down_field", "columns_field", "date_column")

DEFAULT_CHART_TITLE = "New Chart"


def coerce_enum(enum_cls: Type[E], value: Union[E, str, None]) -> Optional[E]:
    """Map an enum member or its value to a member, None when invalid."""
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value == value:
            return member
    return None


def auto_chart_title(config: ChartConfig) -> str:
    """
    Title generated from a chart's bindings.

    Sum is implied and left out; other aggregations prefix the measure:
    "Total Sales by Region", "Avg Total Sales by Region".
    """
    measure = config.primary_measure
    dimension = config.dimension
    if measure is None and dimension is None:
        return DEFAULT_CHART_TITLE

    agg = config.primary_aggregation
    if measure is not None:
        measure_part = measure.name if agg == Aggregation.SUM else f"{agg.value} {measure.name}"
        if dimension is not None:
            return f"{measure_part} by {dimension.name}"
        return measure_part
    return f"By {dimension.name}"


class ChartBinder:
    """
    Applies validated edits to chart and text configurations.

    Args:
        catalog: Field catalog used to resolve field ids
        max_measures: Measure cap per chart
        max_limit: Upper bound for the row limit
    """

    def __init__(
        self,
        catalog: FieldCatalog,
        max_measures: int = 2,
        max_limit: int = 10,
    ):
        self.catalog = catalog
        self.max_measures = max_measures
        self.max_limit = max_limit

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    def apply_auto_title(self, config: ChartConfig) -> None:
        """Regenerate the title unless the user has edited it."""
        if config.title_is_user_edited:
            return
        config.title = auto_chart_title(config)

    def set_title(self, config: ChartConfig, title: str) -> None:
        """Set a user-edited title, locking it against regeneration."""
        config.title = title
        config.title_is_user_edited = True

    def reset_title(self, config: ChartConfig) -> None:
        """Drop the user edit lock and go back to the generated title."""
        config.title_is_user_edited = False
        self.apply_auto_title(config)

    # -------------------------------------------------------------------------
    # Field bindings
    # -------------------------------------------------------------------------

    def _resolve(self, config: ChartConfig, field_id: Optional[str]) -> Optional[Field]:
        return self.catalog.find_by_id(config.dataset, field_id)

    def set_dataset(self, config: ChartConfig, dataset: str) -> bool:
        """
        Switch the chart to another dataset.

        Every field binding belongs to the old dataset and is cleared.
        Unknown datasets are rejected.

        Returns:
            True when the dataset changed
        """
        if not self.catalog.has_dataset(dataset):
            logger.debug("Rejected unknown dataset %r", dataset)
            return False
        config.dataset = dataset
        for slot in DIMENSION_SLOTS:
            setattr(config, slot, None)
        config.measures = []
        config.aggregation_per_measure = {}
        config.sort_by = None
        self.apply_auto_title(config)
        return True

    def set_dimension_slot(
        self,
        config: ChartConfig,
        slot: str,
        field_id: Optional[str],
    ) -> Optional[Field]:
        """
        Bind a dimension field to one of the dimension slots.

        An unknown id or a measure field leaves the slot unset.

        Args:
            config: Chart to edit
            slot: One of dimension, legend, drill_down_field,
                columns_field, date_column
            field_id: Field to bind, or None to clear

        Returns:
            The bound field, or None
        """
        if slot not in DIMENSION_SLOTS:
            raise ValueError(f"Unknown dimension slot: {slot}")
        selected = self._resolve(config, field_id)
        if selected is not None and not selected.is_dimension:
            logger.debug("Rejected measure %r for slot %s", selected.name, slot)
            selected = None
        setattr(config, slot, selected)
        self.apply_auto_title(config)
        return selected

    def set_dimension(self, config: ChartConfig, field_id: Optional[str]) -> Optional[Field]:
        return self.set_dimension_slot(config, "dimension", field_id)

    def set_measures(self, config: ChartConfig, field_ids: Union[Iterable[str], str, None]) -> list:
        """
        Bind measures in the order presented.

        Unknown ids and dimension fields are dropped; anything beyond the
        measure cap is dropped, keeping the first selections.

        Returns:
            The bound measures
        """
        if field_ids is None:
            ids: list = []
        elif isinstance(field_ids, str):
            ids = [field_ids] if field_ids else []
        else:
            ids = list(field_ids)

        selected: list = []
        for fid in ids:
            f = self._resolve(config, fid)
            if f is None or not f.is_measure or f in selected:
                continue
            selected.append(f)
        if len(selected) > self.max_measures:
            logger.debug(
                "Measure cap reached, keeping %s",
                [f.name for f in selected[: self.max_measures]],
            )
        selected = selected[: self.max_measures]

        config.measures = selected
        kept = {f.id for f in selected}
        config.aggregation_per_measure = {
            mid: agg for mid, agg in config.aggregation_per_measure.items() if mid in kept
        }
        self.apply_auto_title(config)
        return list(selected)

    def toggle_field(self, config: ChartConfig, field_id: str) -> bool:
        """
        Toggle a field picked from the field list.

        A dimension replaces or clears the axis dimension. A measure is
        unbound if already bound, otherwise appended while below the cap.

        Returns:
            True when the bindings changed
        """
        f = self._resolve(config, field_id)
        if f is None:
            return False
        if f.is_dimension:
            config.dimension = None if config.dimension == f else f
        elif f in config.measures:
            self.set_measures(config, [m.id for m in config.measures if m != f])
            return True
        elif len(config.measures) < self.max_measures:
            self.set_measures(config, config.measure_ids + [f.id])
            return True
        else:
            return False
        self.apply_auto_title(config)
        return True

    def set_aggregation(
        self,
        config: ChartConfig,
        aggregation: Union[Aggregation, str],
        measure_id: Optional[str] = None,
    ) -> bool:
        """
        Set the aggregation of a bound measure (the primary one by default).

        Returns:
            True when applied
        """
        agg = coerce_enum(Aggregation, aggregation)
        if agg is None:
            return False
        target_id = measure_id or (config.primary_measure.id if config.primary_measure else None)
        if target_id is None or target_id not in config.measure_ids:
            return False
        config.aggregation_per_measure[target_id] = agg
        self.apply_auto_title(config)
        return True

    def set_sort_by(self, config: ChartConfig, field_id: Optional[str]) -> Optional[Field]:
        """Sort by any field of the dataset; unknown ids clear sorting."""
        config.sort_by = self._resolve(config, field_id)
        return config.sort_by

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def set_limit(self, config: ChartConfig, limit: Union[int, str, None]) -> int:
        """Clamp the row limit into 0..max_limit; 0 means no limit."""
        try:
            value = int(limit) if limit not in (None, "") else 0
        except (TypeError, ValueError):
            value = 0
        config.limit = max(0, min(self.max_limit, value))
        return config.limit

    def set_condition(self, config: ChartConfig, condition: str) -> None:
        config.condition_string = condition or ""

    def set_visual_type(self, config: ChartConfig, visual_type: Union[VisualType, str]) -> bool:
        vt = coerce_enum(VisualType, visual_type)
        if vt is None:
            return False
        config.visual_type = vt
        return True

    def set_label_position(self, config: ChartConfig, position: Union[LabelPosition, str]) -> bool:
        pos = coerce_enum(LabelPosition, position)
        if pos is None:
            return False
        config.label_position = pos
        return True

    def set_data_label_mode(self, config: ChartConfig, mode: Union[DataLabelMode, str]) -> bool:
        m = coerce_enum(DataLabelMode, mode)
        if m is None:
            return False
        config.data_label_mode = m
        return True

    def set_combination(self, config: ChartConfig, enabled: bool) -> None:
        config.combination_enabled = bool(enabled)

    # -------------------------------------------------------------------------
    # Text widgets
    # -------------------------------------------------------------------------

    def set_text(
        self,
        config: TextConfig,
        content: Optional[str] = None,
        font_size: Optional[int] = None,
        color: Optional[str] = None,
    ) -> None:
        """Update text content and styling; font size is at least 1."""
        if content is not None:
            config.content = content
        if font_size is not None:
            config.font_size = max(1, int(font_size))
        if color is not None:
            config.color = color

    def search_fields(self, config: ChartConfig, term: str, kind: FieldKind) -> list:
        """Fields of the chart's dataset matching a picker search."""
        return self.catalog.search(config.dataset, term, kind)
