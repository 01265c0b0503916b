"""
Dashboard persistence for Gridboard.

Charts are saved one at a time as flat payloads that reference fields by
name, never by id. A whole dashboard is saved as a document holding every
page, the page filters, and one payload per widget.

Adapters report completion through ``on_success`` / ``on_error``
callbacks, which may run immediately or later. Callers must not assume
either has run when a save method returns.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from gridboard.catalog.fields import Field, FieldCatalog
from gridboard.dashboards.bindings import auto_chart_title, coerce_enum
from gridboard.dashboards.models import (
    Aggregation,
    ChartConfig,
    DataLabelMode,
    LabelPosition,
    Page,
    PageFilter,
    Placement,
    TextConfig,
    VisualType,
    Widget,
    WidgetKind,
)
from gridboard.exceptions import PersistenceError

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[Exception], None]


@dataclass
class SaveResponse:
    """Acknowledgement of a successful save."""
    success: bool = True
    message: str = ""
    saved_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "savedAt": self.saved_at}


@dataclass
class DashboardDocument:
    """A loaded dashboard: name, pages in order, and page filters."""
    name: str
    pages: List[Page] = field(default_factory=list)
    page_filters: List[PageFilter] = field(default_factory=list)


# =============================================================================
# Payloads
# =============================================================================

def _name(f: Optional[Field]) -> Optional[str]:
    return f.name if f is not None else None


def build_chart_payload(widget: Widget) -> Dict[str, Any]:
    """
    Flat save payload of a chart widget.

    Field references are resolved to names. ``yAgg`` is the primary
    measure's aggregation and ``yAggByMeasure`` maps each bound measure
    name to its own.
    """
    config = widget.chart
    if config is None:
        raise ValueError(f"Widget {widget.id} is not a chart")
    return {
        "id": widget.id,
        "title": config.title,
        "visType": config.visual_type.value,
        "xAxis": _name(config.dimension),
        "yAxis": _name(config.primary_measure),
        "yAxes": [m.name for m in config.measures],
        "yAggByMeasure": {m.name: config.aggregation_for(m).value for m in config.measures},
        "yAgg": config.primary_aggregation.value,
        "labelPosition": config.label_position.value,
        "width": widget.placement.column_span,
        "height": widget.placement.row_span,
        "dataset": config.dataset,
        "legend": _name(config.legend),
        "drillDownField": _name(config.drill_down_field),
        "columnsField": _name(config.columns_field),
        "dateColumn": _name(config.date_column),
        "conditionString": config.condition_string,
        "limit": config.limit,
        "dataLabelOption": config.data_label_mode.value,
        "enableCombination": config.combination_enabled,
        "sortBy": _name(config.sort_by),
    }


def build_text_payload(widget: Widget) -> Dict[str, Any]:
    """Save payload of a text widget."""
    text = widget.text
    if text is None:
        raise ValueError(f"Widget {widget.id} is not a text block")
    return {
        "id": widget.id,
        "title": text.title,
        "content": text.content,
        "fontSize": text.font_size,
        "color": text.color,
        "width": widget.placement.column_span,
        "height": widget.placement.row_span,
    }


def serialize_widget(widget: Widget) -> Dict[str, Any]:
    """Document entry of a widget, tagged with its kind."""
    if widget.is_chart:
        data = build_chart_payload(widget)
    else:
        data = build_text_payload(widget)
    data["type"] = widget.kind.value
    return data


def serialize_dashboard(
    name: str,
    pages: List[Page],
    page_filters: List[PageFilter],
) -> Dict[str, Any]:
    """Build the document handed to ``PersistenceAdapter.save_dashboard``."""
    return {
        "dashboard_name": name,
        "pages": [
            {
                "id": page.id,
                "name": page.name,
                "widgets": [serialize_widget(w) for w in page.widgets],
            }
            for page in pages
        ],
        "page_filters": [f.to_dict() for f in page_filters],
    }


def _chart_from_payload(data: Dict[str, Any], catalog: FieldCatalog) -> ChartConfig:
    dataset = data.get("dataset") or "Invoices"
    if not catalog.has_dataset(dataset):
        raise PersistenceError(f"Unknown dataset: {dataset}", widget_id=data.get("id"))

    def dimension(key: str) -> Optional[Field]:
        f = catalog.find_by_name(dataset, data.get(key))
        return f if f is not None and f.is_dimension else None

    measure_names = data.get("yAxes")
    if measure_names is None:
        measure_names = [data["yAxis"]] if data.get("yAxis") else []
    measures: List[Field] = []
    for measure_name in measure_names:
        f = catalog.find_by_name(dataset, measure_name)
        if f is not None and f.is_measure and f not in measures:
            measures.append(f)
    measures = measures[:2]

    by_name = data.get("yAggByMeasure") or {}
    aggregations: Dict[str, Aggregation] = {}
    for i, m in enumerate(measures):
        value = by_name.get(m.name, data.get("yAgg") if i == 0 else None)
        agg = coerce_enum(Aggregation, value)
        if agg is not None:
            aggregations[m.id] = agg

    config = ChartConfig(
        dataset=dataset,
        dimension=dimension("xAxis"),
        measures=measures,
        aggregation_per_measure=aggregations,
        legend=dimension("legend"),
        drill_down_field=dimension("drillDownField"),
        columns_field=dimension("columnsField"),
        date_column=dimension("dateColumn"),
        sort_by=catalog.find_by_name(dataset, data.get("sortBy")),
        condition_string=data.get("conditionString") or "",
        limit=max(0, min(10, int(data.get("limit", 4) or 0))),
        data_label_mode=coerce_enum(DataLabelMode, data.get("dataLabelOption")) or DataLabelMode.SHOW_VALUES,
        combination_enabled=bool(data.get("enableCombination", False)),
        label_position=coerce_enum(LabelPosition, data.get("labelPosition")) or LabelPosition.BOTTOM,
        visual_type=coerce_enum(VisualType, data.get("visType")) or VisualType.COLUMN,
    )
    generated = auto_chart_title(config)
    config.title = data.get("title") or generated
    config.title_is_user_edited = config.title != generated
    return config


def deserialize_widget(data: Dict[str, Any], catalog: FieldCatalog) -> Widget:
    """Rebuild a widget from its document entry."""
    placement = Placement(
        column_span=max(1, min(12, int(data.get("width") or 4))),
        row_span=max(1, int(data.get("height") or 3)),
    )
    kind = data.get("type", WidgetKind.CHART.value)
    widget_id = data.get("id") or ""
    if kind == WidgetKind.TEXT.value:
        defaults = TextConfig()
        text = TextConfig(
            content=data.get("content", defaults.content),
            font_size=int(data.get("fontSize") or defaults.font_size),
            color=data.get("color") or defaults.color,
            title=data.get("title") or defaults.title,
        )
        return Widget.new_text(text, placement, widget_id=widget_id)
    if kind != WidgetKind.CHART.value:
        raise PersistenceError(f"Unknown widget type: {kind}", widget_id=widget_id or None)
    return Widget.new_chart(_chart_from_payload(data, catalog), placement, widget_id=widget_id)


def deserialize_dashboard(document: Dict[str, Any], catalog: FieldCatalog) -> DashboardDocument:
    """
    Rebuild a dashboard from a loaded document.

    Raises:
        PersistenceError: The document is malformed
    """
    if not isinstance(document, dict):
        raise PersistenceError("Dashboard document must be a mapping")
    try:
        pages = [
            Page(
                id=p.get("id") or "",
                name=p.get("name") or f"Page {i + 1}",
                widgets=[deserialize_widget(w, catalog) for w in p.get("widgets", [])],
            )
            for i, p in enumerate(document.get("pages") or [])
        ]
        filters = [PageFilter.from_dict(f) for f in document.get("page_filters") or []]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceError(f"Malformed dashboard document: {e}") from e
    return DashboardDocument(
        name=document.get("dashboard_name") or "Dashboard",
        pages=pages,
        page_filters=filters,
    )


# =============================================================================
# Adapters
# =============================================================================

class PersistenceAdapter(ABC):
    """
    Abstract base class for dashboard persistence backends.

    Every method reports through callbacks. Exactly one of ``on_success``
    and ``on_error`` is eventually called, or neither when the backend
    never answers.
    """

    @abstractmethod
    def load_dashboard(
        self,
        on_success: Callable[[Dict[str, Any]], None],
        on_error: ErrorCallback,
    ) -> None:
        """
        Load the saved dashboard document.

        Args:
            on_success: Receives the document
                (dashboard_name, pages, page_filters)
            on_error: Receives the failure
        """
        pass

    @abstractmethod
    def save_widget(
        self,
        payload: Dict[str, Any],
        on_success: Callable[[SaveResponse], None],
        on_error: ErrorCallback,
    ) -> None:
        """
        Save one chart payload.

        Args:
            payload: Output of ``build_chart_payload``
            on_success: Receives the save acknowledgement
            on_error: Receives the failure
        """
        pass

    @abstractmethod
    def save_dashboard(
        self,
        document: Dict[str, Any],
        on_success: Callable[[SaveResponse], None],
        on_error: ErrorCallback,
    ) -> None:
        """
        Save a whole dashboard document.

        Args:
            document: Output of ``serialize_dashboard``
            on_success: Receives the save acknowledgement
            on_error: Receives the failure
        """
        pass


class InMemoryPersistenceAdapter(PersistenceAdapter):
    """
    Persistence kept in process memory.

    With ``auto_resolve`` off, saves are queued until ``resolve_pending``
    or ``fail_pending`` is called, which lets an embedding (or a test)
    control when the backend answers.

    Args:
        document: Dashboard returned by ``load_dashboard``; None makes
            loading fail
        auto_resolve: Answer saves immediately
        fail_with: Error every save reports instead of succeeding
    """

    def __init__(
        self,
        document: Optional[Dict[str, Any]] = None,
        auto_resolve: bool = True,
        fail_with: Optional[Exception] = None,
    ):
        self.document = copy.deepcopy(document)
        self.auto_resolve = auto_resolve
        self.fail_with = fail_with
        self.saved_widgets: Dict[str, Dict[str, Any]] = {}
        self.saved_documents: List[Dict[str, Any]] = []
        self._pending: List[Tuple[Callable[[], SaveResponse], Callable[[SaveResponse], None], ErrorCallback]] = []

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def load_dashboard(self, on_success, on_error) -> None:
        if self.document is None:
            on_error(PersistenceError("No saved dashboard"))
            return
        on_success(copy.deepcopy(self.document))

    def _submit(self, commit: Callable[[], SaveResponse], on_success, on_error) -> None:
        if not self.auto_resolve:
            self._pending.append((commit, on_success, on_error))
            return
        self._answer(commit, on_success, on_error, self.fail_with)

    def _answer(self, commit, on_success, on_error, error: Optional[Exception]) -> None:
        if error is not None:
            on_error(error)
            return
        on_success(commit())

    def save_widget(self, payload, on_success, on_error) -> None:
        snapshot = copy.deepcopy(payload)

        def commit() -> SaveResponse:
            self.saved_widgets[snapshot["id"]] = snapshot
            return SaveResponse(message="Chart saved")

        self._submit(commit, on_success, on_error)

    def save_dashboard(self, document, on_success, on_error) -> None:
        snapshot = copy.deepcopy(document)

        def commit() -> SaveResponse:
            self.saved_documents.append(snapshot)
            self.document = copy.deepcopy(snapshot)
            return SaveResponse(message="Dashboard saved")

        self._submit(commit, on_success, on_error)

    def resolve_pending(self) -> int:
        """Answer every queued save; returns how many were answered."""
        pending, self._pending = self._pending, []
        for commit, on_success, on_error in pending:
            self._answer(commit, on_success, on_error, self.fail_with)
        return len(pending)

    def fail_pending(self, error: Optional[Exception] = None) -> int:
        """Fail every queued save; returns how many were failed."""
        pending, self._pending = self._pending, []
        for _, _, on_error in pending:
            on_error(error or PersistenceError("Save failed"))
        return len(pending)


class FilePersistenceAdapter(PersistenceAdapter):
    """
    Persistence in a local JSON or YAML file.

    The file holds the dashboard document under ``dashboard`` and the
    latest payload of each individually saved chart under ``widgets``.
    The format follows the file suffix (.yaml/.yml, otherwise JSON).

    Args:
        path: File to read and write; parent directories are created
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix in (".yaml", ".yml")

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            if self.is_yaml:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        return data or {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            if self.is_yaml:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

    def load_dashboard(self, on_success, on_error) -> None:
        try:
            data = self._read()
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Failed to read dashboard file %s: %s", self.path, e)
            on_error(PersistenceError(f"Failed to read {self.path}: {e}"))
            return
        document = data.get("dashboard")
        if document is None:
            on_error(PersistenceError(f"No saved dashboard in {self.path}"))
            return
        on_success(document)

    def save_widget(self, payload, on_success, on_error) -> None:
        try:
            data = self._read()
            data.setdefault("widgets", {})[payload["id"]] = payload
            self._write(data)
        except (OSError, ValueError, yaml.YAMLError) as e:
            on_error(PersistenceError(f"Failed to save chart: {e}", widget_id=payload.get("id")))
            return
        on_success(SaveResponse(message="Chart saved"))

    def save_dashboard(self, document, on_success, on_error) -> None:
        try:
            data = self._read()
            data["dashboard"] = document
            self._write(data)
        except (OSError, ValueError, yaml.YAMLError) as e:
            on_error(PersistenceError(f"Failed to save dashboard: {e}"))
            return
        on_success(SaveResponse(message="Dashboard saved"))
