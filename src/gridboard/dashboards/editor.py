"""
Dashboard editor for Gridboard.

DashboardEditor is the stateful core behind the canvas: it holds the
pages, the live widget list of the current page, selection, the side
panel, page filters, the drilldown panel, the active drag or resize, and
the set of chart widgets with unsaved changes.

Every chart mutation marks the chart dirty and queues it for redraw. A
dirty flag clears only when the persistence adapter confirms a save of
the chart as it was when the save started.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from gridboard.catalog.fields import FieldCatalog, FieldKind
from gridboard.catalog.mock_data import MockDataSource
from gridboard.config.board_config import BoardConfiguration
from gridboard.dashboards.bindings import ChartBinder
from gridboard.dashboards.drilldown import DrilldownController
from gridboard.dashboards.filters import PageFilterSet, common_filter_columns
from gridboard.dashboards.layout import (
    DragDropManager,
    InteractionResult,
    Point,
    Rect,
    build_row_map,
    reorder,
)
from gridboard.dashboards.models import (
    ChartConfig,
    DrilldownState,
    Page,
    PageFilter,
    Placement,
    TextConfig,
    VisualType,
    Widget,
    WidgetKind,
)
from gridboard.dashboards.persistence import (
    InMemoryPersistenceAdapter,
    PersistenceAdapter,
    SaveResponse,
    build_chart_payload,
    deserialize_dashboard,
    serialize_dashboard,
)
from gridboard.dashboards.query import QueryPipeline, QueryResult
from gridboard.dashboards.render import (
    RecordingRenderAdapter,
    RenderAdapter,
    RenderRequest,
    build_render_request,
)
from gridboard.exceptions import (
    GridboardError,
    PageNotFoundError,
    PersistenceError,
    WidgetNotFoundError,
)
from gridboard.observability.logging import get_logger

logger = get_logger("dashboards.editor")

ConfirmCallback = Callable[[str], bool]
SuccessCallback = Callable[[SaveResponse], None]
ErrorCallback = Callable[[Exception], None]

UNSAVED_CHANGES_PROMPT = "There are unsaved chart changes. Do you want to save?"
DEFAULT_DASHBOARD_NAME = "Dashboard"


class DirtyTracker:
    """
    Chart widget ids changed since their last successful save.

    Each mark bumps a per-widget revision. A save records the revision it
    started from and clears the flag only if no edit happened since.
    """

    def __init__(self):
        self._dirty: List[str] = []
        self._revisions: Dict[str, int] = {}

    def __contains__(self, widget_id: str) -> bool:
        return widget_id in self._dirty

    def __len__(self) -> int:
        return len(self._dirty)

    @property
    def ids(self) -> List[str]:
        return list(self._dirty)

    def mark(self, widget_id: str) -> None:
        self._revisions[widget_id] = self._revisions.get(widget_id, 0) + 1
        if widget_id not in self._dirty:
            self._dirty.append(widget_id)

    def revision(self, widget_id: str) -> int:
        return self._revisions.get(widget_id, 0)

    def clear_if_unchanged(self, widget_id: str, revision: int) -> bool:
        """Clear the flag when the widget is still at ``revision``."""
        if self.revision(widget_id) != revision:
            return False
        self.discard(widget_id)
        return True

    def discard(self, widget_id: str) -> None:
        if widget_id in self._dirty:
            self._dirty.remove(widget_id)

    def forget(self, widget_id: str) -> None:
        """Drop every trace of a deleted widget."""
        self.discard(widget_id)
        self._revisions.pop(widget_id, None)

    def clear(self) -> None:
        self._dirty = []
        self._revisions = {}


def default_dashboard_page(catalog: FieldCatalog) -> Page:
    """
    Single page with the seeded "Sales by Region" pie-drilldown chart.

    Shown when loading fails so the canvas is never blank.
    """
    config = ChartConfig(
        dataset="Sales",
        dimension=catalog.find_by_id("Sales", "s2"),
        measures=[f for f in [catalog.find_by_id("Sales", "sm1")] if f is not None],
        limit=4,
        visual_type=VisualType.PIE_DRILLDOWN,
        title="Sales by Region",
    )
    widget = Widget.new_chart(config, Placement(column_span=6, row_span=4))
    return Page(id="", name="Page 1", widgets=[widget])


class DashboardEditor:
    """
    Editing session over one dashboard.

    Args:
        catalog: Field catalog
        data_source: Mock data source feeding the query pipeline
        persistence: Persistence backend
        renderer: Chart renderer
        config: Board configuration
        confirm: Asked before closing the editor with unsaved charts;
            receives the prompt and returns whether to save
        name: Dashboard name
    """

    def __init__(
        self,
        catalog: Optional[FieldCatalog] = None,
        data_source: Optional[MockDataSource] = None,
        persistence: Optional[PersistenceAdapter] = None,
        renderer: Optional[RenderAdapter] = None,
        config: Optional[BoardConfiguration] = None,
        confirm: Optional[ConfirmCallback] = None,
        name: str = DEFAULT_DASHBOARD_NAME,
    ):
        self.config = config or BoardConfiguration()
        self.catalog = catalog or FieldCatalog()
        self.data_source = data_source or MockDataSource()
        self.persistence = persistence or InMemoryPersistenceAdapter()
        self.renderer = renderer or RecordingRenderAdapter()
        self.confirm = confirm or (lambda prompt: False)
        self.name = name

        self.binder = ChartBinder(
            self.catalog,
            max_measures=self.config.max_measures,
            max_limit=self.config.max_limit,
        )
        self.pipeline = QueryPipeline(self.data_source, self.catalog)
        self.filters = PageFilterSet(self.catalog, self.data_source)
        self.drilldown = DrilldownController(self.config.drilldown, self.config.grid_columns)
        self.interactions = DragDropManager(self.config.grid_columns, self.config.row_height_px)
        self.dirty = DirtyTracker()

        first = Page(id="", name="Page 1")
        self.pages: List[Page] = [first]
        self.current_page_id = first.id
        self.widgets: List[Widget] = []
        self.selected_id: Optional[str] = None
        self.side_panel_open = False
        self.edit_mode = False
        self._render_queue: List[str] = []

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def current_page(self) -> Page:
        return self.get_page(self.current_page_id)

    def get_page(self, page_id: str) -> Page:
        for page in self.pages:
            if page.id == page_id:
                return page
        raise PageNotFoundError(page_id)

    def get_widget(self, widget_id: str) -> Widget:
        """Widget on the current page."""
        for w in self.widgets:
            if w.id == widget_id:
                return w
        raise WidgetNotFoundError(widget_id)

    def find_widget(self, widget_id: str) -> Optional[Widget]:
        """Widget on any page, the live list of the current page first."""
        for w in self.widgets:
            if w.id == widget_id:
                return w
        for page in self.pages:
            if page.id == self.current_page_id:
                continue
            found = page.get_widget(widget_id)
            if found is not None:
                return found
        return None

    def _get_chart(self, widget_id: str) -> Widget:
        widget = self.get_widget(widget_id)
        if widget.chart is None:
            raise GridboardError(f"Widget {widget_id} is not a chart")
        return widget

    @property
    def selected_widget(self) -> Optional[Widget]:
        if self.selected_id is None:
            return None
        for w in self.widgets:
            if w.id == self.selected_id:
                return w
        return None

    def is_dirty(self, widget_id: str) -> bool:
        return widget_id in self.dirty

    @property
    def has_unsaved_changes(self) -> bool:
        return len(self.dirty) > 0

    # -------------------------------------------------------------------------
    # Widgets
    # -------------------------------------------------------------------------

    def add_widget(self, kind: Union[WidgetKind, str] = WidgetKind.CHART) -> Widget:
        """
        Append a new widget with default settings to the current page.

        The widget is selected and the side panel opens. Charts start
        dirty because they have never been saved.
        """
        kind = WidgetKind(kind) if not isinstance(kind, WidgetKind) else kind
        if kind == WidgetKind.CHART:
            widget = Widget.new_chart(
                ChartConfig(
                    dataset=self.config.default_dataset,
                    limit=self.config.default_limit,
                )
            )
        else:
            widget = Widget.new_text(TextConfig())

        self.widgets.append(widget)
        if widget.is_chart:
            self.dirty.mark(widget.id)
            self.schedule_render(widget.id)
        self.selected_id = widget.id
        self.open_side_panel()
        logger.widget_added(widget.id, widget.kind.value, self.current_page_id)
        return widget

    def add_chart(self) -> Widget:
        return self.add_widget(WidgetKind.CHART)

    def add_text(self) -> Widget:
        return self.add_widget(WidgetKind.TEXT)

    def remove_widget(self, widget_id: str) -> None:
        """
        Delete a widget from the current page.

        Clears the selection and the drilldown panel when they refer to
        the widget. The widget leaves the dirty set without being saved.
        """
        widget = self.get_widget(widget_id)
        was_dirty = widget_id in self.dirty
        self.widgets = [w for w in self.widgets if w.id != widget_id]
        if self.selected_id == widget_id:
            self.selected_id = None
        self.drilldown.close_if_source(widget_id)
        if self.interactions.active_widget_id == widget_id:
            self.interactions.cancel()
        self.dirty.forget(widget_id)
        if widget_id in self._render_queue:
            self._render_queue.remove(widget_id)
        self.renderer.clear(widget_id)
        logger.widget_removed(widget.id, self.current_page_id, was_dirty)

    def select_widget(self, widget_id: Optional[str]) -> Optional[Widget]:
        """Select a widget, or clear the selection with None."""
        if widget_id is None:
            self.selected_id = None
            return None
        widget = self.get_widget(widget_id)
        self.selected_id = widget.id
        return widget

    # -------------------------------------------------------------------------
    # Chart bindings
    # -------------------------------------------------------------------------

    def _mutate_chart(self, widget_id: str, action: Callable[[ChartConfig], Any]) -> Any:
        """Apply a binder setter; a setter returning False rejected the edit."""
        widget = self._get_chart(widget_id)
        result = action(widget.chart)
        if result is not False:
            self.dirty.mark(widget.id)
            self.schedule_render(widget.id)
        return result

    def set_dataset(self, widget_id: str, dataset: str) -> bool:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_dataset(c, dataset))

    def set_dimension(self, widget_id: str, field_id: Optional[str], slot: str = "dimension"):
        return self._mutate_chart(
            widget_id, lambda c: self.binder.set_dimension_slot(c, slot, field_id)
        )

    def set_measures(self, widget_id: str, field_ids: Union[Iterable[str], str, None]) -> list:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_measures(c, field_ids))

    def toggle_field(self, widget_id: str, field_id: str) -> bool:
        """Toggle a field picked from the field list of a chart."""
        widget = self._get_chart(widget_id)
        changed = self.binder.toggle_field(widget.chart, field_id)
        if changed:
            self.dirty.mark(widget.id)
            self.schedule_render(widget.id)
        return changed

    def set_aggregation(self, widget_id: str, aggregation, measure_id: Optional[str] = None) -> bool:
        return self._mutate_chart(
            widget_id, lambda c: self.binder.set_aggregation(c, aggregation, measure_id)
        )

    def set_sort_by(self, widget_id: str, field_id: Optional[str]):
        return self._mutate_chart(widget_id, lambda c: self.binder.set_sort_by(c, field_id))

    def set_limit(self, widget_id: str, limit) -> int:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_limit(c, limit))

    def set_condition(self, widget_id: str, condition: str) -> None:
        self._mutate_chart(widget_id, lambda c: self.binder.set_condition(c, condition))

    def set_visual_type(self, widget_id: str, visual_type) -> bool:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_visual_type(c, visual_type))

    def set_label_position(self, widget_id: str, position) -> bool:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_label_position(c, position))

    def set_data_label_mode(self, widget_id: str, mode) -> bool:
        return self._mutate_chart(widget_id, lambda c: self.binder.set_data_label_mode(c, mode))

    def set_combination(self, widget_id: str, enabled: bool) -> None:
        self._mutate_chart(widget_id, lambda c: self.binder.set_combination(c, enabled))

    def set_title(self, widget_id: str, title: str) -> None:
        """Set a title by hand; later binding changes keep it."""
        widget = self.get_widget(widget_id)
        if widget.text is not None:
            widget.text.title = title
            return
        self._mutate_chart(widget_id, lambda c: self.binder.set_title(c, title))

    def reset_title(self, widget_id: str) -> None:
        self._mutate_chart(widget_id, self.binder.reset_title)

    def set_text(
        self,
        widget_id: str,
        content: Optional[str] = None,
        font_size: Optional[int] = None,
        color: Optional[str] = None,
    ) -> None:
        """Edit a text widget. Text widgets are never tracked as dirty."""
        widget = self.get_widget(widget_id)
        if widget.text is None:
            raise GridboardError(f"Widget {widget_id} is not a text block")
        self.binder.set_text(widget.text, content, font_size, color)

    def set_category_search(self, widget_id: str, term: str) -> list:
        """Update the dimension picker search and return matching fields."""
        widget = self._get_chart(widget_id)
        widget.category_search = term
        return self.binder.search_fields(widget.chart, term, FieldKind.DIMENSION)

    def set_value_search(self, widget_id: str, term: str) -> list:
        """Update the measure picker search and return matching fields."""
        widget = self._get_chart(widget_id)
        widget.value_search = term
        return self.binder.search_fields(widget.chart, term, FieldKind.MEASURE)

    # -------------------------------------------------------------------------
    # Layout, drag and resize
    # -------------------------------------------------------------------------

    def row_map(self) -> Dict[str, int]:
        return build_row_map(self.widgets, self.config.grid_columns)

    def start_drag(self, widget_id: str, pointer: Point) -> None:
        widget = self.get_widget(widget_id)
        self.interactions.start_drag(widget, pointer)
        self.selected_id = widget.id

    def start_resize(self, widget_id: str, pointer: Point) -> None:
        self.interactions.start_resize(self.get_widget(widget_id), pointer)

    def move_pointer(self, pointer: Point, column_width: Optional[float] = None) -> None:
        """Pointer moved; applies the drag offset or the new spans."""
        self.interactions.update(pointer, column_width)

    def release_pointer(
        self,
        release_point: Optional[Point] = None,
        boxes: Optional[Dict[str, Rect]] = None,
    ) -> Optional[InteractionResult]:
        """
        Pointer released; ends the active drag or resize.

        A drag dropped on another widget moves to that widget's index.
        The dragged or resized widget is marked dirty if it is a chart.
        """
        result = self.interactions.end(release_point, boxes)
        if result is None:
            return None
        if result.was_drag and result.target_id is not None:
            self.widgets = reorder(self.widgets, result.widget_id, result.target_id)
        widget = next((w for w in self.widgets if w.id == result.widget_id), None)
        if widget is not None and widget.is_chart:
            self.dirty.mark(widget.id)
            if result.was_resize:
                self.schedule_render(widget.id)
        return result

    # -------------------------------------------------------------------------
    # Drilldown
    # -------------------------------------------------------------------------

    def open_drilldown(self, widget_id: str, point_label: str) -> Optional[DrilldownState]:
        """Open the drilldown for a clicked point; no-op for unbound charts."""
        return self.drilldown.open(self.get_widget(widget_id), self.widgets, point_label)

    def close_drilldown(self) -> None:
        self.drilldown.close()

    def should_render_drilldown_after(self, widget_id: str) -> bool:
        return self.drilldown.should_render_after(widget_id, self.widgets)

    # -------------------------------------------------------------------------
    # Page filters
    # -------------------------------------------------------------------------

    def filter_columns(self) -> List[str]:
        """Columns selectable as page filters for the current page."""
        return common_filter_columns(self.widgets, self.catalog)

    def filter_options(self, column: str) -> List[str]:
        return self.filters.options_for(column)

    def add_page_filters(self, columns: Iterable[str]) -> List[PageFilter]:
        """Add filters for the columns picked in the filter picker."""
        return self.filters.add_columns(columns)

    def set_page_filter(self, column: str, value: str) -> List[Widget]:
        """
        Change a page filter value and redraw the charts it applies to.

        An open drilldown stays open.

        Returns:
            The eligible charts that were queued for redraw
        """
        if self.filters.set_value(column, value) is None:
            return []
        return self._refresh_for_filter(column, value)

    def remove_page_filter(self, column: str) -> List[Widget]:
        if not self.filters.remove(column):
            return []
        return self._refresh_for_filter(column, PageFilter(column).value)

    def show_ineligible_warning(self, column: str) -> bool:
        return self.filters.show_ineligible_warning(self.widgets, column)

    def _refresh_for_filter(self, column: str, value: str) -> List[Widget]:
        eligible = self.filters.eligible_charts(self.widgets, column)
        logger.page_filter_changed(column, value, [w.title or w.id for w in eligible])
        for w in eligible:
            self.schedule_render(w.id)
        return eligible

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def evaluate(self, widget_id: str) -> QueryResult:
        """Run the query pipeline for a chart on the current page."""
        return self.pipeline.evaluate(self._get_chart(widget_id), self.filters)

    def schedule_render(self, widget_id: str) -> None:
        if widget_id not in self._render_queue:
            self._render_queue.append(widget_id)

    def refresh_all(self) -> None:
        for w in self.widgets:
            if w.is_chart:
                self.schedule_render(w.id)

    @property
    def pending_renders(self) -> List[str]:
        return list(self._render_queue)

    def flush_renders(self) -> List[RenderRequest]:
        """
        Draw every queued chart still on the current page.

        Called once the embedding's layout has settled.
        """
        queue, self._render_queue = self._render_queue, []
        requests = []
        for widget_id in queue:
            widget = next((w for w in self.widgets if w.id == widget_id), None)
            if widget is None or widget.chart is None:
                continue
            request = build_render_request(widget, self.pipeline.evaluate(widget, self.filters))
            self.renderer.render(request, self._point_click_handler(widget.id))
            requests.append(request)
        return requests

    def _point_click_handler(self, widget_id: str) -> Callable[[str], None]:
        def on_point_click(point_label: str) -> None:
            if any(w.id == widget_id for w in self.widgets):
                self.open_drilldown(widget_id, point_label)

        return on_point_click

    # -------------------------------------------------------------------------
    # Pages
    # -------------------------------------------------------------------------

    def sync_current_page(self) -> Page:
        """Copy the live widget list and drilldown into the current page."""
        page = self.current_page
        page.widgets = list(self.widgets)
        page.drilldown = self.drilldown.state
        return page

    def add_page(self, name: Optional[str] = None) -> Page:
        """Append a page and switch to it."""
        page = Page(id="", name=name or f"Page {len(self.pages) + 1}")
        self.pages.append(page)
        self.switch_page(page.id)
        return page

    def rename_page(self, page_id: str, name: str) -> Page:
        page = self.get_page(page_id)
        page.name = name
        return page

    def remove_page(self, page_id: str) -> None:
        """
        Remove a page and its widgets.

        Raises:
            PageNotFoundError: Unknown page
            GridboardError: The page is the last one
        """
        page = self.get_page(page_id)
        if len(self.pages) == 1:
            raise GridboardError("Cannot remove the last page")
        if page_id == self.current_page_id:
            index = self.pages.index(page)
            neighbour = self.pages[index - 1] if index > 0 else self.pages[index + 1]
            self.switch_page(neighbour.id)
        for w in page.widgets:
            self.dirty.forget(w.id)
        self.pages.remove(page)

    def switch_page(self, page_id: str) -> Page:
        """
        Make another page current.

        The outgoing page keeps the live widget list and its drilldown;
        the target page's own drilldown (or none) is restored.
        """
        target = self.get_page(page_id)
        if target.id == self.current_page_id:
            return target
        outgoing = self.sync_current_page()
        self.interactions.cancel()
        self.drilldown.swap(target.drilldown)
        self.widgets = list(target.widgets)
        self.current_page_id = target.id
        self.selected_id = None
        self._render_queue = []
        self.refresh_all()
        logger.page_switched(outgoing.id, target.id)
        return target

    # -------------------------------------------------------------------------
    # Side panel and edit mode
    # -------------------------------------------------------------------------

    def open_side_panel(self) -> None:
        self.side_panel_open = True
        self.edit_mode = True

    def close_side_panel(self) -> bool:
        """
        Close the side panel, offering to save unsaved charts first.

        Returns:
            True when dirty charts were submitted for saving
        """
        saved = self._confirm_and_save()
        self.side_panel_open = False
        return saved

    def toggle_side_panel(self) -> bool:
        if self.side_panel_open:
            return self.close_side_panel()
        self.open_side_panel()
        return False

    def enter_edit_mode(self) -> None:
        self.edit_mode = True

    def exit_edit_mode(self) -> bool:
        """Leave edit mode, offering to save unsaved charts first."""
        saved = self._confirm_and_save()
        self.edit_mode = False
        self.side_panel_open = False
        return saved

    def _confirm_and_save(self) -> bool:
        if not self.has_unsaved_changes:
            return False
        if not self.confirm(UNSAVED_CHANGES_PROMPT):
            return False
        self.save_all_dirty()
        return True

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def save_chart(
        self,
        widget_id: str,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Dict[str, Any]:
        """
        Save one chart through the persistence adapter.

        The dirty flag clears when the adapter confirms, unless the chart
        was edited again in the meantime. On failure the chart stays
        dirty, the error is logged and handed to ``on_error``.

        Returns:
            The payload handed to the adapter
        """
        widget = self.find_widget(widget_id)
        if widget is None:
            raise WidgetNotFoundError(widget_id)
        payload = build_chart_payload(widget)
        revision = self.dirty.revision(widget.id)

        def succeeded(response: SaveResponse) -> None:
            if not response.success:
                failed(PersistenceError(response.message or "Save rejected", widget_id=widget.id))
                return
            self.dirty.clear_if_unchanged(widget.id, revision)
            logger.chart_saved(widget.id, payload["title"])
            if on_success is not None:
                on_success(response)

        def failed(error: Exception) -> None:
            if not isinstance(error, PersistenceError):
                error = PersistenceError(f"Failed to save chart {widget.id}: {error}", widget_id=widget.id)
            if self.find_widget(widget.id) is not None and widget.id not in self.dirty:
                self.dirty.mark(widget.id)
            logger.chart_save_failed(widget.id, str(error))
            if on_error is not None:
                on_error(error)

        self.persistence.save_widget(payload, succeeded, failed)
        return payload

    def save_all_dirty(self, on_error: Optional[ErrorCallback] = None) -> List[str]:
        """
        Save every dirty chart on every page.

        Returns:
            Ids of the charts submitted
        """
        self.sync_current_page()
        submitted = []
        for widget_id in self.dirty.ids:
            widget = self.find_widget(widget_id)
            if widget is None or not widget.is_chart:
                continue
            self.save_chart(widget_id, on_error=on_error)
            submitted.append(widget_id)
        return submitted

    def save_dashboard(
        self,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Dict[str, Any]:
        """
        Save all pages, page filters and widget payloads as one document.

        On success edit mode ends and the charts included in the document
        are no longer dirty unless edited since.

        Returns:
            The document handed to the adapter
        """
        self.sync_current_page()
        document = serialize_dashboard(self.name, self.pages, list(self.filters))
        revisions = {wid: self.dirty.revision(wid) for wid in self.dirty.ids}

        def succeeded(response: SaveResponse) -> None:
            if not response.success:
                failed(PersistenceError(response.message or "Save rejected"))
                return
            for wid, revision in revisions.items():
                self.dirty.clear_if_unchanged(wid, revision)
            self.edit_mode = False
            self.side_panel_open = False
            logger.info("Dashboard saved", event_type="dashboard.saved", pages=len(self.pages))
            if on_success is not None:
                on_success(response)

        def failed(error: Exception) -> None:
            if not isinstance(error, PersistenceError):
                error = PersistenceError(f"Failed to save dashboard: {error}")
            logger.error("Dashboard save failed", event_type="dashboard.save_failed", error=str(error))
            if on_error is not None:
                on_error(error)

        self.persistence.save_dashboard(document, succeeded, failed)
        return document

    # -------------------------------------------------------------------------
    # Loading and reset
    # -------------------------------------------------------------------------

    def load(self, on_loaded: Optional[Callable[[DashboardEditor], None]] = None) -> None:
        """
        Load the saved dashboard, falling back to the default one.

        A failed or malformed load installs a single page with the seeded
        "Sales by Region" chart, which is not dirty.
        """

        def loaded(document: Dict[str, Any]) -> None:
            try:
                parsed = deserialize_dashboard(document, self.catalog)
            except PersistenceError as e:
                fallback(e)
                return
            if not parsed.pages:
                fallback(PersistenceError("Saved dashboard has no pages"))
                return
            self._install(parsed.name, parsed.pages, parsed.page_filters)
            logger.info("Dashboard loaded", event_type="dashboard.loaded", pages=len(parsed.pages))
            if on_loaded is not None:
                on_loaded(self)

        def fallback(error: Exception) -> None:
            logger.warning(
                "Dashboard load failed, using default dashboard",
                event_type="dashboard.load_failed",
                error=str(error),
            )
            self._install(DEFAULT_DASHBOARD_NAME, [default_dashboard_page(self.catalog)], [])
            if on_loaded is not None:
                on_loaded(self)

        self.persistence.load_dashboard(loaded, fallback)

    def _install(self, name: str, pages: List[Page], page_filters: List[PageFilter]) -> None:
        self.reset_dashboard()
        self.name = name
        self.pages = list(pages)
        self.current_page_id = self.pages[0].id
        self.widgets = list(self.pages[0].widgets)
        self.drilldown.swap(self.pages[0].drilldown)
        self.filters = PageFilterSet(self.catalog, self.data_source, page_filters)
        self.refresh_all()

    def reset_dashboard(self) -> None:
        """Start over with one empty page and nothing pending."""
        self.interactions.cancel()
        first = Page(id="", name="Page 1")
        self.pages = [first]
        self.current_page_id = first.id
        self.widgets = []
        self.filters.clear()
        self.selected_id = None
        self.drilldown.close()
        self.dirty.clear()
        self._render_queue = []
        self.side_panel_open = False
        self.edit_mode = False
