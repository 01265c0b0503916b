"""
Unit tests for chart payloads, dashboard documents and persistence adapters.
"""

from __future__ import annotations

import json

import pytest
import yaml

from gridboard.dashboards.models import (
    Aggregation,
    Page,
    PageFilter,
    TextConfig,
    VisualType,
    Widget,
)
from gridboard.dashboards.persistence import (
    FilePersistenceAdapter,
    InMemoryPersistenceAdapter,
    SaveResponse,
    build_chart_payload,
    deserialize_dashboard,
    deserialize_widget,
    serialize_dashboard,
)
from gridboard.exceptions import PersistenceError

PAYLOAD_KEYS = {
    "id", "title", "visType", "xAxis", "yAxis", "yAxes", "yAggByMeasure",
    "yAgg", "labelPosition", "width", "height", "dataset", "legend",
    "drillDownField", "columnsField", "dateColumn", "conditionString",
    "limit", "dataLabelOption", "enableCombination", "sortBy",
}


class Recorder:
    """Collects callback invocations."""

    def __init__(self):
        self.successes = []
        self.errors = []

    def ok(self, value):
        self.successes.append(value)

    def fail(self, error):
        self.errors.append(error)


class TestChartPayload:
    """Tests for build_chart_payload."""

    def test_names_not_ids(self, make_chart):
        widget = make_chart(measure_ids=["sm1", "sm2"], aggregation=Aggregation.AVG)
        payload = build_chart_payload(widget)

        assert set(payload) == PAYLOAD_KEYS
        assert payload["xAxis"] == "Region"
        assert payload["yAxis"] == "Total Sales"
        assert payload["yAxes"] == ["Total Sales", "Profit Margin"]
        assert payload["yAgg"] == "Avg"
        assert payload["yAggByMeasure"] == {"Total Sales": "Avg", "Profit Margin": "Sum"}
        assert payload["labelPosition"] == "Btm"
        assert payload["visType"] == "column"
        assert payload["width"] == 4

    def test_unbound_chart(self):
        payload = build_chart_payload(Widget.new_chart())
        assert payload["xAxis"] is None
        assert payload["yAxis"] is None
        assert payload["yAxes"] == []
        assert payload["yAgg"] == "Sum"

    def test_text_widget_rejected(self):
        with pytest.raises(ValueError):
            build_chart_payload(Widget.new_text())


class TestDashboardDocument:
    """Tests for serialize_dashboard and deserialize_dashboard."""

    def test_round_trip(self, catalog, make_chart):
        chart = make_chart(visual_type=VisualType.PIE, limit=6)
        note = Widget.new_text(TextConfig(content="Notes", font_size=18))
        pages = [Page(id="p1", name="Overview", widgets=[chart, note]), Page(id="p2", name="Empty")]
        document = serialize_dashboard("Ops", pages, [PageFilter("Region", "North")])

        loaded = deserialize_dashboard(json.loads(json.dumps(document)), catalog)

        assert loaded.name == "Ops"
        assert [p.name for p in loaded.pages] == ["Overview", "Empty"]
        restored_chart, restored_note = loaded.pages[0].widgets
        assert restored_chart.id == chart.id
        assert restored_chart.chart.dimension == chart.chart.dimension
        assert restored_chart.chart.visual_type == VisualType.PIE
        assert restored_chart.chart.limit == 6
        assert restored_note.text.content == "Notes"
        assert restored_note.text.font_size == 18
        assert loaded.page_filters == [PageFilter("Region", "North")]

    def test_custom_title_stays_locked(self, catalog, make_chart):
        chart = make_chart(title="Regional sales", title_is_user_edited=True)
        data = build_chart_payload(chart)
        restored = deserialize_widget(data, catalog)
        assert restored.chart.title == "Regional sales"
        assert restored.chart.title_is_user_edited

    def test_unknown_names_are_dropped(self, catalog):
        data = {"id": "el-1", "type": "chart", "dataset": "Sales", "xAxis": "Planet", "yAxes": ["Total Sales", "Region"]}
        widget = deserialize_widget(data, catalog)
        assert widget.chart.dimension is None
        assert widget.chart.measure_ids == ["sm1"]

    def test_null_filter_value_means_all(self, catalog):
        document = {"pages": [{"id": "p1", "widgets": []}], "page_filters": [{"column": "Region", "value": None}]}
        loaded = deserialize_dashboard(document, catalog)
        assert loaded.page_filters == [PageFilter("Region", "All")]
        assert not loaded.page_filters[0].is_active

    def test_unknown_widget_type(self, catalog):
        with pytest.raises(PersistenceError):
            deserialize_widget({"id": "x", "type": "video"}, catalog)

    def test_malformed_document(self, catalog):
        with pytest.raises(PersistenceError):
            deserialize_dashboard(["not", "a", "mapping"], catalog)
        with pytest.raises(PersistenceError):
            deserialize_dashboard({"pages": [{"widgets": [{"type": "chart", "width": "wide"}]}]}, catalog)


class TestInMemoryPersistenceAdapter:
    """Tests for InMemoryPersistenceAdapter."""

    def test_load_without_document_fails(self):
        recorder = Recorder()
        InMemoryPersistenceAdapter().load_dashboard(recorder.ok, recorder.fail)
        assert recorder.successes == []
        assert isinstance(recorder.errors[0], PersistenceError)

    def test_save_widget_resolves_immediately(self):
        recorder = Recorder()
        adapter = InMemoryPersistenceAdapter()
        adapter.save_widget({"id": "el-1", "title": "A"}, recorder.ok, recorder.fail)
        assert isinstance(recorder.successes[0], SaveResponse)
        assert adapter.saved_widgets["el-1"]["title"] == "A"

    def test_pending_until_resolved(self):
        recorder = Recorder()
        adapter = InMemoryPersistenceAdapter(auto_resolve=False)
        adapter.save_widget({"id": "el-1"}, recorder.ok, recorder.fail)
        assert adapter.pending_count == 1
        assert recorder.successes == []
        assert adapter.resolve_pending() == 1
        assert len(recorder.successes) == 1
        assert adapter.pending_count == 0

    def test_fail_pending(self):
        recorder = Recorder()
        adapter = InMemoryPersistenceAdapter(auto_resolve=False)
        adapter.save_widget({"id": "el-1"}, recorder.ok, recorder.fail)
        adapter.fail_pending()
        assert isinstance(recorder.errors[0], PersistenceError)
        assert adapter.saved_widgets == {}

    def test_fail_with(self):
        recorder = Recorder()
        adapter = InMemoryPersistenceAdapter(fail_with=RuntimeError("offline"))
        adapter.save_dashboard({"pages": []}, recorder.ok, recorder.fail)
        assert str(recorder.errors[0]) == "offline"
        assert adapter.saved_documents == []

    def test_saved_dashboard_is_loadable(self):
        recorder = Recorder()
        adapter = InMemoryPersistenceAdapter()
        adapter.save_dashboard({"dashboard_name": "X", "pages": []}, recorder.ok, recorder.fail)
        adapter.load_dashboard(recorder.ok, recorder.fail)
        assert recorder.successes[-1] == {"dashboard_name": "X", "pages": []}


class TestFilePersistenceAdapter:
    """Tests for FilePersistenceAdapter."""

    @pytest.mark.parametrize("filename", ["board.json", "board.yaml"])
    def test_save_and_load(self, tmp_path, filename):
        recorder = Recorder()
        adapter = FilePersistenceAdapter(tmp_path / "nested" / filename)
        document = {"dashboard_name": "Ops", "pages": [], "page_filters": []}

        adapter.save_dashboard(document, recorder.ok, recorder.fail)
        adapter.save_widget({"id": "el-1", "title": "A"}, recorder.ok, recorder.fail)
        adapter.load_dashboard(recorder.ok, recorder.fail)

        assert recorder.errors == []
        assert recorder.successes[-1] == document

    def test_file_format_follows_suffix(self, tmp_path):
        recorder = Recorder()
        adapter = FilePersistenceAdapter(tmp_path / "board.yml")
        adapter.save_widget({"id": "el-1", "title": "A"}, recorder.ok, recorder.fail)
        data = yaml.safe_load((tmp_path / "board.yml").read_text())
        assert data["widgets"]["el-1"]["title"] == "A"

    def test_missing_file_reports_error(self, tmp_path):
        recorder = Recorder()
        FilePersistenceAdapter(tmp_path / "absent.json").load_dashboard(recorder.ok, recorder.fail)
        assert isinstance(recorder.errors[0], PersistenceError)

    def test_corrupt_file_reports_error(self, tmp_path):
        path = tmp_path / "board.json"
        path.write_text("{not json")
        recorder = Recorder()
        FilePersistenceAdapter(path).load_dashboard(recorder.ok, recorder.fail)
        assert isinstance(recorder.errors[0], PersistenceError)
