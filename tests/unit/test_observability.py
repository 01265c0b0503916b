"""
Unit tests for observability module.

Tests the formatters and the editor event helpers of BoardLogger.
"""

from __future__ import annotations

import json
import logging

import pytest

from gridboard.observability import (
    BoardLogger,
    HumanReadableFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gridboard.test",
        level=logging.INFO,
        pathname="/app/editor.py",
        lineno=42,
        msg="Chart saved",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def board_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="gridboard")
    return caplog


# ============================================================================
# Formatter Tests
# ============================================================================


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_format_basic_record(self) -> None:
        """Test output is JSON with level, logger and message."""
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["message"] == "Chart saved"
        assert data["level"] == "info"
        assert data["logger"] == "gridboard.test"
        assert "timestamp" in data

    def test_extra_fields_are_included(self) -> None:
        formatter = StructuredFormatter(include_timestamp=False, extra_fields={"app": "board"})
        data = json.loads(formatter.format(make_record(event_type="chart.saved", widget_id="el-1")))
        assert "timestamp" not in data
        assert data["event_type"] == "chart.saved"
        assert data["widget_id"] == "el-1"
        assert data["app"] == "board"

    def test_format_with_location(self) -> None:
        data = json.loads(StructuredFormatter(include_location=True).format(make_record()))
        assert data["location"]["line"] == 42
        assert data["location"]["file"] == "/app/editor.py"


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_format_basic_record(self) -> None:
        output = HumanReadableFormatter(use_colors=False).format(make_record())
        assert "INFO" in output
        assert "gridboard.test: Chart saved" in output

    def test_without_timestamp_or_level(self) -> None:
        formatter = HumanReadableFormatter(use_colors=False, include_timestamp=False, include_level=False)
        assert formatter.format(make_record()) == "gridboard.test: Chart saved"


# ============================================================================
# BoardLogger Tests
# ============================================================================


class TestBoardLogger:
    """Tests for BoardLogger."""

    def test_get_logger_prefixes_name(self) -> None:
        assert get_logger("dashboards.editor").logger.name == "gridboard.dashboards.editor"
        assert get_logger("gridboard.query").logger.name == "gridboard.query"

    def test_context_is_attached(self, board_logs) -> None:
        logger = BoardLogger("gridboard.test")
        logger.set_context(dashboard="Ops")
        logger.info("Hello", step=1)
        record = board_logs.records[-1]
        assert record.dashboard == "Ops"
        assert record.step == 1

        logger.clear_context()
        logger.info("Again")
        assert not hasattr(board_logs.records[-1], "dashboard")

    def test_chart_save_failed_is_error(self, board_logs) -> None:
        get_logger("test").chart_save_failed("el-1", "offline")
        record = board_logs.records[-1]
        assert record.levelno == logging.ERROR
        assert record.event_type == "chart.save_failed"
        assert record.error == "offline"

    def test_page_filter_changed(self, board_logs) -> None:
        get_logger("test").page_filter_changed("Region", "North", ["Sales by Region"])
        record = board_logs.records[-1]
        assert record.filter_column == "Region"
        assert record.filter_value == "North"
        assert record.chart_titles == ["Sales by Region"]


class TestEditorEvents:
    """Tests for events logged by the editor."""

    def test_widget_lifecycle(self, editor, board_logs) -> None:
        chart = editor.add_chart()
        editor.remove_widget(chart.id)
        events = [getattr(r, "event_type", None) for r in board_logs.records]
        assert "widget.added" in events
        removed = [r for r in board_logs.records if getattr(r, "event_type", None) == "widget.removed"]
        assert removed[0].was_dirty is True

    def test_drilldown_and_save(self, editor, bound_chart, board_logs) -> None:
        editor.open_drilldown(bound_chart.id, "North")
        editor.save_chart(bound_chart.id)
        by_event = {getattr(r, "event_type", None): r for r in board_logs.records}
        assert by_event["drilldown.opened"].point_label == "North"
        assert by_event["chart.saved"].title == "Total Sales by Region"

    def test_page_switch_is_debug(self, editor, board_logs) -> None:
        editor.add_page()
        switched = [r for r in board_logs.records if getattr(r, "event_type", None) == "page.switched"]
        assert switched[0].levelno == logging.DEBUG


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_handler(self) -> None:
        root = logging.getLogger("gridboard")
        previous = list(root.handlers), root.level
        try:
            configure_logging(level="WARNING", format="json", output="stdout")
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        finally:
            root.handlers[:] = previous[0]
            root.setLevel(previous[1])
