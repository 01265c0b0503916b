"""
Structured logging configuration for Gridboard.

Provides consistent, structured logging across the canvas, query and
persistence modules with support for JSON and human-readable output.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


_RESERVED_RECORD_KEYS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs structured JSON logs.

    Useful when the embedding front end ships logs to an aggregator.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_location: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ):
        """
        Initialize structured formatter.

        Args:
            include_timestamp: Include timestamp in output
            include_level: Include log level in output
            include_logger: Include logger name in output
            include_location: Include file/line location
            extra_fields: Additional fields to include in every log
        """
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_location = include_location
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = (
                datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
            )

        if self.include_level:
            log_data["level"] = record.levelname.lower()

        if self.include_logger:
            log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        if self.include_location:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        log_data.update(self.extra_fields)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable logs.

    Useful for local development of an embedding front end.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        use_colors: bool = True,
        include_timestamp: bool = True,
        include_level: bool = True,
    ):
        """
        Initialize human-readable formatter.

        Args:
            use_colors: Use ANSI colors in output
            include_timestamp: Include timestamp in output
            include_level: Include log level in output
        """
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()
        self.include_timestamp = include_timestamp
        self.include_level = include_level

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        parts = []

        if self.include_timestamp:
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(f"[{timestamp}]")

        if self.include_level:
            level = record.levelname
            if self.use_colors and level in self.COLORS:
                level = f"{self.COLORS[level]}{level}{self.RESET}"
            parts.append(f"{level:>8}")

        parts.append(f"{record.name}:")
        parts.append(record.getMessage())

        output = " ".join(parts)

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)

        return output


class BoardLogger:
    """
    Wrapper around Python logging for dashboard editor events.

    Provides convenient methods for logging with context and for the
    lifecycle events the editor emits (widget changes, saves, drilldowns).
    """

    def __init__(self, name: str, level: int = logging.NOTSET):
        """
        Initialize board logger.

        Args:
            name: Logger name
            level: Log level; NOTSET defers to the gridboard root logger
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self._context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        """Set persistent context fields for all logs."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        """Clear context fields."""
        self._context.clear()

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        """Internal logging method with context."""
        extra = {**self._context, **kwargs}
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def widget_added(self, widget_id: str, widget_kind: str, page_id: str) -> None:
        """Log widget creation event."""
        self.info(
            "Widget added",
            event_type="widget.added",
            widget_id=widget_id,
            widget_kind=widget_kind,
            page_id=page_id,
        )

    def widget_removed(self, widget_id: str, page_id: str, was_dirty: bool) -> None:
        """Log widget removal event."""
        self.info(
            "Widget removed",
            event_type="widget.removed",
            widget_id=widget_id,
            page_id=page_id,
            was_dirty=was_dirty,
        )

    def chart_saved(self, widget_id: str, title: str) -> None:
        """Log successful chart save."""
        self.info(
            "Chart saved",
            event_type="chart.saved",
            widget_id=widget_id,
            title=title,
        )

    def chart_save_failed(self, widget_id: str, error: str) -> None:
        """Log chart save failure."""
        self.error(
            "Chart save failed",
            event_type="chart.save_failed",
            widget_id=widget_id,
            error=error,
        )

    def drilldown_opened(
        self,
        widget_id: str,
        point_label: str,
        source_row: int,
        eligible_widget_ids: list[str] | None = None,
    ) -> None:
        """Log drilldown panel open event."""
        self.info(
            "Drilldown opened",
            event_type="drilldown.opened",
            widget_id=widget_id,
            point_label=point_label,
            source_row=source_row,
            eligible_widget_ids=eligible_widget_ids or [],
        )

    def page_switched(self, from_page_id: str, to_page_id: str) -> None:
        """Log page switch event."""
        self.debug(
            "Page switched",
            event_type="page.switched",
            from_page_id=from_page_id,
            to_page_id=to_page_id,
        )

    def page_filter_changed(
        self,
        column: str,
        value: str,
        eligible_titles: list[str],
    ) -> None:
        """Log page filter refresh event."""
        self.info(
            "Page filter changed",
            event_type="page_filter.changed",
            filter_column=column,
            filter_value=value,
            chart_titles=eligible_titles,
        )


def configure_logging(
    level: str = "INFO",
    format: str = "human",
    output: str = "stderr",
    extra_fields: dict[str, Any] | None = None,
) -> None:
    """
    Configure logging for Gridboard.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format (human, json)
        output: Output destination (stderr, stdout)
        extra_fields: Extra fields to include in structured logs
    """
    root_logger = logging.getLogger("gridboard")
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    if output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler(sys.stderr)

    if format == "json":
        formatter: logging.Formatter = StructuredFormatter(extra_fields=extra_fields)
    else:
        formatter = HumanReadableFormatter()

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> BoardLogger:
    """
    Get a Gridboard logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        BoardLogger instance
    """
    if name.startswith("gridboard."):
        return BoardLogger(name)
    return BoardLogger(f"gridboard.{name}")


# Configure logging from environment on import
_log_level = os.getenv("GRIDBOARD_LOG_LEVEL", "INFO")
_log_format = os.getenv("GRIDBOARD_LOG_FORMAT", "human")
configure_logging(level=_log_level, format=_log_format)
