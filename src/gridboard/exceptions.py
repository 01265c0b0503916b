"""
Exception hierarchy for Gridboard.

Binding mistakes (wrong field kind for a slot) and empty data are not
errors: setters reject them silently and the query pipeline returns a
no-data result. The exceptions below cover programming errors on explicit
operations and failures reported by external collaborators.
"""

from __future__ import annotations


class GridboardError(Exception):
    """Base exception for Gridboard errors."""
    pass


class WidgetNotFoundError(GridboardError):
    """Raised when an operation names a widget that is not on the page."""

    def __init__(self, widget_id: str):
        self.widget_id = widget_id
        super().__init__(f"Widget not found: {widget_id}")


class PageNotFoundError(GridboardError):
    """Raised when an operation names an unknown page."""

    def __init__(self, page_id: str):
        self.page_id = page_id
        super().__init__(f"Page not found: {page_id}")


class InteractionInProgressError(GridboardError):
    """Raised when a drag or resize starts while another one is active."""
    pass


class PersistenceError(GridboardError):
    """Raised or reported when the persistence adapter fails."""

    def __init__(self, message: str, widget_id: str | None = None):
        self.widget_id = widget_id
        super().__init__(message)


class ConfigurationError(GridboardError):
    """Raised for invalid board configuration values."""
    pass
