"""
Observability for Gridboard.

Provides structured logging for editor lifecycle events.
"""

from gridboard.observability.logging import (
    BoardLogger,
    HumanReadableFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "BoardLogger",
    "HumanReadableFormatter",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
]
