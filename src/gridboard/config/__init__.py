"""
Configuration management for Gridboard.

Provides configuration classes and utilities for the canvas grid,
chart binding limits, and logging.
"""

from gridboard.config.board_config import (
    BoardConfiguration,
    DrilldownThresholds,
    load_config_from_env,
)

__all__ = [
    "BoardConfiguration",
    "DrilldownThresholds",
    "load_config_from_env",
]
