"""
Board configuration for Gridboard.

Provides configuration management for the canvas grid, chart binding
limits, and logging settings.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gridboard.exceptions import ConfigurationError
from gridboard.observability.logging import configure_logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DrilldownThresholds:
    """Share-of-total thresholds used to classify drilldown rows."""

    healthy_above: float = 0.30
    risk_below: float = 0.18

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "healthy_above": self.healthy_above,
            "risk_below": self.risk_below,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DrilldownThresholds:
        """Create from dictionary."""
        return cls(
            healthy_above=float(data.get("healthy_above", 0.30)),
            risk_below=float(data.get("risk_below", 0.18)),
        )


@dataclass
class BoardConfiguration:
    """
    Complete board configuration.

    Attributes:
        grid_columns: Number of columns in the canvas grid
        row_height_px: Pixel height of one grid row, used by resize
        default_limit: Row limit given to new chart widgets
        max_limit: Upper bound for a chart's row limit
        max_measures: Maximum number of measures bound to one chart
        default_dataset: Dataset assigned to new chart widgets
        drilldown: Drilldown status thresholds
        log_level: Logging level name
        log_format: Logging format (human or json)
    """

    grid_columns: int = 12
    row_height_px: int = 80
    default_limit: int = 4
    max_limit: int = 10
    max_measures: int = 2
    default_dataset: str = "Invoices"
    drilldown: DrilldownThresholds = field(default_factory=DrilldownThresholds)
    log_level: str = "INFO"
    log_format: str = "human"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError when a value is out of range."""
        if self.grid_columns < 1:
            raise ConfigurationError("grid_columns must be at least 1")
        if self.row_height_px < 1:
            raise ConfigurationError("row_height_px must be at least 1")
        if not 0 <= self.default_limit <= self.max_limit:
            raise ConfigurationError(
                f"default_limit must be between 0 and {self.max_limit}"
            )
        if self.max_measures < 1:
            raise ConfigurationError("max_measures must be at least 1")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        if self.log_format not in ("human", "json"):
            raise ConfigurationError(f"Unknown log format: {self.log_format}")
        if self.drilldown.risk_below > self.drilldown.healthy_above:
            raise ConfigurationError(
                "drilldown.risk_below must not exceed drilldown.healthy_above"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "grid_columns": self.grid_columns,
            "row_height_px": self.row_height_px,
            "default_limit": self.default_limit,
            "max_limit": self.max_limit,
            "max_measures": self.max_measures,
            "default_dataset": self.default_dataset,
            "drilldown": self.drilldown.to_dict(),
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BoardConfiguration:
        """Create from dictionary."""
        try:
            return cls(
                grid_columns=int(data.get("grid_columns", 12)),
                row_height_px=int(data.get("row_height_px", 80)),
                default_limit=int(data.get("default_limit", 4)),
                max_limit=int(data.get("max_limit", 10)),
                max_measures=int(data.get("max_measures", 2)),
                default_dataset=data.get("default_dataset", "Invoices"),
                drilldown=DrilldownThresholds.from_dict(data.get("drilldown", {})),
                log_level=data.get("log_level", "INFO"),
                log_format=data.get("log_format", "human"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid board configuration: {e}") from e

    @classmethod
    def from_json(cls, json_str: str) -> BoardConfiguration:
        """Create from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_file(cls, path: str) -> BoardConfiguration:
        """Load configuration from a JSON or YAML file."""
        path = os.path.expanduser(path)
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                return cls.from_dict(json.load(f))
            return cls.from_dict(yaml.safe_load(f) or {})

    def apply_logging(self) -> None:
        """Configure the gridboard loggers from ``log_level`` and ``log_format``."""
        configure_logging(level=self.log_level, format=self.log_format)

    def save(self, path: str) -> None:
        """Save configuration to file."""
        path = os.path.expanduser(path)
        Path(path).parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            if path.endswith(".json"):
                json.dump(self.to_dict(), f, indent=2)
            else:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False)


def load_config_from_env() -> BoardConfiguration:
    """
    Load configuration from environment variables.

    Environment variables:
        GRIDBOARD_CONFIG_FILE: Path to a configuration file loaded first
        GRIDBOARD_GRID_COLUMNS: Grid column count
        GRIDBOARD_ROW_HEIGHT: Row height in pixels
        GRIDBOARD_DEFAULT_LIMIT: Default chart row limit
        GRIDBOARD_DEFAULT_DATASET: Dataset for new charts
        GRIDBOARD_LOG_LEVEL: Log level
        GRIDBOARD_LOG_FORMAT: Log format (human, json)

    The loaded log level and format are applied to the gridboard loggers.

    Returns:
        BoardConfiguration from environment
    """
    config_file = os.getenv("GRIDBOARD_CONFIG_FILE")
    if config_file and os.path.exists(os.path.expanduser(config_file)):
        data = BoardConfiguration.from_file(config_file).to_dict()
    else:
        data = {}

    overrides = {
        "grid_columns": os.getenv("GRIDBOARD_GRID_COLUMNS"),
        "row_height_px": os.getenv("GRIDBOARD_ROW_HEIGHT"),
        "default_limit": os.getenv("GRIDBOARD_DEFAULT_LIMIT"),
        "default_dataset": os.getenv("GRIDBOARD_DEFAULT_DATASET"),
        "log_level": os.getenv("GRIDBOARD_LOG_LEVEL"),
        "log_format": os.getenv("GRIDBOARD_LOG_FORMAT"),
    }
    data.update({key: value for key, value in overrides.items() if value})

    config = BoardConfiguration.from_dict(data)
    config.apply_logging()
    return config
