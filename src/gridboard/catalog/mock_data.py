"""
Deterministic mock data source for Gridboard.

Stands in for a warehouse query: every dimension resolves to a small
fixed set of category values, and every numeric value is derived from
character codes so that re-evaluating an unchanged widget reproduces
identical output.
"""

from __future__ import annotations

import math
from typing import Dict, List

DEFAULT_CATEGORY_VALUES: Dict[str, List[str]] = {
    "Region": ["North", "South", "West", "East"],
    "Store Name": ["Store A", "Store B", "Store C", "Store D"],
    "Billing Date": ["Week 1", "Week 2", "Week 3", "Week 4"],
    "Customer Name": ["Acme Ltd", "Nova LLC", "Pioneer Co", "BluePeak"],
    "TX Type": ["UPI", "Card", "Bank", "Wallet"],
}

FALLBACK_CATEGORY_VALUES: List[str] = ["Segment A", "Segment B", "Segment C", "Segment D"]


def js_round(value: float) -> int:
    """Round half up, matching the rounding the values were tuned with."""
    return int(math.floor(value + 0.5))


def char_code_seed(text: str) -> int:
    """Sum of the character codes of ``text``."""
    return sum(ord(ch) for ch in text)


class MockDataSource:
    """
    Pluggable source of categorical values and their measure values.

    Subclass and override ``get_categorical_values`` or ``category_value``
    to feed the query pipeline from somewhere else.
    """

    def __init__(self, category_values: Dict[str, List[str]] | None = None):
        self.category_values = dict(
            DEFAULT_CATEGORY_VALUES if category_values is None else category_values
        )

    def get_categorical_values(self, dimension_name: str) -> List[str]:
        """Get the categories of a dimension, or the generic fallback set."""
        return list(self.category_values.get(dimension_name, FALLBACK_CATEGORY_VALUES))

    def category_value(self, category: str, index: int) -> float:
        """Value of the category at ``index`` in its fetched order."""
        first = ord(category[0]) if category else 0
        seed = first + (index + 1) * 9
        return float(900 + (seed % 8) * 240)

    def damping_factor(self, filter_value: str) -> float:
        """
        Multiplier simulating a filter on a dimension not on the chart axis.

        Ranges over 0.65..0.94 and depends only on the filter value.
        """
        return 0.65 + (char_code_seed(filter_value) % 30) / 100
