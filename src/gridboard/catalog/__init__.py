"""
Field catalog and mock data for Gridboard.

The field catalog and data source are external collaborators of the
canvas core; the implementations here are the in-process defaults.
"""

from gridboard.catalog.fields import (
    DEFAULT_DATASETS,
    Field,
    FieldCatalog,
    FieldKind,
)
from gridboard.catalog.mock_data import (
    DEFAULT_CATEGORY_VALUES,
    FALLBACK_CATEGORY_VALUES,
    MockDataSource,
    char_code_seed,
    js_round,
)

__all__ = [
    "DEFAULT_DATASETS",
    "Field",
    "FieldCatalog",
    "FieldKind",
    "DEFAULT_CATEGORY_VALUES",
    "FALLBACK_CATEGORY_VALUES",
    "MockDataSource",
    "char_code_seed",
    "js_round",
]
