"""
Unit tests for the field catalog and mock data source.
"""

from __future__ import annotations

from gridboard.catalog import (
    FALLBACK_CATEGORY_VALUES,
    Field,
    FieldCatalog,
    FieldKind,
    MockDataSource,
    char_code_seed,
    js_round,
)


class TestFieldCatalog:
    """Tests for FieldCatalog."""

    def test_datasets(self, catalog):
        assert catalog.dataset_names() == ["Invoices", "Sales", "Transactions"]
        assert catalog.has_dataset("Sales")
        assert not catalog.has_dataset("Warehouse")
        assert catalog.get_fields("Warehouse") == []

    def test_fields_keep_declaration_order(self, catalog):
        assert catalog.dimension_names("Sales") == ["Category", "Region", "Store Name"]
        assert [m.name for m in catalog.get_measures("Sales")] == ["Total Sales", "Profit Margin"]
        assert len(catalog.get_dimensions("Invoices")) == 11
        assert len(catalog.get_measures("Invoices")) == 6

    def test_lookup(self, catalog):
        assert catalog.find_by_id("Sales", "s2").name == "Region"
        assert catalog.find_by_name("Invoices", "Tax Total").id == "im2"
        assert catalog.find_by_id("Sales", "i5") is None
        assert catalog.find_by_id("Sales", None) is None
        assert catalog.find_by_name("Sales", "") is None

    def test_search(self, catalog):
        assert [f.name for f in catalog.search("Invoices", "  AMOUNT ")] == [
            "Invoice Amount",
            "Discount Amount",
            "Net Amount",
            "Paid Amount",
        ]
        assert len(catalog.search("Sales", "", FieldKind.DIMENSION)) == 3

    def test_field_identity_is_id(self):
        a = Field(id="x1", name="Region", kind=FieldKind.DIMENSION)
        b = Field(id="x1", name="Renamed", kind=FieldKind.DIMENSION)
        assert a == b
        assert len({a, b}) == 1
        assert a.to_dict() == {"id": "x1", "name": "Region", "type": "dimension"}

    def test_custom_datasets(self):
        custom = FieldCatalog({"Orders": [Field("o1", "Order ID", FieldKind.DIMENSION)]})
        assert custom.dataset_names() == ["Orders"]


class TestMockDataSource:
    """Tests for MockDataSource."""

    def test_known_and_fallback_categories(self, data_source):
        assert data_source.get_categorical_values("TX Type") == ["UPI", "Card", "Bank", "Wallet"]
        assert data_source.get_categorical_values("Country") == FALLBACK_CATEGORY_VALUES

    def test_category_values(self, data_source):
        values = [data_source.category_value(c, i) for i, c in enumerate(["North", "South", "West", "East"])]
        assert values == [2580, 2100, 1380, 1140]

    def test_damping_factor_range(self, data_source):
        assert data_source.damping_factor("North") == 0.65 + 13 / 100
        for value in ["Store A", "Segment B", "Week 4", "x"]:
            assert 0.65 <= data_source.damping_factor(value) <= 0.94

    def test_char_code_seed_and_rounding(self):
        assert char_code_seed("North") == 523
        assert js_round(2.5) == 3
        assert js_round(-2.5) == -2
        assert js_round(1451.4) == 1451

    def test_override_categories(self):
        source = MockDataSource({"Region": ["Inner", "Outer"]})
        assert source.get_categorical_values("Region") == ["Inner", "Outer"]
        assert source.get_categorical_values("Store Name") == FALLBACK_CATEGORY_VALUES
