"""
Field catalog for Gridboard.

Provides the static mapping from dataset name to its ordered fields,
each tagged as a dimension or a measure. Consumed read-only by the
binding setters, page filters and query pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional


class FieldKind(Enum):
    """Role a field can play in a chart binding."""
    DIMENSION = "dimension"
    MEASURE = "measure"


@dataclass(frozen=True, eq=False)
class Field:
    """
    A dataset field.

    Two fields are the same entity when their ids match within a dataset,
    so equality and hashing only consider ``id``.

    Attributes:
        id: Identifier unique within the dataset
        name: Display name, also the persisted name
        kind: Dimension or measure
    """
    id: str
    name: str
    kind: FieldKind

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_dimension(self) -> bool:
        return self.kind == FieldKind.DIMENSION

    @property
    def is_measure(self) -> bool:
        return self.kind == FieldKind.MEASURE

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name, "type": self.kind.value}


def _dims(*pairs: tuple) -> List[Field]:
    return [Field(id=fid, name=name, kind=FieldKind.DIMENSION) for fid, name in pairs]


def _measures(*pairs: tuple) -> List[Field]:
    return [Field(id=fid, name=name, kind=FieldKind.MEASURE) for fid, name in pairs]


DEFAULT_DATASETS: Dict[str, List[Field]] = {
    "Invoices": _dims(
        ("i1", "Invoice ID"),
        ("i2", "Customer Name"),
        ("i3", "Billing Date"),
        ("i4", "Due Date"),
        ("i5", "Region"),
        ("i6", "Country"),
        ("i7", "City"),
        ("i8", "Sales Rep"),
        ("i9", "Payment Status"),
        ("i10", "Customer Segment"),
        ("i11", "Invoice Type"),
    ) + _measures(
        ("im1", "Invoice Amount"),
        ("im2", "Tax Total"),
        ("im3", "Discount Amount"),
        ("im4", "Net Amount"),
        ("im5", "Paid Amount"),
        ("im6", "Balance Due"),
    ),
    "Sales": _dims(
        ("s1", "Category"),
        ("s2", "Region"),
        ("s3", "Store Name"),
    ) + _measures(
        ("sm1", "Total Sales"),
        ("sm2", "Profit Margin"),
    ),
    "Transactions": _dims(
        ("t1", "TX Type"),
        ("t2", "Merchant"),
    ) + _measures(
        ("tm1", "Amount"),
        ("tm2", "Volume"),
    ),
}


class FieldCatalog:
    """
    Read-only catalog of dataset fields.

    Field order within a dataset is preserved; it is the order presented
    to users and the order used when several measures are selected.
    """

    def __init__(self, datasets: Optional[Dict[str, Iterable[Field]]] = None):
        source = DEFAULT_DATASETS if datasets is None else datasets
        self._datasets: Dict[str, List[Field]] = {
            name: list(fields) for name, fields in source.items()
        }

    def dataset_names(self) -> List[str]:
        """Get dataset names in declaration order."""
        return list(self._datasets.keys())

    def has_dataset(self, dataset: str) -> bool:
        return dataset in self._datasets

    def get_fields(self, dataset: str) -> List[Field]:
        """Get all fields of a dataset; unknown datasets have none."""
        return list(self._datasets.get(dataset, []))

    def get_dimensions(self, dataset: str) -> List[Field]:
        return [f for f in self.get_fields(dataset) if f.is_dimension]

    def get_measures(self, dataset: str) -> List[Field]:
        return [f for f in self.get_fields(dataset) if f.is_measure]

    def dimension_names(self, dataset: str) -> List[str]:
        """Get the names of a dataset's dimension fields."""
        return [f.name for f in self.get_dimensions(dataset)]

    def find_by_id(self, dataset: str, field_id: Optional[str]) -> Optional[Field]:
        """Look up a field by id within a dataset."""
        if not field_id:
            return None
        for f in self._datasets.get(dataset, []):
            if f.id == field_id:
                return f
        return None

    def find_by_name(self, dataset: str, name: Optional[str]) -> Optional[Field]:
        """Look up a field by its persisted name within a dataset."""
        if not name:
            return None
        for f in self._datasets.get(dataset, []):
            if f.name == name:
                return f
        return None

    def search(
        self,
        dataset: str,
        term: str,
        kind: Optional[FieldKind] = None,
    ) -> List[Field]:
        """
        Search fields by case-insensitive substring of their name.

        Args:
            dataset: Dataset to search
            term: Search text; blank returns every field
            kind: Restrict to dimensions or measures

        Returns:
            Matching fields in catalog order
        """
        fields = self.get_fields(dataset)
        if kind is not None:
            fields = [f for f in fields if f.kind == kind]
        needle = term.strip().lower()
        if not needle:
            return fields
        return [f for f in fields if needle in f.name.lower()]
