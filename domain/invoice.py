"""
Invoice line-item schema definitions.

InvoiceLineItem is the normalized structure used across the whole invoice
pipeline. The extraction layer produces ExtractedItem dicts (no id, no file
name); the normalizer turns them into InvoiceLineItem dicts that the editing
and export layers work on.

Products and the nomenclature table are immutable reference data: a table is
created once per upload and replaced wholesale, never edited in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TypedDict


UNKNOWN = "UNKNOWN"
CUSTOM = "CUSTOM"
DEFAULT_UNIT_OF_MEASURE = "pcs"

# Fields that can be edited with user-typed numbers.
NUMERIC_FIELDS = ("quantity", "unitPrice", "totalQuantity", "totalPrice")
# Editing one of these recomputes totalPrice.
PRICE_BASIS_FIELDS = ("quantity", "unitPrice")
TEXT_FIELDS = ("originalName", "unitOfMeasure")


class Vertex(TypedDict):
    x: float
    y: float


class ExtractedItem(TypedDict, total=False):
    matchedProductName: str
    originalName: str
    quantity: float
    unitPrice: float
    totalPrice: float
    sku: str
    totalQuantity: Optional[float]
    unitOfMeasure: str
    boundingBox: List[Vertex]


class InvoiceLineItem(ExtractedItem, total=False):
    id: str
    invoiceFileName: str


class AggregatedItem(TypedDict, total=False):
    sku: str
    matchedProductName: str
    unitOfMeasure: str
    unitPrice: float
    quantity: float
    totalQuantity: float
    totalPrice: float
    invoiceFileName: str
    originalName: str
    minUnitPrice: float
    maxUnitPrice: float
    lineCount: int


class ExportColumn(TypedDict):
    key: str
    header: str
    enabled: bool
    order: int


@dataclass(frozen=True)
class Product:
    name: str
    sku: str


@dataclass(frozen=True)
class NomenclatureTable:
    """Parsed nomenclature: products for matching plus the raw table for round-tripping."""

    products: Tuple[Product, ...] = ()
    headers: Tuple[str, ...] = ()
    rows: Tuple[Tuple[Any, ...], ...] = ()
    raw_text: str = ""
    warning: Optional[str] = None
    _by_sku: Dict[str, Product] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for product in self.products:
            self._by_sku.setdefault(product.sku, product)

    @property
    def is_empty(self) -> bool:
        return not self.products

    def find_by_sku(self, sku: Optional[str]) -> Optional[Product]:
        if not sku:
            return None
        return self._by_sku.get(sku)

    def find_by_name(self, name: Optional[str]) -> Optional[Product]:
        """Exact match first, then case-insensitive trimmed match. First product wins."""
        if not name:
            return None
        for product in self.products:
            if product.name == name:
                return product
        wanted = name.strip().lower()
        for product in self.products:
            if product.name.strip().lower() == wanted:
                return product
        return None

    def product_names(self) -> List[str]:
        return [p.name for p in self.products]
