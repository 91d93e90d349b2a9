"""
Cross-invoice aggregation by SKU.

Policy:
- Items with sku "UNKNOWN" are left out entirely (unmatched noise, not inventory).
- quantity, totalQuantity and totalPrice are summed.
- matchedProductName, unitOfMeasure and unitPrice come from the FIRST item of the
  group. Later items never overwrite them, even if their price differs.
- invoiceFileName and originalName become the "; "-joined distinct values in
  order of first appearance.
- minUnitPrice / maxUnitPrice / lineCount expose the per-group spread that the
  first-item unitPrice hides.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from domain.invoice import UNKNOWN, AggregatedItem, InvoiceLineItem
from fields.normalization import round_money, to_float

JOIN_SEPARATOR = "; "


class _Group:
    def __init__(self, first: InvoiceLineItem):
        self.first = first
        self.quantity = 0.0
        self.total_quantity = 0.0
        self.total_price = 0.0
        self.file_names: Dict[str, None] = {}
        self.original_names: Dict[str, None] = {}
        self.unit_prices: List[float] = []

    def add(self, item: InvoiceLineItem) -> None:
        self.quantity += to_float(item.get("quantity")) or 0.0
        self.total_quantity += to_float(item.get("totalQuantity")) or 0.0
        self.total_price += to_float(item.get("totalPrice")) or 0.0
        self.file_names.setdefault(str(item.get("invoiceFileName") or ""), None)
        self.original_names.setdefault(str(item.get("originalName") or ""), None)
        self.unit_prices.append(to_float(item.get("unitPrice")) or 0.0)

    def to_record(self) -> AggregatedItem:
        return AggregatedItem(
            sku=self.first["sku"],
            matchedProductName=self.first.get("matchedProductName", ""),
            unitOfMeasure=self.first.get("unitOfMeasure", ""),
            unitPrice=self.first.get("unitPrice", 0.0),
            quantity=round(self.quantity, 6),
            totalQuantity=round(self.total_quantity, 6),
            totalPrice=round_money(self.total_price),
            invoiceFileName=JOIN_SEPARATOR.join(self.file_names),
            originalName=JOIN_SEPARATOR.join(self.original_names),
            minUnitPrice=min(self.unit_prices),
            maxUnitPrice=max(self.unit_prices),
            lineCount=len(self.unit_prices),
        )


def aggregate_by_sku(items: Iterable[InvoiceLineItem]) -> List[AggregatedItem]:
    """Roll up line items per SKU; groups come out in first-appearance order."""
    groups: Dict[str, _Group] = {}
    for item in items:
        sku = item.get("sku") or UNKNOWN
        if sku == UNKNOWN:
            continue
        group = groups.get(sku)
        if group is None:
            group = groups[sku] = _Group(item)
        group.add(item)
    return [g.to_record() for g in groups.values()]
