"""
Normalization of extracted items into InvoiceLineItem dicts.

Every item gets a fresh opaque id and the name of the invoice file it came from.
The service output is completed where it is incomplete:
- blank unitOfMeasure -> "pcs"
- missing/non-positive totalQuantity -> unpacked from the description, else quantity
- sku/name disagreeing with the nomenclature -> reconciled to the nomenclature row

This is a pure transformation: no I/O, input order is preserved.
"""

from __future__ import annotations

import uuid
from typing import Iterable, List, Optional

from domain.invoice import DEFAULT_UNIT_OF_MEASURE, UNKNOWN, ExtractedItem, InvoiceLineItem, NomenclatureTable
from fields.normalization import to_float
from fields.packaging_math import unpack_total_quantity


def new_item_id() -> str:
    return uuid.uuid4().hex


def _reconcile_match(item: InvoiceLineItem, nomenclature: NomenclatureTable) -> None:
    """Align matchedProductName and sku with the nomenclature when they disagree."""
    name = item.get("matchedProductName") or UNKNOWN
    sku = item.get("sku") or UNKNOWN
    if name == UNKNOWN or sku == UNKNOWN:
        item["matchedProductName"], item["sku"] = UNKNOWN, UNKNOWN
        return

    by_sku = nomenclature.find_by_sku(sku)
    if by_sku is not None:
        item["matchedProductName"] = by_sku.name
        return

    by_name = nomenclature.find_by_name(name)
    if by_name is not None:
        item["matchedProductName"] = by_name.name
        item["sku"] = by_name.sku


def _complete_quantities(item: InvoiceLineItem) -> None:
    quantity = to_float(item.get("quantity")) or 0.0
    item["quantity"] = quantity

    total = to_float(item.get("totalQuantity"))
    if total is None or (total <= 0 < quantity):
        total, unit = unpack_total_quantity(quantity, item.get("originalName"))
        if unit and not item.get("unitOfMeasure"):
            item["unitOfMeasure"] = unit
    item["totalQuantity"] = total

    if not (item.get("unitOfMeasure") or "").strip():
        item["unitOfMeasure"] = DEFAULT_UNIT_OF_MEASURE

    item["unitPrice"] = to_float(item.get("unitPrice")) or 0.0
    item["totalPrice"] = to_float(item.get("totalPrice")) or 0.0


def to_line_items(
    extracted: Iterable[ExtractedItem],
    invoice_file_name: str,
    nomenclature: Optional[NomenclatureTable] = None,
) -> List[InvoiceLineItem]:
    """Turn one extraction result into fully-formed line items for the working set."""
    items: List[InvoiceLineItem] = []
    for raw in extracted:
        if not isinstance(raw, dict):
            raise TypeError(f"Extracted item must be a dict, got {type(raw).__name__}")

        item = InvoiceLineItem(**raw)
        item["id"] = new_item_id()
        item["invoiceFileName"] = invoice_file_name
        item["originalName"] = item.get("originalName") or ""
        if "boundingBox" in item:
            item["boundingBox"] = [dict(v) for v in item["boundingBox"]]

        _complete_quantities(item)
        if nomenclature is not None and not nomenclature.is_empty:
            _reconcile_match(item, nomenclature)
        elif not item.get("matchedProductName") or not item.get("sku"):
            item["matchedProductName"], item["sku"] = UNKNOWN, UNKNOWN

        items.append(item)
    return items
