"""
Editable working set of invoice line items.

The working set is the one mutable collection of line items for the current
batch. It is an explicit object owned by the processing session; every edit goes
through it by item id.

Edit rules:
- Unknown ids are ignored (the UI may race with a reset); edits return None then.
- Editing quantity or unitPrice recomputes totalPrice = round(quantity * unitPrice, 2).
- Editing totalQuantity or totalPrice is taken verbatim; nothing else changes.
- Renaming the matched product re-derives the sku from the nomenclature:
  known product -> its catalog name and sku, "UNKNOWN" -> "UNKNOWN", anything else -> "CUSTOM".
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from domain.invoice import (
    CUSTOM,
    NUMERIC_FIELDS,
    PRICE_BASIS_FIELDS,
    TEXT_FIELDS,
    UNKNOWN,
    InvoiceLineItem,
    NomenclatureTable,
)
from fields.normalization import parse_user_number, round_money, to_float

logger = logging.getLogger(__name__)


class InvoiceWorkingSet:
    def __init__(
        self,
        items: Optional[Iterable[InvoiceLineItem]] = None,
        nomenclature: Optional[NomenclatureTable] = None,
    ):
        self._items: List[InvoiceLineItem] = [copy.deepcopy(i) for i in (items or [])]
        self.nomenclature = nomenclature or NomenclatureTable()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[InvoiceLineItem]:
        return iter(self._items)

    @property
    def items(self) -> List[InvoiceLineItem]:
        """Snapshot of the items (copies); edits must go through the update methods."""
        return copy.deepcopy(self._items)

    def get(self, item_id: str) -> Optional[InvoiceLineItem]:
        for item in self._items:
            if item.get("id") == item_id:
                return item
        return None

    def replace(self, items: Iterable[InvoiceLineItem]) -> None:
        """Replace the whole working set (a new processing run never merges)."""
        self._items = [copy.deepcopy(i) for i in items]

    def clear(self) -> None:
        self._items = []

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------
    def file_names(self) -> List[str]:
        return list(dict.fromkeys(item["invoiceFileName"] for item in self._items))

    def groups(self) -> Dict[str, List[InvoiceLineItem]]:
        """Items grouped by invoice file, groups in first-appearance order."""
        grouped: Dict[str, List[InvoiceLineItem]] = {}
        for item in self._items:
            grouped.setdefault(item["invoiceFileName"], []).append(item)
        return grouped

    def items_for(self, invoice_file_name: Optional[str] = None) -> List[InvoiceLineItem]:
        if invoice_file_name is None:
            return list(self._items)
        return [i for i in self._items if i.get("invoiceFileName") == invoice_file_name]

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def update_item(self, item_id: str, fields: Mapping[str, Any]) -> Optional[InvoiceLineItem]:
        """Replace only the given fields on the item. Unknown id is a no-op."""
        item = self.get(item_id)
        if item is None:
            logger.debug("Ignoring update for unknown item id %s", item_id)
            return None
        for key, value in fields.items():
            if key == "id":
                continue
            item[key] = value
        return item

    def change_matched_product(self, item_id: str, new_product_name: str) -> Optional[InvoiceLineItem]:
        if new_product_name == UNKNOWN:
            sku = UNKNOWN
        else:
            product = self.nomenclature.find_by_name(new_product_name)
            if product is not None:
                new_product_name, sku = product.name, product.sku
            else:
                sku = CUSTOM
        return self.update_item(item_id, {"matchedProductName": new_product_name, "sku": sku})

    def change_numeric_field(self, item_id: str, field: str, raw_text: Optional[str]) -> Optional[InvoiceLineItem]:
        """
        Apply a user-typed number. Invalid non-empty input keeps the previous value;
        empty input means 0.
        """
        if field not in NUMERIC_FIELDS:
            raise ValueError(f"Not a numeric field: {field}")

        item = self.get(item_id)
        if item is None:
            return None

        value = parse_user_number(raw_text)
        if value is None:
            logger.debug("Rejected non-numeric input %r for %s", raw_text, field)
            return item

        updates: Dict[str, Any] = {field: value}
        if field in PRICE_BASIS_FIELDS:
            quantity = value if field == "quantity" else (to_float(item.get("quantity")) or 0.0)
            unit_price = value if field == "unitPrice" else (to_float(item.get("unitPrice")) or 0.0)
            updates["totalPrice"] = round_money(quantity * unit_price)
        return self.update_item(item_id, updates)

    def change_text_field(self, item_id: str, field: str, text: Optional[str]) -> Optional[InvoiceLineItem]:
        if field not in TEXT_FIELDS:
            raise ValueError(f"Not an editable text field: {field}")
        return self.update_item(item_id, {field: (text or "").strip()})
