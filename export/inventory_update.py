"""
Inventory update export: invoice totals merged back into the nomenclature.

Starts from the nomenclature rows exactly as uploaded (all columns, including
ones the pipeline does not understand) and:
- adds each matched item's totalQuantity to its sku row, and sets unitPrice and
  unitOfMeasure from the item (last item wins here, unlike the aggregate export);
- appends one row per item that is UNKNOWN or not in the nomenclature.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from domain.invoice import UNKNOWN, InvoiceLineItem, NomenclatureTable
from domain.schemas import INVENTORY_SHEET_NAME
from fields.normalization import cell_to_str, to_float
from writers.excel_writer import write_rows_to_xlsx

from .exporter import XLSX_MIME, ExportResult, safe_export, dated_file_name

EXTRA_HEADERS = ("totalQuantity", "unitPrice", "unitOfMeasure")


def _find_header(headers: List[str], wanted: str) -> str:
    for h in headers:
        if h.strip().lower() == wanted:
            return h
    return wanted


def build_inventory_update(
    nomenclature: NomenclatureTable,
    items: Iterable[InvoiceLineItem],
) -> Tuple[List[str], List[List[Any]]]:
    headers = [h for h in nomenclature.headers]
    sku_key = _find_header(headers, "sku")
    name_key = _find_header(headers, "name")

    by_sku: Dict[str, Dict[str, Any]] = {}
    for raw in nomenclature.rows:
        row = {h: (raw[i] if i < len(raw) else None) for i, h in enumerate(headers)}
        sku = cell_to_str(row.get(sku_key))
        if sku and sku not in by_sku:
            by_sku[sku] = row

    for h in EXTRA_HEADERS:
        if h not in headers:
            headers.append(h)

    unmatched: List[Dict[str, Any]] = []
    for item in items:
        sku = item.get("sku")
        existing = by_sku.get(sku) if sku != UNKNOWN else None
        if existing is not None:
            existing["totalQuantity"] = (to_float(existing.get("totalQuantity")) or 0.0) + (
                to_float(item.get("totalQuantity")) or 0.0
            )
            existing["unitPrice"] = item.get("unitPrice")
            existing["unitOfMeasure"] = item.get("unitOfMeasure")
        else:
            unmatched.append(
                {
                    name_key: item.get("originalName"),
                    sku_key: sku,
                    "totalQuantity": item.get("totalQuantity"),
                    "unitPrice": item.get("unitPrice"),
                    "unitOfMeasure": item.get("unitOfMeasure"),
                }
            )

    if name_key not in headers:
        headers.insert(0, name_key)
    if sku_key not in headers:
        headers.insert(1, sku_key)

    records = list(by_sku.values()) + unmatched
    rows = [[record.get(h) for h in headers] for record in records]
    return headers, rows


def export_inventory_update(
    nomenclature: NomenclatureTable,
    items: Iterable[InvoiceLineItem],
    today: Optional[date] = None,
) -> ExportResult:
    def build() -> ExportResult:
        if not nomenclature.headers:
            raise ValueError("Nomenclature has no header row to update.")
        headers, rows = build_inventory_update(nomenclature, items)
        data = write_rows_to_xlsx(INVENTORY_SHEET_NAME, headers, rows)
        return ExportResult(data, dated_file_name("Inventory_Update", "xlsx", today), XLSX_MIME)

    return safe_export("inventory update", build)
