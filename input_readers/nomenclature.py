"""
NOMENCLATURE READER
-------------------
Parse the tenant's product list (CSV text) into a NomenclatureTable.

Parsing never raises: a table that cannot support matching comes back empty
with a warning, and processing stays disabled until a usable file is uploaded.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

from domain.errors import NomenclatureParseFailure
from domain.invoice import NomenclatureTable, Product
from fields.normalization import cell_to_str

from .excel import parse_csv_text

logger = logging.getLogger(__name__)

NAME_HEADER = "name"
SKU_HEADER = "sku"


def _column_index(headers: Sequence[str], wanted: str) -> int:
    normalized = [cell_to_str(h).lower() for h in headers]
    try:
        return normalized.index(wanted)
    except ValueError:
        return -1


def _cell(row: Sequence[Any], idx: int) -> str:
    return cell_to_str(row[idx]) if idx < len(row) else ""


def _build_products(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[Product]:
    if not headers:
        raise NomenclatureParseFailure("File must contain a header row and at least one data row.")
    if not rows:
        raise NomenclatureParseFailure("The file seems to be empty or in an incorrect format.")

    name_idx = _column_index(headers, NAME_HEADER)
    sku_idx = _column_index(headers, SKU_HEADER)
    if name_idx == -1 or sku_idx == -1:
        raise NomenclatureParseFailure(
            "Nomenclature must have 'name' and 'sku' columns for product matching."
        )

    products: List[Product] = []
    for row in rows:
        name = _cell(row, name_idx)
        sku = _cell(row, sku_idx)
        if name and sku:
            products.append(Product(name=name, sku=sku))
    return products


def parse_nomenclature(raw_text: str) -> NomenclatureTable:
    """Parse CSV text into a NomenclatureTable; soft-fails to an empty product list."""
    try:
        headers, rows = parse_csv_text(raw_text or "")
    except Exception as e:
        logger.warning("Failed to parse nomenclature text: %s", e)
        return NomenclatureTable(raw_text=raw_text or "", warning=f"Could not parse nomenclature: {e}")

    try:
        products = _build_products(headers, rows)
    except NomenclatureParseFailure as e:
        logger.warning("Nomenclature cannot support matching: %s", e)
        products, warning = [], str(e)
    else:
        warning = None if products else "Nomenclature contains no rows with both a name and a sku."
        if warning:
            logger.warning(warning)

    return NomenclatureTable(
        products=tuple(products),
        headers=tuple(headers),
        rows=tuple(tuple(r) for r in rows),
        raw_text=raw_text or "",
        warning=warning,
    )
