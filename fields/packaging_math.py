"""
Pack-size arithmetic for invoice lines.

Invoices often state a count of packs ("2 BOX") with the per-pack size written in
the description ("Flour 5kg", "Water 6x1.5L", "Gloves 100/BX"). totalQuantity is
the absolute amount: pack count multiplied by per-pack size.

Rules:
- "<N>x<size><unit>" (multipack): per-pack = N * size, unit from the size.
- "<size><unit>" with a measurable unit (kg, g, l, ml): per-pack = size.
- "<N>/<container>" or "<N> pcs": per-pack = N, unit "pcs".
- Nothing found: per-pack is unknown and totalQuantity = quantity.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .normalization import to_float


UNIT_ALIASES = {
    "KG": "kg", "KGS": "kg", "KILO": "kg",
    "G": "g", "GR": "g", "GRAM": "g",
    "L": "l", "LT": "l", "LTR": "l", "LITER": "l", "LITRE": "l",
    "ML": "ml",
    "PCS": "pcs", "PC": "pcs", "EA": "pcs", "ST": "pcs", "UNITS": "pcs",
}

_MEASURE = r"(KGS?|KILO|GRAM|GR|G|LTR|LITER|LITRE|LT|L|ML)"

MULTIPACK = re.compile(
    r"\b(\d+)\s*[xX×*]\s*(\d+(?:[.,]\d+)?)\s*" + _MEASURE + r"\b", re.IGNORECASE
)
SINGLE_MEASURE = re.compile(r"\b(\d+(?:[.,]\d+)?)\s*" + _MEASURE + r"\b", re.IGNORECASE)
COUNT_PER_CONTAINER = re.compile(
    r"\b(\d+)\s*(?:/\s*(?:BX|BOX|CS|CASE|PK|PACK|CTN|BG|BAG)|PCS|PC|EA|ST)\b",
    re.IGNORECASE,
)


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    if not unit:
        return None
    key = unit.strip().upper()
    return UNIT_ALIASES.get(key, unit.strip().lower())


def parse_pack_size(description: Optional[str]) -> Optional[Tuple[float, str]]:
    """Return (per-pack size, unit) parsed from a description, or None."""
    if not description:
        return None

    m = MULTIPACK.search(description)
    if m:
        count = to_float(m.group(1))
        size = to_float(m.group(2))
        if count and size:
            return count * size, normalize_unit(m.group(3)) or "pcs"

    m = SINGLE_MEASURE.search(description)
    if m:
        size = to_float(m.group(1))
        if size:
            return size, normalize_unit(m.group(2)) or "pcs"

    m = COUNT_PER_CONTAINER.search(description)
    if m:
        size = to_float(m.group(1))
        if size:
            return size, "pcs"

    return None


def unpack_total_quantity(
    quantity: Optional[float],
    description: Optional[str],
) -> Tuple[float, Optional[str]]:
    """
    Compute the absolute quantity for a line.

    Returns (total_quantity, unit_or_None). The unit is None when no pack size was
    found, in which case total_quantity equals quantity.
    """
    qty = to_float(quantity) or 0.0
    pack = parse_pack_size(description)
    if pack is None or qty <= 0:
        return qty, None
    size, unit = pack
    return round(qty * size, 6), unit
