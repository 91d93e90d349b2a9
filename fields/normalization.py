"""
Value normalization helpers shared by readers, extraction and editing.

- to_float / to_int: lenient conversion of model or spreadsheet values.
- parse_user_number: strict-ish parsing of user-typed numbers for table edits.
- cell_to_str: string coercion of spreadsheet cells (None -> "", 5.0 -> "5").
- format_number: how numbers are rendered in CSV exports.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional


_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def to_float(value: Any) -> Optional[float]:
    """Convert int/float or numeric-like strings ("1,5", "€ 3.20") to float. None if not possible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return None if math.isnan(f) or math.isinf(f) else f

    s = str(value).strip().replace(" ", "").replace(" ", "")
    if not s:
        return None
    s = re.sub(r"[€$£]", "", s)
    s = s.replace(",", ".")
    if not _NUMBER_RE.match(s):
        return None
    f = float(s)
    return None if math.isnan(f) or math.isinf(f) else f


def to_int(value: Any) -> Optional[int]:
    f = to_float(value)
    if f is None:
        return None
    return int(f)


def parse_user_number(raw_text: Optional[str]) -> Optional[float]:
    """
    Parse a number typed into the editable table.

    Both "," and "." are accepted as the decimal point. Empty input means 0.
    Returns None when the input is non-empty but not a number, so callers can
    keep the previous value.
    """
    text = (raw_text or "").strip()
    if not text:
        return 0.0
    text = text.replace(",", ".")
    if not _NUMBER_RE.match(text):
        return None
    value = float(text)
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def round_money(value: float) -> float:
    # + 0.0 turns -0.0 into 0.0
    return round(float(value), 2) + 0.0


def cell_to_str(value: Any) -> str:
    """Coerce a spreadsheet cell to a trimmed string."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def format_number(value: Any) -> str:
    """Render a value for CSV output: integral floats without '.0', everything else via str()."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)
