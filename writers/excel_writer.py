"""
Excel writer for exports.

Writes one sheet: a bold header row followed by one row per record. Column widths
are sized to their content so the file is readable without manual resizing.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

MAX_COLUMN_WIDTH = 60


def build_workbook(sheet_name: str, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append(["" if v is None else v for v in row])

    for idx, header in enumerate(headers, start=1):
        values = [str(header)] + [str(r[idx - 1]) for r in rows if idx - 1 < len(r) and r[idx - 1] is not None]
        width = min(MAX_COLUMN_WIDTH, max(len(v) for v in values) + 2)
        ws.column_dimensions[get_column_letter(idx)].width = width

    ws.freeze_panes = "A2"
    return wb


def write_rows_to_xlsx(
    sheet_name: str,
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    output_path: Optional[Path] = None,
) -> bytes:
    """Build the workbook and return its bytes; also saved to output_path when given."""
    wb = build_workbook(sheet_name, headers, rows)
    buf = io.BytesIO()
    wb.save(buf)
    data = buf.getvalue()
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    return data
