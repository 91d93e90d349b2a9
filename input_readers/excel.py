"""
TABULAR READER / WRITER
-----------------------
Typed abstraction over spreadsheet and CSV files.

- parse_to_rows(data, filename) -> (headers, rows)
- rows_to_bytes(headers, rows, fmt) -> bytes   ("csv" or "xlsx")
- read_nomenclature_upload(data, filename) -> CSV text

Row 1 is the header row; rows 2+ are data. Cells are returned as-is (no
transformation); fully empty rows are skipped.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any, List, Sequence, Tuple

import pandas as pd
from openpyxl import Workbook, load_workbook

from fields.normalization import cell_to_str

Headers = List[str]
Rows = List[List[Any]]


def _extension(filename: str) -> str:
    return Path(filename or "").suffix.lower().lstrip(".")


def _is_empty_row(row: Sequence[Any]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in row)


def _split_header(matrix: List[List[Any]]) -> Tuple[Headers, Rows]:
    if not matrix:
        return [], []
    headers = [cell_to_str(h) for h in matrix[0]]
    rows = [list(r) for r in matrix[1:] if not _is_empty_row(r)]
    return headers, rows


def parse_csv_text(text: str) -> Tuple[Headers, Rows]:
    """Parse delimited text (comma separated, quoted fields allowed)."""
    text = (text or "").lstrip("﻿")
    matrix = [row for row in csv.reader(io.StringIO(text)) if row and not _is_empty_row(row)]
    return _split_header(matrix)


def _read_xlsx(data: bytes, sheet_name: str | None = None) -> Tuple[Headers, Rows]:
    try:
        wb = load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    except Exception as e:
        raise ValueError(f"Cannot read Excel file (is it corrupted or wrong format?): {e}") from e

    try:
        ws = wb[sheet_name] if sheet_name else wb.worksheets[0]
        matrix = [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    # Trim trailing empty header cells that openpyxl reports for formatted columns.
    headers, rows = _split_header(matrix)
    while headers and not headers[-1]:
        idx = len(headers) - 1
        if any(len(r) > idx and r[idx] is not None for r in rows):
            break
        headers.pop()
    rows = [r[: len(headers)] for r in rows]
    return headers, rows


def _read_xls(data: bytes) -> Tuple[Headers, Rows]:
    try:
        df = pd.read_excel(io.BytesIO(data), header=None, dtype=object)
    except Exception as e:
        raise ValueError(f"Cannot read legacy Excel file: {e}") from e
    df = df.where(pd.notna(df), None)
    return _split_header(df.values.tolist())


def parse_to_rows(data: bytes, filename: str) -> Tuple[Headers, Rows]:
    """
    Read a CSV or spreadsheet file into (headers, rows).

    Raises:
        ValueError: unsupported extension or unreadable content
    """
    ext = _extension(filename)
    if ext == "csv":
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValueError(f"CSV file is not valid UTF-8: {e}") from e
        return parse_csv_text(text)
    if ext in ("xlsx", "xlsm"):
        return _read_xlsx(data)
    if ext == "xls":
        return _read_xls(data)
    raise ValueError("Unsupported file format. Please upload a CSV or Excel file.")


def rows_to_csv_text(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Render rows as CSV text, quoting only where needed (spreadsheet-to-CSV style)."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(list(headers))
    for row in rows:
        writer.writerow([cell_to_str(v) for v in row])
    return buf.getvalue()


def rows_to_xlsx_bytes(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    sheet_name: str = "Sheet1",
) -> bytes:
    wb = Workbook()
    ws = wb.active
    # Excel limits sheet titles to 31 chars.
    ws.title = sheet_name[:31]
    ws.append(list(headers))
    for row in rows:
        ws.append(list(row))
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def rows_to_bytes(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    fmt: str,
    sheet_name: str = "Sheet1",
) -> bytes:
    if fmt == "csv":
        return rows_to_csv_text(headers, rows).encode("utf-8")
    if fmt == "xlsx":
        return rows_to_xlsx_bytes(headers, rows, sheet_name)
    raise ValueError(f"Unsupported output format: {fmt}")


def read_nomenclature_upload(data: bytes, filename: str) -> str:
    """Convert an uploaded nomenclature file (CSV or spreadsheet) into CSV text."""
    if _extension(filename) == "csv":
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValueError(f"CSV file is not valid UTF-8: {e}") from e
    headers, rows = parse_to_rows(data, filename)
    return rows_to_csv_text(headers, rows)
