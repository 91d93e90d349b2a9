"""
Export of the working set: flat per-line CSV and SKU-aggregated spreadsheet.

Both exports project records through the enabled, ordered export columns and can
be scoped to one invoice file or the whole batch. Any failure is caught and
returned as an ExportResult carrying ExportFailed; the working set is only read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from domain.errors import ExportFailed
from domain.invoice import ExportColumn, InvoiceLineItem
from domain.schemas import AGGREGATED_SHEET_NAME
from writers.csv_writer import write_rows_to_csv
from writers.excel_writer import write_rows_to_xlsx

from .aggregation import aggregate_by_sku
from .columns import active_columns

logger = logging.getLogger(__name__)

CSV_MIME = "text/csv"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

LINE_ITEMS_CSV_NAME = "all_invoices_data.csv"


@dataclass(frozen=True)
class ExportResult:
    data: bytes = b""
    file_name: str = ""
    mime_type: str = ""
    error: Optional[ExportFailed] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def project_rows(
    records: Iterable[Mapping[str, Any]],
    config: Sequence[ExportColumn],
) -> Tuple[List[str], List[List[Any]]]:
    """Headers and rows for the enabled columns in order; missing values become ""."""
    columns = active_columns(config)
    headers = [c["header"] for c in columns]
    rows = []
    for record in records:
        row = []
        for col in columns:
            value = record.get(col["key"])
            row.append("" if value is None else value)
        rows.append(row)
    return headers, rows


def _scope(items: Iterable[InvoiceLineItem], invoice_file_name: Optional[str]) -> List[InvoiceLineItem]:
    if invoice_file_name is None:
        return list(items)
    return [i for i in items if i.get("invoiceFileName") == invoice_file_name]


def dated_file_name(prefix: str, extension: str, today: Optional[date] = None) -> str:
    return f"{prefix}_{(today or date.today()).isoformat()}.{extension}"


def safe_export(what: str, build: Callable[[], ExportResult]) -> ExportResult:
    try:
        return build()
    except Exception as e:
        logger.error("Failed to export %s", what, exc_info=True)
        return ExportResult(error=ExportFailed(e))


def export_line_items_csv(
    items: Iterable[InvoiceLineItem],
    config: Sequence[ExportColumn],
    invoice_file_name: Optional[str] = None,
) -> ExportResult:
    """One CSV row per line item."""

    def build() -> ExportResult:
        headers, rows = project_rows(_scope(items, invoice_file_name), config)
        return ExportResult(write_rows_to_csv(headers, rows), LINE_ITEMS_CSV_NAME, CSV_MIME)

    return safe_export("line items CSV", build)


def export_aggregated_xlsx(
    items: Iterable[InvoiceLineItem],
    config: Sequence[ExportColumn],
    invoice_file_name: Optional[str] = None,
    today: Optional[date] = None,
) -> ExportResult:
    """One spreadsheet row per SKU, UNKNOWN items excluded."""

    def build() -> ExportResult:
        aggregated = aggregate_by_sku(_scope(items, invoice_file_name))
        headers, rows = project_rows(aggregated, config)
        data = write_rows_to_xlsx(AGGREGATED_SHEET_NAME, headers, rows)
        return ExportResult(data, dated_file_name("Aggregated_Inventory", "xlsx", today), XLSX_MIME)

    return safe_export("aggregated spreadsheet", build)


def export_aggregated_csv(
    items: Iterable[InvoiceLineItem],
    config: Sequence[ExportColumn],
    invoice_file_name: Optional[str] = None,
    today: Optional[date] = None,
) -> ExportResult:
    def build() -> ExportResult:
        aggregated = aggregate_by_sku(_scope(items, invoice_file_name))
        headers, rows = project_rows(aggregated, config)
        return ExportResult(
            write_rows_to_csv(headers, rows), dated_file_name("Aggregated_Inventory", "csv", today), CSV_MIME
        )

    return safe_export("aggregated CSV", build)
