"""
UI-independent glue between Streamlit widgets and the processing session.

Streamlit hands us UploadedFile objects (name, type, getvalue()) and edited
DataFrames; this module turns them into session operations and never lets an
exception escape into the page.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from domain.errors import AllExtractionsFailed, QuotaExceeded
from domain.invoice import NUMERIC_FIELDS, TEXT_FIELDS, InvoiceLineItem, NomenclatureTable
from domain.plans import Plan
from editing.session import ProcessingSession
from extraction.batch import Extractor, InvoiceUpload
from input_readers.excel import read_nomenclature_upload

logger = logging.getLogger(__name__)

TABLE_COLUMNS = [
    "id",
    "matchedProductName",
    "originalName",
    "sku",
    "quantity",
    "totalQuantity",
    "unitOfMeasure",
    "unitPrice",
    "totalPrice",
]


def load_nomenclature_file(session: ProcessingSession, uploaded_file: Any) -> Tuple[NomenclatureTable, Optional[str]]:
    """Read an uploaded CSV/Excel nomenclature into the session. Returns (table, error)."""
    try:
        text = read_nomenclature_upload(uploaded_file.getvalue(), uploaded_file.name)
    except Exception as e:
        logger.warning("Could not read nomenclature file %s: %s", getattr(uploaded_file, "name", "?"), e)
        table = session.load_nomenclature("")
        return table, str(e)
    table = session.load_nomenclature(text)
    return table, table.warning


def uploads_from_files(uploaded_files: Sequence[Any]) -> List[InvoiceUpload]:
    return [
        InvoiceUpload(file_name=f.name, data=f.getvalue(), mime_type=getattr(f, "type", None) or None)
        for f in uploaded_files
    ]


def process_uploaded_files(
    session: ProcessingSession,
    uploaded_files: Sequence[Any],
    plan: Optional[Plan] = None,
    used_invoices: int = 0,
    extractor: Optional[Extractor] = None,
) -> Tuple[bool, Optional[str]]:
    """
    Run a batch for the uploaded invoices.

    Returns:
        (success, error_message). success is True when at least one invoice was
        processed; error_message is set for partial failures too.
    """
    try:
        result = session.run_batch(
            uploads_from_files(uploaded_files),
            extractor=extractor,
            plan=plan,
            used_invoices=used_invoices,
        )
    except (ValueError, QuotaExceeded) as e:
        return False, str(e)
    except AllExtractionsFailed as e:
        return False, str(e)
    except Exception as e:
        logger.error("Unexpected error while processing invoices", exc_info=True)
        return False, f"An unexpected error occurred during processing: {e}"
    return True, result.error_message


def items_to_dataframe(items: Sequence[InvoiceLineItem]) -> pd.DataFrame:
    df = pd.DataFrame([{k: item.get(k) for k in TABLE_COLUMNS} for item in items], columns=TABLE_COLUMNS)
    for col in NUMERIC_FIELDS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return ""
    return str(value)


def apply_table_edits(session: ProcessingSession, before: pd.DataFrame, after: pd.DataFrame) -> int:
    """
    Route changed cells of the editable table to working-set operations.

    Rows are matched by id. Returns the number of applied cell edits.
    """
    ws = session.working_set
    before_by_id = before.set_index("id")
    applied = 0

    for _, row in after.iterrows():
        item_id = row.get("id")
        if item_id not in before_by_id.index:
            continue
        old = before_by_id.loc[item_id]

        for col in TABLE_COLUMNS[1:]:
            new_value, old_value = row.get(col), old.get(col)
            if _cell_text(new_value) == _cell_text(old_value):
                continue

            if col == "matchedProductName":
                ws.change_matched_product(item_id, _cell_text(new_value))
            elif col in NUMERIC_FIELDS:
                ws.change_numeric_field(item_id, col, _cell_text(new_value))
            elif col in TEXT_FIELDS:
                ws.change_text_field(item_id, col, _cell_text(new_value))
            else:
                continue
            applied += 1
    return applied
