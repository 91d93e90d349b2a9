"""
Batch orchestration: process N uploaded invoices in parallel.

Each file runs encode -> extract -> normalize as an independent task. All tasks
are submitted together and the batch waits for every one of them to settle.
Per-file failures are collected; the batch only fails as a whole when every
file failed.

Results keep submission order regardless of completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from config.settings import DEFAULT_MODEL, MAX_FILE_SIZE_MB, MAX_PARALLEL_EXTRACTIONS
from domain.errors import AllExtractionsFailed, ExtractionFailed
from domain.invoice import ExtractedItem, InvoiceLineItem, NomenclatureTable
from input_readers.image import encode_document

from .invoice_extractor import extract_invoice_items
from .to_line_items import to_line_items

logger = logging.getLogger(__name__)

# (b64_data, mime_type, nomenclature_text, file_name) -> extracted items
Extractor = Callable[[str, str, str, str], List[ExtractedItem]]


@dataclass(frozen=True)
class InvoiceUpload:
    file_name: str
    data: bytes
    mime_type: Optional[str] = None


@dataclass
class BatchResult:
    items: List[InvoiceLineItem] = field(default_factory=list)
    failures: List[ExtractionFailed] = field(default_factory=list)
    submitted: int = 0

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def is_partial_failure(self) -> bool:
        return 0 < self.failure_count < self.submitted

    @property
    def file_names(self) -> List[str]:
        """Invoice groups present in the result, in first-appearance order."""
        return list(dict.fromkeys(item["invoiceFileName"] for item in self.items))

    @property
    def error_message(self) -> Optional[str]:
        if not self.failures:
            return None
        return (
            f"Failed to process {self.failure_count} out of {self.submitted} invoices. "
            "Please check the files and try again."
        )


def _default_extractor(model: str) -> Extractor:
    def extract(b64_data: str, mime_type: str, nomenclature_text: str, file_name: str) -> List[ExtractedItem]:
        return extract_invoice_items(b64_data, mime_type, nomenclature_text, file_name=file_name, model=model)

    return extract


def process_one(
    upload: InvoiceUpload,
    nomenclature: NomenclatureTable,
    extractor: Extractor,
) -> List[InvoiceLineItem]:
    """Encode, extract and normalize a single file. Every failure becomes ExtractionFailed."""
    try:
        if len(upload.data) > MAX_FILE_SIZE_MB * 1024 * 1024:
            raise ValueError(f"file is larger than {MAX_FILE_SIZE_MB} MB")
        mime_type, b64_data = encode_document(upload.data, upload.file_name, upload.mime_type)
        extracted = extractor(b64_data, mime_type, nomenclature.raw_text, upload.file_name)
        if not isinstance(extracted, list):
            raise ExtractionFailed(upload.file_name, "invalid response shape")
        return to_line_items(extracted, upload.file_name, nomenclature)
    except ExtractionFailed:
        raise
    except Exception as e:
        raise ExtractionFailed(upload.file_name, e) from e


def process_batch(
    uploads: Sequence[InvoiceUpload],
    nomenclature: NomenclatureTable,
    extractor: Optional[Extractor] = None,
    model: str = DEFAULT_MODEL,
    max_workers: int = MAX_PARALLEL_EXTRACTIONS,
) -> BatchResult:
    """
    Process all uploads and merge their line items.

    Raises:
        AllExtractionsFailed: every submitted file failed
    """
    extractor = extractor or _default_extractor(model)
    result = BatchResult(submitted=len(uploads))
    if not uploads:
        return result

    per_file: List[Optional[List[InvoiceLineItem]]] = [None] * len(uploads)
    errors: List[Optional[ExtractionFailed]] = [None] * len(uploads)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(uploads)))) as executor:
        future_to_idx = {
            executor.submit(process_one, upload, nomenclature, extractor): i
            for i, upload in enumerate(uploads)
        }
        for future in as_completed(future_to_idx):
            idx = future_to_idx[future]
            try:
                per_file[idx] = future.result()
            except ExtractionFailed as e:
                logger.error("Invoice %s failed: %s", uploads[idx].file_name, e.cause)
                errors[idx] = e
            except Exception as e:
                logger.error("Invoice %s failed unexpectedly", uploads[idx].file_name, exc_info=True)
                errors[idx] = ExtractionFailed(uploads[idx].file_name, e)

    for items, error in zip(per_file, errors):
        if error is not None:
            result.failures.append(error)
        elif items:
            result.items.extend(items)

    if result.failure_count == result.submitted:
        raise AllExtractionsFailed(result.failures)

    if result.failures:
        logger.warning(result.error_message)
    logger.info(
        "Batch finished: %d items from %d/%d invoices",
        len(result.items),
        result.submitted - result.failure_count,
        result.submitted,
    )
    return result

