"""
Error taxonomy for the invoice pipeline.

Per-file and export failures are recoverable: they are collected or wrapped into
result values at the batch and export seams instead of propagating to the UI.
"""

from __future__ import annotations

from typing import List, Sequence


class InvoiceReconcilerError(RuntimeError):
    """Base class for all pipeline errors."""
    pass


class NomenclatureParseFailure(InvoiceReconcilerError):
    """Raised internally when a nomenclature cannot support matching."""
    pass


class ExtractionFailed(InvoiceReconcilerError):
    """Raised when one invoice file could not be extracted."""

    def __init__(self, file_name: str, cause: object):
        self.file_name = file_name
        self.cause = cause
        super().__init__(f"Extraction failed for '{file_name}': {cause}")


class AllExtractionsFailed(InvoiceReconcilerError):
    """Raised when every file of a batch failed."""

    def __init__(self, failures: Sequence[ExtractionFailed]):
        self.failures: List[ExtractionFailed] = list(failures)
        super().__init__("All invoices failed to process.")


class ExportFailed(InvoiceReconcilerError):
    """Raised (and then reported) when an export could not be produced."""

    def __init__(self, cause: object):
        self.cause = cause
        super().__init__(f"Export failed: {cause}")


class QuotaExceeded(InvoiceReconcilerError):
    """Raised before processing when a batch would exceed the plan's invoice limit."""
    pass
