from .batch import BatchResult, InvoiceUpload, process_batch
from .invoice_extractor import extract_invoice_items, validate_items
from .to_line_items import to_line_items

__all__ = [
    "BatchResult",
    "InvoiceUpload",
    "extract_invoice_items",
    "process_batch",
    "to_line_items",
    "validate_items",
]
