from .errors import (
    AllExtractionsFailed,
    ExportFailed,
    ExtractionFailed,
    InvoiceReconcilerError,
    NomenclatureParseFailure,
    QuotaExceeded,
)
from .invoice import (
    CUSTOM,
    DEFAULT_UNIT_OF_MEASURE,
    UNKNOWN,
    AggregatedItem,
    ExportColumn,
    ExtractedItem,
    InvoiceLineItem,
    NomenclatureTable,
    Product,
    Vertex,
)

__all__ = [
    "AggregatedItem",
    "AllExtractionsFailed",
    "CUSTOM",
    "DEFAULT_UNIT_OF_MEASURE",
    "ExportColumn",
    "ExportFailed",
    "ExtractedItem",
    "ExtractionFailed",
    "InvoiceLineItem",
    "InvoiceReconcilerError",
    "NomenclatureParseFailure",
    "NomenclatureTable",
    "Product",
    "QuotaExceeded",
    "UNKNOWN",
    "Vertex",
]
