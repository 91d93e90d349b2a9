"""
Default export column template.

The order of this list is the order columns appear in CSV and Excel exports
until the user reorders them.
"""

from __future__ import annotations

from typing import List

from .invoice import ExportColumn


DEFAULT_EXPORT_CONFIG: List[ExportColumn] = [
    {"key": "invoiceFileName", "header": "Invoice File", "enabled": True, "order": 0},
    {"key": "matchedProductName", "header": "Matched Product Name", "enabled": True, "order": 1},
    {"key": "originalName", "header": "Original Name", "enabled": True, "order": 2},
    {"key": "sku", "header": "SKU", "enabled": True, "order": 3},
    {"key": "quantity", "header": "Quantity", "enabled": True, "order": 4},
    {"key": "totalQuantity", "header": "Total Quantity", "enabled": True, "order": 5},
    {"key": "unitOfMeasure", "header": "Unit of Measure", "enabled": True, "order": 6},
    {"key": "unitPrice", "header": "Unit Price", "enabled": True, "order": 7},
    {"key": "totalPrice", "header": "Total Price", "enabled": True, "order": 8},
]

# Keys only present on aggregated records.
AGGREGATE_ONLY_KEYS = ("minUnitPrice", "maxUnitPrice", "lineCount")

AGGREGATED_SHEET_NAME = "Aggregated Inventory"
INVENTORY_SHEET_NAME = "Processed Inventory"
