"""
Shared fixtures for the invoice pipeline tests.
"""

import copy
import itertools

import pytest

from domain.invoice import InvoiceLineItem
from input_readers.nomenclature import parse_nomenclature

NOMENCLATURE_CSV = "name,sku,price\nFlour 5kg,SKU-1,3.5\nSugar,SKU-2,2\nOlive Oil,SKU-3,\n"

EXTRACTED_ITEM = {
    "matchedProductName": "Flour 5kg",
    "originalName": "FLOUR T55 5KG",
    "quantity": 2,
    "unitPrice": 3.0,
    "totalPrice": 6.0,
    "sku": "SKU-1",
    "totalQuantity": 10,
    "unitOfMeasure": "kg",
}

_ids = itertools.count(1)


def build_item(**overrides) -> InvoiceLineItem:
    item = InvoiceLineItem(
        id=f"item-{next(_ids)}",
        invoiceFileName="a.jpg",
        matchedProductName="Flour 5kg",
        originalName="FLOUR T55 5KG",
        sku="SKU-1",
        quantity=2.0,
        totalQuantity=10.0,
        unitOfMeasure="kg",
        unitPrice=3.0,
        totalPrice=6.0,
    )
    item.update(overrides)
    return item


@pytest.fixture
def nomenclature():
    return parse_nomenclature(NOMENCLATURE_CSV)


@pytest.fixture
def make_item():
    return build_item


@pytest.fixture
def extracted_item():
    return copy.deepcopy(EXTRACTED_ITEM)


class FakeUploadedFile:
    """Stand-in for streamlit's UploadedFile."""

    def __init__(self, name, data, type=None):
        self.name = name
        self.type = type
        self._data = data

    def getvalue(self):
        return self._data


@pytest.fixture
def uploaded_file():
    return FakeUploadedFile
