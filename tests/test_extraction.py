"""
Tests for invoice extraction: response contract, repair loop and normalization.

The OpenAI client is replaced by a Mock; no network calls are made.
"""

import json
from unittest.mock import Mock

import pytest

from config.settings import MAX_NOMENCLATURE_CHARS
from domain.errors import ExtractionFailed
from domain.invoice import UNKNOWN
from extraction.invoice_extractor import (
    INVALID_SHAPE,
    InvalidResponse,
    extract_invoice_items,
    parse_llm_response,
    validate_items,
)
from extraction.to_line_items import to_line_items


def _response(content):
    return Mock(choices=[Mock(message=Mock(content=content))])


def make_client(*contents):
    client = Mock()
    client.chat.completions.create.side_effect = [_response(c) for c in contents]
    return client


def extract(client, mime_type="image/jpeg", nomenclature_text="name,sku\n", file_name="a.jpg"):
    return extract_invoice_items("YWJj", mime_type, nomenclature_text, file_name=file_name, client=client)


class TestParseLlmResponse:
    def test_plain_array(self):
        assert parse_llm_response('[{"a": 1}]') == [{"a": 1}]

    def test_markdown_fence(self):
        assert parse_llm_response('Here you go:\n```json\n{"items": []}\n```') == {"items": []}

    def test_trailing_comma(self):
        assert parse_llm_response('[{"a": 1,},]') == [{"a": 1}]

    def test_empty(self):
        with pytest.raises(InvalidResponse):
            parse_llm_response("   ")

    def test_not_json(self):
        with pytest.raises(InvalidResponse):
            parse_llm_response("I cannot read this invoice.")


class TestValidateItems:
    """The item contract"""

    def test_valid_item(self, extracted_item):
        (item,) = validate_items([extracted_item])
        assert item["sku"] == "SKU-1"
        assert item["quantity"] == 2.0
        assert item["totalQuantity"] == 10.0
        assert "boundingBox" not in item

    def test_items_object(self, extracted_item):
        assert len(validate_items({"items": [extracted_item, extracted_item]})) == 2

    def test_not_an_array(self):
        with pytest.raises(InvalidResponse):
            validate_items({"lines": []})

    def test_missing_key(self, extracted_item):
        del extracted_item["unitPrice"]
        with pytest.raises(InvalidResponse, match="unitPrice"):
            validate_items([extracted_item])

    def test_non_numeric_field(self, extracted_item):
        extracted_item["quantity"] = "two"
        with pytest.raises(InvalidResponse, match="quantity"):
            validate_items([extracted_item])

    def test_numeric_strings_accepted(self, extracted_item):
        extracted_item["unitPrice"] = "3,50"
        (item,) = validate_items([extracted_item])
        assert item["unitPrice"] == 3.5

    def test_unknown_sku_forces_unknown_name(self, extracted_item):
        extracted_item["sku"] = "UNKNOWN"
        (item,) = validate_items([extracted_item])
        assert item["matchedProductName"] == UNKNOWN
        assert item["sku"] == UNKNOWN

    def test_blank_name_forces_unknown_sku(self, extracted_item):
        extracted_item["matchedProductName"] = ""
        (item,) = validate_items([extracted_item])
        assert (item["matchedProductName"], item["sku"]) == (UNKNOWN, UNKNOWN)

    def test_null_total_quantity_left_for_normalizer(self, extracted_item):
        extracted_item["totalQuantity"] = None
        (item,) = validate_items([extracted_item])
        assert item["totalQuantity"] is None

    def test_non_numeric_total_quantity(self, extracted_item):
        extracted_item["totalQuantity"] = "lots"
        with pytest.raises(InvalidResponse, match="totalQuantity"):
            validate_items([extracted_item])

    def test_blank_unit_left_blank(self, extracted_item):
        extracted_item["unitOfMeasure"] = " "
        (item,) = validate_items([extracted_item])
        assert item["unitOfMeasure"] == ""

    def test_bounding_box_kept(self, extracted_item):
        box = [{"x": 0.1, "y": 0.2}, {"x": 0.9, "y": 0.2}, {"x": 0.9, "y": 0.3}, {"x": 0.1, "y": 0.3}]
        extracted_item["boundingBox"] = box
        (item,) = validate_items([extracted_item])
        assert item["boundingBox"] == box

    @pytest.mark.parametrize(
        "box",
        [
            [{"x": 0.1, "y": 0.2}] * 3,
            [{"x": 1.5, "y": 0.2}] * 4,
            "top-left",
        ],
    )
    def test_bad_bounding_box_dropped(self, extracted_item, box):
        extracted_item["boundingBox"] = box
        (item,) = validate_items([extracted_item])
        assert "boundingBox" not in item


class TestExtractInvoiceItems:
    """Vision request and failure reporting"""

    def test_array_response(self, extracted_item):
        client = make_client(json.dumps([extracted_item]))
        items = extract(client)
        assert len(items) == 1
        assert items[0]["matchedProductName"] == "Flour 5kg"

    def test_items_object_response(self, extracted_item):
        client = make_client(json.dumps({"items": [extracted_item]}))
        assert len(extract(client)) == 1

    def test_image_request(self, extracted_item):
        client = make_client(json.dumps([extracted_item]))
        extract(client, nomenclature_text="name,sku\nSugar,SKU-2\n")
        kwargs = client.chat.completions.create.call_args.kwargs
        parts = kwargs["messages"][1]["content"]
        assert "Sugar,SKU-2" in parts[0]["text"]
        assert parts[1] == {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,YWJj"}}
        assert kwargs["temperature"] == 0

    def test_pdf_request_uses_file_part(self, extracted_item):
        client = make_client(json.dumps([extracted_item]))
        extract(client, mime_type="application/pdf", file_name="inv.pdf")
        part = client.chat.completions.create.call_args.kwargs["messages"][1]["content"][1]
        assert part["type"] == "file"
        assert part["file"]["filename"] == "inv.pdf"
        assert part["file"]["file_data"].startswith("data:application/pdf;base64,")

    def test_service_error(self):
        client = Mock()
        client.chat.completions.create.side_effect = RuntimeError("connection reset")
        with pytest.raises(ExtractionFailed) as exc_info:
            extract(client, file_name="b.jpg")
        assert exc_info.value.file_name == "b.jpg"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_json_mode_requested(self, extracted_item):
        client = make_client(json.dumps([extracted_item]))
        extract(client)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    def test_client_type_error_not_retried(self):
        client = Mock()
        client.chat.completions.create.side_effect = TypeError("unexpected keyword argument")
        with pytest.raises(ExtractionFailed) as exc_info:
            extract(client)
        assert isinstance(exc_info.value.cause, TypeError)
        assert client.chat.completions.create.call_count == 1

    def test_invalid_json_repaired(self, extracted_item):
        client = make_client("[{oops", json.dumps([extracted_item]))
        assert len(extract(client)) == 1
        assert client.chat.completions.create.call_count == 2

    def test_invalid_json_after_repair(self):
        client = make_client("not json", "still not json")
        with pytest.raises(ExtractionFailed) as exc_info:
            extract(client)
        assert exc_info.value.cause == INVALID_SHAPE

    def test_contract_violation(self, extracted_item):
        del extracted_item["sku"]
        client = make_client(json.dumps([extracted_item]))
        with pytest.raises(ExtractionFailed) as exc_info:
            extract(client)
        assert exc_info.value.cause == INVALID_SHAPE
        # no repair round-trip for well-formed JSON
        assert client.chat.completions.create.call_count == 1

    def test_nomenclature_too_large(self):
        client = Mock()
        with pytest.raises(ExtractionFailed, match="exceeds limit"):
            extract(client, nomenclature_text="x" * (MAX_NOMENCLATURE_CHARS + 1))
        client.chat.completions.create.assert_not_called()


class TestToLineItems:
    """Extracted items to working-set line items"""

    def test_ids_and_file_name(self, extracted_item, nomenclature):
        items = to_line_items([extracted_item, dict(extracted_item)], "a.jpg", nomenclature)
        assert [i["invoiceFileName"] for i in items] == ["a.jpg", "a.jpg"]
        assert len({i["id"] for i in items}) == 2

    def test_order_preserved(self, extracted_item, nomenclature):
        second = dict(extracted_item, originalName="SUGAR 1KG", sku="SKU-2", matchedProductName="Sugar")
        items = to_line_items([extracted_item, second], "a.jpg", nomenclature)
        assert [i["sku"] for i in items] == ["SKU-1", "SKU-2"]

    def test_total_quantity_unpacked_from_description(self, extracted_item):
        extracted_item.update(originalName="Flour 5kg", quantity=2, totalQuantity=0, unitOfMeasure="")
        (item,) = to_line_items([extracted_item], "a.jpg")
        assert item["totalQuantity"] == 10.0
        assert item["unitOfMeasure"] == "kg"

    def test_unit_defaults_to_pcs(self, extracted_item):
        extracted_item.update(originalName="Apples", quantity=3, totalQuantity=None, unitOfMeasure="")
        (item,) = to_line_items([extracted_item], "a.jpg")
        assert item["totalQuantity"] == 3.0
        assert item["unitOfMeasure"] == "pcs"

    def test_sku_wins_over_name(self, extracted_item, nomenclature):
        extracted_item.update(matchedProductName="White sugar", sku="SKU-2")
        (item,) = to_line_items([extracted_item], "a.jpg", nomenclature)
        assert item["matchedProductName"] == "Sugar"

    def test_name_fixes_unknown_sku(self, extracted_item, nomenclature):
        extracted_item.update(matchedProductName="sugar", sku="SKU-99")
        (item,) = to_line_items([extracted_item], "a.jpg", nomenclature)
        assert (item["matchedProductName"], item["sku"]) == ("Sugar", "SKU-2")

    def test_unknown_pairing(self, extracted_item, nomenclature):
        extracted_item.update(matchedProductName="Sugar", sku=UNKNOWN)
        (item,) = to_line_items([extracted_item], "a.jpg", nomenclature)
        assert (item["matchedProductName"], item["sku"]) == (UNKNOWN, UNKNOWN)

    def test_blank_match_without_nomenclature(self, extracted_item):
        extracted_item.update(sku="")
        (item,) = to_line_items([extracted_item], "a.jpg")
        assert (item["matchedProductName"], item["sku"]) == (UNKNOWN, UNKNOWN)

    def test_bounding_box_copied(self, extracted_item):
        box = [{"x": 0.0, "y": 0.0}, {"x": 1.0, "y": 0.0}, {"x": 1.0, "y": 1.0}, {"x": 0.0, "y": 1.0}]
        extracted_item["boundingBox"] = box
        (item,) = to_line_items([extracted_item], "a.jpg")
        assert item["boundingBox"] == box
        assert item["boundingBox"][0] is not box[0]

    def test_input_not_mutated(self, extracted_item):
        original = dict(extracted_item)
        to_line_items([extracted_item], "a.jpg")
        assert extracted_item == original

    def test_non_dict_rejected(self):
        with pytest.raises(TypeError):
            to_line_items(["not an item"], "a.jpg")
