"""
Tests for the tabular reader and the nomenclature parser.
"""

import pytest

from domain.invoice import NomenclatureTable
from input_readers.excel import parse_csv_text, parse_to_rows, read_nomenclature_upload, rows_to_bytes
from input_readers.image import encode_document, guess_mime_type, image_to_base64, to_data_url
from input_readers.nomenclature import parse_nomenclature


class TestParseNomenclature:
    """CSV text to NomenclatureTable"""

    def test_products_parsed(self, nomenclature):
        assert not nomenclature.is_empty
        assert nomenclature.product_names() == ["Flour 5kg", "Sugar", "Olive Oil"]
        assert nomenclature.warning is None
        assert nomenclature.headers == ("name", "sku", "price")

    def test_headers_are_case_insensitive(self):
        table = parse_nomenclature("Name, SKU \nSugar,SKU-2\n")
        assert table.find_by_sku("SKU-2").name == "Sugar"

    def test_missing_sku_column(self):
        table = parse_nomenclature("name,price\nSugar,2\n")
        assert table.is_empty
        assert "'name' and 'sku'" in table.warning

    def test_unrelated_headers(self):
        table = parse_nomenclature("item,code\nSugar,SKU-2\n")
        assert table.is_empty
        assert table.products == ()
        assert "'name' and 'sku'" in table.warning

    def test_empty_text(self):
        table = parse_nomenclature("")
        assert table.is_empty
        assert table.warning

    def test_header_only(self):
        table = parse_nomenclature("name,sku\n")
        assert table.is_empty
        assert table.warning

    def test_rows_without_name_or_sku_are_not_products(self):
        table = parse_nomenclature("name,sku\nSugar,SKU-2\n,SKU-9\nSalt,\n")
        assert table.product_names() == ["Sugar"]
        # the raw table still carries every row
        assert len(table.rows) == 3

    def test_no_usable_rows_warns(self):
        table = parse_nomenclature("name,sku\n,SKU-9\n")
        assert table.is_empty
        assert "no rows" in table.warning

    def test_quoted_fields(self):
        table = parse_nomenclature('name,sku\n"Oil, extra virgin",SKU-4\n')
        assert table.product_names() == ["Oil, extra virgin"]

    def test_raw_text_kept(self):
        text = "name,sku\nSugar,SKU-2\n"
        assert parse_nomenclature(text).raw_text == text


class TestNomenclatureLookup:
    def test_find_by_name_exact_then_case_insensitive(self, nomenclature):
        assert nomenclature.find_by_name("Sugar").sku == "SKU-2"
        assert nomenclature.find_by_name("  sugar ").sku == "SKU-2"
        assert nomenclature.find_by_name("Salt") is None
        assert nomenclature.find_by_name("") is None

    def test_duplicate_sku_first_wins(self):
        table = parse_nomenclature("name,sku\nSugar,SKU-2\nSugar brown,SKU-2\n")
        assert table.find_by_sku("SKU-2").name == "Sugar"

    def test_empty_table(self):
        table = NomenclatureTable()
        assert table.is_empty
        assert table.find_by_sku("SKU-1") is None


class TestTabularReader:
    """CSV and spreadsheet files to (headers, rows)"""

    def test_csv_text(self):
        headers, rows = parse_csv_text("a,b\n1,2\n\n3,4\n")
        assert headers == ["a", "b"]
        assert rows == [["1", "2"], ["3", "4"]]

    def test_csv_with_bom(self):
        headers, _ = parse_to_rows("\ufeffname,sku\nSugar,SKU-2\n".encode("utf-8"), "list.csv")
        assert headers == ["name", "sku"]

    def test_xlsx_round_trip(self):
        data = rows_to_bytes(["name", "sku", "price"], [["Sugar", "SKU-2", 2], ["Flour", "SKU-1", 3.5]], "xlsx")
        headers, rows = parse_to_rows(data, "list.xlsx")
        assert headers == ["name", "sku", "price"]
        assert rows == [["Sugar", "SKU-2", 2], ["Flour", "SKU-1", 3.5]]

    def test_unsupported_format(self):
        with pytest.raises(ValueError, match="Unsupported file format"):
            parse_to_rows(b"whatever", "list.txt")

    def test_corrupted_xlsx(self):
        with pytest.raises(ValueError):
            parse_to_rows(b"not a zip file", "list.xlsx")

    def test_csv_output(self):
        data = rows_to_bytes(["name", "sku"], [["Oil, extra", "SKU-4"], ["Salt", 7.0]], "csv")
        assert data.decode("utf-8") == 'name,sku\n"Oil, extra",SKU-4\nSalt,7\n'

    def test_unsupported_output_format(self):
        with pytest.raises(ValueError):
            rows_to_bytes([], [], "ods")

    def test_nomenclature_from_xlsx(self):
        data = rows_to_bytes(["Name", "SKU"], [["Sugar", 1002]], "xlsx")
        text = read_nomenclature_upload(data, "nomenclature.xlsx")
        table = parse_nomenclature(text)
        assert table.find_by_sku("1002").name == "Sugar"


class TestDocumentEncoding:
    def test_encode_document(self):
        mime, b64 = encode_document(b"abc", "invoice.png")
        assert mime == "image/png"
        assert b64 == "YWJj"

    def test_explicit_mime_type_wins(self):
        mime, _ = encode_document(b"abc", "invoice", mime_type="application/pdf")
        assert mime == "application/pdf"

    def test_empty_document(self):
        with pytest.raises(ValueError):
            encode_document(b"", "empty.jpg")

    def test_mime_guess(self):
        assert guess_mime_type("scan.pdf") == "application/pdf"
        assert guess_mime_type("scan.jpg") == "image/jpeg"

    def test_data_url(self):
        assert to_data_url("image/png", "YWJj") == "data:image/png;base64,YWJj"

    def test_image_file_on_disk(self, tmp_path):
        path = tmp_path / "invoice.jpg"
        path.write_bytes(b"abc")
        assert image_to_base64(path) == ("image/jpeg", "YWJj")

    def test_missing_image_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            image_to_base64(tmp_path / "missing.jpg")
