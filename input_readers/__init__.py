from .excel import parse_csv_text, parse_to_rows, read_nomenclature_upload, rows_to_bytes, rows_to_csv_text
from .image import encode_document, image_to_base64, to_data_url
from .nomenclature import parse_nomenclature

__all__ = [
    "encode_document",
    "image_to_base64",
    "parse_csv_text",
    "parse_nomenclature",
    "parse_to_rows",
    "read_nomenclature_upload",
    "rows_to_bytes",
    "rows_to_csv_text",
    "to_data_url",
]
