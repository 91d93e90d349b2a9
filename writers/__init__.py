from .csv_writer import write_rows_to_csv
from .excel_writer import write_rows_to_xlsx

__all__ = ["write_rows_to_csv", "write_rows_to_xlsx"]
