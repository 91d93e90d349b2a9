"""
CSV writer for exports.

Format: comma separated, every value wrapped in double quotes, internal quotes
doubled, one header row, "\\n" line endings, UTF-8.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Sequence

from fields.normalization import format_number


def write_rows_to_csv(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> bytes:
    buf = io.StringIO()
    # Headers are quoted only when needed; values always.
    csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n").writerow(list(headers))
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([format_number(v) for v in row])
    # No trailing newline after the last row.
    return buf.getvalue().rstrip("\n").encode("utf-8")
