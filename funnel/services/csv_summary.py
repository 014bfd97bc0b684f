# =============================================================================
# CSV Summary — Row Count and Column Names
# =============================================================================
#
# The analysis service returns the statement as CSV text. The FileRecord
# stores its header and number of data rows so the table can show them
# without reading the blob back.
# =============================================================================

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import PurePath


@dataclass
class CsvSummary:
    """Shape of a CSV document."""

    columns: list[str]
    row_count: int


def summarise_csv(text: str) -> CsvSummary:
    """
    Read the header and count the non-blank data rows of `text`.

    A leading UTF-8 BOM is ignored. Empty input gives no columns and zero
    rows.

    Example:
        >>> summarise_csv("Item,2024\\nRevenue,100\\n")
        CsvSummary(columns=['Item', '2024'], row_count=1)
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    columns: list[str] = []
    row_count = 0
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if not columns:
            columns = [cell.strip() for cell in row]
            continue
        row_count += 1
    return CsvSummary(columns=columns, row_count=row_count)


def derive_csv_filename(original_filename: str, suggested: str | None = None) -> str:
    """
    Pick the stored CSV filename.

    The analysis service's suggestion wins; otherwise the PDF's stem with a
    `.csv` extension. Directory parts are stripped from either.
    """
    if suggested and suggested.strip():
        name = PurePath(suggested.strip().replace("\\", "/")).name
        if name:
            return name if name.lower().endswith(".csv") else f"{name}.csv"
    stem = PurePath(original_filename.replace("\\", "/")).stem or "statement"
    return f"{stem}.csv"
