from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet reader for translation workbooks.

Only the first sheet is read. Its first row is the header; every later
non-blank row becomes a ``column name -> cell text`` mapping. All cells are
read as text with pandas' NA conversion disabled so that words such as
"None", "NA" or "null" survive as translations.
"""

__all__ = [
    "EmptyWorkbookError",
    "read_translation_sheet",
    "sheet_to_rows",
]


class EmptyWorkbookError(Exception):
    """Raised when the workbook has no sheet to read."""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value)


def sheet_to_rows(df: pd.DataFrame) -> list[dict[str, str]]:
    """Convert a header-parsed DataFrame into row dicts, skipping blank rows."""
    columns = [str(c).strip() for c in df.columns]
    rows: list[dict[str, str]] = []
    for raw in df.itertuples(index=False, name=None):
        row = {col: _cell_text(val) for col, val in zip(columns, raw, strict=False)}
        if not any(text.strip() for text in row.values()):
            continue
        rows.append(row)
    return rows


def read_translation_sheet(path: Path) -> list[dict[str, str]]:
    """Read the first sheet of ``path`` as a list of text rows.

    Raises:
        EmptyWorkbookError: the workbook contains no sheet
        FileNotFoundError: missing file (propagated from pandas)
    """
    with pd.ExcelFile(path) as xls:
        if not xls.sheet_names:
            raise EmptyWorkbookError(f"workbook has no sheets: {path}")
        first = xls.sheet_names[0]
        df = xls.parse(first, header=0, dtype=str, keep_default_na=False, na_values=[])
    return sheet_to_rows(df)
