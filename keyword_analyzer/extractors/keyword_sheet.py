"""Parser for uploaded keyword spreadsheets.

The first column holds the keyword and the second its match type.  The first
row is treated as a header and skipped.  ``.xlsx``/``.xlsm`` workbooks are
read with openpyxl (first worksheet only); ``.csv`` files with pandas.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Iterable

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from keyword_analyzer.core.errors import ValidationError
from keyword_analyzer.core.schema import DEFAULT_CATEGORY, Item

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


def _normalise(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _rows_to_items(rows: Iterable[Iterable[Any]], default_category: str) -> list[Item]:
    items: list[Item] = []
    for row_number, row in enumerate(rows, start=1):
        if row_number == 1:
            continue
        cells = list(row)
        keyword = _normalise(cells[0]) if cells else ""
        if not keyword:
            continue
        category = _normalise(cells[1]) if len(cells) > 1 else ""
        items.append(Item(text=keyword, category=category or default_category))
    return items


def _read_excel(payload: bytes) -> list[tuple[Any, ...]]:
    workbook = load_workbook(io.BytesIO(payload), read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        return [tuple(row[:2]) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_csv(payload: bytes) -> list[tuple[Any, ...]]:
    # Size the frame to the widest line so short and long rows both fit.
    width = max((line.count(b",") for line in payload.splitlines()), default=0) + 1
    dataframe = pd.read_csv(
        io.BytesIO(payload),
        header=None,
        names=list(range(max(width, 2))),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
    )
    return list(dataframe.iloc[:, :2].itertuples(index=False, name=None))


def parse(payload: bytes, filename: str, default_category: str = DEFAULT_CATEGORY) -> list[Item]:
    """Return the keyword items contained in an uploaded spreadsheet."""

    suffix = Path(filename or "").suffix.lower()
    try:
        if suffix in CSV_SUFFIXES:
            rows = _read_csv(payload)
        elif suffix in EXCEL_SUFFIXES or not suffix:
            rows = _read_excel(payload)
        else:
            raise ValidationError(f"Unsupported file type: {suffix}")
    except ValidationError:
        raise
    except pd.errors.EmptyDataError:
        rows = []
    except (InvalidFileException, zipfile.BadZipFile, KeyError, IndexError, ValueError) as exc:
        raise ValidationError(f"Could not read spreadsheet: {exc}") from exc

    return _rows_to_items(rows, default_category)


__all__ = ["parse"]
