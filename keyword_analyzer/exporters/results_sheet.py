from __future__ import annotations

import io
from typing import Iterable

import pandas as pd

from keyword_analyzer.core.schema import ClassificationResult

SHEET_NAME = "Analysis Results"
COLUMNS = ["Keyword", "Match Type", "Status"]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"


def _to_dataframe(rows: Iterable[ClassificationResult]) -> pd.DataFrame:
    records = [
        {"Keyword": row.text, "Match Type": row.category, "Status": row.label}
        for row in rows
    ]
    return pd.DataFrame(records, columns=COLUMNS)


def export_results_xlsx(rows: Iterable[ClassificationResult]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        _to_dataframe(rows).to_excel(writer, sheet_name=SHEET_NAME, index=False)
    return buffer.getvalue()


def export_results_csv(rows: Iterable[ClassificationResult]) -> bytes:
    return _to_dataframe(rows).to_csv(index=False).encode("utf-8")
