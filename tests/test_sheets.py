from __future__ import annotations

import io

import pytest
from openpyxl import Workbook, load_workbook

from keyword_analyzer.core.errors import ValidationError
from keyword_analyzer.core.schema import ClassificationResult, Item
from keyword_analyzer.exporters.results_sheet import (
    SHEET_NAME,
    export_results_csv,
    export_results_xlsx,
)
from keyword_analyzer.extractors import keyword_sheet


def _workbook_bytes(rows: list[list[object]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_parse_xlsx_skips_header_and_blank_rows():
    payload = _workbook_bytes(
        [
            ["Keyword", "Match Type"],
            ["  running shoes ", "Exact"],
            [None, "Phrase"],
            ["buy shoes"],
            [42, " Phrase "],
        ]
    )

    items = keyword_sheet.parse(payload, "keywords.xlsx")

    assert items == [
        Item(text="running shoes", category="Exact"),
        Item(text="buy shoes", category="Broad"),
        Item(text="42", category="Phrase"),
    ]


def test_parse_only_reads_first_worksheet():
    workbook = Workbook()
    workbook.active.append(["Keyword"])
    workbook.active.append(["first sheet"])
    other = workbook.create_sheet("Other")
    other.append(["Keyword"])
    other.append(["second sheet"])
    buffer = io.BytesIO()
    workbook.save(buffer)

    items = keyword_sheet.parse(buffer.getvalue(), "keywords.xlsx")

    assert [item.text for item in items] == ["first sheet"]


def test_parse_csv_uses_default_category():
    payload = "Keyword,Match Type\nrunning gear,Exact\nbuy shoes,\n,Broad\n".encode("utf-8")

    items = keyword_sheet.parse(payload, "keywords.csv", default_category="Phrase")

    assert items == [
        Item(text="running gear", category="Exact"),
        Item(text="buy shoes", category="Phrase"),
    ]


def test_parse_csv_tolerates_rows_wider_than_the_header():
    payload = b"Keyword\nrunning gear,Exact\nbuy shoes,Phrase\n"

    items = keyword_sheet.parse(payload, "keywords.csv")

    assert items == [
        Item(text="running gear", category="Exact"),
        Item(text="buy shoes", category="Phrase"),
    ]


def test_parse_csv_ignores_cells_past_the_category():
    payload = b"Keyword,Match Type\nrunning gear,Exact,note\nbuy shoes\n\"shoes, cheap\",Broad,a,b\n"

    items = keyword_sheet.parse(payload, "keywords.csv", default_category="Phrase")

    assert items == [
        Item(text="running gear", category="Exact"),
        Item(text="buy shoes", category="Phrase"),
        Item(text="shoes, cheap", category="Broad"),
    ]


def test_parse_header_only_file_returns_no_items():
    assert keyword_sheet.parse(_workbook_bytes([["Keyword", "Match Type"]]), "empty.xlsx") == []
    assert keyword_sheet.parse(b"", "empty.csv") == []


@pytest.mark.parametrize(
    ("payload", "filename"),
    [
        (b"definitely not a workbook", "keywords.xlsx"),
        (b"whatever", "keywords.pdf"),
    ],
)
def test_parse_unreadable_files_raise_validation_error(payload, filename):
    with pytest.raises(ValidationError):
        keyword_sheet.parse(payload, filename)


RESULTS = [
    ClassificationResult(text="buy shoes", category="Broad", outcome="not_relevant"),
    ClassificationResult(text="running gear", category="Exact", outcome="relevant"),
    ClassificationResult(text="cheap flights", category="Broad", outcome="error", reason="API error: 500"),
]


def test_export_xlsx_writes_header_and_rows():
    workbook = load_workbook(io.BytesIO(export_results_xlsx(RESULTS)))

    assert workbook.sheetnames == [SHEET_NAME]
    rows = list(workbook[SHEET_NAME].iter_rows(values_only=True))
    assert rows == [
        ("Keyword", "Match Type", "Status"),
        ("buy shoes", "Broad", "Not Relevant"),
        ("running gear", "Exact", "Relevant"),
        ("cheap flights", "Broad", "Error"),
    ]


def test_export_csv_writes_header_and_rows():
    lines = export_results_csv(RESULTS[:2]).decode("utf-8").splitlines()

    assert lines == [
        "Keyword,Match Type,Status",
        "buy shoes,Broad,Not Relevant",
        "running gear,Exact,Relevant",
    ]
