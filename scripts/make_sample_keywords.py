#!/usr/bin/env python
from __future__ import annotations

import argparse
from pathlib import Path

from openpyxl import Workbook

SAMPLE_KEYWORDS = [
    ("running shoes", "Exact"),
    ("trail running gear", "Phrase"),
    ("buy shoes", "Broad"),
    ("marathon training plan", "Broad"),
    ("cheap flights", "Broad"),
    ("waterproof jacket", "Phrase"),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample keyword workbook")
    parser.add_argument("--output", required=True, help="Output file path (.xlsx)")
    parser.add_argument("--repeat", type=int, default=1, help="Repeat the sample rows N times")
    args = parser.parse_args()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Keywords"
    sheet.append(["Keyword", "Match Type"])
    for round_number in range(args.repeat):
        suffix = f" {round_number + 1}" if args.repeat > 1 else ""
        for keyword, match_type in SAMPLE_KEYWORDS:
            sheet.append([f"{keyword}{suffix}", match_type])

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    print(f"Sample keywords written: {output}")


if __name__ == "__main__":
    main()
