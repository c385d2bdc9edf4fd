#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path

from openpyxl import Workbook


HEADER = [
    "Name",
    "Email",
    "School",
    "Domain",
    "Certificate Number",
]

SAMPLE_ROWS = [
    ["Asha Rao", "asha@example.com", "green valley school", "computer science", "gh-0001"],
    ["Ravi Kumar", "ravi@example.com", "Green Valley School", "ai", "gh-0002"],
    ["Meera Iyer", "meera@example.com", "riverside academy", "web development", "gh-0003"],
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a sample certificate roster (.csv or .xlsx)")
    parser.add_argument("--output", required=True, help="output file path (.csv or .xlsx)")
    parser.add_argument("--sheet", default="Roster", help="worksheet name for .xlsx output")
    parser.add_argument("--recipient", default=None, help="replace every sample email with this address")
    args = parser.parse_args()

    rows = [list(row) for row in SAMPLE_ROWS]
    if args.recipient:
        for row in rows:
            row[1] = args.recipient

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.suffix.lower() == ".xlsx":
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = args.sheet
        sheet.append(HEADER)
        for row in rows:
            sheet.append(row)
        workbook.save(output)
    else:
        with output.open("w", newline="", encoding="utf-8") as fp:
            writer = csv.writer(fp)
            writer.writerow(HEADER)
            writer.writerows(rows)

    print(f"Sample roster written to {output}")


if __name__ == "__main__":
    main()
