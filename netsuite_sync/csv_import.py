"""Parsing of uploaded author CSV files into row dicts."""

import csv
import io
from typing import List


def parse_csv_text(text: str) -> List[dict]:
    """
    Parse CSV text into rows keyed by lower-cased, quote-stripped header names.

    Blank lines are skipped and rows whose field count differs from the
    header are dropped.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    reader = csv.reader(io.StringIO("\n".join(lines)))
    header = [name.strip().strip("'\"").lower() for name in next(reader)]

    rows = []
    for values in reader:
        if len(values) != len(header):
            continue
        rows.append({
            name: value.strip().strip("'\"")
            for name, value in zip(header, values)
        })
    return rows
