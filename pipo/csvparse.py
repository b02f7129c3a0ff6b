"""Reading sentiment records from CSV data."""

from __future__ import annotations

import csv
import io
from typing import IO


def _text_stream(reader: IO) -> IO[str]:
    if isinstance(reader, (io.RawIOBase, io.BufferedIOBase)):
        return io.TextIOWrapper(reader, encoding="utf-8", newline="")
    return reader


def parse_file(reader: IO, amount_of_records: int) -> list[list[str]]:
    """Read every CSV record from ``reader``.

    When ``amount_of_records`` is positive the header row is skipped and only
    that many records are returned; otherwise all rows, header included, are
    returned. Every row must have as many fields as the first one.
    """
    records: list[list[str]] = []
    expected_fields: int | None = None
    for row in csv.reader(_text_stream(reader), strict=True):
        if not row:
            continue
        if expected_fields is None:
            expected_fields = len(row)
        elif len(row) != expected_fields:
            raise csv.Error(
                f"record {len(records) + 1}: wrong number of fields "
                f"(expected {expected_fields}, got {len(row)})"
            )
        records.append(row)

    if amount_of_records > 0:
        if amount_of_records + 1 > len(records):
            raise ValueError(
                f"requested {amount_of_records} records but only "
                f"{max(len(records) - 1, 0)} are available"
            )
        records = records[1 : amount_of_records + 1]

    return records