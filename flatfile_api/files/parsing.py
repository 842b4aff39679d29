"""Pure parsers for stored content.

Both return a ``ParseResult``: ``Ok(value)`` on success or ``Err(kind,
detail)`` on failure, so create, read, update and list share one check
without exceptions crossing the handler code.
"""

from __future__ import annotations

import csv
import json
import sys
from dataclasses import dataclass
from typing import Any, Union

INVALID_JSON = "invalid_json"
CSV_ROW_MISMATCH = "csv_row_mismatch"
CSV_MALFORMED = "csv_malformed"

# Fields are bounded by the stored file, not by the csv module default.
csv.field_size_limit(sys.maxsize)


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    kind: str
    detail: str = ""


ParseResult = Union[Ok, Err]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json(text: str | bytes | None) -> ParseResult:
    """Parse *text* as a JSON document of any type (object, array or scalar)."""
    if text is None:
        return Err(INVALID_JSON, "no content")
    try:
        return Ok(json.loads(text, parse_constant=_reject_constant))
    except (ValueError, TypeError) as exc:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        return Err(INVALID_JSON, str(exc))
    except RecursionError:
        return Err(INVALID_JSON, "nesting too deep")


def _split_line(line: str) -> list[str]:
    return next(csv.reader([line], strict=True))


def parse_csv(text: str) -> ParseResult:
    """Parse comma-separated *text* into a list of header-keyed records.

    The content is trimmed and split on line feeds; the first line is the
    header row. Blank lines after the header are skipped. A row whose field
    count differs from the header yields ``Err(CSV_ROW_MISMATCH)``.
    """
    lines = [line.removesuffix("\r") for line in text.strip().split("\n")]
    if lines == [""]:
        return Ok([])

    try:
        headers = _split_line(lines[0])
        records: list[dict[str, str]] = []
        for lineno, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue
            row = _split_line(line)
            if len(row) != len(headers):
                return Err(
                    CSV_ROW_MISMATCH,
                    f"line {lineno}: expected {len(headers)} fields, got {len(row)}",
                )
            records.append(dict(zip(headers, row)))
    except csv.Error as exc:
        return Err(CSV_MALFORMED, str(exc))
    return Ok(records)
