# Docstring for service_audit/core/normalizers module
"""
normalizers.py

Tabular normalization helpers for loosely structured CSV exports.

Authorized and reported files come from different tools and people: comma,
semicolon or tab delimited, Spanish or English headers, rows wrapped in quotes
by spreadsheet exports, and numbers written with a decimal comma. This module
turns that text into a pandas DataFrame of trimmed strings and offers the
per-row helpers the ingestion pipeline uses to resolve canonical fields.

Design goals
------------
- Tolerance: BOM, blank lines, whole-line quoting and ragged rows never abort
  a whole file.
- Predictability: all cells are read as strings (dtype=str) so IDs and clock
  times keep their original text; numeric coercion is explicit.
- Single source of truth for header normalization and alias resolution.

Public API
----------
- strip_whole_line_quotes(text) -> str
- detect_delimiter(text) -> str
- read_table(text, delimiter=None) -> pd.DataFrame
- normalize_header_key(key) -> str
- normalize_row(row) -> dict[str, Any]
- pick_alias(row, aliases) -> Any | None
- to_number_loosely(value) -> float | None
"""

from __future__ import annotations

import io
import math
import re
from typing import Any, Iterable, Mapping

import pandas as pd

from ..config import CANDIDATE_DELIMITERS
from ..exceptions import MalformedTable

BOM = "\ufeff"


def strip_whole_line_quotes(text: str | None) -> str:
    """
    Remove one pair of quotes wrapping a whole line.

    Spreadsheet exports sometimes write every row as '"a,b,c"'; a CSV parser
    would read that as a single field.

    Examples:
        '"P1,2024-01-01,09:00"' -> 'P1,2024-01-01,09:00'
        'P1,"Smith, J",09:00'   -> unchanged
    """
    lines = str(text or "").replace("\r\n", "\n").split("\n")
    cleaned = []
    for line in lines:
        s = line.strip()
        if len(s) >= 2 and s.startswith('"') and s.endswith('"'):
            cleaned.append(s[1:-1])
        else:
            cleaned.append(line)
    return "\n".join(cleaned)


def detect_delimiter(text: str | None) -> str:
    """Pick the most frequent of ',', ';' and tab in the first non-blank line (',' on ties)."""
    first_line = next(
        (line for line in str(text or "").split("\n") if line.strip()),
        "",
    )
    best = CANDIDATE_DELIMITERS[0]
    best_count = -1
    for delimiter in CANDIDATE_DELIMITERS:
        count = first_line.count(delimiter)
        if count > best_count:       # strict: earlier candidate keeps ties
            best, best_count = delimiter, count
    return best


def read_table(text: str | None, delimiter: str | None = None) -> pd.DataFrame:

    """

    Parse delimited text with a header row into a DataFrame of strings.

    - A leading byte-order mark is ignored.
    - Blank and whitespace-only lines are skipped.
    - Rows with more fields than the header are truncated to the header width;
      rows with fewer fields get "" for the missing trailing cells.

    Raises:
        MalformedTable: no header row, or text the CSV parser cannot tokenize.

    """

    body = str(text or "")
    if body.startswith(BOM):
        body = body[len(BOM):]
    body = "\n".join(line for line in body.replace("\r\n", "\n").split("\n") if line.strip())
    if not body:
        raise MalformedTable("Input has no header row.")

    sep = delimiter or detect_delimiter(body)

    try:
        header = pd.read_csv(io.StringIO(body), sep=sep, nrows=0, engine="python", dtype=str)
        width = len(header.columns)

        # Python engine lets us keep over-long rows instead of failing the file
        df = pd.read_csv(
            io.StringIO(body),
            sep=sep,
            dtype=str,
            engine="python",
            index_col=False,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines=lambda bad_line: bad_line[:width],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise MalformedTable(f"Could not parse table: {exc}") from exc

    return df.fillna("")


def normalize_header_key(key: Any) -> str:
    """
    Lower-case a header and drop whitespace plus '.', '_' and '-'.

    Examples:
        ' Hora Inicio ' -> 'horainicio'
        'professional_id' -> 'professionalid'
        'Fecha-Servicio' -> 'fechaservicio'
    """
    text = str(key if key is not None else "").strip().lower()
    text = re.sub(r"\s+", "", text)
    return re.sub(r"[._-]", "", text)


def normalize_row(row: Mapping[Any, Any]) -> dict[str, Any]:
    """Re-key a row by normalized header, trimming string values."""
    out: dict[str, Any] = {}
    for key, value in row.items():
        out[normalize_header_key(key)] = value.strip() if isinstance(value, str) else value
    return out


def pick_alias(row: Mapping[str, Any], aliases: Iterable[str]) -> Any | None:
    """Return the value of the first alias present in row with a non-empty value."""
    for alias in aliases:
        if alias in row and row[alias] != "" and row[alias] is not None:
            return row[alias]
    return None


def to_number_loosely(value: Any) -> float | None:
    """
    Coerce a number written with '.' thousands and ',' decimal separators.

    Returns None (not an error) for empty or non-numeric input so callers can
    fall back to a derived value.

    Examples:
        '1.234,50' -> 1234.5
        '45'       -> 45.0
        ''         -> None
        'n/a'      -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None
    text = text.replace(".", "").replace(",", ".", 1)

    number = pd.to_numeric(text, errors="coerce")
    if pd.isna(number) or not math.isfinite(number):
        return None
    return float(number)
