"""Cell-level helpers for reading POS ticket reports.

The report is a merged-cell layout flattened into rows of text, so every
lookup goes through these helpers: missing cells read as empty text, amounts
tolerate currency symbols and thousands separators, and dates use the US
``M/D/YY`` form the POS prints.

Examples:
    >>> cell_text(["AB-SA-T000001", None], 1)
    ''
    >>> merged_text(["Gift card", "#"], 0, 1)
    'Gift card #'
    >>> parse_amount("$1,234.50")
    1234.5
    >>> parse_percent("42.37%")
    42.4
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import pandas as pd

# Unicode characters that should be stripped from text
NBSP = "\u00a0"  # Non-breaking space
NNBSP = "\u202f"  # Narrow non-breaking space
ZW = "".join(chr(c) for c in (0x200B, 0x200C, 0x200D, 0xFEFF))  # Zero-width characters

_AMOUNT_STRIP_RE = re.compile(r"[$,]")
# Leading numeric prefix, the way the report tool parses numbers ("12 EA" -> 12)
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
SALE_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})")

# Two-digit years below this pivot are 20xx, the rest 19xx
YEAR_PIVOT = 50


def strip_invisibles(x: Any) -> str | None:
    """Remove invisible and problematic whitespace characters from text.

    Strips carriage returns, tabs, non-breaking and zero-width characters,
    then collapses runs of whitespace.

    Args:
        x: Value to clean (string, number, or None).

    Returns:
        Cleaned string or None if input is None/NaN.

    Examples:
        >>> strip_invisibles("  Hello World  ")
        'Hello World'
    """
    if x is None or (isinstance(x, float) and pd.isna(x)):
        return None
    s = str(x)
    s = s.replace("\r", "").replace("\t", " ").replace(NBSP, " ").replace(NNBSP, " ")
    s = re.sub(r"[%s]" % re.escape(ZW), "", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def cell_text(row: Sequence[Any] | None, col: int) -> str:
    """Return the trimmed text of one cell, empty when the cell is missing."""
    if not row or col >= len(row):
        return ""
    return strip_invisibles(row[col]) or ""


def merged_text(row: Sequence[Any] | None, start: int, end: int) -> str:
    """Join the non-empty cells ``start..end`` (inclusive) with single spaces.

    Report headers span merged cells, so a ticket number or section title may
    land in either of the underlying columns.
    """
    texts = [cell_text(row, i) for i in range(start, end + 1)]
    return " ".join(t for t in texts if t).strip()


def parse_amount(value: Any) -> float | None:
    """Parse a money or quantity cell.

    ``$`` and ``,`` are stripped, then the leading numeric part is read, so
    trailing unit text is tolerated.

    Args:
        value: Cell value (string or number).

    Returns:
        Parsed float, or None when the cell holds no number.

    Examples:
        >>> parse_amount("$1,234.56")
        1234.56
        >>> parse_amount("-2")
        -2.0
        >>> parse_amount("n/a") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        f = float(value)
        return None if math.isnan(f) or math.isinf(f) else f
    s = _AMOUNT_STRIP_RE.sub("", str(value)).strip()
    m = _LEADING_NUMBER_RE.match(s)
    if not m:
        return None
    return float(m.group(0))


def is_percent(text: str) -> bool:
    return bool(text) and text.endswith("%")


def parse_percent(text: str) -> float | None:
    """Parse a ``"42.37%"`` cell to a value rounded to one decimal place."""
    if not is_percent(text):
        return None
    value = parse_amount(text[:-1])
    if value is None:
        return None
    return round(value, 1)


def looks_like_sale_date(text: str) -> bool:
    return SALE_DATE_RE.match(text or "") is not None


def parse_sale_date(text: str) -> datetime:
    """Parse the leading ``M/D/YY`` or ``M/D/YYYY`` date of a cell.

    Two-digit years pivot at 50: ``24`` is 2024, ``87`` is 1987. Anything
    after the date (a time, a label) is ignored.

    Raises:
        ValueError: If the text does not start with a date or the date does
            not exist on the calendar.

    Examples:
        >>> parse_sale_date("1/15/24 10:32 AM")
        datetime.datetime(2024, 1, 15, 0, 0)
    """
    m = SALE_DATE_RE.match(text or "")
    if not m:
        raise ValueError(f"Not a sale date: {text!r}")
    month, day, year = (int(g) for g in m.groups())
    if year < 100:
        year += 2000 if year < YEAR_PIVOT else 1900
    return datetime(year, month, day)


def render_cell(value: Any) -> str:
    """Render a spreadsheet value the way the report prints it.

    Whole floats lose their ``.0`` (item numbers, quantities) and dates come
    out as ``M/D/YYYY`` so they are recognised as sale dates.
    """
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return f"{value.month}/{value.day}/{value.year}"
    return strip_invisibles(value) or ""
