"""Load a POS ticket-detail export into a cell grid.

The report is read without a header row and every cell is rendered back to
the text the report shows, so the scanner never sees pandas dtypes.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd

from pos_ledger.exceptions import DataQualityError
from pos_ledger.parsing.cells import render_cell

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def find_sheet_case_insensitive(xls: pd.ExcelFile, target: str) -> str:
    """Find a sheet by name using case-insensitive matching.

    First tries exact case-insensitive match, then partial substring match.

    Raises:
        DataQualityError: If no matching sheet is found.
    """
    t = target.lower().strip()
    for n in xls.sheet_names:
        if str(n).lower().strip() == t:
            return str(n)
    for n in xls.sheet_names:
        if t in str(n).lower():
            return str(n)
    raise DataQualityError(f"Sheet '{target}' not found. Available: {xls.sheet_names}")


def _render_rows(rows: Iterable[Iterable[Any]]) -> list[list[str]]:
    grid: list[list[str]] = []
    for values in rows:
        row = [render_cell(v) for v in values]
        while row and not row[-1]:
            row.pop()
        grid.append(row)
    return grid


def frame_to_grid(df: pd.DataFrame) -> list[list[str]]:
    """Render a header-less frame as rows of report text.

    Trailing empty cells are dropped, so rows keep their own length.
    """
    return _render_rows(df.itertuples(index=False, name=None))


def _read_csv_rows(path: Path) -> list[list[str]]:
    # report rows differ in width (short title rows, 20+ column ticket rows)
    with path.open(newline="", encoding="utf-8-sig") as f:
        return list(csv.reader(f))


def read_grid(path: str | Path, sheet: str | None = None) -> list[list[str]]:
    """Read an ``.xlsx``/``.xls`` or ``.csv`` export as a cell grid.

    Args:
        path: Export file.
        sheet: Sheet name (case-insensitive, partial match allowed). The first
            sheet is used when omitted. Ignored for CSV files.

    Returns:
        List of rows, each a list of cell strings.

    Raises:
        DataQualityError: If the file does not exist, has an unsupported
            extension or cannot be read.
    """
    path = Path(path)
    if not path.exists():
        raise DataQualityError(f"Export file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            xls = pd.ExcelFile(path)
            sheet_name = find_sheet_case_insensitive(xls, sheet) if sheet else xls.sheet_names[0]
            df = pd.read_excel(xls, sheet_name=sheet_name, header=None, dtype=object)
            grid = frame_to_grid(df)
        elif suffix == ".csv":
            grid = _render_rows(_read_csv_rows(path))
        else:
            raise DataQualityError(f"Unsupported export format '{suffix}': {path}")
    except (OSError, ValueError, ImportError, csv.Error) as e:
        raise DataQualityError(f"Could not read {path}: {e}") from e

    width = max((len(row) for row in grid), default=0)
    logger.info("Read %d row(s) x %d column(s) from %s", len(grid), width, path.name)
    return grid
