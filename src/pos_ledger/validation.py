"""Ledger validation reports.

Checks an imported ledger against the numbers the POS itself reports and
looks for gaps in ticket numbering.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import pandas as pd

from pos_ledger.ledger.lines import LINE_TYPES
from pos_ledger.reconcile import reconcile_tickets
from pos_ledger.stores import count_ticket_patterns

logger = logging.getLogger(__name__)

_TICKET_SEQUENCE_RE = re.compile(r"T(\d+)")

ZERO_TICKET_SAMPLE = 10
MISSING_NUMBERS_LIMIT = 100


def validate_ticket_totals(
    lines: pd.DataFrame,
    expected_ticket_count: int | None = None,
    expected_total_amount: float | None = None,
) -> dict[str, Any]:
    """Compare the reconciled ledger with expected POS totals.

    Args:
        lines: Tenant-scoped ledger lines.
        expected_ticket_count: Ticket count reported by the POS, if known.
        expected_total_amount: Sales total reported by the POS, if known.

    Returns:
        Report with ``actual_ticket_count``, ``actual_total_amount``,
        ``zero_total_tickets`` and a sample of them, ``ticket_patterns`` and,
        when expectations are given, ``ticket_count_difference`` and
        ``amount_difference``.

    Examples:
        >>> report = validate_ticket_totals(lines, expected_ticket_count=412)
        >>> report["ticket_count_difference"]
        0
    """
    tickets = reconcile_tickets(lines)
    actual_total = float(tickets["transaction_total"].sum()) if len(tickets) else 0.0
    zero = tickets[tickets["transaction_total"].fillna(0) == 0]

    table_names = {line_type: table for table, line_type in LINE_TYPES.items()}
    in_tables: dict[str, list[str]] = {}
    for number, line_type in zip(lines["ticket_number"], lines["line_type"]):
        tables = in_tables.setdefault(number, [])
        if table_names[line_type] not in tables:
            tables.append(table_names[line_type])

    sample = [
        {
            "ticket_number": row.ticket_number,
            "store_id": row.store_id,
            "sale_date": row.sale_date.isoformat() if pd.notna(row.sale_date) else None,
            "sales_rep": row.sales_rep if pd.notna(row.sales_rep) else None,
            "in_tables": in_tables.get(row.ticket_number, []),
        }
        for row in zero.head(ZERO_TICKET_SAMPLE).itertuples(index=False)
    ]

    report: dict[str, Any] = {
        "actual_ticket_count": len(tickets),
        "actual_total_amount": round(actual_total, 2),
        "zero_total_tickets": len(zero),
        "sample_zero_tickets": sample,
    }
    if expected_ticket_count is not None:
        report["ticket_count_difference"] = len(tickets) - expected_ticket_count
    if expected_total_amount is not None:
        report["amount_difference"] = round(actual_total - expected_total_amount, 2)
    report["ticket_patterns"] = count_ticket_patterns(tickets["ticket_number"].tolist())

    if report["ticket_patterns"]["other"]:
        logger.warning(
            "%d ticket number(s) match no known scheme", report["ticket_patterns"]["other"]
        )
    return report


def find_missing_ticket_numbers(
    lines: pd.DataFrame,
    store_id: str,
    start_number: int,
    end_number: int,
) -> dict[str, Any]:
    """List sequence numbers absent from a store's sale ledger.

    The sequence number is the digits after ``T`` in the ticket number
    (``AB-SA-T051707`` -> 51707).

    Args:
        lines: Tenant-scoped ledger lines.
        store_id: Store to check.
        start_number: First sequence number of the range.
        end_number: Last sequence number of the range (inclusive).

    Returns:
        Report with the missing count and the first 100 missing numbers.
    """
    sales = lines[(lines["line_type"] == "sale") & (lines["store_id"] == store_id)]
    present: set[int] = set()
    for number in sales["ticket_number"].dropna().unique():
        m = _TICKET_SEQUENCE_RE.search(str(number))
        if m:
            present.add(int(m.group(1)))

    missing = [n for n in range(start_number, end_number + 1) if n not in present]
    in_range = sorted(n for n in present if start_number <= n <= end_number)
    logger.info(
        "Store %s: %d of %d ticket number(s) missing in %d-%d",
        store_id,
        len(missing),
        end_number - start_number + 1,
        start_number,
        end_number,
    )
    return {
        "store_id": store_id,
        "range": f"{start_number} - {end_number}",
        "total_in_range": len(in_range),
        "missing_count": len(missing),
        "missing_numbers": missing[:MISSING_NUMBERS_LIMIT],
        "sample_existing": in_range[:10],
    }
