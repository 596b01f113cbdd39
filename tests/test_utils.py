"""Shared test utilities.

Builders for report cell grids and ledger line frames used across the test
modules.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import pandas as pd

from pos_ledger.reconcile import LINE_COLUMNS

REPORT_WIDTH = 21


def make_row(cells: dict[int, str], width: int = REPORT_WIDTH) -> list[str]:
    """Build one report row with text at the given column positions."""
    row = [""] * width
    for col, text in cells.items():
        row[col] = text
    return row


def ticket_section(
    ticket_number: str,
    sale_date: str | None = "1/15/24",
    total: str | None = "150.00",
    rep: str | None = "JANE",
    items: Sequence[tuple] = (("ABC-100", "2", "Whey Protein 2lb"),),
    gross_profit: str | None = "42.5%",
    gross_profit_col: int = 17,
    total_col: int = 19,
    gift_cards: Sequence[tuple[str, str]] = (),
) -> list[list[str]]:
    """Rows of one ticket section in the POS ticket-detail layout.

    Args:
        ticket_number: Header ticket number.
        sale_date: Date cell text, or None for no date row.
        total: "Sale Ticket" total text, or None for no total row.
        rep: Rep row text, or None.
        items: ``(item_number, qty, description)`` tuples, optionally with a
            fourth element for the selling unit.
        gross_profit: Percent text on the date row.
        gross_profit_col: Column of the gross profit percent.
        total_col: Column of the ticket total.
        gift_cards: ``(card_number, amount)`` pairs; adds a gift card section.
    """
    rows = [make_row({0: ticket_number})]
    if sale_date is not None:
        date_cells = {0: sale_date}
        if gross_profit is not None:
            date_cells[gross_profit_col] = gross_profit
        rows.append(make_row(date_cells))
    if total is not None:
        rows.append(make_row({0: "Sale Ticket", total_col: total}))
    if rep is not None:
        rows.append(make_row({0: rep}))
    if items:
        rows.append(make_row({0: "Item #", 1: "Qty", 4: "Description"}))
    for item in items:
        item_number, qty, description = item[:3]
        cells = {0: item_number, 1: qty, 4: description}
        if len(item) > 3:
            cells[2] = item[3]
        rows.append(make_row(cells))
    if gift_cards:
        rows.append(make_row({0: "Gift card #"}))
        for number, amount in gift_cards:
            rows.append(make_row({0: number, 11: amount, 14: "Gift Card"}))
    rows.append(make_row({}))
    return rows


def report_grid(*sections: Iterable[list[str]]) -> list[list[str]]:
    """Concatenate ticket sections under a report title row."""
    grid = [make_row({0: "Ticket Detail Report"})]
    for section in sections:
        grid.extend(section)
    return grid


def line(
    line_type: str,
    ticket_number: str,
    total: float | None = None,
    qty: int | None = None,
    amount: float | None = None,
    gp: float | None = None,
    store_id: str = "AB-SA",
    sales_rep: str | None = "JANE",
    sale_date: str = "2024-01-15",
    item_number: str | None = "ABC-100",
) -> dict:
    """One ledger line as it appears in the unified line frame."""
    return {
        "line_type": line_type,
        "ticket_number": ticket_number,
        "store_id": store_id,
        "sale_date": sale_date,
        "sales_rep": sales_rep,
        "transaction_total": total,
        "gross_profit_percent": gp,
        "item_number": item_number if line_type != "gift_card" else None,
        "qty_sold": qty,
        "giftcard_amount": amount,
        "product_name": "Gift Card" if line_type == "gift_card" else "Product",
    }


def lines_frame(rows: Sequence[dict]) -> pd.DataFrame:
    """Typed line frame from ``line()`` dicts."""
    df = pd.DataFrame(list(rows)).reindex(columns=LINE_COLUMNS)
    df["line_id"] = [f"line-{i}" for i in range(len(df))]
    for col in ["transaction_total", "gross_profit_percent", "qty_sold", "giftcard_amount"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["sale_date"] = pd.to_datetime(df["sale_date"], format="ISO8601")
    return df
