"""Reconcile the three ledgers into one canonical record per ticket.

The sale, return and gift-card tables are read back into a single line
frame tagged with a ``line_type`` column, then reduced in one grouped pass.
The same ticket number can appear in several tables (an exchange reuses the
ticket number for its return lines, a sale can carry gift-card lines), so
each canonical field is taken from the first pass that provides it:

1. sale lines: the first non-zero ``transaction_total`` and ``gross_profit_percent``;
2. return lines: the total only for tickets with no sale line;
3. gift-card lines: ``giftcard_amount`` summed per ticket, used as the total
   only for tickets with neither sale nor return lines.

``gross_profit_percent`` follows "first pass wins" over all three passes,
independently of which pass set the total.

Canonical tickets are recomputed on every call and never stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

import pandas as pd

from pos_ledger.ledger.lines import (
    GIFT_CARD_COLUMNS,
    ITEM_COLUMNS,
    LEDGER_TABLES,
    LINE_TYPES,
    TICKET_COLUMNS,
)
from pos_ledger.ledger.store import LedgerStore
from pos_ledger.stores import ONLINE, OUTLIER_STORE
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, pd.Timestamp]

ALL = "all"

# Precedence of the line types in the reconciliation passes
PASS_ORDER = {"sale": 0, "return": 1, "gift_card": 2}

LINE_COLUMNS = [
    "line_id",
    "line_type",
    *TICKET_COLUMNS,
    *[c for c in ITEM_COLUMNS if c != "product_name"],
    *GIFT_CARD_COLUMNS,
]

CANONICAL_COLUMNS = [
    "ticket_number",
    "store_id",
    "sale_date",
    "sales_rep",
    "transaction_total",
    "gross_profit_percent",
    "is_sale",
    "is_return",
    "is_gift_only",
    "gift_card_total",
    "line_count",
]


@dataclass
class LedgerFilter:
    """Optional restrictions applied to ledger lines before reconciliation.

    Attributes:
        start: First sale date included.
        end: Last sale date included (the whole day).
        store_id: Only this store; None or "all" for every store.
        sales_rep: Only this rep; None or "all" for every rep.
        include_returns: Keep return lines.
        include_gift_cards: Keep gift-card lines.
    """

    start: DateLike | None = None
    end: DateLike | None = None
    store_id: str | None = None
    sales_rep: str | None = None
    include_returns: bool = True
    include_gift_cards: bool = True


def _is_set(value: str | None) -> bool:
    return bool(value) and value != ALL


def apply_filters(lines: pd.DataFrame, filters: LedgerFilter | None) -> pd.DataFrame:
    """Restrict a line frame by date range, store, rep and line type."""
    if filters is None or lines.empty:
        return lines

    mask = pd.Series(True, index=lines.index)
    if filters.start is not None:
        mask &= lines["sale_date"] >= pd.Timestamp(filters.start).normalize()
    if filters.end is not None:
        mask &= lines["sale_date"] < pd.Timestamp(filters.end).normalize() + pd.Timedelta(days=1)
    if _is_set(filters.store_id):
        mask &= lines["store_id"] == filters.store_id
    if _is_set(filters.sales_rep):
        mask &= lines["sales_rep"] == filters.sales_rep
    if not filters.include_returns:
        mask &= lines["line_type"] != "return"
    if not filters.include_gift_cards:
        mask &= lines["line_type"] != "gift_card"
    return lines[mask]


def load_lines(
    store: LedgerStore,
    tenant: TenantContext,
    filters: LedgerFilter | None = None,
) -> pd.DataFrame:
    """Read a tenant's three ledgers into one frame tagged with ``line_type``.

    Rows come in table order (sale, return, gift card), then storage order.

    Args:
        store: Ledger store.
        tenant: Tenant scope; lines of other tenants are never read.
        filters: Optional date/store/rep/line-type restrictions.

    Returns:
        DataFrame with ``LINE_COLUMNS``.
    """
    frames = []
    for table in LEDGER_TABLES:
        df = store.read(table, tenant)
        if df.empty:
            continue
        df = df.assign(line_type=LINE_TYPES[table]).reindex(columns=LINE_COLUMNS)
        frames.append(df)

    if frames:
        lines = pd.concat(frames, ignore_index=True)
    else:
        lines = pd.DataFrame(columns=LINE_COLUMNS)
    lines["sale_date"] = pd.to_datetime(lines["sale_date"])

    lines = apply_filters(lines, filters)
    logger.debug(
        "Loaded %d ledger line(s) for %s/%s", len(lines), tenant.org_id, tenant.franchise_id
    )
    return lines


def _first_per_ticket(values: pd.Series, tickets: pd.Series) -> pd.Series:
    """First non-null value per ticket, in row order."""
    return values.groupby(tickets, sort=False).first()


def reconcile_tickets(lines: pd.DataFrame) -> pd.DataFrame:
    """Merge ledger lines into one canonical row per ticket number.

    Args:
        lines: Line frame from ``load_lines`` (any subset of it).

    Returns:
        DataFrame with ``CANONICAL_COLUMNS``, one row per distinct ticket
        number in order of first appearance. ``transaction_total`` is NaN
        for a ticket no pass could price.

    Examples:
        >>> tickets = reconcile_tickets(load_lines(store, tenant))
        >>> tickets["transaction_total"].sum()
        1250.0
    """
    if lines.empty:
        return pd.DataFrame(columns=CANONICAL_COLUMNS)

    df = lines.assign(_pass=lines["line_type"].map(PASS_ORDER))
    df = df.sort_values("_pass", kind="stable")
    tickets = df["ticket_number"]
    is_sale_line = df["line_type"] == "sale"
    is_return_line = df["line_type"] == "return"
    is_gift_line = df["line_type"] == "gift_card"

    grouped = df.groupby("ticket_number", sort=False)
    out = grouped[["store_id", "sale_date", "sales_rep"]].first()
    out["line_count"] = grouped.size()
    out["is_sale"] = is_sale_line.groupby(tickets, sort=False).any()
    out["is_return"] = is_return_line.groupby(tickets, sort=False).any()

    # a zero total or gross profit is treated as missing
    totals = df["transaction_total"].where(df["transaction_total"] != 0)
    sale_total = _first_per_ticket(totals[is_sale_line], tickets[is_sale_line])
    return_total = _first_per_ticket(totals[is_return_line], tickets[is_return_line])

    amounts = df["giftcard_amount"].where(df["giftcard_amount"] != 0)
    gift_total = amounts[is_gift_line].groupby(tickets[is_gift_line], sort=False).sum(min_count=1)

    out["gift_card_total"] = gift_total.reindex(out.index)
    out["is_gift_only"] = out["gift_card_total"].notna() & ~out["is_sale"] & ~out["is_return"]

    total = sale_total.reindex(out.index)
    total = total.combine_first(return_total.reindex(out.index).where(~out["is_sale"]))
    total = total.combine_first(out["gift_card_total"].where(out["is_gift_only"]))
    out["transaction_total"] = total

    gp = df["gross_profit_percent"].where(df["gross_profit_percent"] != 0)
    out["gross_profit_percent"] = _first_per_ticket(gp, tickets).reindex(out.index)

    out = out.reset_index()
    logger.debug("Reconciled %d line(s) into %d ticket(s)", len(lines), len(out))
    return out[CANONICAL_COLUMNS]


def returned_ticket_numbers(lines: pd.DataFrame) -> set[str]:
    """Ticket numbers with at least one line in the return ledger."""
    return set(lines.loc[lines["line_type"] == "return", "ticket_number"])


def rep_performance_lines(
    lines: pd.DataFrame,
    returned: set[str] | None = None,
) -> pd.DataFrame:
    """Apply the stricter filter used to score individual sales reps.

    Drops online orders, the outlier store, every line of a ticket that was
    ever returned, and all return lines. Sale lines need a positive total
    and gift-card lines a positive amount.

    Args:
        lines: Line frame from ``load_lines``.
        returned: Ticket numbers found in the return ledger. Taken from the
            return lines of ``lines`` when omitted.

    Returns:
        Subset of ``lines``.
    """
    if lines.empty:
        return lines
    if returned is None:
        returned = returned_ticket_numbers(lines)

    excluded = (
        (lines["sales_rep"] == ONLINE)
        | (lines["store_id"] == ONLINE)
        | (lines["store_id"] == OUTLIER_STORE)
        | lines["ticket_number"].isin(returned)
    )
    priced_sale = (lines["line_type"] == "sale") & (lines["transaction_total"] > 0)
    priced_gift = (lines["line_type"] == "gift_card") & (lines["giftcard_amount"] > 0)
    kept = lines[~excluded & (priced_sale | priced_gift)]
    logger.debug("Rep filter kept %d of %d line(s)", len(kept), len(lines))
    return kept


def filter_options(lines: pd.DataFrame) -> dict[str, list[str]]:
    """Distinct stores and sales reps present in a line frame."""
    stores = sorted(s for s in lines["store_id"].dropna().unique() if s)
    reps = sorted(r for r in lines["sales_rep"].dropna().unique() if r)
    return {"stores": stores, "salesReps": reps}
