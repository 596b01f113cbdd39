"""Summary sales metrics over reconciled tickets.

Every dashboard screen reads the same metrics object, computed from the
canonical ticket set so a multi-line ticket is counted once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from pos_ledger.reconcile import reconcile_tickets

logger = logging.getLogger(__name__)


@dataclass
class SalesMetrics:
    """Metrics for one tenant and filter selection.

    Attributes:
        total_sales: Sum of canonical ticket totals.
        ticket_count: Distinct ticket numbers.
        avg_ticket_value: ``total_sales / ticket_count`` (0 without tickets).
        gross_profit_percent: Mean gross profit over tickets that have one.
        items_sold: Sum of ``qty_sold`` over sale and return lines.
        return_rate: Return-only tickets as a percentage of all tickets.
        gift_card_usage: Gift-card-only tickets as a percentage of all tickets.
        sales_consistency: ``max(0, 100 - CV(daily revenue) * 100)``.
        total_return_value: Sum of return line totals.
        total_gift_card_value: Sum of gift-card line amounts.
        total_lines: Ledger lines considered.
        stores: Distinct store ids.
        sales_reps: Distinct sales reps.
        earliest: First sale date (ISO), empty without lines.
        latest: Last sale date (ISO), empty without lines.
    """

    total_sales: float = 0.0
    ticket_count: int = 0
    avg_ticket_value: float = 0.0
    gross_profit_percent: float = 0.0
    items_sold: int = 0
    return_rate: float = 0.0
    gift_card_usage: float = 0.0
    sales_consistency: float = 0.0
    total_return_value: float = 0.0
    total_gift_card_value: float = 0.0
    total_lines: int = 0
    stores: list[str] = field(default_factory=list)
    sales_reps: list[str] = field(default_factory=list)
    earliest: str = ""
    latest: str = ""

    def to_dict(self) -> dict[str, Any]:
        """JSON-shaped metrics object consumed by the dashboard."""
        return {
            "totalSales": self.total_sales,
            "ticketCount": self.ticket_count,
            "avgTicketValue": self.avg_ticket_value,
            "grossProfitPercent": self.gross_profit_percent,
            "itemsSold": self.items_sold,
            "returnRate": self.return_rate,
            "giftCardUsage": self.gift_card_usage,
            "salesConsistency": self.sales_consistency,
            "uniqueTickets": self.ticket_count,
            "totalReturnValue": self.total_return_value,
            "totalGiftCardValue": self.total_gift_card_value,
            "totalLines": self.total_lines,
            "stores": list(self.stores),
            "salesReps": list(self.sales_reps),
            "dateRange": {"earliest": self.earliest, "latest": self.latest},
        }


def daily_revenue(tickets: pd.DataFrame) -> pd.Series:
    """Canonical totals bucketed by sale date, each ticket counted once."""
    if tickets.empty:
        return pd.Series(dtype=float)
    days = pd.to_datetime(tickets["sale_date"]).dt.normalize()
    return tickets["transaction_total"].fillna(0.0).groupby(days).sum()


def sales_consistency(tickets: pd.DataFrame) -> float:
    """Score how even daily revenue is: 100 for identical days, down to 0.

    Uses the population coefficient of variation of ``daily_revenue``.
    """
    daily = daily_revenue(tickets).to_numpy(dtype=float)
    if daily.size == 0:
        return 0.0
    mean = float(np.mean(daily))
    if mean <= 0:
        return 0.0
    cv = float(np.std(daily)) / mean
    return max(0.0, 100.0 - cv * 100.0)


def calculate_sales_metrics(lines: pd.DataFrame) -> SalesMetrics:
    """Compute the metrics object from a ledger line frame.

    Args:
        lines: Tenant-scoped, already filtered lines (see ``load_lines``).

    Returns:
        SalesMetrics; all zeros/empty when there are no lines.
    """
    if lines.empty:
        return SalesMetrics()

    tickets = reconcile_tickets(lines)
    ticket_count = len(tickets)
    total_sales = float(tickets["transaction_total"].sum())

    gp = tickets["gross_profit_percent"].dropna()
    is_item_line = lines["line_type"].isin(["sale", "return"])
    return_only = int((tickets["is_return"] & ~tickets["is_sale"]).sum())
    gift_only = int(tickets["is_gift_only"].sum())
    dates = lines["sale_date"].dropna()

    metrics = SalesMetrics(
        total_sales=total_sales,
        ticket_count=ticket_count,
        avg_ticket_value=total_sales / ticket_count if ticket_count else 0.0,
        gross_profit_percent=float(gp.mean()) if len(gp) else 0.0,
        items_sold=int(lines.loc[is_item_line, "qty_sold"].fillna(0).sum()),
        return_rate=return_only / ticket_count * 100 if ticket_count else 0.0,
        gift_card_usage=gift_only / ticket_count * 100 if ticket_count else 0.0,
        sales_consistency=sales_consistency(tickets),
        total_return_value=float(
            lines.loc[lines["line_type"] == "return", "transaction_total"].fillna(0).sum()
        ),
        total_gift_card_value=float(
            lines.loc[lines["line_type"] == "gift_card", "giftcard_amount"].fillna(0).sum()
        ),
        total_lines=len(lines),
        stores=sorted(s for s in lines["store_id"].dropna().unique() if s),
        sales_reps=sorted(r for r in lines["sales_rep"].dropna().unique() if r),
        earliest=dates.min().isoformat() if len(dates) else "",
        latest=dates.max().isoformat() if len(dates) else "",
    )
    logger.debug(
        "Metrics: %d ticket(s), total %.2f over %d line(s)",
        metrics.ticket_count,
        metrics.total_sales,
        metrics.total_lines,
    )
    return metrics
