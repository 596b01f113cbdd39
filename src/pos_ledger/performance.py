"""Store and sales rep performance: tables, leaderboards and coaching alerts.

Ticket totals always come from the full reconciliation of the selected
lines. Rep views only change which tickets are attributed to a rep: they go
through ``rep_performance_lines``, so online orders, the outlier store and
any ticket that was ever returned never count toward a rep's average.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import pandas as pd

from pos_ledger.reconcile import reconcile_tickets, rep_performance_lines
from pos_ledger.stores import ONLINE, OUTLIER_STORE

logger = logging.getLogger(__name__)

# Average ticket value a store or rep day is expected to reach
BENCHMARK = 70.0
# A rep day counts only with at least this many tickets
MIN_TICKETS_PER_DAY = 2
# Share of underperforming days above which a rep needs coaching
COACHING_RATIO = 0.5
LEADERBOARD_SIZE = 5
MAX_ALERTS = 50

UNKNOWN_REP = "Unknown Rep"
# Daily report sale tiers: (name, lower bound, upper bound or None)
SALE_TIERS = (("tier1Count", 125, 198), ("tier2Count", 199, 298), ("tier3Count", 299, None))

PERFORMANCE_COLUMNS = [
    "revenue",
    "ticket_count",
    "avg_ticket_size",
    "gross_profit_percent",
    "items_sold",
    "store_count",
]


def _performance_table(lines: pd.DataFrame, tickets: pd.DataFrame, key: str) -> pd.DataFrame:
    """Aggregate canonical tickets per ``key`` (store_id or sales_rep).

    Each ticket counts once per key value it appears under in ``lines``.
    """
    if lines.empty:
        return pd.DataFrame(columns=[key, *PERFORMANCE_COLUMNS])

    pairs = lines.dropna(subset=[key]).drop_duplicates([key, "ticket_number"])
    pairs = pairs[[key, "ticket_number"]].join(
        tickets.set_index("ticket_number")[["transaction_total", "gross_profit_percent"]],
        on="ticket_number",
    )
    grouped = pairs.groupby(key)
    table = pd.DataFrame(
        {
            "revenue": grouped["transaction_total"].sum(),
            "ticket_count": grouped["ticket_number"].count(),
            "gross_profit_percent": grouped["gross_profit_percent"].mean().fillna(0.0),
        }
    )
    table["avg_ticket_size"] = table["revenue"] / table["ticket_count"]
    by_key = lines.dropna(subset=[key]).groupby(key)
    table["items_sold"] = by_key["qty_sold"].sum().reindex(table.index).fillna(0).astype(int)
    table["store_count"] = by_key["store_id"].nunique().reindex(table.index).fillna(0).astype(int)
    return table.reset_index()[[key, *PERFORMANCE_COLUMNS]]


def store_performance(lines: pd.DataFrame) -> pd.DataFrame:
    """Revenue, ticket count, average ticket and gross profit per store.

    Args:
        lines: Ledger line frame.

    Returns:
        DataFrame with ``store_id`` and ``PERFORMANCE_COLUMNS``.
    """
    return _performance_table(lines, reconcile_tickets(lines), "store_id")


def rep_performance(lines: pd.DataFrame) -> pd.DataFrame:
    """Same as ``store_performance`` per sales rep, over rep-eligible tickets only."""
    rep_lines = rep_performance_lines(lines)
    return _performance_table(rep_lines, reconcile_tickets(lines), "sales_rep")


def _top(table: pd.DataFrame, by: str, columns: dict[str, str]) -> list[dict[str, Any]]:
    ranked = table[table["ticket_count"] > 0].sort_values(by, ascending=False, kind="stable")
    ranked = ranked.head(LEADERBOARD_SIZE)[list(columns)].rename(columns=columns)
    return ranked.to_dict(orient="records")


def leaderboards(lines: pd.DataFrame) -> dict[str, dict[str, list[dict[str, Any]]]]:
    """Top stores and reps by average ticket, gross profit and revenue.

    Returns:
        ``{"stores": {...}, "reps": {...}}``, each with ``avgTicketSize``,
        ``grossProfit`` and ``totalRevenue`` lists of at most five entries.
    """
    stores = store_performance(lines)
    reps = rep_performance(lines)

    store_cols = {"store_id": "storeId"}
    rep_cols = {"sales_rep": "repName"}
    common = {"revenue": "revenue", "ticket_count": "ticketCount"}
    avg = {"avg_ticket_size": "avgTicketSize"}
    gp = {"gross_profit_percent": "grossProfitPercent"}
    store_count = {"store_count": "storeCount"}

    return {
        "stores": {
            "avgTicketSize": _top(stores, "avg_ticket_size", {**store_cols, **avg, **common}),
            "grossProfit": _top(stores, "gross_profit_percent", {**store_cols, **gp, **common}),
            "totalRevenue": _top(stores, "revenue", {**store_cols, **common, **avg}),
        },
        "reps": {
            "avgTicketSize": _top(
                reps, "avg_ticket_size", {**rep_cols, **avg, **common, **store_count}
            ),
            "grossProfit": _top(
                reps, "gross_profit_percent", {**rep_cols, **gp, **common, **store_count}
            ),
            "totalRevenue": _top(reps, "revenue", {**rep_cols, **common, **avg, **store_count}),
        },
    }


def rep_daily_performance(lines: pd.DataFrame) -> pd.DataFrame:
    """Per rep and sale day: ticket count, revenue and average ticket.

    Uses rep-eligible tickets only, priced by the full reconciliation.
    """
    columns = ["sales_rep", "day", "ticket_count", "revenue", "avg_ticket_size"]
    rep_lines = rep_performance_lines(lines)
    if rep_lines.empty:
        return pd.DataFrame(columns=columns)

    tickets = reconcile_tickets(lines).set_index("ticket_number")
    pairs = rep_lines.dropna(subset=["sales_rep"]).assign(day=rep_lines["sale_date"].dt.normalize())
    pairs = pairs.drop_duplicates(["sales_rep", "day", "ticket_number"])
    pairs = pairs.join(tickets[["transaction_total"]], on="ticket_number")

    daily = pairs.groupby(["sales_rep", "day"]).agg(
        ticket_count=("ticket_number", "count"),
        revenue=("transaction_total", "sum"),
    )
    daily["avg_ticket_size"] = daily["revenue"] / daily["ticket_count"]
    return daily.reset_index()[columns]


def performance_alerts(lines: pd.DataFrame, benchmark: float = BENCHMARK) -> dict[str, Any]:
    """Stores below the average-ticket benchmark and reps who need coaching.

    A rep day qualifies with at least ``MIN_TICKETS_PER_DAY`` tickets; a
    qualifying day underperforms when its average ticket is below the
    benchmark; a rep needs coaching when more than half of their qualifying
    days underperform. Only reps with at least one underperforming day are
    listed, coaching cases first, then by share of bad days.

    Returns:
        ``{"underperformingStores": [...], "underperformingReps": [...],
        "benchmark": benchmark}``, each list capped at 50 entries.
    """
    stores = store_performance(lines)
    low_stores = stores[(stores["ticket_count"] > 0) & (stores["avg_ticket_size"] < benchmark)]
    low_stores = low_stores.sort_values("avg_ticket_size", kind="stable")
    store_alerts = [
        {
            "storeId": row.store_id,
            "revenue": float(row.revenue),
            "ticketCount": int(row.ticket_count),
            "avgTicketSize": float(row.avg_ticket_size),
            "grossProfitPercent": float(row.gross_profit_percent),
        }
        for row in low_stores.itertuples(index=False)
    ]

    daily = rep_daily_performance(lines)
    qualifying = daily[daily["ticket_count"] >= MIN_TICKETS_PER_DAY]
    rep_alerts = []
    for rep, days in qualifying.groupby("sales_rep", sort=True):
        below = days[days["avg_ticket_size"] < benchmark].sort_values("day")
        if below.empty:
            continue
        ratio = len(below) / len(days)
        rep_alerts.append(
            {
                "repName": rep,
                "underperformingDays": [
                    {
                        "date": d.day.date().isoformat(),
                        "ticketCount": int(d.ticket_count),
                        "avgTicketSize": float(d.avg_ticket_size),
                        "revenue": float(d.revenue),
                    }
                    for d in below.itertuples(index=False)
                ],
                "daysBelow70": len(below),
                "totalDaysWorked": len(days),
                "performanceRatio": ratio,
                "needsCoaching": ratio > COACHING_RATIO,
            }
        )
    rep_alerts.sort(key=lambda r: (not r["needsCoaching"], -r["performanceRatio"]))

    logger.info(
        "Performance alerts: %d store(s), %d rep(s) below %.0f",
        len(store_alerts),
        len(rep_alerts),
        benchmark,
    )
    return {
        "underperformingStores": store_alerts[:MAX_ALERTS],
        "underperformingReps": rep_alerts[:MAX_ALERTS],
        "benchmark": benchmark,
    }


def _excluded_rep(rep: str) -> bool:
    upper = rep.upper()
    return "EA2" in upper or upper == ONLINE


def daily_rep_report(lines: pd.DataFrame, day: str | date | datetime) -> dict[str, Any]:
    """Per-store, per-rep ticket report for one sale day.

    Online orders, the outlier store and reps whose name refers to it are
    left out. Reps with a single ticket that day are skipped. Reps are
    ranked by average ticket, stores listed by id.

    Args:
        lines: Ledger line frame (any date range).
        day: Report date.

    Returns:
        ``{"stores": [...], "totalStores": n, "totalReps": n, "date": "YYYY-MM-DD"}``.
    """
    target = pd.Timestamp(day).normalize()
    day_lines = lines[lines["sale_date"].dt.normalize() == target] if not lines.empty else lines
    if not day_lines.empty:
        day_lines = day_lines[~day_lines["store_id"].isin([ONLINE, OUTLIER_STORE])]
        day_lines = day_lines.assign(sales_rep=day_lines["sales_rep"].fillna(UNKNOWN_REP))
        day_lines = day_lines[~day_lines["sales_rep"].map(_excluded_rep)]

    tickets = reconcile_tickets(day_lines)
    tickets = tickets[tickets["transaction_total"].notna()]

    stores = []
    for store_id, store_tickets in tickets.groupby("store_id", sort=True):
        reps = []
        for rep, rep_tickets in store_tickets.groupby("sales_rep", sort=False):
            count = len(rep_tickets)
            if count <= 1:
                continue
            totals = rep_tickets["transaction_total"]
            entry: dict[str, Any] = {
                "repName": rep,
                "avgTicket": float(totals.sum()) / count,
                "totalTickets": count,
                "totalRevenue": float(totals.sum()),
            }
            for name, low, high in SALE_TIERS:
                in_tier = totals >= low if high is None else totals.between(low, high)
                entry[name] = int(in_tier.sum())
            reps.append(entry)

        reps.sort(key=lambda r: r["avgTicket"], reverse=True)
        revenue = sum(r["totalRevenue"] for r in reps)
        count = sum(r["totalTickets"] for r in reps)
        stores.append(
            {
                "storeId": store_id,
                "reps": reps,
                "totalReps": len(reps),
                "storeAvgTicket": revenue / count if count else 0.0,
            }
        )

    return {
        "stores": stores,
        "totalStores": len(stores),
        "totalReps": sum(s["totalReps"] for s in stores),
        "date": target.date().isoformat(),
    }
