"""Tests for store and rep performance views."""

import pandas as pd
import pytest

from pos_ledger.performance import (
    daily_rep_report,
    leaderboards,
    performance_alerts,
    rep_daily_performance,
    rep_performance,
    store_performance,
)
from pos_ledger.reconcile import LINE_COLUMNS
from tests.test_utils import line, lines_frame


def sale(
    number: str,
    total: float,
    store_id: str = "AB-SA",
    rep: str | None = "JANE",
    day: str = "2024-01-15",
    gp: float | None = None,
) -> dict:
    """One single-item sale line."""
    return line(
        "sale", number, total=total, qty=1, gp=gp, store_id=store_id, sales_rep=rep, sale_date=day
    )


@pytest.fixture
def base_lines() -> list[dict]:
    return [
        sale("AB-SA-T000001", 100.0, gp=40.0),
        sale("AB-SA-T000002", 200.0, gp=50.0),
        sale("AB-HP-T000003", 50.0, store_id="AB-HP", rep="MIKE", gp=20.0),
        sale("AB-HP-T000004", 30.0, store_id="AB-HP", rep="MIKE", gp=30.0),
        sale("AB-HP-T000005", 45.0, store_id="AB-HP", rep="MIKE", day="2024-01-16"),
    ]


class TestStorePerformance:
    def test_per_store_aggregates(self, base_lines: list[dict]) -> None:
        table = store_performance(lines_frame(base_lines)).set_index("store_id")

        assert table.loc["AB-SA", "revenue"] == 300.0
        assert table.loc["AB-SA", "ticket_count"] == 2
        assert table.loc["AB-SA", "avg_ticket_size"] == 150.0
        assert table.loc["AB-SA", "gross_profit_percent"] == 45.0
        assert table.loc["AB-HP", "ticket_count"] == 3
        assert table.loc["AB-HP", "avg_ticket_size"] == pytest.approx(125.0 / 3)
        assert table.loc["AB-HP", "gross_profit_percent"] == 25.0
        assert table.loc["AB-HP", "items_sold"] == 3

    def test_multi_line_ticket_counted_once(self) -> None:
        lines = lines_frame(
            [
                sale("AB-SA-T000001", 120.0),
                line("sale", "AB-SA-T000001", total=120.0, qty=3, item_number="XYZ-200"),
            ]
        )
        table = store_performance(lines)
        assert table["revenue"].tolist() == [120.0]
        assert table["ticket_count"].tolist() == [1]
        assert table["items_sold"].tolist() == [4]

    def test_store_view_keeps_online_and_returned_tickets(self, base_lines: list[dict]) -> None:
        lines = lines_frame(
            base_lines
            + [
                sale("AB-SA-T000006", 500.0, rep="ONLINE"),
                sale("AB-SA-T000007", 20.0),
                line("return", "AB-SA-T000007", total=-20.0, qty=-1),
            ]
        )
        table = store_performance(lines).set_index("store_id")
        assert table.loc["AB-SA", "ticket_count"] == 4
        assert table.loc["AB-SA", "revenue"] == 820.0


class TestRepPerformance:
    def test_rep_filter_applies(self, base_lines: list[dict]) -> None:
        lines = lines_frame(
            base_lines
            + [
                sale("AB-SA-T000006", 500.0, rep="ONLINE"),
                sale("AB-SA-T000007", 20.0),
                line("return", "AB-SA-T000007", total=-20.0, qty=-1),
                sale("AB-EA2-T00008", 999.0, store_id="AB-EA2"),
                sale("AB-HP-T000009", 90.0, store_id="AB-HP", day="2024-01-17"),
            ]
        )
        table = rep_performance(lines).set_index("sales_rep")

        assert sorted(table.index) == ["JANE", "MIKE"]
        assert table.loc["JANE", "ticket_count"] == 3
        assert table.loc["JANE", "revenue"] == 390.0
        assert table.loc["JANE", "store_count"] == 2
        assert table.loc["MIKE", "revenue"] == 125.0

    def test_gift_card_tickets_count_for_rep_at_reconciled_total(self) -> None:
        lines = lines_frame(
            [
                line("gift_card", "AB-SA-T000001", amount=30.0),
                line("gift_card", "AB-SA-T000001", amount=20.0),
            ]
        )
        table = rep_performance(lines)
        assert table["revenue"].tolist() == [50.0]
        assert table["ticket_count"].tolist() == [1]

    def test_empty(self) -> None:
        table = rep_performance(pd.DataFrame(columns=LINE_COLUMNS))
        assert table.empty


class TestLeaderboards:
    def test_shape_and_order(self, base_lines: list[dict]) -> None:
        boards = leaderboards(lines_frame(base_lines))

        assert set(boards) == {"stores", "reps"}
        assert set(boards["stores"]) == {"avgTicketSize", "grossProfit", "totalRevenue"}
        top_store = boards["stores"]["avgTicketSize"][0]
        assert top_store == {
            "storeId": "AB-SA",
            "avgTicketSize": 150.0,
            "revenue": 300.0,
            "ticketCount": 2,
        }
        assert [r["repName"] for r in boards["reps"]["totalRevenue"]] == ["JANE", "MIKE"]
        assert boards["reps"]["grossProfit"][0]["grossProfitPercent"] == 45.0
        assert boards["reps"]["avgTicketSize"][0]["storeCount"] == 1

    def test_at_most_five_entries(self) -> None:
        lines = lines_frame(
            [
                sale(f"AB-S{c}-T000001", 10.0 * (i + 1), store_id=f"AB-S{c}")
                for i, c in enumerate("ABCDEFG")
            ]
        )
        board = leaderboards(lines)["stores"]["totalRevenue"]
        assert len(board) == 5
        assert board[0]["storeId"] == "AB-SG"


class TestPerformanceAlerts:
    def test_underperforming_stores_and_reps(self, base_lines: list[dict]) -> None:
        lines = lines_frame(
            base_lines
            + [
                sale("AB-HP-T000010", 50.0, store_id="AB-HP", rep="ANNA", day="2024-01-15"),
                sale("AB-HP-T000011", 50.0, store_id="AB-HP", rep="ANNA", day="2024-01-15"),
                sale("AB-HP-T000012", 100.0, store_id="AB-HP", rep="ANNA", day="2024-01-16"),
                sale("AB-HP-T000013", 100.0, store_id="AB-HP", rep="ANNA", day="2024-01-16"),
            ]
        )

        alerts = performance_alerts(lines)

        assert alerts["benchmark"] == 70.0
        assert [s["storeId"] for s in alerts["underperformingStores"]] == ["AB-HP"]
        reps = alerts["underperformingReps"]
        assert [r["repName"] for r in reps] == ["MIKE", "ANNA"]

        mike = reps[0]
        # the single-ticket day on 1/16 does not qualify
        assert mike["totalDaysWorked"] == 1
        assert mike["daysBelow70"] == 1
        assert mike["performanceRatio"] == 1.0
        assert mike["needsCoaching"]
        assert mike["underperformingDays"] == [
            {"date": "2024-01-15", "ticketCount": 2, "avgTicketSize": 40.0, "revenue": 80.0}
        ]

        anna = reps[1]
        assert anna["performanceRatio"] == 0.5
        assert not anna["needsCoaching"]

    def test_custom_benchmark(self, base_lines: list[dict]) -> None:
        alerts = performance_alerts(lines_frame(base_lines), benchmark=30.0)
        assert alerts["underperformingStores"] == []
        assert alerts["underperformingReps"] == []
        assert alerts["benchmark"] == 30.0

    def test_empty_ledger(self) -> None:
        alerts = performance_alerts(pd.DataFrame(columns=LINE_COLUMNS))
        assert alerts["underperformingStores"] == []
        assert alerts["underperformingReps"] == []


def test_rep_daily_performance(base_lines: list[dict]) -> None:
    daily = rep_daily_performance(lines_frame(base_lines))
    mike = daily[daily["sales_rep"] == "MIKE"].sort_values("day")
    assert mike["ticket_count"].tolist() == [2, 1]
    assert mike["avg_ticket_size"].tolist() == [40.0, 45.0]


class TestDailyRepReport:
    @pytest.fixture
    def lines(self) -> pd.DataFrame:
        return lines_frame(
            [
                sale("AB-SA-T000001", 130.0),
                sale("AB-SA-T000002", 310.0),
                sale("AB-SA-T000003", 250.0, rep="BOB"),
                sale("AB-SA-T000004", 250.0, rep="BOB"),
                sale("AB-SA-T000005", 60.0, rep=None),
                sale("AB-SA-T000006", 80.0, rep=None),
                sale("AB-SA-T000007", 500.0, rep="SOLO"),
                sale("AB-EA2-T00008", 300.0, store_id="AB-EA2"),
                sale("AB-EA2-T00009", 300.0, store_id="AB-EA2"),
                sale("AB-SA-T000010", 90.0, rep="ONLINE"),
                sale("AB-SA-T000011", 90.0, rep="ONLINE"),
                sale("AB-SA-T000012", 90.0, rep="SUEEA2"),
                sale("AB-SA-T000013", 90.0, rep="SUEEA2"),
                sale("AB-HP-T000014", 150.0, store_id="AB-HP", rep="MIKE"),
                sale("AB-HP-T000015", 160.0, store_id="AB-HP", rep="MIKE"),
                sale("AB-SA-T000016", 999.0, day="2024-01-16"),
            ]
        )

    def test_report(self, lines: pd.DataFrame) -> None:
        report = daily_rep_report(lines, "2024-01-15")

        assert report["date"] == "2024-01-15"
        assert report["totalStores"] == 2
        assert report["totalReps"] == 4
        hp, sa = report["stores"]
        assert hp["storeId"] == "AB-HP"
        assert sa["storeId"] == "AB-SA"
        assert [r["repName"] for r in sa["reps"]] == ["BOB", "JANE", "Unknown Rep"]
        assert sa["storeAvgTicket"] == pytest.approx(1080.0 / 6)

        jane = sa["reps"][1]
        assert jane == {
            "repName": "JANE",
            "avgTicket": 220.0,
            "totalTickets": 2,
            "totalRevenue": 440.0,
            "tier1Count": 1,
            "tier2Count": 0,
            "tier3Count": 1,
        }
        assert sa["reps"][0]["tier2Count"] == 2
        assert hp["reps"][0]["tier1Count"] == 2

    def test_day_without_tickets(self, lines: pd.DataFrame) -> None:
        report = daily_rep_report(lines, "2024-03-01")
        assert report == {"stores": [], "totalStores": 0, "totalReps": 0, "date": "2024-03-01"}
