"""Tests for loading exports into cell grids."""

from pathlib import Path

import pandas as pd
import pytest

from pos_ledger.exceptions import DataQualityError
from pos_ledger.parsing import parse_tickets, read_grid
from pos_ledger.parsing.grid import frame_to_grid
from tests.test_utils import report_grid, ticket_section


def _write_csv(path: Path, grid: list[list[str]]) -> None:
    pd.DataFrame(grid).to_csv(path, header=False, index=False)


class TestReadGrid:
    def test_csv_export_round_trips_to_tickets(self, tmp_path: Path) -> None:
        path = tmp_path / "tickets.csv"
        _write_csv(path, report_grid(ticket_section("AB-SA-T000001")))

        grid = read_grid(path)
        result = parse_tickets(grid)

        assert len(result.tickets) == 1
        assert result.tickets[0].transaction_total == 150.0
        assert result.tickets[0].items[0].qty_sold == 2

    def test_csv_rows_of_different_widths(self, tmp_path: Path) -> None:
        """A one-cell title row ahead of the wide ticket rows still loads."""
        path = tmp_path / "tickets.csv"
        rows = [["Ticket Detail Report"]] + ticket_section("AB-SA-T000001")
        # the title row is one cell wide, the ticket rows reach column 19
        lines = [",".join(row).rstrip(",") for row in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        grid = read_grid(path)

        assert grid[0] == ["Ticket Detail Report"]
        assert max(len(row) for row in grid) > 1
        result = parse_tickets(grid)
        assert [t.ticket_number for t in result.tickets] == ["AB-SA-T000001"]
        assert result.tickets[0].transaction_total == 150.0

    def test_excel_export_uses_named_sheet(self, tmp_path: Path) -> None:
        path = tmp_path / "tickets.xlsx"
        with pd.ExcelWriter(path) as writer:
            pd.DataFrame([["cover page"]]).to_excel(
                writer, sheet_name="Cover", header=False, index=False
            )
            pd.DataFrame(report_grid(ticket_section("AB-SA-T000001"))).to_excel(
                writer, sheet_name="Ticket Detail", header=False, index=False
            )

        grid = read_grid(path, sheet="ticket detail")

        assert parse_tickets(grid).tickets[0].ticket_number == "AB-SA-T000001"

    def test_unknown_sheet_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "tickets.xlsx"
        pd.DataFrame([["x"]]).to_excel(path, sheet_name="Report", header=False, index=False)
        with pytest.raises(DataQualityError, match="not found"):
            read_grid(path, sheet="Payments")

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DataQualityError):
            read_grid(tmp_path / "nope.csv")

    def test_unsupported_extension_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "tickets.txt"
        path.write_text("AB-SA-T000001\n")
        with pytest.raises(DataQualityError, match="Unsupported"):
            read_grid(path)


def test_frame_to_grid_renders_cells() -> None:
    """Numbers lose trailing .0, dates print as M/D/YYYY, trailing blanks drop."""
    df = pd.DataFrame(
        [
            ["ABC-100", 2.0, None, pd.Timestamp("2024-01-15")],
            [None, None, None, None],
        ]
    )
    assert frame_to_grid(df) == [["ABC-100", "2", "", "1/15/2024"], []]
