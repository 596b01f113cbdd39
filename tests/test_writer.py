"""Tests for ticket categorisation and the ledger writer."""

from datetime import datetime

import pytest

from pos_ledger.config import ImportOptions
from pos_ledger.exceptions import ConfigError, LedgerWriteError
from pos_ledger.ledger import (
    GIFT_CARD_TABLE,
    RETURN_TABLE,
    SALE_TABLE,
    MemoryLedgerStore,
    categorize_ticket,
    write_tickets,
)
from pos_ledger.types import ParsedGiftCard, ParsedItem, ParsedTicket, TenantContext

TENANT = TenantContext(org_id="org-1", franchise_id="fr-1")
OTHER_TENANT = TenantContext(org_id="org-1", franchise_id="fr-2")


def make_ticket(
    number: str = "AB-SA-T000001",
    total: float | None = 150.0,
    items: tuple = (("ABC-100", 2),),
    gift_cards: tuple = (),
    store_id: str = "AB-SA",
) -> ParsedTicket:
    return ParsedTicket(
        ticket_number=number,
        store_id=store_id,
        sale_date=datetime(2024, 1, 15),
        sales_rep="JANE",
        transaction_total=total,
        gross_profit_percent=42.5,
        items=[ParsedItem(n, f"Product {n}", q) for n, q in items],
        gift_cards=[ParsedGiftCard(a) for a in gift_cards],
    )


class FlakyStore(MemoryLedgerStore):
    """Rejects every line of one item number."""

    def __init__(self, bad_item: str) -> None:
        super().__init__()
        self.bad_item = bad_item
        self.flushed = 0

    def insert(self, table, record):
        if record.get("item_number") == self.bad_item:
            raise LedgerWriteError("constraint violation")
        return super().insert(table, record)

    def flush(self) -> None:
        self.flushed += 1


class TestCategorizeTicket:
    def test_quantity_sign_selects_table(self) -> None:
        ticket = make_ticket(items=(("ABC-100", 2), ("XYZ-200", -1), ("ZZZ-300", 0)))
        lines = categorize_ticket(ticket)
        assert [(line.table, line.item_number, line.qty_sold) for line in lines] == [
            (SALE_TABLE, "ABC-100", 2),
            (RETURN_TABLE, "XYZ-200", -1),
        ]

    def test_lines_copy_ticket_header(self) -> None:
        line = categorize_ticket(make_ticket())[0]
        assert line.ticket_number == "AB-SA-T000001"
        assert line.store_id == "AB-SA"
        assert line.transaction_total == 150.0
        assert line.gross_profit_percent == 42.5
        assert line.sales_rep == "JANE"

    def test_gift_cards_follow_items(self) -> None:
        lines = categorize_ticket(make_ticket(gift_cards=(50.0, 25.0)))
        assert [line.table for line in lines] == [SALE_TABLE, GIFT_CARD_TABLE, GIFT_CARD_TABLE]
        assert [line.giftcard_amount for line in lines[1:]] == [50.0, 25.0]

    def test_itemless_ticket_with_positive_total_is_gift_card_purchase(self) -> None:
        lines = categorize_ticket(make_ticket(total=100.0, items=()))
        assert len(lines) == 1
        assert lines[0].table == GIFT_CARD_TABLE
        assert lines[0].giftcard_amount == 100.0
        assert lines[0].product_name == "Gift Card Purchase"

    @pytest.mark.parametrize("total", [None, 0.0, -20.0])
    def test_itemless_ticket_without_positive_total_writes_nothing(self, total) -> None:
        assert categorize_ticket(make_ticket(total=total, items=())) == []

    def test_gift_entries_of_itemless_ticket_are_not_written(self) -> None:
        """Only the standalone purchase line is produced without items."""
        lines = categorize_ticket(make_ticket(total=50.0, items=(), gift_cards=(50.0,)))
        assert [line.product_name for line in lines] == ["Gift Card Purchase"]


class TestWriteTickets:
    def test_lines_land_in_their_tables(self) -> None:
        store = MemoryLedgerStore()
        tickets = [
            make_ticket("AB-SA-T000001", items=(("ABC-100", 2), ("XYZ-200", 1))),
            make_ticket("AB-SA-T000002", total=-30.0, items=(("ABC-100", -1),)),
            make_ticket("AB-HP-T000003", total=100.0, items=(), store_id="AB-HP"),
        ]

        result = write_tickets(store, tickets, TENANT)

        assert result.status == "completed"
        assert result.total_tickets == 3
        assert result.inserted == 4
        assert result.by_table == {SALE_TABLE: 2, RETURN_TABLE: 1, GIFT_CARD_TABLE: 1}
        assert result.stores_affected == ["AB-HP", "AB-SA"]
        sales = store.read(SALE_TABLE, TENANT)
        assert set(sales["org_id"]) == {"org-1"}
        assert set(sales["franchise_id"]) == {"fr-1"}
        assert sales["line_id"].is_unique
        returns = store.read(RETURN_TABLE, TENANT)
        assert returns["qty_sold"].tolist() == [-1]

    def test_sale_date_is_stored_as_iso_text(self) -> None:
        store = MemoryLedgerStore()
        write_tickets(store, [make_ticket()], TENANT)
        assert store._tables[SALE_TABLE][0]["sale_date"] == "2024-01-15T00:00:00"

    def test_duplicate_tickets_are_skipped(self) -> None:
        store = MemoryLedgerStore()
        write_tickets(store, [make_ticket("AB-SA-T000001")], TENANT)

        result = write_tickets(
            store, [make_ticket("AB-SA-T000001"), make_ticket("AB-SA-T000002")], TENANT
        )

        assert result.duplicates == ["AB-SA-T000001"]
        assert result.skipped == 1
        assert result.inserted == 1
        assert store.count(SALE_TABLE) == 2

    def test_duplicate_guard_is_tenant_scoped(self) -> None:
        store = MemoryLedgerStore()
        write_tickets(store, [make_ticket()], TENANT)
        result = write_tickets(store, [make_ticket()], OTHER_TENANT)
        assert result.duplicates == []
        assert result.inserted == 1

    def test_duplicate_guard_only_checks_leading_sample(self) -> None:
        store = MemoryLedgerStore()
        write_tickets(store, [make_ticket("AB-SA-T000003")], TENANT)
        tickets = [make_ticket(f"AB-SA-T00000{n}") for n in (1, 2, 3)]

        result = write_tickets(store, tickets, TENANT, ImportOptions(duplicate_sample_size=2))

        assert result.duplicates == []
        assert store.count(SALE_TABLE) == 4

    def test_duplicate_check_can_be_disabled(self) -> None:
        store = MemoryLedgerStore()
        write_tickets(store, [make_ticket()], TENANT)
        result = write_tickets(store, [make_ticket()], TENANT, ImportOptions(skip_duplicates=False))
        assert result.inserted == 1
        assert store.count(SALE_TABLE) == 2

    def test_failed_line_does_not_stop_siblings(self) -> None:
        store = FlakyStore(bad_item="XYZ-200")
        ticket = make_ticket(items=(("ABC-100", 1), ("XYZ-200", 1), ("ZZZ-300", 1)))

        result = write_tickets(store, [ticket], TENANT)

        assert result.status == "partial"
        assert result.inserted == 2
        assert result.failed == 1
        assert result.errors == [
            {
                "ticket": "AB-SA-T000001",
                "item": "XYZ-200",
                "table": SALE_TABLE,
                "error": "constraint violation",
            }
        ]
        assert store.read(SALE_TABLE, TENANT)["item_number"].tolist() == ["ABC-100", "ZZZ-300"]
        assert store.flushed == 1

    def test_all_lines_failing_is_failed_status(self) -> None:
        store = MemoryLedgerStore()
        # an empty store id is rejected by the store
        result = write_tickets(store, [make_ticket(store_id="")], TENANT)
        assert result.status == "failed"
        assert result.failed == 1
        assert "store_id" in result.errors[0]["error"]

    def test_reported_errors_are_capped(self) -> None:
        store = FlakyStore(bad_item="ABC-100")
        tickets = [make_ticket(f"AB-SA-T0000{n:02d}") for n in range(15)]
        result = write_tickets(store, tickets, TENANT, ImportOptions(max_reported_errors=5))
        assert result.failed == 15
        assert len(result.errors) == 5

    def test_dry_run_writes_nothing(self) -> None:
        store = MemoryLedgerStore()
        tickets = [make_ticket(f"AB-SA-T00000{n}", gift_cards=(10.0,)) for n in range(1, 6)]

        result = write_tickets(store, tickets, TENANT, ImportOptions(dry_run=True))

        assert result.dry_run
        assert result.inserted == 0
        assert result.by_table == {SALE_TABLE: 5, RETURN_TABLE: 0, GIFT_CARD_TABLE: 5}
        assert len(result.sample) == 3
        assert result.sample[0]["lines"] == {SALE_TABLE: 1, RETURN_TABLE: 0, GIFT_CARD_TABLE: 1}
        assert store.count(SALE_TABLE) == 0
        assert store.count(GIFT_CARD_TABLE) == 0

    def test_concurrent_inserts_write_every_line(self) -> None:
        store = MemoryLedgerStore()
        tickets = [
            make_ticket(f"AB-SA-T{n:06d}", items=(("ABC-100", 1), ("XYZ-200", -1)))
            for n in range(40)
        ]

        result = write_tickets(
            store, tickets, TENANT, ImportOptions(batch_size=7, max_workers=4)
        )

        assert result.inserted == 80
        assert result.by_table[SALE_TABLE] == 40
        assert result.by_table[RETURN_TABLE] == 40
        assert store.count(SALE_TABLE) == 40

    def test_empty_batch(self) -> None:
        result = write_tickets(MemoryLedgerStore(), [], TENANT)
        assert result.status == "completed"
        assert result.inserted == 0


class TestImportOptions:
    @pytest.mark.parametrize(
        "kwargs", [{"batch_size": 0}, {"max_workers": 0}, {"duplicate_sample_size": -1}]
    )
    def test_invalid_options_raise(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            ImportOptions(**kwargs)
