"""Write parsed tickets into the three ledger tables.

Categorisation rules:

- an item with ``qty_sold > 0`` becomes one sale line, ``qty_sold < 0`` one
  return line (the negative quantity is kept as is);
- each gift-card entry of a ticket that has items becomes one gift-card line;
- a ticket without items but with a positive total is a standalone gift-card
  purchase: one gift-card line for the total, named "Gift Card Purchase".

Lines are inserted one by one in batches. A failed line is recorded and its
siblings are still attempted; nothing is retried or rolled back.
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from pos_ledger.config import ImportOptions
from pos_ledger.ledger.lines import (
    GIFT_CARD_PURCHASE,
    GIFT_CARD_TABLE,
    LEDGER_TABLES,
    RETURN_TABLE,
    SALE_TABLE,
    LedgerLine,
)
from pos_ledger.ledger.store import LedgerStore
from pos_ledger.types import ParsedTicket, TenantContext

logger = logging.getLogger(__name__)

DRY_RUN_SAMPLE_SIZE = 3


@dataclass
class ImportResult:
    """Outcome of writing one batch of parsed tickets.

    Attributes:
        total_tickets: Tickets handed to the writer.
        inserted: Lines written.
        skipped: Lines not written because their ticket was a duplicate.
        failed: Lines the store rejected.
        duplicates: Ticket numbers skipped by the duplicate guard.
        by_table: Lines written per table (lines planned, on a dry run).
        errors: First few line failures as ``{ticket, item, table, error}``.
        parse_errors: Parser error messages carried along by the caller.
        stores_affected: Store ids of the tickets that were written.
        status: ``"completed"``, ``"partial"``, ``"failed"`` or ``"dry_run"``.
        sample: On a dry run, a few of the tickets that would be written.
    """

    total_tickets: int = 0
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    duplicates: list[str] = field(default_factory=list)
    by_table: dict[str, int] = field(default_factory=lambda: {t: 0 for t in LEDGER_TABLES})
    errors: list[dict[str, Any]] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)
    stores_affected: list[str] = field(default_factory=list)
    status: str = "completed"
    sample: list[dict[str, Any]] = field(default_factory=list)

    @property
    def dry_run(self) -> bool:
        return self.status == "dry_run"


def categorize_ticket(ticket: ParsedTicket) -> list[LedgerLine]:
    """Split one ticket into ledger lines.

    Returns:
        Lines in write order: item lines first, then gift-card lines.
        Zero-quantity items produce nothing.
    """
    if not ticket.items:
        if ticket.transaction_total and ticket.transaction_total > 0:
            return [
                LedgerLine.for_item(
                    GIFT_CARD_TABLE,
                    ticket,
                    product_name=GIFT_CARD_PURCHASE,
                    giftcard_amount=ticket.transaction_total,
                )
            ]
        return []

    lines: list[LedgerLine] = []
    for item in ticket.items:
        if item.qty_sold > 0:
            table = SALE_TABLE
        elif item.qty_sold < 0:
            table = RETURN_TABLE
        else:
            continue
        lines.append(
            LedgerLine.for_item(
                table,
                ticket,
                item_number=item.item_number,
                product_name=item.product_name,
                qty_sold=item.qty_sold,
                selling_unit=item.selling_unit,
            )
        )
    for card in ticket.gift_cards:
        lines.append(
            LedgerLine.for_item(
                GIFT_CARD_TABLE,
                ticket,
                product_name=card.product_name,
                giftcard_amount=card.amount,
            )
        )
    return lines


def find_duplicate_tickets(
    store: LedgerStore,
    tickets: list[ParsedTicket],
    tenant: TenantContext,
    sample_size: int = 50,
) -> set[str]:
    """Ticket numbers among the first ``sample_size`` tickets already in the sale ledger.

    Only a leading sample is checked, so duplicates further down the batch
    and partial overlaps are not detected.
    """
    sample = {t.ticket_number for t in tickets[:sample_size]}
    found = {n for n in sample if store.exists(SALE_TABLE, tenant, n)}
    if found:
        logger.info("Skipping %d ticket(s) already in the ledger", len(found))
    return found


def _insert_line(
    store: LedgerStore, tenant: TenantContext, line: LedgerLine
) -> dict[str, Any] | None:
    """Insert one line; return an error entry instead of raising."""
    try:
        store.insert(line.table, line.to_record(tenant))
    except Exception as e:  # any backend error is recorded against the line
        logger.warning(
            "Failed to insert %s line for ticket %s (item %s): %s",
            line.table,
            line.ticket_number,
            line.item_number or "-",
            e,
        )
        return {
            "ticket": line.ticket_number,
            "item": line.item_number,
            "table": line.table,
            "error": str(e),
        }
    return None


def _ticket_summary(ticket: ParsedTicket, lines: list[LedgerLine]) -> dict[str, Any]:
    counts = Counter(line.table for line in lines)
    return {
        "ticket_number": ticket.ticket_number,
        "store_id": ticket.store_id,
        "sale_date": ticket.sale_date.isoformat(),
        "sales_rep": ticket.sales_rep,
        "transaction_total": ticket.transaction_total,
        "lines": {t: counts.get(t, 0) for t in LEDGER_TABLES},
    }


def write_tickets(
    store: LedgerStore,
    tickets: list[ParsedTicket],
    tenant: TenantContext,
    options: ImportOptions | None = None,
) -> ImportResult:
    """Persist parsed tickets as ledger lines for one tenant.

    Args:
        store: Target ledger store.
        tickets: Parsed tickets in report order.
        tenant: Tenant every line is tagged with.
        options: Batch size, duplicate guard, dry run and concurrency settings.

    Returns:
        ImportResult with per-table counts and the first few line errors.
    """
    options = options or ImportOptions()
    result = ImportResult(total_tickets=len(tickets))

    duplicates: set[str] = set()
    if options.skip_duplicates and tickets:
        duplicates = find_duplicate_tickets(store, tickets, tenant, options.duplicate_sample_size)
    result.duplicates = sorted(duplicates)

    planned: list[LedgerLine] = []
    written_tickets: list[ParsedTicket] = []
    for ticket in tickets:
        lines = categorize_ticket(ticket)
        if ticket.ticket_number in duplicates:
            result.skipped += len(lines)
            continue
        written_tickets.append(ticket)
        planned.extend(lines)
        if options.dry_run and len(result.sample) < DRY_RUN_SAMPLE_SIZE:
            result.sample.append(_ticket_summary(ticket, lines))

    result.stores_affected = sorted({t.store_id for t in written_tickets})

    if options.dry_run:
        result.status = "dry_run"
        counts = Counter(line.table for line in planned)
        result.by_table = {t: counts.get(t, 0) for t in LEDGER_TABLES}
        logger.info(
            "Dry run: %d ticket(s) would write %d line(s) %s",
            len(written_tickets),
            len(planned),
            result.by_table,
        )
        return result

    errors: list[dict[str, Any]] = []
    for start in range(0, len(planned), options.batch_size):
        batch = planned[start : start + options.batch_size]
        if options.max_workers > 1:
            with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
                outcomes = list(executor.map(lambda line: _insert_line(store, tenant, line), batch))
        else:
            outcomes = [_insert_line(store, tenant, line) for line in batch]

        for line, error in zip(batch, outcomes):
            if error is None:
                result.inserted += 1
                result.by_table[line.table] += 1
            else:
                result.failed += 1
                errors.append(error)
        logger.debug("Batch %d: %d line(s)", start // options.batch_size + 1, len(batch))

    store.flush()

    result.errors = errors[: options.max_reported_errors]
    if result.failed == 0:
        result.status = "completed"
    elif result.inserted > 0:
        result.status = "partial"
    else:
        result.status = "failed"

    logger.info(
        "Wrote %d line(s) for %d ticket(s): %s (%d skipped, %d failed)",
        result.inserted,
        len(written_tickets),
        result.by_table,
        result.skipped,
        result.failed,
    )
    return result
