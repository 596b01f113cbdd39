"""Shared types for parsing and ledger writing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class TenantContext:
    """Tenant scope supplied by the access-control layer.

    Every persisted ledger line and every reconciliation query is scoped by
    both identifiers.

    Attributes:
        org_id: Organization identifier.
        franchise_id: Franchise identifier within the organization.
    """

    org_id: str
    franchise_id: str


@dataclass(frozen=True)
class ParsedItem:
    """One sold or returned item line of a ticket."""

    item_number: str
    product_name: str
    qty_sold: int
    selling_unit: str = "EACH"


@dataclass(frozen=True)
class ParsedGiftCard:
    """One gift-card entry of a ticket."""

    amount: float
    product_name: str = "Gift Card"


@dataclass
class ParsedTicket:
    """A transaction recovered from the cell grid.

    Transient: produced by the parser, turned into ledger lines by the writer,
    never persisted as-is. A ticket with no items and no gift cards is still
    emitted so parser coverage gaps stay visible.

    Attributes:
        ticket_number: Unique transaction identifier.
        store_id: Store derived from the ticket number scheme.
        sale_date: Sale timestamp (batch default when no date row was found).
        sales_rep: Upper-case rep token, ``"ONLINE"`` for online orders.
        transaction_total: Ticket total from the "Sale ticket" row.
        gross_profit_percent: Gross profit, one decimal place.
        items: Item lines in report order.
        gift_cards: Gift-card entries in report order.
    """

    ticket_number: str
    store_id: str
    sale_date: datetime
    sales_rep: str | None = None
    transaction_total: float | None = None
    gross_profit_percent: float | None = None
    items: list[ParsedItem] = field(default_factory=list)
    gift_cards: list[ParsedGiftCard] = field(default_factory=list)


@dataclass
class ParseResult:
    """Output of one parse call over a cell grid (or one chunk of it).

    Attributes:
        tickets: Successfully parsed tickets in grid order.
        errors: One message per ticket whose extraction failed.
        product_names: Batch-scoped product name cache after this parse,
            to be passed into the parse of the next chunk.
        new_product_names: Names first discovered by this parse.
    """

    tickets: list[ParsedTicket] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    product_names: dict[str, str] = field(default_factory=dict)
    new_product_names: dict[str, str] = field(default_factory=dict)
