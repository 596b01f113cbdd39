"""Report layout variants for one ticket section.

A ticket section starts at a header row holding the ticket number in the
merged columns A-B and runs until the next header row. Everything inside it
is positional, and the positions differ slightly between register tickets
and online orders, so each layout is declared once as a ``LayoutVariant``
and selected by the markers found in the section rather than by branching
inline.

Section anatomy (0-based columns):

- date row: first cell ``M/D/YY``; gross profit percent on the same row
  (column 17 on register tickets, column 18 on online orders);
- "Sale ticket" row: ticket total in column 19, or 20 when 19 is empty;
- a rep row: a 3-15 letter name in the first cell;
- item rows: item number in the first cell, quantity in column 1 (or 6),
  unit in column 2 (or 7), description in column 4 (or 14);
- optional "Gift card #" subsection: card number in column 0, amount in
  column 11, description in column 14.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from pos_ledger.exceptions import TicketParseError
from pos_ledger.parsing.cells import (
    cell_text,
    is_percent,
    looks_like_sale_date,
    merged_text,
    parse_amount,
    parse_percent,
    parse_sale_date,
)
from pos_ledger.parsing.products import ProductNameResolver
from pos_ledger.stores import ONLINE, extract_store_id, is_ticket_number
from pos_ledger.types import ParsedGiftCard, ParsedItem, ParsedTicket

logger = logging.getLogger(__name__)

Row = Sequence[str]
Grid = Sequence[Row]

# Rep identity the POS uses for web orders
SOURCE_ONLINE_REP = "JSHARPE"
RESERVED_REP_WORDS = {"TICKET", "SALE", "ITEM"}

REP_RE = re.compile(r"^[A-Z]{3,15}$")
ITEM_NUMBER_RE = re.compile(r"^[A-Z0-9-]{4,}")
GIFT_CARD_NUMBER_RE = re.compile(r"^\d{5,}")
GIFT_CARD_SECTION_MARKER = "gift card #"
ITEM_SECTION_MARKER = "item #"

METADATA_LOOKAHEAD = 30
GIFT_CARD_WINDOW = 20


def is_header_row(row: Row | None) -> bool:
    """A row that opens a ticket section (and so closes the previous one)."""
    if not row:
        return False
    return is_ticket_number(merged_text(row, 0, 1)) or is_ticket_number(cell_text(row, 0))


def normalize_rep(token: str) -> str:
    rep = token.strip().upper()
    return ONLINE if rep == SOURCE_ONLINE_REP else rep


def _section_rows(grid: Grid, header_idx: int, limit: int | None = None):
    """Yield ``(index, row)`` after the header until the next header row."""
    end = len(grid) if limit is None else min(header_idx + 1 + limit, len(grid))
    for j in range(header_idx + 1, end):
        row = grid[j] or []
        if is_header_row(row):
            return
        yield j, row


def find_date_row(grid: Grid, header_idx: int, lookahead: int = METADATA_LOOKAHEAD) -> int | None:
    for j, row in _section_rows(grid, header_idx, lookahead):
        if looks_like_sale_date(cell_text(row, 0)):
            return j
    return None


def _first_amount(row: Row, columns: Sequence[int]) -> float | None:
    for col in columns:
        value = parse_amount(cell_text(row, col))
        if value is not None:
            return value
    return None


def _first_text(row: Row, columns: Sequence[int]) -> str:
    for col in columns:
        text = cell_text(row, col)
        if text:
            return text
    return ""


@dataclass(frozen=True)
class LayoutVariant:
    """Positional definition of one ticket section layout.

    Attributes:
        name: Variant identifier.
        gross_profit_column: Column of the gross profit percent on the date row.
            A percentage in this column is also the variant's selection marker.
        total_columns: Candidate columns for the ticket total, in order.
        quantity_columns: Candidate quantity columns on item rows.
        unit_columns: Candidate selling unit columns on item rows.
        description_columns: Candidate in-row description columns.
        gift_amount_column: Gift card amount column.
        gift_description_column: Gift card description column.
        lookahead: Metadata rows scanned after the header.
        gift_window: Rows read after the "Gift card #" title.
    """

    name: str
    gross_profit_column: int
    total_columns: tuple[int, ...] = (19, 20)
    quantity_columns: tuple[int, ...] = (1, 6)
    unit_columns: tuple[int, ...] = (2, 7)
    description_columns: tuple[int, ...] = (4, 14)
    gift_amount_column: int = 11
    gift_description_column: int = 14
    lookahead: int = METADATA_LOOKAHEAD
    gift_window: int = GIFT_CARD_WINDOW

    def matches(self, grid: Grid, header_idx: int) -> bool:
        date_idx = find_date_row(grid, header_idx, self.lookahead)
        if date_idx is None:
            return False
        return is_percent(cell_text(grid[date_idx], self.gross_profit_column))

    def parse(
        self,
        grid: Grid,
        header_idx: int,
        resolver: ProductNameResolver,
        default_date: datetime,
    ) -> ParsedTicket:
        """Build the ticket whose header sits at ``header_idx``.

        Raises:
            TicketParseError: If the section cannot be read.
        """
        ticket_number = merged_text(grid[header_idx], 0, 1)
        ticket = ParsedTicket(
            ticket_number=ticket_number,
            store_id=extract_store_id(ticket_number),
            sale_date=default_date,
        )
        self._read_metadata(ticket, grid, header_idx)
        ticket.gift_cards = self._read_gift_cards(grid, header_idx)
        ticket.items = self._read_items(grid, header_idx, resolver)
        return ticket

    def _read_metadata(self, ticket: ParsedTicket, grid: Grid, header_idx: int) -> None:
        date_found = False
        for _, row in _section_rows(grid, header_idx, self.lookahead):
            first = cell_text(row, 0)
            upper = first.upper()

            if not date_found and looks_like_sale_date(first):
                try:
                    ticket.sale_date = parse_sale_date(first)
                except ValueError as e:
                    raise TicketParseError(f"invalid sale date {first!r}") from e
                date_found = True
                ticket.gross_profit_percent = parse_percent(
                    cell_text(row, self.gross_profit_column)
                )

            if ticket.transaction_total is None and "SALE" in upper and "TICKET" in upper:
                ticket.transaction_total = _first_amount(row, self.total_columns)

            if (
                ticket.sales_rep is None
                and REP_RE.match(upper)
                and upper not in RESERVED_REP_WORDS
                and not upper.isdigit()
            ):
                ticket.sales_rep = normalize_rep(upper)

    def _read_gift_cards(self, grid: Grid, header_idx: int) -> list[ParsedGiftCard]:
        for j, row in _section_rows(grid, header_idx):
            if GIFT_CARD_SECTION_MARKER not in merged_text(row, 0, 1).lower():
                continue

            cards: list[ParsedGiftCard] = []
            for k in range(j + 1, min(j + 1 + self.gift_window, len(grid))):
                data_row = grid[k] or []
                number = cell_text(data_row, 0)
                if ITEM_SECTION_MARKER in number.lower() or is_header_row(data_row):
                    break
                if not number or not GIFT_CARD_NUMBER_RE.match(number):
                    continue
                amount = parse_amount(cell_text(data_row, self.gift_amount_column))
                if amount and amount > 0:
                    description = cell_text(data_row, self.gift_description_column)
                    cards.append(
                        ParsedGiftCard(amount=amount, product_name=description or "Gift Card")
                    )
            # only the first gift card subsection of a ticket is read
            return cards
        return []

    def _read_items(
        self, grid: Grid, header_idx: int, resolver: ProductNameResolver
    ) -> list[ParsedItem]:
        items: list[ParsedItem] = []
        for _, row in _section_rows(grid, header_idx):
            item_number = cell_text(row, 0)
            if not item_number or not ITEM_NUMBER_RE.match(item_number):
                continue

            qty = _first_nonzero_quantity(row, self.quantity_columns)
            if qty == 0:
                continue

            description = _first_text(row, self.description_columns)
            items.append(
                ParsedItem(
                    item_number=item_number,
                    product_name=resolver.resolve(item_number, description),
                    qty_sold=qty,
                    selling_unit=_first_text(row, self.unit_columns) or "EACH",
                )
            )
        return items


def _round_quantity(value: float) -> int:
    """Round half away from zero, so 2.5 and -2.5 become 3 and -3."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _first_nonzero_quantity(row: Row, columns: Sequence[int]) -> int:
    for col in columns:
        value = parse_amount(cell_text(row, col))
        if not value:
            continue
        qty = _round_quantity(value)
        if qty == 0:
            logger.warning(
                "Item %s: quantity %s rounds to 0, row skipped", cell_text(row, 0), value
            )
        return qty
    return 0


REGISTER = LayoutVariant(name="register", gross_profit_column=17)
ONLINE_ORDER = LayoutVariant(name="online", gross_profit_column=18)

# Selection order; the first variant is also the fallback.
LAYOUT_VARIANTS: tuple[LayoutVariant, ...] = (REGISTER, ONLINE_ORDER)


def select_layout(
    grid: Grid,
    header_idx: int,
    variants: Sequence[LayoutVariant] = LAYOUT_VARIANTS,
) -> LayoutVariant:
    for variant in variants:
        if variant.matches(grid, header_idx):
            return variant
    return variants[0]
