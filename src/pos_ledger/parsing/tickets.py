"""Ticket scanner for POS ticket-detail reports.

Walks a cell grid top to bottom, opens a ticket at every header row and hands
the section to the layout variant whose markers it carries. A failure inside
one ticket is recorded in ``ParseResult.errors`` and scanning continues, so a
batch always returns every ticket that could be read.

Large imports arrive in chunks. The product-name cache is threaded through
them explicitly: each chunk's parse receives the cache produced by the
previous chunk, so chunks must be parsed in file order.

Examples:
    >>> result = parse_tickets(grid, catalog)
    >>> [t.ticket_number for t in result.tickets]
    ['AB-SA-T000001', 'AB-SA-T000002']
    >>> combined = parse_chunks([chunk_1, chunk_2], catalog)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from pos_ledger.exceptions import TicketParseError
from pos_ledger.parsing.cells import merged_text
from pos_ledger.parsing.layouts import LAYOUT_VARIANTS, Grid, LayoutVariant, select_layout
from pos_ledger.parsing.products import ProductNameResolver, SkuCatalog
from pos_ledger.stores import is_ticket_number
from pos_ledger.types import ParsedTicket, ParseResult

logger = logging.getLogger(__name__)


def parse_ticket(
    grid: Grid,
    header_idx: int,
    resolver: ProductNameResolver | None = None,
    default_date: datetime | None = None,
    variants: Sequence[LayoutVariant] = LAYOUT_VARIANTS,
) -> ParsedTicket:
    """Parse the single ticket whose header row is ``grid[header_idx]``.

    Args:
        grid: Cell grid.
        header_idx: Index of the ticket header row.
        resolver: Product name resolver; a catalog-less one is used if omitted.
        default_date: Sale date used when the section has no date row.
        variants: Layout variants to select from, in priority order.

    Returns:
        The parsed ticket.

    Raises:
        TicketParseError: If the row is not a ticket header or the section
            cannot be read.
    """
    if header_idx < 0 or header_idx >= len(grid):
        raise TicketParseError(f"row {header_idx} is outside the grid")
    ticket_number = merged_text(grid[header_idx], 0, 1)
    if not is_ticket_number(ticket_number):
        raise TicketParseError(f"row {header_idx} is not a ticket header: {ticket_number!r}")

    resolver = resolver or ProductNameResolver()
    default_date = default_date or datetime.now().replace(microsecond=0)
    layout = select_layout(grid, header_idx, variants)
    logger.debug("Ticket %s at row %d uses %s layout", ticket_number, header_idx, layout.name)
    return layout.parse(grid, header_idx, resolver, default_date)


def parse_tickets(
    grid: Grid,
    catalog: SkuCatalog | None = None,
    product_names: Mapping[str, str] | None = None,
    default_date: datetime | None = None,
) -> ParseResult:
    """Parse every ticket in a cell grid.

    Args:
        grid: Rows of text cells for one import batch (or one chunk of it).
        catalog: Master SKU catalog used as the first name source.
        product_names: Batch name cache from the previous chunk, if any.
        default_date: Sale date for tickets without a date row. Defaults to
            the time of this call, shared by the whole batch.

    Returns:
        ParseResult with tickets in grid order, one error message per failed
        ticket and the updated product name cache.
    """
    resolver = ProductNameResolver(catalog, product_names)
    default_date = default_date or datetime.now().replace(microsecond=0)
    result = ParseResult()

    for i, row in enumerate(grid):
        if not row:
            continue
        ticket_number = merged_text(row, 0, 1)
        if not is_ticket_number(ticket_number):
            continue
        try:
            ticket = parse_ticket(grid, i, resolver, default_date)
        except (TicketParseError, ValueError, TypeError, IndexError) as e:
            message = f"Error parsing ticket {ticket_number}: {e}"
            logger.warning("%s", message)
            result.errors.append(message)
            continue
        result.tickets.append(ticket)

    result.product_names = dict(resolver.names)
    result.new_product_names = resolver.new_names()
    logger.info(
        "Parsed %d ticket(s) from %d row(s) (%d error(s), %d new product name(s))",
        len(result.tickets),
        len(grid),
        len(result.errors),
        len(result.new_product_names),
    )
    return result


def parse_chunks(
    chunks: Iterable[Grid],
    catalog: SkuCatalog | None = None,
    product_names: Mapping[str, str] | None = None,
    default_date: datetime | None = None,
) -> ParseResult:
    """Parse sequential chunks of one import, threading the name cache.

    Args:
        chunks: Grids in file order.
        catalog: Master SKU catalog.
        product_names: Initial name cache.
        default_date: Sale date for tickets without a date row, shared by
            every chunk.

    Returns:
        Combined ParseResult. ``new_product_names`` holds every name that was
        not in the initial cache.
    """
    initial = dict(product_names or {})
    names = dict(initial)
    default_date = default_date or datetime.now().replace(microsecond=0)
    combined = ParseResult()

    for n, chunk in enumerate(chunks, start=1):
        chunk_result = parse_tickets(chunk, catalog, names, default_date)
        combined.tickets.extend(chunk_result.tickets)
        combined.errors.extend(chunk_result.errors)
        names = chunk_result.product_names
        logger.debug("Chunk %d: %d ticket(s)", n, len(chunk_result.tickets))

    combined.product_names = names
    combined.new_product_names = {k: v for k, v in names.items() if k not in initial}
    return combined
