"""Ticket report parsing: cell grid in, parsed tickets out."""

from pos_ledger.parsing.grid import read_grid
from pos_ledger.parsing.layouts import LAYOUT_VARIANTS, ONLINE_ORDER, REGISTER, LayoutVariant
from pos_ledger.parsing.products import ProductNameResolver, SkuCatalog
from pos_ledger.parsing.tickets import parse_chunks, parse_ticket, parse_tickets

__all__ = [
    "LAYOUT_VARIANTS",
    "LayoutVariant",
    "ONLINE_ORDER",
    "ProductNameResolver",
    "REGISTER",
    "SkuCatalog",
    "parse_chunks",
    "parse_ticket",
    "parse_tickets",
    "read_grid",
]
