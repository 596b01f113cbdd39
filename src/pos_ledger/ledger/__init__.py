"""Ledger tables, storage backends and the ledger writer."""

from pos_ledger.ledger.lines import (
    GIFT_CARD_TABLE,
    LEDGER_TABLES,
    LINE_TYPES,
    RETURN_TABLE,
    SALE_TABLE,
    LedgerLine,
)
from pos_ledger.ledger.maintenance import CleanupResult, cleanup_duplicate_lines, delete_tenant_data
from pos_ledger.ledger.metadata import ImportRecord, read_import_records, write_import_record
from pos_ledger.ledger.store import CsvLedgerStore, LedgerStore, MemoryLedgerStore
from pos_ledger.ledger.writer import ImportResult, categorize_ticket, write_tickets

__all__ = [
    "GIFT_CARD_TABLE",
    "LEDGER_TABLES",
    "LINE_TYPES",
    "RETURN_TABLE",
    "SALE_TABLE",
    "CleanupResult",
    "CsvLedgerStore",
    "ImportRecord",
    "ImportResult",
    "LedgerLine",
    "LedgerStore",
    "MemoryLedgerStore",
    "categorize_ticket",
    "cleanup_duplicate_lines",
    "delete_tenant_data",
    "read_import_records",
    "write_import_record",
    "write_tickets",
]
