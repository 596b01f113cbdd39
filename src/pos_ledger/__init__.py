"""POS Ledger - ticket report parsing and reconciled sales metrics.

This package turns point-of-sale ticket-detail exports into a deduplicated
sales ledger and computes the metrics every analytics view reads:

- **Parsing**: cell grid -> parsed tickets (ticket number schemes, layout
  variants, product name resolution)
- **Ledger**: parsed tickets -> sale, return and gift-card lines per tenant
- **Reconciliation**: ledger lines -> one canonical record per ticket
- **Metrics**: canonical tickets -> summary metrics, leaderboards, alerts

Module Structure:
    pos_ledger.parsing: Grid loading, ticket scanner, layout variants
    pos_ledger.ledger: Ledger tables, stores, writer, import records
    pos_ledger.reconcile: Line frame, filters, canonical tickets
    pos_ledger.metrics: Summary metrics object
    pos_ledger.performance: Store/rep performance, leaderboards, alerts
    pos_ledger.validation: Ledger validation reports
    pos_ledger.api: Tenant-scoped entry points

Quick Start:
    >>> from pos_ledger import DataPaths, TenantContext, api
    >>>
    >>> paths = DataPaths.from_root("data", "catalog/skus.csv")
    >>> tenant = TenantContext(org_id="org-1", franchise_id="fr-7")
    >>>
    >>> # Import a POS export
    >>> result = api.import_file(paths, "exports/tickets_jan.xlsx", tenant)
    >>> result.inserted, result.failed
    >>>
    >>> # Dashboard metrics
    >>> store = api.open_store(paths)
    >>> api.get_sales_metrics(store, tenant)["avgTicketValue"]
"""

__version__ = "0.1.0"

from pos_ledger.config import DataPaths, ImportOptions
from pos_ledger.exceptions import (
    ConfigError,
    DataQualityError,
    LedgerWriteError,
    PosLedgerError,
    ReconciliationError,
    TicketParseError,
)
from pos_ledger.reconcile import LedgerFilter
from pos_ledger.types import ParsedTicket, ParseResult, TenantContext

__all__ = [
    "ConfigError",
    "DataPaths",
    "DataQualityError",
    "ImportOptions",
    "LedgerFilter",
    "LedgerWriteError",
    "ParseResult",
    "ParsedTicket",
    "PosLedgerError",
    "ReconciliationError",
    "TenantContext",
    "TicketParseError",
    "__version__",
]
