"""Public API for the POS sales ledger.

Entry points used by outer collaborators (upload handlers, dashboards,
admin tools). Every call is scoped to one tenant. Imports go grid -> parser
-> writer; read calls go ledger -> reconciliation -> metrics and are
recomputed on every call.

Examples:
    >>> from pos_ledger import DataPaths, TenantContext, api
    >>> paths = DataPaths.from_root("data", "catalog/skus.csv")
    >>> tenant = TenantContext("org-1", "franchise-1")
    >>> result = api.import_file(paths, "exports/tickets_2024-01.xlsx", tenant)
    >>> api.get_sales_metrics(api.open_store(paths), tenant)["totalSales"]
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar

from pos_ledger import performance, validation
from pos_ledger.config import DataPaths, ImportOptions
from pos_ledger.exceptions import ReconciliationError
from pos_ledger.ledger.metadata import ImportRecord, write_import_record
from pos_ledger.ledger.store import CsvLedgerStore, LedgerStore
from pos_ledger.ledger.writer import ImportResult, write_tickets
from pos_ledger.metrics import calculate_sales_metrics
from pos_ledger.parsing.grid import read_grid
from pos_ledger.parsing.products import SkuCatalog
from pos_ledger.parsing.tickets import parse_tickets
from pos_ledger.reconcile import LedgerFilter, filter_options, load_lines
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


def open_store(paths: DataPaths) -> CsvLedgerStore:
    """Open the CSV-backed ledger under ``paths.ledger_dir``."""
    paths.ensure_dirs()
    return CsvLedgerStore(paths)


def load_catalog(paths: DataPaths) -> SkuCatalog | None:
    """Load the master SKU catalog configured in ``paths``, if any."""
    if paths.sku_catalog is None:
        return None
    return SkuCatalog.from_csv(paths.sku_catalog)


def import_grid(
    grid: Sequence[Sequence[str]],
    tenant: TenantContext,
    store: LedgerStore,
    catalog: SkuCatalog | None = None,
    options: ImportOptions | None = None,
    product_names: Mapping[str, str] | None = None,
    upload_name: str = "grid",
    imports_dir: Path | None = None,
) -> ImportResult:
    """Parse a cell grid and write its tickets to the ledger.

    Args:
        grid: Rows of text cells.
        tenant: Tenant the lines belong to.
        store: Target ledger store.
        catalog: Master SKU catalog for product names.
        options: Import options (batch size, duplicate guard, dry run).
        product_names: Name cache carried over from a previous chunk.
        upload_name: Name recorded in the import record.
        imports_dir: Where to write the import record; no record when None
            or on a dry run.

    Returns:
        ImportResult, with the parser's error messages in ``parse_errors``.
    """
    options = options or ImportOptions()
    parsed = parse_tickets(grid, catalog, product_names)
    result = write_tickets(store, parsed.tickets, tenant, options)
    result.parse_errors = parsed.errors[: options.max_reported_errors]

    if imports_dir is not None and not options.dry_run:
        record = ImportRecord.from_result(upload_name, tenant, result)
        record.parse_errors = len(parsed.errors)
        write_import_record(imports_dir, record)

    logger.info(
        "Import %s: %d ticket(s), %d line(s) inserted, %d skipped, %d failed, status=%s",
        upload_name,
        result.total_tickets,
        result.inserted,
        result.skipped,
        result.failed,
        result.status,
    )
    return result


def import_file(
    paths: DataPaths,
    path: str | Path,
    tenant: TenantContext,
    options: ImportOptions | None = None,
    sheet: str | None = None,
    store: LedgerStore | None = None,
) -> ImportResult:
    """Read a POS export file and import it into the CSV-backed ledger.

    Args:
        paths: DataPaths with the ledger directory and optional SKU catalog.
        path: ``.xlsx``/``.xls``/``.csv`` export.
        tenant: Tenant the lines belong to.
        options: Import options.
        sheet: Sheet name for Excel exports (first sheet by default).
        store: Ledger store to write to; the CSV store under ``paths`` by default.

    Returns:
        ImportResult.

    Raises:
        DataQualityError: If the file or the SKU catalog cannot be read.
    """
    path = Path(path)
    grid = read_grid(path, sheet)
    store = store or open_store(paths)
    return import_grid(
        grid,
        tenant,
        store,
        catalog=load_catalog(paths),
        options=options,
        upload_name=path.name,
        imports_dir=paths.imports_dir,
    )


def _compute(description: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a read-only computation, reporting any failure generically."""
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.error("Failed to %s: %s", description, e)
        raise ReconciliationError(f"Failed to {description}") from e


def _date_filter(start: Any = None, end: Any = None) -> LedgerFilter | None:
    if start is None and end is None:
        return None
    return LedgerFilter(start=start, end=end)


def get_sales_metrics(
    store: LedgerStore,
    tenant: TenantContext,
    filters: LedgerFilter | None = None,
) -> dict[str, Any]:
    """Summary metrics object for the dashboard.

    Raises:
        ReconciliationError: If the metrics cannot be computed.
    """

    def run() -> dict[str, Any]:
        return calculate_sales_metrics(load_lines(store, tenant, filters)).to_dict()

    return _compute("calculate sales metrics", run)


def get_filter_options(store: LedgerStore, tenant: TenantContext) -> dict[str, list[str]]:
    """Stores and sales reps available in the tenant's ledger."""
    return _compute("get filter options", lambda: filter_options(load_lines(store, tenant)))


def get_leaderboards(
    store: LedgerStore,
    tenant: TenantContext,
    filters: LedgerFilter | None = None,
) -> dict[str, Any]:
    """Top-5 stores and reps by average ticket, gross profit and revenue."""
    return _compute(
        "get leaderboard data",
        lambda: performance.leaderboards(load_lines(store, tenant, filters)),
    )


def get_store_performance(
    store: LedgerStore,
    tenant: TenantContext,
    filters: LedgerFilter | None = None,
) -> list[dict[str, Any]]:
    """Per-store performance rows, highest revenue first."""

    def run() -> list[dict[str, Any]]:
        table = performance.store_performance(load_lines(store, tenant, filters))
        return table.sort_values("revenue", ascending=False).to_dict(orient="records")

    return _compute("get store performance data", run)


def get_rep_performance(
    store: LedgerStore,
    tenant: TenantContext,
    filters: LedgerFilter | None = None,
) -> list[dict[str, Any]]:
    """Per-rep performance rows over rep-eligible tickets, highest revenue first."""

    def run() -> list[dict[str, Any]]:
        table = performance.rep_performance(load_lines(store, tenant, filters))
        return table.sort_values("revenue", ascending=False).to_dict(orient="records")

    return _compute("get rep performance data", run)


def get_performance_alerts(
    store: LedgerStore,
    tenant: TenantContext,
    start: str | date | None = None,
    end: str | date | None = None,
) -> dict[str, Any]:
    """Stores and reps below the average-ticket benchmark."""
    return _compute(
        "get performance alerts data",
        lambda: performance.performance_alerts(load_lines(store, tenant, _date_filter(start, end))),
    )


def get_daily_rep_report(
    store: LedgerStore,
    tenant: TenantContext,
    day: str | date | datetime,
) -> dict[str, Any]:
    """Per-store, per-rep ticket report for one day."""
    return _compute(
        "get daily rep report",
        lambda: performance.daily_rep_report(
            load_lines(store, tenant, _date_filter(day, day)), day
        ),
    )


def validate_ticket_totals(
    store: LedgerStore,
    tenant: TenantContext,
    expected_ticket_count: int | None = None,
    expected_total_amount: float | None = None,
) -> dict[str, Any]:
    """Compare the tenant's reconciled ledger with expected POS totals."""
    return _compute(
        "validate ticket totals",
        lambda: validation.validate_ticket_totals(
            load_lines(store, tenant), expected_ticket_count, expected_total_amount
        ),
    )


def find_missing_ticket_numbers(
    store: LedgerStore,
    tenant: TenantContext,
    store_id: str,
    start_number: int,
    end_number: int,
) -> dict[str, Any]:
    """Sequence numbers missing from one store's sale ledger."""
    return _compute(
        "find missing ticket numbers",
        lambda: validation.find_missing_ticket_numbers(
            load_lines(store, tenant), store_id, start_number, end_number
        ),
    )
