"""Ledger maintenance: duplicate cleanup and tenant data deletion.

These are the only operations that remove ledger lines. Neither runs
automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pos_ledger.ledger.lines import SALE_TABLE
from pos_ledger.ledger.store import LedgerStore
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    """Outcome of a duplicate cleanup.

    Attributes:
        lines_checked: Sale lines examined.
        duplicates_found: Lines whose ``(ticket_number, item_number)`` key
            was already seen.
        deleted: Lines actually removed (0 on a dry run).
        dry_run: Whether deletion was skipped.
        sample_keys: First few duplicate keys, for review.
    """

    lines_checked: int
    duplicates_found: int
    deleted: int
    dry_run: bool
    sample_keys: list[str] = field(default_factory=list)


def cleanup_duplicate_lines(
    store: LedgerStore,
    tenant: TenantContext,
    dry_run: bool = True,
    limit: int = 1000,
) -> CleanupResult:
    """Remove repeated sale lines left by double imports.

    A line is a duplicate when an earlier line (in storage order) of the
    same tenant has the same ticket number and item number. The first copy
    is kept.

    Args:
        store: Ledger store.
        tenant: Tenant whose sale ledger is cleaned.
        dry_run: Only report duplicates when True (the default).
        limit: Maximum number of sale lines examined.

    Returns:
        CleanupResult with counts and a sample of duplicate keys.

    Examples:
        >>> report = cleanup_duplicate_lines(store, tenant)
        >>> if report.duplicates_found:
        ...     cleanup_duplicate_lines(store, tenant, dry_run=False)
    """
    df = store.read(SALE_TABLE, tenant).head(limit)
    keys = df["ticket_number"].astype(str) + "-" + df["item_number"].astype(str)
    dup_mask = keys.duplicated(keep="first")
    dup_ids = df.loc[dup_mask, "line_id"].tolist()

    deleted = 0
    if dup_ids and not dry_run:
        deleted = store.delete(SALE_TABLE, dup_ids)
        store.flush()

    result = CleanupResult(
        lines_checked=len(df),
        duplicates_found=len(dup_ids),
        deleted=deleted,
        dry_run=dry_run,
        sample_keys=keys[dup_mask].head(10).tolist(),
    )
    logger.info(
        "Duplicate cleanup for %s/%s: %d of %d line(s) duplicated, %d deleted",
        tenant.org_id,
        tenant.franchise_id,
        result.duplicates_found,
        result.lines_checked,
        result.deleted,
    )
    return result


def delete_tenant_data(store: LedgerStore, tenant: TenantContext) -> dict[str, int]:
    """Delete every ledger line of a tenant (account removal).

    Returns:
        Lines deleted per table.
    """
    deleted = store.delete_tenant(tenant)
    store.flush()
    logger.info(
        "Deleted %d ledger line(s) for %s/%s: %s",
        sum(deleted.values()),
        tenant.org_id,
        tenant.franchise_id,
        deleted,
    )
    return deleted
