"""Ledger storage backends.

``LedgerStore`` is the contract the writer and the reconciliation engine
talk to: append one line, check a ticket number, read a tenant's table back
as a DataFrame, and delete lines by id. Two backends are provided: an
in-memory store (tests, dry runs, embedding) and a CSV-backed store that
persists each table to ``DataPaths.ledger_table(name)``.

Line inserts are independent and may run from several threads; neither
backend offers cross-line transactions.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import numpy as np
import pandas as pd

from pos_ledger.config import DataPaths
from pos_ledger.exceptions import LedgerWriteError
from pos_ledger.ledger.lines import LEDGER_TABLES, NUMERIC_COLUMNS, TABLE_COLUMNS
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("org_id", "franchise_id", "ticket_number", "store_id", "sale_date")


def _check_table(table: str) -> None:
    if table not in LEDGER_TABLES:
        raise LedgerWriteError(f"Unknown ledger table '{table}'. Expected one of {LEDGER_TABLES}")


def records_to_frame(table: str, records: Iterable[dict[str, Any]]) -> pd.DataFrame:
    """Build a typed DataFrame for one table from stored records."""
    df = pd.DataFrame(list(records), columns=TABLE_COLUMNS[table])
    for col in NUMERIC_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    df["sale_date"] = pd.to_datetime(df["sale_date"], format="ISO8601", errors="coerce")
    return df


class LedgerStore(ABC):
    """Abstract storage for the three ledger tables."""

    @abstractmethod
    def insert(self, table: str, record: dict[str, Any]) -> str:
        """Append one line and return its generated ``line_id``.

        Raises:
            LedgerWriteError: If the table is unknown or the record is
                missing a required field.
        """

    @abstractmethod
    def exists(self, table: str, tenant: TenantContext, ticket_number: str) -> bool:
        """Check whether any line of ``ticket_number`` exists for the tenant."""

    @abstractmethod
    def read(self, table: str, tenant: TenantContext) -> pd.DataFrame:
        """All lines of one table for the tenant, one row per line."""

    @abstractmethod
    def delete(self, table: str, line_ids: Iterable[str]) -> int:
        """Delete lines by id and return how many were removed."""

    def delete_tenant(self, tenant: TenantContext) -> dict[str, int]:
        """Delete every line of a tenant from all tables."""
        deleted: dict[str, int] = {}
        for table in LEDGER_TABLES:
            df = self.read(table, tenant)
            deleted[table] = self.delete(table, df["line_id"].tolist()) if len(df) else 0
        return deleted

    def flush(self) -> None:
        """Persist pending changes. A no-op for stores without a backing file."""


class MemoryLedgerStore(LedgerStore):
    """Thread-safe in-memory ledger."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: dict[str, list[dict[str, Any]]] = {t: [] for t in LEDGER_TABLES}

    def insert(self, table: str, record: dict[str, Any]) -> str:
        _check_table(table)
        missing = [f for f in REQUIRED_FIELDS if record.get(f) in (None, "")]
        if missing:
            raise LedgerWriteError(f"{table} line is missing {', '.join(missing)}")

        line_id = uuid.uuid4().hex
        row = {c: record.get(c) for c in TABLE_COLUMNS[table]}
        row["line_id"] = line_id
        with self._lock:
            self._tables[table].append(row)
        return line_id

    def _tenant_rows(self, table: str, tenant: TenantContext) -> list[dict[str, Any]]:
        with self._lock:
            return [
                r
                for r in self._tables[table]
                if r["org_id"] == tenant.org_id and r["franchise_id"] == tenant.franchise_id
            ]

    def exists(self, table: str, tenant: TenantContext, ticket_number: str) -> bool:
        _check_table(table)
        return any(r["ticket_number"] == ticket_number for r in self._tenant_rows(table, tenant))

    def read(self, table: str, tenant: TenantContext) -> pd.DataFrame:
        _check_table(table)
        return records_to_frame(table, self._tenant_rows(table, tenant))

    def delete(self, table: str, line_ids: Iterable[str]) -> int:
        _check_table(table)
        ids = set(line_ids)
        with self._lock:
            before = len(self._tables[table])
            self._tables[table] = [r for r in self._tables[table] if r["line_id"] not in ids]
            removed = before - len(self._tables[table])
        logger.debug("Deleted %d line(s) from %s", removed, table)
        return removed

    def count(self, table: str) -> int:
        """Number of lines in a table across all tenants."""
        _check_table(table)
        with self._lock:
            return len(self._tables[table])


class CsvLedgerStore(MemoryLedgerStore):
    """Ledger kept in memory and persisted to one CSV file per table.

    Existing files are loaded on construction; ``flush()`` rewrites them.

    Args:
        paths: DataPaths whose ``ledger_table()`` locates each CSV.
    """

    def __init__(self, paths: DataPaths) -> None:
        super().__init__()
        self.paths = paths
        for table in LEDGER_TABLES:
            path = paths.ledger_table(table)
            if not path.exists():
                continue
            df = pd.read_csv(path, dtype=object, encoding="utf-8")
            df = df.reindex(columns=TABLE_COLUMNS[table])
            df = df.replace({np.nan: None})
            self._tables[table] = df.to_dict(orient="records")
            logger.info("Loaded %d line(s) from %s", len(df), path)

    def flush(self) -> None:
        self.paths.ensure_dirs()
        with self._lock:
            snapshot = {t: list(rows) for t, rows in self._tables.items()}
        for table, rows in snapshot.items():
            path = self.paths.ledger_table(table)
            pd.DataFrame(rows, columns=TABLE_COLUMNS[table]).to_csv(
                path, index=False, encoding="utf-8"
            )
            logger.debug("Wrote %d line(s) to %s", len(rows), path)
