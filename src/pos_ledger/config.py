"""Unified configuration for the POS sales ledger.

This module provides the filesystem layout used by the CSV-backed ledger and
the options that control a single import run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pos_ledger.exceptions import ConfigError


@dataclass
class DataPaths:
    """All filesystem paths used by the ledger pipeline.

    Attributes:
        data_root: Root directory for all ledger data.
        sku_catalog: Optional path to the master SKU catalog CSV
            (``item_number``, ``description`` columns).

    Directory Structure:
        data_root/
        └── ledger/
            ├── ticket_history.csv     # sale lines
            ├── return_tickets.csv     # return lines
            ├── gift_card_tickets.csv  # gift-card lines
            └── _imports/              # one JSON record per import run
    """

    data_root: Path
    sku_catalog: Path | None = None

    @classmethod
    def from_root(
        cls,
        data_root: str | Path,
        sku_catalog: str | Path | None = None,
    ) -> DataPaths:
        """Create DataPaths from a root directory and optional catalog file.

        Args:
            data_root: Root directory for ledger data.
            sku_catalog: Path to the SKU catalog CSV, if one is used.

        Returns:
            DataPaths instance.

        Examples:
            >>> paths = DataPaths.from_root("data", "catalog/skus.csv")
            >>> paths.ledger_dir
            PosixPath('data/ledger')
        """
        if isinstance(data_root, str):
            data_root = Path(data_root)
        if isinstance(sku_catalog, str):
            sku_catalog = Path(sku_catalog)

        return cls(data_root=data_root, sku_catalog=sku_catalog)

    @property
    def ledger_dir(self) -> Path:
        """Directory holding the three ledger tables."""
        return self.data_root / "ledger"

    @property
    def imports_dir(self) -> Path:
        """Directory holding import run records."""
        return self.ledger_dir / "_imports"

    def ledger_table(self, table: str) -> Path:
        """CSV file backing one ledger table."""
        return self.ledger_dir / f"{table}.csv"

    def ensure_dirs(self) -> None:
        """Create all directories in the data structure."""
        for path in [self.ledger_dir, self.imports_dir]:
            path.mkdir(parents=True, exist_ok=True)


@dataclass
class ImportOptions:
    """Options for one parse-and-write run.

    Attributes:
        batch_size: Number of ledger lines handed to the store per insert batch.
        skip_duplicates: Check a sample of ticket numbers against the sale
            ledger and skip tickets that are already there.
        dry_run: Parse and categorise only; nothing is written.
        duplicate_sample_size: How many leading tickets the duplicate guard checks.
        max_workers: Lines of one batch are inserted concurrently when > 1.
        max_reported_errors: Cap on error entries returned to the caller.
    """

    batch_size: int = 100
    skip_duplicates: bool = True
    dry_run: bool = False
    duplicate_sample_size: int = 50
    max_workers: int = 1
    max_reported_errors: int = 10

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.duplicate_sample_size < 0:
            raise ConfigError(
                f"duplicate_sample_size must be >= 0, got {self.duplicate_sample_size}"
            )
