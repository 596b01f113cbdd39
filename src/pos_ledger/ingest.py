"""Command line interface for the CSV-backed POS sales ledger.

Usage:
    pos-ledger import --data-root ./data --org ORG --franchise FR tickets.xlsx
    pos-ledger import --data-root ./data --org ORG --franchise FR --dry-run a.xlsx b.csv
    pos-ledger metrics --data-root ./data --org ORG --franchise FR --start 2024-01-01 --end 2024-01-31

Exit codes:
    0 on success
    1 when an import fails or metrics cannot be computed
    2 on argument errors
    130 on interrupt
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pos_ledger import api
from pos_ledger.config import DataPaths, ImportOptions
from pos_ledger.exceptions import PosLedgerError
from pos_ledger.reconcile import LedgerFilter
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)


@dataclass
class Args:
    command: str
    data_root: Path
    org: str
    franchise: str
    sku_catalog: Optional[Path] = None
    files: list[Path] = field(default_factory=list)
    sheet: Optional[str] = None
    dry_run: bool = False
    no_duplicate_check: bool = False
    batch_size: int = 100
    workers: int = 1
    start: Optional[str] = None
    end: Optional[str] = None
    store: Optional[str] = None
    rep: Optional[str] = None
    quiet: bool = False


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pos-ledger", description="POS ticket ledger tools")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--data-root", type=Path, default=Path("data"), help="Ledger data root")
    common.add_argument("--org", required=True, help="Organization id")
    common.add_argument("--franchise", required=True, help="Franchise id")
    common.add_argument("--quiet", action="store_true", help="Less logging")

    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", parents=[common], help="Import POS ticket exports")
    imp.add_argument("files", nargs="+", type=Path, help=".xlsx/.xls/.csv exports")
    imp.add_argument("--sku-catalog", type=Path, help="Master SKU catalog CSV")
    imp.add_argument("--sheet", help="Sheet name (default: first sheet)")
    imp.add_argument("--dry-run", action="store_true", help="Parse only, write nothing")
    imp.add_argument(
        "--no-duplicate-check",
        action="store_true",
        help="Do not skip tickets already in the ledger",
    )
    imp.add_argument("--batch-size", type=int, default=100, help="Lines per insert batch")
    imp.add_argument("--workers", type=int, default=1, help="Concurrent line inserts")

    met = sub.add_parser("metrics", parents=[common], help="Print sales metrics as JSON")
    met.add_argument("--start", help="First sale date (YYYY-MM-DD)")
    met.add_argument("--end", help="Last sale date (YYYY-MM-DD)")
    met.add_argument("--store", help="Store id (default: all)")
    met.add_argument("--rep", help="Sales rep (default: all)")
    return p


def parse_args(argv: list[str] | None = None) -> Args:
    p = _build_parser()
    a = p.parse_args(argv)
    if getattr(a, "batch_size", 1) < 1 or getattr(a, "workers", 1) < 1:
        p.error("--batch-size and --workers must be >= 1")
    return Args(
        command=a.command,
        data_root=a.data_root,
        org=a.org,
        franchise=a.franchise,
        sku_catalog=getattr(a, "sku_catalog", None),
        files=getattr(a, "files", []),
        sheet=getattr(a, "sheet", None),
        dry_run=getattr(a, "dry_run", False),
        no_duplicate_check=getattr(a, "no_duplicate_check", False),
        batch_size=getattr(a, "batch_size", 100),
        workers=getattr(a, "workers", 1),
        start=getattr(a, "start", None),
        end=getattr(a, "end", None),
        store=getattr(a, "store", None),
        rep=getattr(a, "rep", None),
        quiet=a.quiet,
    )


def run_import(args: Args) -> int:
    paths = DataPaths.from_root(args.data_root, args.sku_catalog)
    tenant = TenantContext(args.org, args.franchise)
    options = ImportOptions(
        batch_size=args.batch_size,
        skip_duplicates=not args.no_duplicate_check,
        dry_run=args.dry_run,
        max_workers=args.workers,
    )
    store = api.open_store(paths)

    exit_code = 0
    for path in args.files:
        try:
            result = api.import_file(paths, path, tenant, options, sheet=args.sheet, store=store)
        except PosLedgerError as e:
            logger.error("Failed on %s: %s", path, e)
            exit_code = 1
            continue

        for message in result.parse_errors:
            logger.warning("%s: %s", path.name, message)
        for error in result.errors:
            logger.warning(
                "%s: %s line for %s (%s) failed: %s",
                path.name,
                error["table"],
                error["ticket"],
                error["item"],
                error["error"],
            )
        if result.dry_run:
            summary = {"file": str(path), "by_table": result.by_table, "sample": result.sample}
            print(json.dumps(summary, indent=2))
        elif result.status == "failed":
            exit_code = 1
    return exit_code


def run_metrics(args: Args) -> int:
    paths = DataPaths.from_root(args.data_root)
    tenant = TenantContext(args.org, args.franchise)
    filters = LedgerFilter(start=args.start, end=args.end, store_id=args.store, sales_rep=args.rep)
    try:
        metrics = api.get_sales_metrics(api.open_store(paths), tenant, filters)
    except PosLedgerError as e:
        logger.error("%s", e)
        return 1
    print(json.dumps(metrics, indent=2))
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    try:
        if args.command == "import":
            sys.exit(run_import(args))
        sys.exit(run_metrics(args))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
