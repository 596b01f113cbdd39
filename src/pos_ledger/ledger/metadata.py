"""Import run records.

Every import that writes to the ledger leaves one JSON record under
``DataPaths.imports_dir`` describing what was uploaded and how it went.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

from pos_ledger.ledger.writer import ImportResult
from pos_ledger.types import TenantContext

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ImportRecord:
    """Summary of one import run.

    Attributes:
        upload_name: Name of the uploaded export (usually the file name).
        org_id: Tenant organization.
        franchise_id: Tenant franchise.
        total_tickets: Tickets parsed from the upload.
        total_entries: Ledger lines written.
        stores_affected: Store ids that received lines.
        upload_date: ISO timestamp of the run.
        status: "completed", "partial" or "failed".
        failed: Lines the store rejected.
        parse_errors: Number of tickets the parser could not read.
        by_table: Lines written per ledger table.
    """

    upload_name: str
    org_id: str
    franchise_id: str
    total_tickets: int
    total_entries: int
    stores_affected: list[str]
    upload_date: str
    status: str
    failed: int = 0
    parse_errors: int = 0
    by_table: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        upload_name: str,
        tenant: TenantContext,
        result: ImportResult,
        upload_date: datetime | None = None,
    ) -> ImportRecord:
        return cls(
            upload_name=upload_name,
            org_id=tenant.org_id,
            franchise_id=tenant.franchise_id,
            total_tickets=result.total_tickets,
            total_entries=result.inserted,
            stores_affected=list(result.stores_affected),
            upload_date=(upload_date or datetime.now()).isoformat(timespec="seconds"),
            status=result.status,
            failed=result.failed,
            parse_errors=len(result.parse_errors),
            by_table=dict(result.by_table),
        )


def _record_path(imports_dir: Path, record: ImportRecord) -> Path:
    """Get path to the JSON file of an import record."""
    imports_dir.mkdir(parents=True, exist_ok=True)
    stamp = record.upload_date.replace(":", "").replace("-", "")
    name = _UNSAFE_NAME_RE.sub("_", Path(record.upload_name).stem) or "upload"
    return imports_dir / f"{stamp}_{record.org_id}_{record.franchise_id}_{name}.json"


def write_import_record(imports_dir: Path, record: ImportRecord) -> Path:
    """Write an import record and return its path."""
    path = _record_path(imports_dir, record)
    path.write_text(json.dumps(asdict(record), indent=2))
    logger.debug("Wrote import record: %s", path)
    return path


def read_import_records(
    imports_dir: Path,
    tenant: TenantContext | None = None,
) -> list[ImportRecord]:
    """Read import records, newest first, optionally for one tenant only.

    Unreadable files are logged and skipped.
    """
    if not imports_dir.exists():
        return []

    records: list[ImportRecord] = []
    for path in sorted(imports_dir.glob("*.json")):
        try:
            record = ImportRecord(**json.loads(path.read_text()))
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Error reading import record %s: %s", path, e)
            continue
        if tenant and (record.org_id, record.franchise_id) != (tenant.org_id, tenant.franchise_id):
            continue
        records.append(record)

    records.sort(key=lambda r: r.upload_date, reverse=True)
    return records
