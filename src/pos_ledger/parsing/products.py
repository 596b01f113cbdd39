"""Product name resolution for parsed item lines.

Names come from, in order of priority:

1. the master SKU catalog (exact, case-insensitive item number match);
2. a name already resolved for the same item number earlier in this import
   batch, because the report often prints a description only near a
   product's first appearance;
3. a description printed in the item row itself, unless it is a placeholder;
4. a synthesized ``"Product <item_number>"``.

Whatever tiers 1-3 resolve is remembered for tier 2. The batch cache is an
explicit accumulator: it is copied in from the previous chunk and handed
back, never kept in module state.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import pandas as pd

from pos_ledger.exceptions import DataQualityError
from pos_ledger.parsing.cells import strip_invisibles

logger = logging.getLogger(__name__)

PLACEHOLDER_NAMES = {"Unknown"}
PLACEHOLDER_FRAGMENTS = ("Description", "____")


def _sku_key(item_number: str) -> str:
    return item_number.strip().upper()


class SkuCatalog:
    """Read-only master SKU table: item number -> product description.

    Example:
        >>> catalog = SkuCatalog.from_mapping({"abc-100": "Whey Protein 2lb"})
        >>> catalog.lookup("ABC-100")
        'Whey Protein 2lb'
    """

    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        self._names: dict[str, str] = {}
        for item_number, description in (names or {}).items():
            if item_number and description:
                self._names[_sku_key(str(item_number))] = str(description).strip()

    @classmethod
    def from_mapping(cls, names: Mapping[str, str]) -> SkuCatalog:
        return cls(names)

    @classmethod
    def from_csv(
        cls,
        path: Path,
        item_column: str = "item_number",
        description_column: str = "description",
    ) -> SkuCatalog:
        """Load the catalog from a CSV export of the SKU/vendor map.

        Args:
            path: CSV file path.
            item_column: Column holding item numbers.
            description_column: Column holding product descriptions.

        Raises:
            DataQualityError: If either column is missing.
        """
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")
        missing = [c for c in (item_column, description_column) if c not in df.columns]
        if missing:
            raise DataQualityError(
                f"SKU catalog {path} is missing column(s): {', '.join(missing)}. "
                f"Available: {list(df.columns)}"
            )
        names = {
            strip_invisibles(item) or "": strip_invisibles(desc) or ""
            for item, desc in zip(df[item_column], df[description_column])
        }
        catalog = cls(names)
        logger.info("Loaded %d SKU catalog entries from %s", len(catalog), path)
        return catalog

    def lookup(self, item_number: str) -> str | None:
        return self._names.get(_sku_key(item_number))

    def __len__(self) -> int:
        return len(self._names)


def is_usable_description(text: str) -> bool:
    """Check that an in-row description is a real product name."""
    text = (text or "").strip()
    if not text or text in PLACEHOLDER_NAMES:
        return False
    return not any(fragment in text for fragment in PLACEHOLDER_FRAGMENTS)


class ProductNameResolver:
    """Resolve item numbers to product names for one parse call.

    Args:
        catalog: Master SKU catalog, or None when no catalog is available.
        known_names: Batch cache produced by the previous chunk. It is copied,
            not mutated.
    """

    def __init__(
        self,
        catalog: SkuCatalog | None = None,
        known_names: Mapping[str, str] | None = None,
    ) -> None:
        self.catalog = catalog or SkuCatalog()
        self._initial = dict(known_names or {})
        self.names: dict[str, str] = dict(self._initial)

    def resolve(self, item_number: str, row_description: str = "") -> str:
        key = _sku_key(item_number)

        from_catalog = self.catalog.lookup(key)
        if from_catalog:
            self.names[key] = from_catalog
            return from_catalog

        if key in self.names:
            return self.names[key]

        if is_usable_description(row_description):
            name = row_description.strip()
            self.names[key] = name
            return name

        return f"Product {item_number.strip()}"

    def new_names(self) -> dict[str, str]:
        """Names that were not in the cache this resolver started from."""
        return {k: v for k, v in self.names.items() if k not in self._initial}
