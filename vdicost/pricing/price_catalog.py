"""
Price catalog.

In-memory table of catalog entries keyed by (SKU, region, reservation term,
pricing model). The catalog refresher writes it with upsert-by-key; the
pricing engine only reads it through `lookup`.

Optionally persisted to a gzipped JSON file so that a restart does not
require a full refresh:

    catalog = PriceCatalog.load("pricing-cache/azure-catalog.json.gz")
"""
import json
import gzip
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol
from dataclasses import replace
from datetime import datetime

from vdicost.core.config import config
from vdicost.domain.catalog_models import CatalogEntry, CatalogKey, PricingModel

logger = logging.getLogger(__name__)


class PriceCatalogError(Exception):
    """Raised when the catalog cannot be loaded or saved."""
    pass


class CatalogReader(Protocol):
    """Read-only catalog access used by the pricing engine."""

    async def lookup(
        self,
        sku_name: str,
        region: str,
        reservation_term: Optional[str],
        pricing_model: PricingModel
    ) -> Optional[CatalogEntry]:
        ...


class PriceCatalog:
    """
    In-memory price catalog with upsert-by-key semantics.

    Entries are immutable; an upsert swaps the whole entry, so a reader
    sees either the old or the new row, never a mix.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: Dict[CatalogKey, CatalogEntry] = {}
        for entry in entries:
            self.upsert(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def upsert(self, entry: CatalogEntry) -> None:
        """
        Insert or replace the entry with the same key.

        Args:
            entry: Catalog entry to store
        """
        if entry.fetched_at is None:
            entry = replace(entry, fetched_at=datetime.utcnow())
        self._entries[entry.key] = entry

    def get(
        self,
        sku_name: str,
        region: str,
        reservation_term: Optional[str],
        pricing_model: PricingModel
    ) -> Optional[CatalogEntry]:
        """Synchronous lookup by key."""
        return self._entries.get(CatalogKey(sku_name, region, reservation_term, pricing_model))

    async def lookup(
        self,
        sku_name: str,
        region: str,
        reservation_term: Optional[str],
        pricing_model: PricingModel
    ) -> Optional[CatalogEntry]:
        """
        Look up one catalog entry.

        Args:
            sku_name: SKU identifier (e.g., 'Standard_D8as_v5')
            region: ARM region name (e.g., 'eastus')
            reservation_term: '1 Year', '3 Years' or None
            pricing_model: Consumption or Reservation

        Returns:
            Matching CatalogEntry, or None if absent
        """
        return self.get(sku_name, region, reservation_term, pricing_model)

    def entries_for_region(self, region: str) -> List[CatalogEntry]:
        """All entries for a region, ordered by SKU then term."""
        entries = [entry for entry in self._entries.values() if entry.region == region]
        return sorted(
            entries,
            key=lambda entry: (entry.sku_name, entry.reservation_term or "", entry.pricing_model.value)
        )

    def regions(self) -> List[str]:
        return sorted({entry.region for entry in self._entries.values()})

    def last_refreshed(self) -> Optional[datetime]:
        """Most recent fetch time across all entries, or None when empty."""
        timestamps = [entry.fetched_at for entry in self._entries.values() if entry.fetched_at]
        return max(timestamps) if timestamps else None

    def save(self, path: str) -> None:
        """
        Write all entries to a gzipped JSON file.

        Raises:
            PriceCatalogError: If the file cannot be written
        """
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            payload = {"entries": [entry.to_dict() for entry in self._entries.values()]}
            with gzip.open(target, "wt", encoding="utf-8") as f:
                json.dump(payload, f)
        except OSError as error:
            raise PriceCatalogError(f"Failed to save price catalog to {target}: {error}") from error
        logger.info("Saved %d catalog entries to %s", len(self._entries), target)

    @classmethod
    def load(cls, path: str) -> "PriceCatalog":
        """
        Load a catalog previously written by `save`.

        A missing file yields an empty catalog.

        Raises:
            PriceCatalogError: If the file exists but cannot be parsed
        """
        source = Path(path)
        if not source.exists():
            logger.warning(f"Catalog cache file not found: {source}")
            return cls()

        try:
            with gzip.open(source, "rt", encoding="utf-8") as f:
                payload = json.load(f)
            entries = [CatalogEntry.from_dict(item) for item in payload.get("entries", [])]
        except (json.JSONDecodeError, OSError, gzip.BadGzipFile, KeyError, ValueError) as error:
            raise PriceCatalogError(f"Error loading catalog file {source}: {error}") from error

        logger.info("Loaded %d catalog entries from %s", len(entries), source)
        return cls(entries)


# Global singleton instance
_price_catalog: Optional[PriceCatalog] = None


def get_price_catalog() -> PriceCatalog:
    """
    Get the global price catalog instance.

    Loaded from CATALOG_CACHE_PATH on first use when configured.

    Returns:
        PriceCatalog instance
    """
    global _price_catalog
    if _price_catalog is None:
        if config.CATALOG_CACHE_PATH:
            _price_catalog = PriceCatalog.load(config.CATALOG_CACHE_PATH)
        else:
            _price_catalog = PriceCatalog()
    return _price_catalog
