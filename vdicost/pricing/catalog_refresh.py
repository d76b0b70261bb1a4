"""
Catalog refresh from the Azure Retail Prices API.

Repopulates the price catalog for every configured region. Regions are
fetched concurrently in small batches; a region whose fetch fails is
logged and left out of the result while the rest continue.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from vdicost.core.config import config
from vdicost.core.constants import (
    SESSION_HOST_SKU,
    DOMAIN_CONTROLLER_SKU,
    FARM_MANAGER_SKU,
    DISK_SKU,
    DISK_METER_NAME,
    STORAGE_CAPACITY_METERS,
    DATABASE_SERVICE_NAME,
    DATABASE_COMPUTE_PRODUCT,
    DATABASE_STORAGE_PRODUCT,
    DATABASE_STORAGE_SKU,
    DATABASE_VCORES,
)
from vdicost.domain.catalog_models import CatalogEntry, PricingModel
from vdicost.pricing.azure_pricing_client import AzureRetailPricesClient
from vdicost.pricing.price_catalog import PriceCatalog, PriceCatalogError


logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Outcome of a catalog refresh."""
    total: int = 0
    regions: List[str] = field(default_factory=list)
    failed_regions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "regions": self.regions,
            "failed_regions": self.failed_regions,
            "message": f"Refreshed {self.total} prices across {len(self.regions)} regions",
        }


def _entry_from_item(
    item: Dict[str, Any],
    sku_name: str,
    pricing_model: PricingModel,
    fetched_at: datetime
) -> CatalogEntry:
    return CatalogEntry(
        sku_name=sku_name,
        region=item["armRegionName"],
        reservation_term=item.get("reservationTerm") if pricing_model == PricingModel.RESERVATION else None,
        pricing_model=pricing_model,
        unit_price=float(item["retailPrice"]),
        unit_of_measure=item.get("unitOfMeasure"),
        service_name=item.get("serviceName"),
        product_name=item.get("productName"),
        meter_name=item.get("meterName"),
        fetched_at=fetched_at,
    )


def _has_price(item: Any) -> bool:
    """True for feed items carrying a usable, non-negative retailPrice."""
    if not isinstance(item, dict):
        return False
    price = item.get("retailPrice")
    return isinstance(price, (int, float)) and not isinstance(price, bool) and price >= 0


class CatalogRefresher:
    """Writes Azure retail prices into the price catalog."""

    def __init__(
        self,
        catalog: PriceCatalog,
        client: Optional[AzureRetailPricesClient] = None,
        regions: Optional[List[str]] = None,
        concurrency: Optional[int] = None,
        cache_path: Optional[str] = None
    ):
        self.catalog = catalog
        self.client = client or AzureRetailPricesClient()
        self.regions = regions or config.PRICING_REGIONS
        self.concurrency = concurrency or config.REFRESH_CONCURRENCY
        self.cache_path = cache_path if cache_path is not None else config.CATALOG_CACHE_PATH

    async def refresh_vm_prices(self, sku: str, region: str) -> int:
        """
        Store pay-as-you-go and reservation prices for one VM size.

        Windows meters are skipped (Hybrid Benefit covers the OS), as are
        Spot and Low Priority meters.
        """
        items = await self.client.fetch_items(
            f"serviceName eq 'Virtual Machines' and armSkuName eq '{sku}' "
            f"and armRegionName eq '{region}'"
        )
        fetched_at = datetime.utcnow()
        count = 0

        for item in items:
            if not _has_price(item):
                continue
            product_name = item.get("productName", "")
            sku_name = item.get("skuName", "")
            meter_name = item.get("meterName", "")
            if "Windows" in product_name:
                continue
            if "Spot" in sku_name or "Spot" in meter_name or "Low Priority" in sku_name:
                continue
            price_type = item.get("type")
            if price_type not in (PricingModel.CONSUMPTION.value, PricingModel.RESERVATION.value):
                continue

            self.catalog.upsert(_entry_from_item(
                item, item.get("armSkuName") or sku, PricingModel(price_type), fetched_at
            ))
            count += 1

        return count

    async def refresh_disk_prices(self, region: str) -> int:
        """Store the monthly price of the standard OS disk."""
        items = await self.client.fetch_items(
            f"serviceName eq 'Storage' and armRegionName eq '{region}' "
            f"and meterName eq '{DISK_METER_NAME}'"
        )
        fetched_at = datetime.utcnow()
        count = 0

        for item in items:
            if not _has_price(item):
                continue
            if item.get("type", "Consumption") != PricingModel.CONSUMPTION.value:
                continue
            self.catalog.upsert(_entry_from_item(
                item, item.get("skuName") or DISK_SKU, PricingModel.CONSUMPTION, fetched_at
            ))
            count += 1

        return count

    async def refresh_storage_prices(self, region: str) -> int:
        """Store Azure NetApp Files capacity prices (per GiB-hour)."""
        items = await self.client.fetch_items(
            f"serviceName eq 'Azure NetApp Files' and armRegionName eq '{region}'"
        )
        fetched_at = datetime.utcnow()
        capacity_meters = set(STORAGE_CAPACITY_METERS.values())
        count = 0

        for item in items:
            if not _has_price(item):
                continue
            meter_name = item.get("meterName", "")
            if meter_name not in capacity_meters:
                continue
            self.catalog.upsert(_entry_from_item(item, meter_name, PricingModel.CONSUMPTION, fetched_at))
            count += 1

        return count

    async def refresh_database_prices(self, region: str) -> int:
        """Store SQL Database General Purpose compute and storage prices."""
        compute_skus = {f"{vcores} vCore" for vcores in DATABASE_VCORES.values()}
        fetched_at = datetime.utcnow()
        count = 0

        compute_items = await self.client.fetch_items(
            f"serviceName eq '{DATABASE_SERVICE_NAME}' and armRegionName eq '{region}' "
            f"and productName eq '{DATABASE_COMPUTE_PRODUCT}' and priceType eq 'Consumption'"
        )
        for item in compute_items:
            if not _has_price(item):
                continue
            sku_name = item.get("skuName", "")
            if sku_name not in compute_skus:
                continue
            self.catalog.upsert(_entry_from_item(item, sku_name, PricingModel.CONSUMPTION, fetched_at))
            count += 1

        storage_items = await self.client.fetch_items(
            f"serviceName eq '{DATABASE_SERVICE_NAME}' and armRegionName eq '{region}' "
            f"and productName eq '{DATABASE_STORAGE_PRODUCT}' and priceType eq 'Consumption'"
        )
        for item in storage_items:
            if not _has_price(item):
                continue
            if item.get("meterName") != DATABASE_STORAGE_SKU:
                continue
            self.catalog.upsert(_entry_from_item(
                item, DATABASE_STORAGE_SKU, PricingModel.CONSUMPTION, fetched_at
            ))
            count += 1

        return count

    async def refresh_region(self, region: str) -> int:
        """
        Refresh every SKU the estimator needs for one region.

        Returns:
            Number of catalog entries written

        Raises:
            AzurePricingError: If any fetch for the region fails
        """
        count = 0
        for sku in (SESSION_HOST_SKU, DOMAIN_CONTROLLER_SKU, FARM_MANAGER_SKU):
            count += await self.refresh_vm_prices(sku, region)
        count += await self.refresh_disk_prices(region)
        count += await self.refresh_storage_prices(region)
        count += await self.refresh_database_prices(region)
        logger.info("Refreshed %d prices for %s", count, region)
        return count

    async def refresh_all(self) -> RefreshResult:
        """
        Refresh all configured regions, `concurrency` regions at a time.

        Any error inside a region marks that region failed and the rest
        continue; only cancellation propagates.

        Returns:
            RefreshResult with the entry count and the regions that succeeded
        """
        result = RefreshResult()

        for start in range(0, len(self.regions), self.concurrency):
            batch = self.regions[start:start + self.concurrency]
            outcomes = await asyncio.gather(
                *(self.refresh_region(region) for region in batch),
                return_exceptions=True
            )
            for region, outcome in zip(batch, outcomes):
                if isinstance(outcome, Exception):
                    logger.error(f"Failed to refresh prices for {region}: {outcome!r}")
                    result.failed_regions.append(region)
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    result.total += outcome
                    result.regions.append(region)

        if self.cache_path and result.regions:
            try:
                self.catalog.save(self.cache_path)
            except PriceCatalogError as error:
                logger.error(f"Refreshed prices could not be cached: {error}")

        return result
