"""
API routes for the price catalog.
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, HTTPException
import logging

from vdicost.domain.demand_models import normalize_region
from vdicost.pricing.catalog_refresh import CatalogRefresher
from vdicost.pricing.price_catalog import get_price_catalog


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/prices", tags=["prices"])


@router.get("")
async def get_prices(region: Optional[str] = None) -> Dict[str, Any]:
    """
    List catalog prices for a region.

    Without a region, returns when the catalog was last refreshed.
    """
    catalog = get_price_catalog()
    if not region:
        last_refresh = catalog.last_refreshed()
        return {
            "last_refresh": last_refresh.isoformat() if last_refresh else None,
            "regions": catalog.regions(),
            "message": "Use ?region=<region> to get prices for a specific region",
        }

    region = normalize_region(region)
    return {
        "region": region,
        "prices": [entry.to_dict() for entry in catalog.entries_for_region(region)],
    }


@router.post("/refresh")
async def refresh_prices() -> Dict[str, Any]:
    """
    Repopulate the catalog from the Azure Retail Prices API.

    Regions that fail are skipped; the refresh itself only fails on
    unexpected errors.
    """
    try:
        refresher = CatalogRefresher(get_price_catalog())
        result = await refresher.refresh_all()
    except Exception as error:
        logger.exception("Price refresh error")
        raise HTTPException(status_code=500, detail="Failed to refresh prices") from error

    return {"success": True, **result.to_dict()}
