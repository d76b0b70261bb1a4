"""
API routes for cost estimation.
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
import logging

from vdicost.domain.demand_models import DemandInput, InvalidDemandError
from vdicost.pricing.price_catalog import get_price_catalog
from vdicost.services.estimate_assembler import CostEstimator
from vdicost.services.pricing_engine import PriceNotFoundError


logger = logging.getLogger(__name__)
router = APIRouter()


class DemandRequest(BaseModel):
    """Request model for a cost estimate."""
    region: str = Field(..., description="Azure region (e.g., 'eastus')")
    concurrent_users: int = Field(..., description="Peak concurrent users")
    workload_intensity: str = Field(..., description="'light', 'medium' or 'heavy'")
    storage_service_tier: str = Field(..., description="Azure NetApp Files level: 'Standard' or 'Premium'")
    commitment_term: Optional[str] = Field(None, description="'payg', '1year' or '3year' (default: 3year)")
    database_enabled: bool = Field(default=False, description="Include a managed SQL database")
    database_size: Optional[str] = Field(None, description="'small', 'medium' or 'large'")
    database_storage_gb: Optional[int] = Field(None, description="Database storage in GB")

    def to_demand(self) -> DemandInput:
        """
        Validate and convert to a DemandInput.

        Raises:
            InvalidDemandError: If any field is outside its allowed domain
        """
        return DemandInput.create(
            region=self.region,
            concurrent_users=self.concurrent_users,
            workload_intensity=self.workload_intensity,
            storage_service_tier=self.storage_service_tier,
            commitment_term=self.commitment_term,
            database_enabled=self.database_enabled,
            database_size=self.database_size,
            database_storage_gb=self.database_storage_gb,
        )


def price_not_found_detail(error: PriceNotFoundError) -> Dict[str, Any]:
    """Client-facing detail for a missing catalog price."""
    return {
        "message": f"{error}. Refresh prices and try again.",
        "missing_price": error.to_dict(),
    }


@router.post("/api/calculate")
async def calculate_estimate(demand_request: DemandRequest) -> Dict[str, Any]:
    """
    Estimate monthly and annual costs for a deployment.

    Args:
        demand_request: Request body with demand parameters

    Returns:
        JSON response with the itemized estimate

    Raises:
        HTTPException: 400 for invalid input, 404 when a required price is
                       missing from the catalog, 500 otherwise
    """
    try:
        try:
            demand = demand_request.to_demand()
        except InvalidDemandError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

        estimator = CostEstimator(get_price_catalog())
        try:
            result = await estimator.estimate(demand)
        except PriceNotFoundError as error:
            raise HTTPException(status_code=404, detail=price_not_found_detail(error)) from error

        return {
            "status": "ok",
            "estimate": result.to_dict(),
        }

    except HTTPException:
        # Re-raise HTTP exceptions as-is
        raise
    except Exception as error:
        logger.exception("Calculation error")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while estimating costs"
        ) from error
