"""
Estimate assembler.
Runs sizing and pricing for a demand input and packages the result.
"""
import logging
from typing import Optional

from vdicost.domain.cost_models import EstimateResult, SizingMetadata
from vdicost.domain.demand_models import DemandInput
from vdicost.pricing.price_catalog import CatalogReader
from vdicost.services.pricing_engine import PricedBreakdown, PricingEngine
from vdicost.services.sizing import SizingPlan, plan_deployment


logger = logging.getLogger(__name__)


def assemble_estimate(demand: DemandInput, plan: SizingPlan, breakdown: PricedBreakdown) -> EstimateResult:
    """Package priced line items and sizing metadata into an EstimateResult."""
    metadata = SizingMetadata(
        vm_count=plan.vm_count,
        users_per_vm=plan.users_per_vm,
        storage_capacity_tib=plan.storage_capacity_tib,
        domain_controller_count=plan.domain_controller_count,
        farm_manager_count=plan.farm_manager_count,
        license_units=plan.license_units,
    )
    return EstimateResult(
        line_items=list(breakdown.line_items),
        metadata=metadata,
        region=demand.region,
        commitment_term=demand.commitment_term.value,
        assumptions=list(breakdown.assumptions),
    )


class CostEstimator:
    """Service for estimating deployment costs from demand parameters."""

    def __init__(self, catalog: CatalogReader, engine: Optional[PricingEngine] = None):
        """
        Initialize cost estimator.

        Args:
            catalog: Read access to the price catalog
            engine: Pricing engine (one over `catalog` is created if None)
        """
        self.engine = engine or PricingEngine(catalog)

    async def estimate(self, demand: DemandInput) -> EstimateResult:
        """
        Compute the estimate for one demand input.

        Either returns a complete estimate or raises; never a partial result.

        Raises:
            InvalidDemandError: If the demand is outside the allowed domain
            PriceNotFoundError: If a required price is missing from the catalog
        """
        plan = plan_deployment(demand)
        breakdown = await self.engine.price(demand, plan)
        result = assemble_estimate(demand, plan, breakdown)
        logger.info(
            "Estimated %d users in %s (%s): %d VMs, $%.2f/month",
            demand.concurrent_users,
            demand.region,
            demand.commitment_term.value,
            plan.vm_count,
            result.total_monthly,
        )
        return result
