"""
API routes for saved scenarios.
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
import logging

from vdicost.api.estimate import DemandRequest, price_not_found_detail
from vdicost.domain.cost_models import EstimateResult
from vdicost.domain.demand_models import InvalidDemandError
from vdicost.domain.scenario_models import ProfitInputs, Scenario
from vdicost.pricing.price_catalog import get_price_catalog
from vdicost.services.estimate_assembler import CostEstimator
from vdicost.services.export import ExportError, render_scenario_csv
from vdicost.services.pricing_engine import PriceNotFoundError
from vdicost.services.profit_analysis import analyze_profit
from vdicost.services.scenario_store import get_scenario_store


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/scenarios", tags=["scenarios"])


class ProfitInputsModel(BaseModel):
    """Profit-analysis inputs stored with a scenario."""
    isv_charge_per_user: float = Field(default=0.0, description="Monthly charge per user")
    support_level: str = Field(default="low", description="'none', 'low', 'medium' or 'high'")
    support_hourly_rate: float = Field(default=0.0, description="Support cost per hour")

    def to_domain(self) -> ProfitInputs:
        return ProfitInputs(
            isv_charge_per_user=self.isv_charge_per_user,
            support_level=self.support_level,
            support_hourly_rate=self.support_hourly_rate,
        )


class ScenarioCreateRequest(BaseModel):
    """Request model for saving a scenario."""
    name: str = Field(..., description="Scenario name")
    demand: DemandRequest = Field(..., description="Demand parameters the estimate was computed from")
    estimate: Optional[Dict[str, Any]] = Field(None, description="Estimate returned by /api/calculate")
    profit_inputs: Optional[ProfitInputsModel] = Field(None, description="Optional profit-analysis inputs")


class ScenarioUpdateRequest(BaseModel):
    """Request model for a partial scenario update."""
    name: Optional[str] = Field(None, description="New scenario name")
    demand: Optional[DemandRequest] = Field(None, description="Replacement demand parameters")
    estimate: Optional[Dict[str, Any]] = Field(None, description="Replacement estimate")
    profit_inputs: Optional[ProfitInputsModel] = Field(None, description="Replacement profit inputs")
    recalculate: bool = Field(default=False, description="Recompute the estimate from the (updated) demand")


def _parse_estimate(data: Dict[str, Any]) -> EstimateResult:
    try:
        return EstimateResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as error:
        raise HTTPException(status_code=400, detail=f"Invalid estimate: {error}") from error


def _get_or_404(scenario_id: int) -> Scenario:
    scenario = get_scenario_store().get(scenario_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return scenario


@router.get("")
async def list_scenarios() -> Dict[str, Any]:
    """List scenarios, most recently updated first."""
    try:
        scenarios = get_scenario_store().list()
    except Exception as error:
        logger.exception("Error fetching scenarios")
        raise HTTPException(status_code=500, detail="Failed to fetch scenarios") from error
    return {"scenarios": [scenario.to_dict() for scenario in scenarios]}


@router.post("", status_code=201)
async def create_scenario(create_request: ScenarioCreateRequest) -> Dict[str, Any]:
    """
    Save a named scenario.

    Raises:
        HTTPException: 400 for invalid name, demand, estimate or profit inputs
    """
    try:
        try:
            demand = create_request.demand.to_demand()
            profit_inputs = create_request.profit_inputs.to_domain() if create_request.profit_inputs else None
        except (InvalidDemandError, ValueError) as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

        estimate = _parse_estimate(create_request.estimate) if create_request.estimate is not None else None

        try:
            scenario = get_scenario_store().create(
                name=create_request.name,
                demand=demand,
                estimate=estimate,
                profit_inputs=profit_inputs,
            )
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

        return {"scenario": scenario.to_dict()}

    except HTTPException:
        raise
    except Exception as error:
        logger.exception("Error creating scenario")
        raise HTTPException(status_code=500, detail="Failed to create scenario") from error


@router.get("/{scenario_id}")
async def get_scenario(scenario_id: int) -> Dict[str, Any]:
    """Retrieve a scenario by id."""
    return {"scenario": _get_or_404(scenario_id).to_dict()}


@router.put("/{scenario_id}")
async def update_scenario(scenario_id: int, update_request: ScenarioUpdateRequest) -> Dict[str, Any]:
    """
    Update a scenario.

    With `recalculate`, the estimate is recomputed from the merged demand
    and saved together with it.
    """
    try:
        existing = _get_or_404(scenario_id)
        fields: Dict[str, Any] = {}

        try:
            if update_request.name is not None:
                fields["name"] = update_request.name
            if update_request.demand is not None:
                fields["demand"] = update_request.demand.to_demand()
            if update_request.profit_inputs is not None:
                fields["profit_inputs"] = update_request.profit_inputs.to_domain()
        except (InvalidDemandError, ValueError) as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

        if update_request.recalculate:
            demand = fields.get("demand", existing.demand)
            try:
                fields["estimate"] = await CostEstimator(get_price_catalog()).estimate(demand)
            except PriceNotFoundError as error:
                raise HTTPException(status_code=404, detail=price_not_found_detail(error)) from error
        elif update_request.estimate is not None:
            fields["estimate"] = _parse_estimate(update_request.estimate)

        try:
            scenario = get_scenario_store().update(scenario_id, **fields)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if scenario is None:
            raise HTTPException(status_code=404, detail="Scenario not found")

        return {"scenario": scenario.to_dict()}

    except HTTPException:
        raise
    except Exception as error:
        logger.exception("Error updating scenario")
        raise HTTPException(status_code=500, detail="Failed to update scenario") from error


@router.delete("/{scenario_id}")
async def delete_scenario(scenario_id: int) -> Dict[str, Any]:
    """Delete a scenario."""
    if not get_scenario_store().delete(scenario_id):
        raise HTTPException(status_code=404, detail="Scenario not found")
    return {"success": True}


@router.get("/{scenario_id}/export")
async def export_scenario(scenario_id: int) -> Response:
    """Download a scenario's estimate as CSV."""
    scenario = _get_or_404(scenario_id)
    try:
        csv_text = render_scenario_csv(scenario)
    except ExportError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error

    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="scenario-{scenario_id}.csv"'},
    )


@router.get("/{scenario_id}/profit")
async def scenario_profit(scenario_id: int) -> Dict[str, Any]:
    """Profit analysis for a scenario with a computed estimate."""
    scenario = _get_or_404(scenario_id)
    if scenario.estimate is None:
        raise HTTPException(status_code=400, detail="Scenario has no calculation result")

    analysis = analyze_profit(
        scenario.profit_inputs or ProfitInputs(),
        scenario.demand.concurrent_users,
        scenario.estimate.total_monthly,
    )
    return {"scenario_id": scenario_id, "profit": analysis.to_dict()}
