"""
Domain models for saved scenarios and profit analysis.
Defines persisted scenario snapshots and the profit figures derived from them.
"""
from typing import Dict, Any, Optional
from dataclasses import dataclass
from datetime import datetime

from vdicost.domain.cost_models import EstimateResult
from vdicost.domain.demand_models import DemandInput


SUPPORT_LEVELS = ("none", "low", "medium", "high")


@dataclass(frozen=True)
class ProfitInputs:
    """Commercial inputs for profit analysis of a scenario."""
    isv_charge_per_user: float = 0.0
    support_level: str = "low"  # "none" | "low" | "medium" | "high"
    support_hourly_rate: float = 0.0

    def __post_init__(self):
        if self.support_level not in SUPPORT_LEVELS:
            raise ValueError(f"Invalid support level: {self.support_level!r}")
        if self.isv_charge_per_user < 0 or self.support_hourly_rate < 0:
            raise ValueError("Charges and rates must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isv_charge_per_user": self.isv_charge_per_user,
            "support_level": self.support_level,
            "support_hourly_rate": self.support_hourly_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfitInputs":
        return cls(
            isv_charge_per_user=float(data.get("isv_charge_per_user", 0.0)),
            support_level=data.get("support_level", "low"),
            support_hourly_rate=float(data.get("support_hourly_rate", 0.0)),
        )


@dataclass
class Scenario:
    """A named, persisted snapshot of demand inputs and their estimate."""
    id: int
    name: str
    demand: DemandInput
    estimate: Optional[EstimateResult]
    profit_inputs: Optional[ProfitInputs]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "demand": self.demand.to_dict(),
            "estimate": self.estimate.to_dict() if self.estimate else None,
            "profit_inputs": self.profit_inputs.to_dict() if self.profit_inputs else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ProfitAnalysis:
    """Monthly revenue, cost and profit for a scenario."""
    total_revenue: float
    infrastructure_cost: float
    support_hours: float
    support_cost: float
    total_costs: float
    gross_profit: float
    profit_margin_percent: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        monthly = {
            "total_revenue": self.total_revenue,
            "infrastructure_cost": self.infrastructure_cost,
            "support_cost": self.support_cost,
            "total_costs": self.total_costs,
            "gross_profit": self.gross_profit,
        }
        return {
            "monthly": {name: round(value, 2) for name, value in monthly.items()},
            "annual": {name: round(value * 12, 2) for name, value in monthly.items()},
            "support_hours": round(self.support_hours, 1),
            "profit_margin_percent": round(self.profit_margin_percent, 1),
        }
