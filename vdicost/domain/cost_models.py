"""
Domain models for cost estimation.
Defines the structure of cost estimates and line items.
"""
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass(frozen=True)
class LineItem:
    """One priced, quantified row of the cost breakdown."""
    name: str
    sku: str
    quantity: float
    unit_price: float  # Monthly-normalized

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError(f"Quantity must not be negative for {self.sku} (got: {self.quantity})")
        if self.unit_price < 0:
            raise ValueError(f"Unit price must not be negative for {self.sku} (got: {self.unit_price})")

    @property
    def monthly_price(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "sku": self.sku,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "monthly_price": self.monthly_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        # monthly_price is derived, never read back
        return cls(
            name=data["name"],
            sku=data["sku"],
            quantity=data["quantity"],
            unit_price=data["unit_price"],
        )


@dataclass(frozen=True)
class SizingMetadata:
    """Resource quantities the estimate was built from."""
    vm_count: int
    users_per_vm: int
    storage_capacity_tib: int
    domain_controller_count: int = 0
    farm_manager_count: int = 0
    license_units: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vm_count": self.vm_count,
            "users_per_vm": self.users_per_vm,
            "storage_capacity_tib": self.storage_capacity_tib,
            "domain_controller_count": self.domain_controller_count,
            "farm_manager_count": self.farm_manager_count,
            "license_units": self.license_units,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SizingMetadata":
        return cls(
            vm_count=data["vm_count"],
            users_per_vm=data["users_per_vm"],
            storage_capacity_tib=data["storage_capacity_tib"],
            domain_controller_count=data.get("domain_controller_count", 0),
            farm_manager_count=data.get("farm_manager_count", 0),
            license_units=data.get("license_units", 0),
        )


@dataclass(frozen=True)
class EstimateResult:
    """
    Represents a complete cost estimate.

    Line item order is significant for display and export. Totals are
    derived from the line items and cannot drift from them.
    """
    line_items: List[LineItem]
    metadata: SizingMetadata
    region: Optional[str] = None
    commitment_term: Optional[str] = None
    currency: str = "USD"
    assumptions: List[str] = field(default_factory=list)

    @property
    def total_monthly(self) -> float:
        return sum(item.monthly_price for item in self.line_items)

    @property
    def total_annual(self) -> float:
        return self.total_monthly * 12

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "currency": self.currency,
            "region": self.region,
            "commitment_term": self.commitment_term,
            "line_items": [item.to_dict() for item in self.line_items],
            "total_monthly": self.total_monthly,
            "total_annual": self.total_annual,
            "metadata": self.metadata.to_dict(),
            "assumptions": list(self.assumptions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimateResult":
        """
        Rebuild an estimate from its to_dict() form.

        Stored totals are ignored; they are recomputed from the line items.
        """
        return cls(
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
            metadata=SizingMetadata.from_dict(data["metadata"]),
            region=data.get("region"),
            commitment_term=data.get("commitment_term"),
            currency=data.get("currency", "USD"),
            assumptions=list(data.get("assumptions", [])),
        )
