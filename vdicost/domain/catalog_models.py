"""
Domain models for the price catalog.
A catalog entry is one priced SKU for a region, commitment term and pricing model.
"""
from typing import Dict, Any, NamedTuple, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class PricingModel(str, Enum):
    """How a catalog price is expressed."""
    CONSUMPTION = "Consumption"  # Per unit of measure (usually per hour)
    RESERVATION = "Reservation"  # Total price for the whole reservation term


class CatalogKey(NamedTuple):
    """Identity of a catalog entry."""
    sku_name: str
    region: str
    reservation_term: Optional[str]
    pricing_model: PricingModel

    def describe(self) -> str:
        term = self.reservation_term or "no term"
        return f"{self.sku_name} in {self.region} ({term}, {self.pricing_model.value})"


@dataclass(frozen=True)
class CatalogEntry:
    """Represents a single priced SKU."""
    sku_name: str
    region: str
    reservation_term: Optional[str]
    pricing_model: PricingModel
    unit_price: float
    unit_of_measure: Optional[str] = None
    service_name: Optional[str] = None
    product_name: Optional[str] = None
    meter_name: Optional[str] = None
    fetched_at: Optional[datetime] = None

    def __post_init__(self):
        if self.unit_price < 0:
            raise ValueError(f"Unit price must not be negative (got: {self.unit_price})")

    @property
    def key(self) -> CatalogKey:
        return CatalogKey(self.sku_name, self.region, self.reservation_term, self.pricing_model)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "sku_name": self.sku_name,
            "region": self.region,
            "reservation_term": self.reservation_term,
            "pricing_model": self.pricing_model.value,
            "unit_price": self.unit_price,
            "unit_of_measure": self.unit_of_measure,
            "service_name": self.service_name,
            "product_name": self.product_name,
            "meter_name": self.meter_name,
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogEntry":
        fetched_at = data.get("fetched_at")
        return cls(
            sku_name=data["sku_name"],
            region=data["region"],
            reservation_term=data.get("reservation_term"),
            pricing_model=PricingModel(data["pricing_model"]),
            unit_price=float(data["unit_price"]),
            unit_of_measure=data.get("unit_of_measure"),
            service_name=data.get("service_name"),
            product_name=data.get("product_name"),
            meter_name=data.get("meter_name"),
            fetched_at=datetime.fromisoformat(fetched_at) if fetched_at else None,
        )
