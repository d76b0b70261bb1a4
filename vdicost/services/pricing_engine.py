"""
Pricing engine.

Resolves every SKU a sizing plan needs into a monthly unit price for the
requested region and commitment term, then turns prices and quantities into
ordered line items.

Catalog prices come in three shapes:
- Consumption, hourly ("1 Hour"): multiplied by hours per month (730)
- Consumption, monthly ("1/Month", "1 GB/Month"): used as-is
- Reservation: total for the whole term, spread over the term's months

A required SKU missing from the catalog fails the whole estimate; no
default price is ever substituted.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from vdicost.core.config import config
from vdicost.core.constants import (
    SESSION_HOST_SKU,
    SESSION_HOST_NAME,
    DOMAIN_CONTROLLER_SKU,
    DOMAIN_CONTROLLER_NAME,
    FARM_MANAGER_SKU,
    FARM_MANAGER_NAME,
    DISK_SKU,
    DISK_NAME,
    GIB_PER_TIB,
    STORAGE_CAPACITY_METERS,
    STORAGE_THROUGHPUT_MIBPS_PER_TIB,
    RESERVATION_TERMS,
    TERM_MONTHS,
    TERM_LABELS,
    LICENSE_SKU,
    LICENSE_NAME,
    USER_LICENSE_TIERS,
    USER_LICENSE_SKU,
    USER_LICENSE_NAME,
    DATABASE_STORAGE_SKU,
    DATABASE_RESERVATION_DISCOUNT,
)
from vdicost.domain.catalog_models import CatalogEntry, CatalogKey, PricingModel
from vdicost.domain.cost_models import LineItem
from vdicost.domain.demand_models import CommitmentTerm, DemandInput
from vdicost.pricing.price_catalog import CatalogReader
from vdicost.services.sizing import SizingPlan


logger = logging.getLogger(__name__)


class PriceNotFoundError(Exception):
    """Raised when a required SKU/region/term combination is not in the catalog."""

    def __init__(self, key: CatalogKey):
        self.key = key
        super().__init__(f"Price not found for {key.describe()}")

    def to_dict(self):
        return {
            "sku": self.key.sku_name,
            "region": self.key.region,
            "reservation_term": self.key.reservation_term,
            "pricing_model": self.key.pricing_model.value,
        }


def catalog_term(term: CommitmentTerm) -> Tuple[Optional[str], PricingModel]:
    """
    Catalog reservation term and pricing model for a commitment term.

    Returns:
        (None, Consumption) for pay-as-you-go, ('1 Year'|'3 Years', Reservation) otherwise
    """
    reservation_term = RESERVATION_TERMS[CommitmentTerm(term).value]
    if reservation_term is None:
        return None, PricingModel.CONSUMPTION
    return reservation_term, PricingModel.RESERVATION


def is_monthly_unit(unit_of_measure: Optional[str]) -> bool:
    return bool(unit_of_measure) and "month" in unit_of_measure.lower()


def consumption_monthly_price(entry: CatalogEntry, hours_per_month: float = config.HOURS_PER_MONTH) -> float:
    """
    Monthly price of a consumption entry.

    Entries quoted per month are returned unchanged; anything else is
    treated as hourly.
    """
    if is_monthly_unit(entry.unit_of_measure):
        return entry.unit_price
    return entry.unit_price * hours_per_month


def reservation_monthly_price(entry: CatalogEntry, term: CommitmentTerm) -> float:
    """Monthly share of a reservation's whole-term price."""
    return entry.unit_price / TERM_MONTHS[CommitmentTerm(term).value]


def normalize_monthly_price(
    entry: CatalogEntry,
    term: CommitmentTerm,
    hours_per_month: float = config.HOURS_PER_MONTH
) -> float:
    """
    Convert a catalog entry's unit price into a monthly price.

    Args:
        entry: Catalog entry
        term: Commitment term the entry was looked up for
        hours_per_month: Average hours per month

    Returns:
        Monthly unit price
    """
    if entry.pricing_model == PricingModel.RESERVATION:
        return reservation_monthly_price(entry, term)
    return consumption_monthly_price(entry, hours_per_month)


def storage_capacity_monthly_price(entry: CatalogEntry, hours_per_month: float = config.HOURS_PER_MONTH) -> float:
    """Per-TiB monthly price from a per-GiB-hour capacity price."""
    return entry.unit_price * GIB_PER_TIB * hours_per_month


def database_compute_monthly_price(
    entry: CatalogEntry,
    term: CommitmentTerm,
    hours_per_month: float = config.HOURS_PER_MONTH
) -> float:
    """
    Monthly database compute price.

    The catalog only carries consumption prices for SQL Database; reserved
    terms apply a fixed discount multiplier instead of a catalog reservation
    price. This is an approximation.
    """
    discount = DATABASE_RESERVATION_DISCOUNT[CommitmentTerm(term).value]
    return consumption_monthly_price(entry, hours_per_month) * discount


def user_license_rate(concurrent_users: int) -> float:
    """
    Per-user monthly rate for the tier band containing the user count.

    Falls back to the lowest tier's rate when no band matches.
    """
    for min_users, max_users, rate in USER_LICENSE_TIERS:
        if concurrent_users >= min_users and (max_users is None or concurrent_users <= max_users):
            return rate
    logger.warning("No license tier covers %d users; using lowest tier rate", concurrent_users)
    return USER_LICENSE_TIERS[0][2]


@dataclass(frozen=True)
class ResolvedPrices:
    """Monthly unit prices for every SKU in a sizing plan."""
    session_host: float
    domain_controller: float
    farm_manager: float
    disk: float
    storage_capacity: float
    database_compute: Optional[float] = None
    database_storage: Optional[float] = None


@dataclass
class PricedBreakdown:
    """Ordered line items plus the pricing assumptions behind them."""
    line_items: List[LineItem]
    assumptions: List[str] = field(default_factory=list)


class PricingEngine:
    """Prices a sizing plan against the catalog."""

    def __init__(
        self,
        catalog: CatalogReader,
        hours_per_month: float = config.HOURS_PER_MONTH,
        license_pack_price: Optional[float] = None
    ):
        """
        Initialize pricing engine.

        Args:
            catalog: Read access to the price catalog
            hours_per_month: Hours used to turn hourly prices into monthly prices
            license_pack_price: Monthly price per core-pack license (config default if None)
        """
        self.catalog = catalog
        self.hours_per_month = hours_per_month
        self.license_pack_price = (
            config.LICENSE_PACK_MONTHLY_PRICE if license_pack_price is None else license_pack_price
        )

    async def _require(
        self,
        sku_name: str,
        region: str,
        reservation_term: Optional[str],
        pricing_model: PricingModel
    ) -> CatalogEntry:
        entry = await self.catalog.lookup(sku_name, region, reservation_term, pricing_model)
        if entry is None:
            key = CatalogKey(sku_name, region, reservation_term, pricing_model)
            logger.warning("Missing catalog price: %s", key.describe())
            raise PriceNotFoundError(key)
        return entry

    async def resolve_prices(self, demand: DemandInput, plan: SizingPlan) -> ResolvedPrices:
        """
        Look up every SKU the plan needs, concurrently, and normalize to monthly.

        Raises:
            PriceNotFoundError: If any required SKU is missing
        """
        region = demand.region
        term = demand.commitment_term
        vm_term, vm_model = catalog_term(term)
        consumption = (None, PricingModel.CONSUMPTION)
        storage_meter = STORAGE_CAPACITY_METERS[demand.storage_service_tier.value]

        lookups = [
            self._require(SESSION_HOST_SKU, region, vm_term, vm_model),
            self._require(DOMAIN_CONTROLLER_SKU, region, vm_term, vm_model),
            self._require(FARM_MANAGER_SKU, region, vm_term, vm_model),
            self._require(DISK_SKU, region, *consumption),
            self._require(storage_meter, region, *consumption),
        ]
        if plan.database is not None:
            lookups.append(self._require(plan.database.sku, region, *consumption))
            lookups.append(self._require(DATABASE_STORAGE_SKU, region, *consumption))

        entries = await asyncio.gather(*lookups)

        session_host, domain_controller, farm_manager, disk, storage = entries[:5]
        database_compute = database_storage = None
        if plan.database is not None:
            database_compute = database_compute_monthly_price(entries[5], term, self.hours_per_month)
            database_storage = consumption_monthly_price(entries[6], self.hours_per_month)

        return ResolvedPrices(
            session_host=normalize_monthly_price(session_host, term, self.hours_per_month),
            domain_controller=normalize_monthly_price(domain_controller, term, self.hours_per_month),
            farm_manager=normalize_monthly_price(farm_manager, term, self.hours_per_month),
            disk=consumption_monthly_price(disk, self.hours_per_month),
            storage_capacity=storage_capacity_monthly_price(storage, self.hours_per_month),
            database_compute=database_compute,
            database_storage=database_storage,
        )

    def build_line_items(
        self,
        demand: DemandInput,
        plan: SizingPlan,
        prices: ResolvedPrices
    ) -> List[LineItem]:
        """
        Build line items in display order.

        Order: session hosts, their disks, domain controllers, their disks,
        farm managers, their disks, core-pack licenses, storage capacity,
        database compute and storage (when enabled), per-user license.
        """
        term = demand.commitment_term
        term_label = TERM_LABELS[term.value]
        tier = demand.storage_service_tier.value

        line_items = [
            LineItem(
                name=f"{SESSION_HOST_NAME} Session Host VM ({term_label}, Hybrid Benefit)",
                sku=SESSION_HOST_SKU,
                quantity=plan.vm_count,
                unit_price=prices.session_host,
            ),
            LineItem(
                name=f"{DISK_NAME} Managed Disk (session hosts)",
                sku=DISK_SKU,
                quantity=plan.vm_count,
                unit_price=prices.disk,
            ),
            LineItem(
                name=f"{DOMAIN_CONTROLLER_NAME} Domain Controller VM ({term_label})",
                sku=DOMAIN_CONTROLLER_SKU,
                quantity=plan.domain_controller_count,
                unit_price=prices.domain_controller,
            ),
            LineItem(
                name=f"{DISK_NAME} Managed Disk (domain controllers)",
                sku=DISK_SKU,
                quantity=plan.domain_controller_count,
                unit_price=prices.disk,
            ),
            LineItem(
                name=f"{FARM_MANAGER_NAME} Farm Manager VM ({term_label})",
                sku=FARM_MANAGER_SKU,
                quantity=plan.farm_manager_count,
                unit_price=prices.farm_manager,
            ),
            LineItem(
                name=f"{DISK_NAME} Managed Disk (farm managers)",
                sku=DISK_SKU,
                quantity=plan.farm_manager_count,
                unit_price=prices.disk,
            ),
            LineItem(
                name=LICENSE_NAME,
                sku=LICENSE_SKU,
                quantity=plan.license_units,
                unit_price=self.license_pack_price,
            ),
            LineItem(
                name=f"Azure NetApp Files {tier}",
                sku=f"ANF-{tier}",
                quantity=plan.storage_capacity_tib,
                unit_price=prices.storage_capacity,
            ),
        ]

        if plan.database is not None:
            compute_name = f"SQL Database General Purpose {plan.database.vcores} vCore"
            if term.is_reserved:
                compute_name += f" ({term_label}, estimated)"
            line_items.append(LineItem(
                name=compute_name,
                sku=plan.database.sku,
                quantity=1,
                unit_price=prices.database_compute,
            ))
            line_items.append(LineItem(
                name="SQL Database Storage (GB)",
                sku=DATABASE_STORAGE_SKU,
                quantity=plan.database.storage_gb,
                unit_price=prices.database_storage,
            ))

        line_items.append(LineItem(
            name=USER_LICENSE_NAME,
            sku=USER_LICENSE_SKU,
            quantity=demand.concurrent_users,
            unit_price=user_license_rate(demand.concurrent_users),
        ))

        return line_items

    def _assumptions(self, demand: DemandInput, plan: SizingPlan) -> List[str]:
        term = demand.commitment_term
        assumptions = [f"{self.hours_per_month:g} hours/month for hourly prices"]
        tier = demand.storage_service_tier.value
        assumptions.append(
            f"Azure NetApp Files {tier}: {plan.storage_capacity_tib} TiB at "
            f"{STORAGE_THROUGHPUT_MIBPS_PER_TIB[tier]} MiB/s per TiB"
        )
        if term.is_reserved:
            assumptions.append(
                f"Reserved VM prices spread over {TERM_MONTHS[term.value]} months"
            )
        if plan.database is not None and term.is_reserved:
            discount = DATABASE_RESERVATION_DISCOUNT[term.value]
            assumptions.append(
                f"Database reservation approximated as {discount:.0%} of pay-as-you-go price"
            )
        return assumptions

    async def price(self, demand: DemandInput, plan: SizingPlan) -> PricedBreakdown:
        """
        Price a sizing plan.

        Args:
            demand: Validated estimate request
            plan: Quantities from the sizing rules

        Returns:
            PricedBreakdown with ordered line items

        Raises:
            PriceNotFoundError: If any required SKU is missing from the catalog
        """
        prices = await self.resolve_prices(demand, plan)
        return PricedBreakdown(
            line_items=self.build_line_items(demand, plan, prices),
            assumptions=self._assumptions(demand, plan),
        )
