"""
Tests for the pricing engine.
"""

import asyncio
import pytest

from vdicost.core.constants import USER_LICENSE_TIERS
from vdicost.domain.catalog_models import CatalogEntry, PricingModel
from vdicost.domain.demand_models import CommitmentTerm, DemandInput
from vdicost.services.pricing_engine import (
    PriceNotFoundError,
    PricingEngine,
    catalog_term,
    consumption_monthly_price,
    database_compute_monthly_price,
    normalize_monthly_price,
    storage_capacity_monthly_price,
    user_license_rate,
)
from vdicost.services.sizing import plan_deployment


def _entry(price, model=PricingModel.CONSUMPTION, term=None, unit='1 Hour'):
    return CatalogEntry('sku', 'eastus', term, model, price, unit)


def test_consumption_price_is_hourly_times_730():
    entry = _entry(0.5)
    assert normalize_monthly_price(entry, CommitmentTerm.PAYG) == pytest.approx(365.0)


def test_monthly_consumption_price_used_as_is():
    entry = _entry(9.6, unit='1/Month')
    assert consumption_monthly_price(entry) == pytest.approx(9.6)


def test_consumption_without_unit_treated_as_hourly():
    assert consumption_monthly_price(_entry(1.0, unit=None)) == pytest.approx(730.0)


@pytest.mark.parametrize('term,reservation_term,months', [
    (CommitmentTerm.ONE_YEAR, '1 Year', 12),
    (CommitmentTerm.THREE_YEAR, '3 Years', 36),
])
def test_reservation_price_spread_over_term(term, reservation_term, months):
    entry = _entry(3600.0, PricingModel.RESERVATION, reservation_term)
    assert normalize_monthly_price(entry, term) == pytest.approx(3600.0 / months)


def test_storage_capacity_price_per_tib_month():
    entry = _entry(0.0002, unit='1 GiB/Hour')
    assert storage_capacity_monthly_price(entry) == pytest.approx(0.0002 * 1024 * 730)


@pytest.mark.parametrize('term,multiplier', [
    (CommitmentTerm.PAYG, 1.0),
    (CommitmentTerm.ONE_YEAR, 0.67),
    (CommitmentTerm.THREE_YEAR, 0.45),
])
def test_database_reservation_is_approximated(term, multiplier):
    entry = _entry(1.0)
    assert database_compute_monthly_price(entry, term) == pytest.approx(730.0 * multiplier)


def test_catalog_term_mapping():
    assert catalog_term(CommitmentTerm.PAYG) == (None, PricingModel.CONSUMPTION)
    assert catalog_term(CommitmentTerm.ONE_YEAR) == ('1 Year', PricingModel.RESERVATION)
    assert catalog_term(CommitmentTerm.THREE_YEAR) == ('3 Years', PricingModel.RESERVATION)


def test_tiered_license_example():
    """150 users fall in the [100, 499] band at 3.85 per user."""
    assert user_license_rate(150) == 3.85
    assert user_license_rate(150) * 150 == pytest.approx(577.50)


def test_license_tiers_cover_every_user_count():
    """Bands are sorted, contiguous from 1 and open-ended, so the fallback is unreachable."""
    assert USER_LICENSE_TIERS[0][0] == 1
    for (_, upper, _), (lower, _, _) in zip(USER_LICENSE_TIERS, USER_LICENSE_TIERS[1:]):
        assert upper is not None
        assert lower == upper + 1
    assert USER_LICENSE_TIERS[-1][1] is None


@pytest.mark.parametrize('users,rate', [(1, 4.25), (99, 4.25), (100, 3.85), (499, 3.85), (500, 3.45), (1000, 2.95), (25000, 2.95)])
def test_license_tier_boundaries(users, rate):
    assert user_license_rate(users) == rate


def test_license_fallback_uses_lowest_tier():
    assert user_license_rate(0) == USER_LICENSE_TIERS[0][2]


@pytest.mark.asyncio
async def test_line_items_in_display_order(catalog, sample_demand):
    engine = PricingEngine(catalog, license_pack_price=6.0)
    breakdown = await engine.price(sample_demand, plan_deployment(sample_demand))

    skus = [item.sku for item in breakdown.line_items]
    assert skus == [
        'Standard_D8as_v5', 'E10 LRS',
        'Standard_D2as_v5', 'E10 LRS',
        'Standard_D4as_v5', 'E10 LRS',
        'WS-2CORE-PACK',
        'ANF-Standard',
        'RAS-USER',
    ]


@pytest.mark.asyncio
async def test_line_items_with_database(catalog):
    demand = DemandInput.create(
        'eastus', 100, 'medium', 'Premium', '1year',
        database_enabled=True, database_size='large', database_storage_gb=100,
    )
    engine = PricingEngine(catalog, license_pack_price=6.0)
    breakdown = await engine.price(demand, plan_deployment(demand))
    items = breakdown.line_items

    assert [item.sku for item in items[-3:]] == ['8 vCore', 'General Purpose Data Stored', 'RAS-USER']
    assert items[-3].unit_price == pytest.approx(2.0 * 730 * 0.67)
    assert items[-2].quantity == 100
    assert items[-2].unit_price == pytest.approx(0.115)
    assert items[7].sku == 'ANF-Premium'
    assert any('approximated' in assumption for assumption in breakdown.assumptions)


@pytest.mark.asyncio
async def test_prices_for_three_year_term(catalog, sample_demand):
    engine = PricingEngine(catalog, license_pack_price=6.0)
    items = (await engine.price(sample_demand, plan_deployment(sample_demand))).line_items

    session_hosts, session_disks, dcs, dc_disks, fms, fm_disks, licenses, storage, user_licenses = items
    assert session_hosts.quantity == 4
    assert session_hosts.unit_price == pytest.approx(3600.0 / 36)
    assert session_disks.quantity == 4
    assert session_disks.unit_price == pytest.approx(9.60)
    assert dcs.unit_price == pytest.approx(900.0 / 36)
    assert fms.unit_price == pytest.approx(1800.0 / 36)
    assert licenses.quantity == 22
    assert licenses.unit_price == 6.0
    assert storage.quantity == 1
    assert storage.unit_price == pytest.approx(0.000202 * 1024 * 730)
    assert user_licenses.monthly_price == pytest.approx(385.0)


@pytest.mark.asyncio
async def test_pay_as_you_go_uses_consumption_prices(catalog):
    demand = DemandInput.create('eastus', 100, 'medium', 'Standard', 'payg')
    engine = PricingEngine(catalog)
    items = (await engine.price(demand, plan_deployment(demand))).line_items

    assert items[0].unit_price == pytest.approx(0.344 * 730)


@pytest.mark.asyncio
async def test_every_line_item_monthly_price_is_quantity_times_unit(catalog):
    demand = DemandInput.create(
        'eastus', 777, 'heavy', 'Premium', '3year',
        database_enabled=True, database_size='small',
    )
    items = (await PricingEngine(catalog).price(demand, plan_deployment(demand))).line_items

    for item in items:
        assert item.monthly_price == pytest.approx(item.quantity * item.unit_price, abs=1e-6)


@pytest.mark.asyncio
async def test_missing_vm_price_fails_fast(catalog):
    demand = DemandInput.create('westus', 100, 'medium', 'Standard', '3year')
    engine = PricingEngine(catalog)

    with pytest.raises(PriceNotFoundError) as exc_info:
        await engine.price(demand, plan_deployment(demand))

    assert exc_info.value.key.region == 'westus'
    assert exc_info.value.to_dict()['region'] == 'westus'


@pytest.mark.asyncio
async def test_missing_storage_tier_price_names_the_meter(catalog):
    catalog._entries = {
        key: entry for key, entry in catalog._entries.items() if key.sku_name != 'Premium Capacity'
    }
    demand = DemandInput.create('eastus', 100, 'medium', 'Premium', '3year')

    with pytest.raises(PriceNotFoundError) as exc_info:
        await PricingEngine(catalog).price(demand, plan_deployment(demand))

    assert exc_info.value.key.sku_name == 'Premium Capacity'
    assert exc_info.value.key.pricing_model == PricingModel.CONSUMPTION
    assert 'Premium Capacity' in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_reservation_term_is_not_substituted(catalog):
    """A 1-year lookup never falls back to the 3-year or consumption price."""
    catalog._entries = {
        key: entry for key, entry in catalog._entries.items()
        if not (key.sku_name == 'Standard_D2as_v5' and key.reservation_term == '1 Year')
    }
    demand = DemandInput.create('eastus', 100, 'medium', 'Standard', '1year')

    with pytest.raises(PriceNotFoundError) as exc_info:
        await PricingEngine(catalog).price(demand, plan_deployment(demand))

    assert exc_info.value.key.reservation_term == '1 Year'


class SlowCatalog:
    """Catalog wrapper that records how many lookups run at once."""

    def __init__(self, inner):
        self.inner = inner
        self.in_flight = 0
        self.max_in_flight = 0

    async def lookup(self, sku_name, region, reservation_term, pricing_model):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return await self.inner.lookup(sku_name, region, reservation_term, pricing_model)


@pytest.mark.asyncio
async def test_lookups_fan_out_concurrently(catalog, sample_demand):
    slow_catalog = SlowCatalog(catalog)
    await PricingEngine(slow_catalog).price(sample_demand, plan_deployment(sample_demand))

    assert slow_catalog.max_in_flight == 5
