"""
Shared pytest fixtures for estimator tests.
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Keep tests away from any on-disk catalog cache
os.environ.pop('CATALOG_CACHE_PATH', None)

import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient

from vdicost.domain.catalog_models import CatalogEntry, PricingModel
from vdicost.domain.demand_models import DemandInput
from vdicost.middleware.rate_limiter import RateLimiter
from vdicost.pricing.price_catalog import PriceCatalog
from vdicost.services.scenario_store import ScenarioStore


REGION = 'eastus'

# (sku, consumption hourly, 1-year total, 3-year total)
VM_PRICES = [
    ('Standard_D8as_v5', 0.344, 1800.0, 3600.0),
    ('Standard_D2as_v5', 0.086, 450.0, 900.0),
    ('Standard_D4as_v5', 0.172, 900.0, 1800.0),
]


def seed_region(catalog: PriceCatalog, region: str = REGION) -> PriceCatalog:
    """Populate every SKU the estimator needs for one region."""
    for sku, hourly, one_year, three_year in VM_PRICES:
        catalog.upsert(CatalogEntry(sku, region, None, PricingModel.CONSUMPTION, hourly, '1 Hour'))
        catalog.upsert(CatalogEntry(sku, region, '1 Year', PricingModel.RESERVATION, one_year, '1 Hour'))
        catalog.upsert(CatalogEntry(sku, region, '3 Years', PricingModel.RESERVATION, three_year, '1 Hour'))

    catalog.upsert(CatalogEntry('E10 LRS', region, None, PricingModel.CONSUMPTION, 9.60, '1/Month'))
    catalog.upsert(CatalogEntry('Standard Capacity', region, None, PricingModel.CONSUMPTION, 0.000202, '1 GiB/Hour'))
    catalog.upsert(CatalogEntry('Premium Capacity', region, None, PricingModel.CONSUMPTION, 0.000403, '1 GiB/Hour'))
    catalog.upsert(CatalogEntry('2 vCore', region, None, PricingModel.CONSUMPTION, 0.5, '1 Hour'))
    catalog.upsert(CatalogEntry('4 vCore', region, None, PricingModel.CONSUMPTION, 1.0, '1 Hour'))
    catalog.upsert(CatalogEntry('8 vCore', region, None, PricingModel.CONSUMPTION, 2.0, '1 Hour'))
    catalog.upsert(CatalogEntry(
        'General Purpose Data Stored', region, None, PricingModel.CONSUMPTION, 0.115, '1 GB/Month'
    ))
    return catalog


@pytest.fixture
def catalog():
    """Price catalog seeded for eastus."""
    return seed_region(PriceCatalog())


@pytest.fixture
def sample_demand():
    """Sample demand: 100 medium users, Standard storage, 3-year term."""
    return DemandInput.create(
        region='eastus',
        concurrent_users=100,
        workload_intensity='medium',
        storage_service_tier='Standard',
        commitment_term='3year',
    )


@pytest.fixture
def scenario_store():
    """Fresh in-memory scenario store."""
    return ScenarioStore()


@pytest.fixture
def client(catalog, scenario_store, monkeypatch):
    """FastAPI test client wired to the seeded catalog and a fresh store."""
    monkeypatch.setattr('vdicost.pricing.price_catalog._price_catalog', catalog)
    monkeypatch.setattr('vdicost.services.scenario_store._scenario_store', scenario_store)
    monkeypatch.setattr('vdicost.middleware.rate_limiter._rate_limiter', RateLimiter())
    from vdicost.main import app
    return TestClient(app)


@pytest.fixture
def mock_time(monkeypatch):
    """Clock for the scenario store that advances one second per call."""
    start = datetime(2026, 1, 1, 12, 0, 0)
    ticks = {'count': 0}

    def mock_utcnow():
        ticks['count'] += 1
        return start + timedelta(seconds=ticks['count'])

    monkeypatch.setattr('vdicost.services.scenario_store.datetime', type('MockDatetime', (), {
        'utcnow': staticmethod(mock_utcnow),
    }))

    return start
