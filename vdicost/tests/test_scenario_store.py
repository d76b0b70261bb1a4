"""
Tests for the in-memory scenario store.
"""

import asyncio
import pytest

from vdicost.domain.demand_models import DemandInput
from vdicost.domain.scenario_models import ProfitInputs
from vdicost.services.estimate_assembler import CostEstimator


@pytest.fixture
def estimate(catalog, sample_demand):
    return asyncio.run(CostEstimator(catalog).estimate(sample_demand))


def test_create_assigns_increasing_ids(scenario_store, sample_demand):
    first = scenario_store.create('First', sample_demand)
    second = scenario_store.create('Second', sample_demand)

    assert (first.id, second.id) == (1, 2)
    assert first.created_at == first.updated_at


def test_create_requires_name(scenario_store, sample_demand):
    with pytest.raises(ValueError):
        scenario_store.create('   ', sample_demand)


def test_saved_estimate_reads_back_unchanged(scenario_store, sample_demand, estimate):
    created = scenario_store.create('Pilot', sample_demand, estimate=estimate)

    loaded = scenario_store.get(created.id)

    assert loaded.estimate == estimate
    assert loaded.demand == sample_demand
    assert [item.sku for item in loaded.estimate.line_items] == [item.sku for item in estimate.line_items]


def test_get_missing_returns_none(scenario_store):
    assert scenario_store.get(999) is None


def test_returned_scenarios_are_copies(scenario_store, sample_demand, estimate):
    created = scenario_store.create('Pilot', sample_demand, estimate=estimate)
    created.name = 'Tampered'
    created.estimate.line_items.clear()

    loaded = scenario_store.get(created.id)

    assert loaded.name == 'Pilot'
    assert len(loaded.estimate.line_items) == len(estimate.line_items)


def test_update_refreshes_updated_at(scenario_store, sample_demand, mock_time):
    created = scenario_store.create('Pilot', sample_demand)

    updated = scenario_store.update(created.id, name='Production')

    assert updated.name == 'Production'
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at


def test_update_replaces_demand_and_profit_inputs(scenario_store, sample_demand):
    created = scenario_store.create('Pilot', sample_demand)
    new_demand = DemandInput.create('eastus', 400, 'heavy', 'Premium', 'payg')

    updated = scenario_store.update(
        created.id, demand=new_demand, profit_inputs=ProfitInputs(isv_charge_per_user=30.0)
    )

    assert updated.demand == new_demand
    assert updated.profit_inputs.isv_charge_per_user == 30.0


def test_update_rejects_unknown_fields(scenario_store, sample_demand):
    created = scenario_store.create('Pilot', sample_demand)

    with pytest.raises(ValueError):
        scenario_store.update(created.id, id=42)
    with pytest.raises(ValueError):
        scenario_store.update(created.id, name='')


def test_update_missing_returns_none(scenario_store):
    assert scenario_store.update(999, name='Nope') is None


def test_list_orders_by_most_recent_update(scenario_store, sample_demand, mock_time):
    first = scenario_store.create('First', sample_demand)
    second = scenario_store.create('Second', sample_demand)
    third = scenario_store.create('Third', sample_demand)
    scenario_store.update(first.id, name='First (edited)')

    names = [scenario.name for scenario in scenario_store.list()]

    assert names == ['First (edited)', 'Third', 'Second']
    assert third.id == 3


def test_delete(scenario_store, sample_demand):
    created = scenario_store.create('Pilot', sample_demand)

    assert scenario_store.delete(created.id) is True
    assert scenario_store.get(created.id) is None
    assert scenario_store.delete(created.id) is False


def test_ids_not_reused_after_delete(scenario_store, sample_demand):
    first = scenario_store.create('First', sample_demand)
    scenario_store.delete(first.id)

    assert scenario_store.create('Second', sample_demand).id == 2
