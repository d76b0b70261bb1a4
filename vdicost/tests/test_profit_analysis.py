"""
Tests for scenario profit analysis.
"""

import pytest

from vdicost.domain.scenario_models import ProfitInputs
from vdicost.services.profit_analysis import analyze_profit


def test_profit_figures():
    inputs = ProfitInputs(isv_charge_per_user=20.0, support_level='medium', support_hourly_rate=40.0)

    analysis = analyze_profit(inputs, 100, 1000.0)

    assert analysis.total_revenue == 2000.0
    assert analysis.support_hours == 25.0
    assert analysis.support_cost == 1000.0
    assert analysis.total_costs == 2000.0
    assert analysis.gross_profit == 0.0
    assert analysis.profit_margin_percent == 0.0


def test_margin_is_zero_without_revenue():
    analysis = analyze_profit(ProfitInputs(), 50, 800.0)

    assert analysis.total_revenue == 0.0
    assert analysis.gross_profit == -800.0
    assert analysis.profit_margin_percent == 0.0


def test_no_support_costs_nothing():
    inputs = ProfitInputs(isv_charge_per_user=10.0, support_level='none', support_hourly_rate=100.0)

    analysis = analyze_profit(inputs, 10, 50.0)

    assert analysis.support_cost == 0.0
    assert analysis.profit_margin_percent == pytest.approx(50.0)


def test_annual_figures_are_twelve_months():
    inputs = ProfitInputs(isv_charge_per_user=12.345, support_level='low', support_hourly_rate=33.3)

    data = analyze_profit(inputs, 77, 456.789).to_dict()

    for name, monthly in data['monthly'].items():
        assert data['annual'][name] == pytest.approx(monthly * 12, abs=0.07)


@pytest.mark.parametrize('kwargs', [
    {'support_level': 'premium'},
    {'isv_charge_per_user': -1.0},
    {'support_hourly_rate': -5.0},
])
def test_invalid_profit_inputs_rejected(kwargs):
    with pytest.raises(ValueError):
        ProfitInputs(**kwargs)
