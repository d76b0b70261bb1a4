"""
Profit analysis for a priced scenario.
"""
from vdicost.core.constants import SUPPORT_HOURS_PER_USER
from vdicost.domain.scenario_models import ProfitAnalysis, ProfitInputs


def analyze_profit(
    profit_inputs: ProfitInputs,
    concurrent_users: int,
    total_monthly_cost: float
) -> ProfitAnalysis:
    """
    Monthly revenue, support cost and gross profit.

    Args:
        profit_inputs: Per-user charge, support level and support hourly rate
        concurrent_users: Users billed and supported
        total_monthly_cost: Infrastructure cost from the estimate

    Returns:
        ProfitAnalysis (margin is 0 when there is no revenue)
    """
    total_revenue = profit_inputs.isv_charge_per_user * concurrent_users
    support_hours = concurrent_users * SUPPORT_HOURS_PER_USER[profit_inputs.support_level]
    support_cost = support_hours * profit_inputs.support_hourly_rate
    total_costs = total_monthly_cost + support_cost
    gross_profit = total_revenue - total_costs
    margin = (gross_profit / total_revenue) * 100 if total_revenue > 0 else 0.0

    return ProfitAnalysis(
        total_revenue=total_revenue,
        infrastructure_cost=total_monthly_cost,
        support_hours=support_hours,
        support_cost=support_cost,
        total_costs=total_costs,
        gross_profit=gross_profit,
        profit_margin_percent=margin,
    )
