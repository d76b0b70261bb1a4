"""
CSV export of saved scenarios.
"""
import csv
import io

from vdicost.core.constants import REGION_LABELS
from vdicost.domain.demand_models import DatabaseEnabled
from vdicost.domain.scenario_models import Scenario


class ExportError(Exception):
    """Raised when a scenario cannot be exported."""
    pass


def _describe_database(scenario: Scenario) -> str:
    database = scenario.demand.database
    if isinstance(database, DatabaseEnabled):
        return f"{database.size.value} ({database.storage_gb} GB)"
    return "none"


def render_scenario_csv(scenario: Scenario) -> str:
    """
    Render a scenario's estimate as CSV text.

    Layout: scenario header block, calculated resources block, one row per
    line item in estimate order, then monthly and annual totals.

    Args:
        scenario: Scenario with a computed estimate

    Returns:
        CSV document as a string

    Raises:
        ExportError: If the scenario has no estimate
    """
    estimate = scenario.estimate
    if estimate is None:
        raise ExportError("Scenario has no calculation result")

    demand = scenario.demand
    metadata = estimate.metadata
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    region = REGION_LABELS.get(demand.region, demand.region)
    writer.writerow([f"Scenario: {scenario.name}"])
    writer.writerow([f"Region: {region}"])
    writer.writerow([f"Concurrent Users: {demand.concurrent_users}"])
    writer.writerow([f"Workload Type: {demand.workload_intensity.value}"])
    writer.writerow([f"ANF Service Level: {demand.storage_service_tier.value}"])
    writer.writerow([f"Commitment Term: {demand.commitment_term.value}"])
    writer.writerow([f"Database: {_describe_database(scenario)}"])
    writer.writerow([])

    writer.writerow(["Calculated Resources"])
    writer.writerow([f"VMs Required: {metadata.vm_count}"])
    writer.writerow([f"Users Per VM: {metadata.users_per_vm}"])
    writer.writerow([f"ANF Capacity (TiB): {metadata.storage_capacity_tib}"])
    writer.writerow([f"License Units: {metadata.license_units}"])
    writer.writerow([])

    writer.writerow(["Item", "SKU", "Quantity", "Unit Price ($/month)", "Monthly Total ($)"])
    for item in estimate.line_items:
        writer.writerow([
            item.name,
            item.sku,
            f"{item.quantity:g}",
            f"{item.unit_price:.2f}",
            f"{item.monthly_price:.2f}",
        ])

    writer.writerow([])
    writer.writerow(["Total Monthly", f"${estimate.total_monthly:.2f}"])
    writer.writerow(["Total Annual", f"${estimate.total_annual:.2f}"])

    return buffer.getvalue()
