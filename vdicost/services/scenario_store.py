"""
Scenario store for saved estimates.

Stores named scenarios in-memory under server-assigned integer ids.
Concurrent edits to the same scenario are last-write-wins.
"""

import copy
import itertools
import logging
from typing import Optional, Dict, Any, List
from datetime import datetime

from vdicost.domain.cost_models import EstimateResult
from vdicost.domain.demand_models import DemandInput
from vdicost.domain.scenario_models import ProfitInputs, Scenario


logger = logging.getLogger(__name__)

# Fields a partial update may touch
UPDATABLE_FIELDS = ("name", "demand", "estimate", "profit_inputs")


class ScenarioStore:
    """
    In-memory scenario storage.

    Every read and write goes through a deep copy, so callers can never
    mutate a stored scenario in place.
    """

    def __init__(self):
        self._scenarios: Dict[int, Scenario] = {}
        self._ids = itertools.count(1)

    def create(
        self,
        name: str,
        demand: DemandInput,
        estimate: Optional[EstimateResult] = None,
        profit_inputs: Optional[ProfitInputs] = None
    ) -> Scenario:
        """
        Save a new scenario.

        Args:
            name: User-supplied scenario name
            demand: Demand input the estimate was computed from
            estimate: Already-computed estimate
            profit_inputs: Optional profit-analysis inputs

        Returns:
            The stored scenario with its assigned id
        """
        if not name or not name.strip():
            raise ValueError("Scenario name is required")

        now = datetime.utcnow()
        scenario = Scenario(
            id=next(self._ids),
            name=name.strip(),
            demand=demand,
            estimate=estimate,
            profit_inputs=profit_inputs,
            created_at=now,
            updated_at=now,
        )
        self._scenarios[scenario.id] = copy.deepcopy(scenario)
        logger.info("Created scenario %d (%s)", scenario.id, scenario.name)
        return copy.deepcopy(scenario)

    def get(self, scenario_id: int) -> Optional[Scenario]:
        """
        Retrieve a scenario by id.

        Returns:
            Scenario copy if found, None otherwise
        """
        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            return None
        return copy.deepcopy(scenario)

    def update(self, scenario_id: int, **fields: Any) -> Optional[Scenario]:
        """
        Apply a partial update and refresh updated_at.

        Args:
            scenario_id: Scenario identifier
            **fields: Any of name, demand, estimate, profit_inputs

        Returns:
            Updated scenario, or None if no scenario has this id
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update scenario fields: {', '.join(sorted(unknown))}")

        scenario = self._scenarios.get(scenario_id)
        if scenario is None:
            return None

        if not fields:
            return copy.deepcopy(scenario)

        updated = copy.deepcopy(scenario)
        for field_name, value in fields.items():
            if field_name == "name":
                if not value or not value.strip():
                    raise ValueError("Scenario name is required")
                value = value.strip()
            setattr(updated, field_name, copy.deepcopy(value))
        updated.updated_at = datetime.utcnow()

        self._scenarios[scenario_id] = updated
        return copy.deepcopy(updated)

    def delete(self, scenario_id: int) -> bool:
        """
        Delete a scenario.

        Returns:
            True if it existed, False otherwise
        """
        deleted = self._scenarios.pop(scenario_id, None) is not None
        if deleted:
            logger.info("Deleted scenario %d", scenario_id)
        return deleted

    def list(self) -> List[Scenario]:
        """All scenarios, most recently updated first."""
        scenarios = sorted(
            self._scenarios.values(),
            key=lambda scenario: (scenario.updated_at, scenario.id),
            reverse=True
        )
        return [copy.deepcopy(scenario) for scenario in scenarios]


# Global singleton instance
_scenario_store: Optional[ScenarioStore] = None


def get_scenario_store() -> ScenarioStore:
    """
    Get the global scenario store instance.

    Returns:
        ScenarioStore instance
    """
    global _scenario_store
    if _scenario_store is None:
        _scenario_store = ScenarioStore()
    return _scenario_store
