"""
Sizing rules.
Pure functions that turn demand parameters into resource quantities.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from vdicost.core.config import config
from vdicost.core.constants import (
    SESSION_HOST_VCPUS,
    DOMAIN_CONTROLLER_VCPUS,
    DOMAIN_CONTROLLER_COUNT,
    FARM_MANAGER_VCPUS,
    FARM_MANAGER_COUNT,
    VCPU_PER_USER,
    PROFILE_SIZE_GB_PER_USER,
    MIN_POOL_SIZE_TIB,
    GIB_PER_TIB,
    LICENSE_CORE_PACK,
    DATABASE_VCORES,
    database_sku,
)
from vdicost.domain.demand_models import (
    DemandInput,
    DatabaseEnabled,
    InvalidDemandError,
    WorkloadIntensity,
)


@dataclass(frozen=True)
class DatabaseSizing:
    """Catalog SKU and storage for the managed database."""
    sku: str
    vcores: int
    storage_gb: int


@dataclass(frozen=True)
class SizingPlan:
    """All quantities needed to price a deployment."""
    vm_count: int
    users_per_vm: int
    storage_capacity_tib: int
    domain_controller_count: int
    farm_manager_count: int
    license_units: int
    database: Optional[DatabaseSizing] = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_users(concurrent_users: int) -> None:
    if concurrent_users < config.MIN_CONCURRENT_USERS:
        raise InvalidDemandError(
            f"Invalid concurrent users: must be at least {config.MIN_CONCURRENT_USERS}"
        )


def session_host_count(concurrent_users: int, intensity: WorkloadIntensity) -> int:
    """
    Number of session-host VMs for the requested users.

    vm_count = ceil(users * vCPU per user / vCPUs per VM)
    """
    _check_users(concurrent_users)
    # Rounded so that 0.15 * 160 lands on 24 and not 24.000000000000004
    vcpus_needed = round(concurrent_users * VCPU_PER_USER[WorkloadIntensity(intensity).value], 9)
    return math.ceil(vcpus_needed / SESSION_HOST_VCPUS)


def users_per_vm(concurrent_users: int, vm_count: int) -> int:
    if vm_count <= 0:
        return 0
    return _round_half_up(concurrent_users / vm_count)


def storage_capacity_tib(concurrent_users: int) -> int:
    """
    Profile storage pool size in whole TiB, never below the minimum pool size.
    """
    _check_users(concurrent_users)
    profile_tib = concurrent_users * PROFILE_SIZE_GB_PER_USER / GIB_PER_TIB
    return math.ceil(max(MIN_POOL_SIZE_TIB, profile_tib))


def license_units_per_instance(vcpus: int) -> int:
    return max(1, math.ceil(vcpus / LICENSE_CORE_PACK))


def total_license_units(vm_classes: Iterable[Tuple[int, int]]) -> int:
    """
    Core-pack license units across VM classes.

    Args:
        vm_classes: (instance count, vCPUs per instance) pairs

    Returns:
        Total number of license packs
    """
    return sum(count * license_units_per_instance(vcpus) for count, vcpus in vm_classes)


def size_database(database) -> Optional[DatabaseSizing]:
    if not isinstance(database, DatabaseEnabled):
        return None
    return DatabaseSizing(
        sku=database_sku(database.size.value),
        vcores=DATABASE_VCORES[database.size.value],
        storage_gb=database.storage_gb,
    )


def plan_deployment(demand: DemandInput) -> SizingPlan:
    """
    Derive every resource quantity for a demand input.

    Args:
        demand: Validated estimate request

    Returns:
        SizingPlan with VM, storage, license and database quantities

    Raises:
        InvalidDemandError: If the user count is below the configured floor
    """
    vm_count = session_host_count(demand.concurrent_users, demand.workload_intensity)
    license_units = total_license_units([
        (vm_count, SESSION_HOST_VCPUS),
        (DOMAIN_CONTROLLER_COUNT, DOMAIN_CONTROLLER_VCPUS),
        (FARM_MANAGER_COUNT, FARM_MANAGER_VCPUS),
    ])

    return SizingPlan(
        vm_count=vm_count,
        users_per_vm=users_per_vm(demand.concurrent_users, vm_count),
        storage_capacity_tib=storage_capacity_tib(demand.concurrent_users),
        domain_controller_count=DOMAIN_CONTROLLER_COUNT,
        farm_manager_count=FARM_MANAGER_COUNT,
        license_units=license_units,
        database=size_database(demand.database),
    )
