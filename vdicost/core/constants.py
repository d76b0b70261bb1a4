"""
Deployment constants for the virtual-desktop reference architecture.
Machine types, sizing ratios and fixed price tables used by the estimator.
"""
from typing import Dict, List, Optional, Tuple


# Session hosts
SESSION_HOST_SKU = "Standard_D8as_v5"
SESSION_HOST_VCPUS = 8
SESSION_HOST_NAME = "D8as v5"

# Domain controllers (always provisioned)
DOMAIN_CONTROLLER_SKU = "Standard_D2as_v5"
DOMAIN_CONTROLLER_VCPUS = 2
DOMAIN_CONTROLLER_NAME = "D2as v5"
DOMAIN_CONTROLLER_COUNT = 2

# Farm managers / connection brokers (always provisioned)
FARM_MANAGER_SKU = "Standard_D4as_v5"
FARM_MANAGER_VCPUS = 4
FARM_MANAGER_NAME = "D4as v5"
FARM_MANAGER_COUNT = 2

# OS disk attached to every VM
DISK_SKU = "E10 LRS"
DISK_METER_NAME = "E10 LRS Disk"
DISK_NAME = "E10 Standard SSD"

# vCPU per user based on workload intensity
VCPU_PER_USER: Dict[str, float] = {
    "light": 0.15,   # ~53 users per D8as_v5
    "medium": 0.25,  # 32 users per D8as_v5
    "heavy": 0.5,    # 16 users per D8as_v5
}

# Azure NetApp Files profile storage
PROFILE_SIZE_GB_PER_USER = 5
MIN_POOL_SIZE_TIB = 1
GIB_PER_TIB = 1024
STORAGE_CAPACITY_METERS: Dict[str, str] = {
    "Standard": "Standard Capacity",
    "Premium": "Premium Capacity",
}
STORAGE_THROUGHPUT_MIBPS_PER_TIB: Dict[str, int] = {
    "Standard": 16,
    "Premium": 64,
}

# Commitment terms: request value -> (catalog reservation term, months in term)
RESERVATION_TERMS: Dict[str, Optional[str]] = {
    "payg": None,
    "1year": "1 Year",
    "3year": "3 Years",
}
TERM_MONTHS: Dict[str, int] = {
    "1year": 12,
    "3year": 36,
}
TERM_LABELS: Dict[str, str] = {
    "payg": "pay-as-you-go",
    "1year": "1-year reserved",
    "3year": "3-year reserved",
}

# Core-pack licensing for every VM
LICENSE_CORE_PACK = 2
LICENSE_SKU = "WS-2CORE-PACK"
LICENSE_NAME = "Windows Server 2-core license pack"

# Tiered per-user platform license: (min_users, max_users or None, monthly rate per user)
# Sorted ascending; the first band is the fallback.
USER_LICENSE_TIERS: List[Tuple[int, Optional[int], float]] = [
    (1, 99, 4.25),
    (100, 499, 3.85),
    (500, 999, 3.45),
    (1000, None, 2.95),
]
USER_LICENSE_SKU = "RAS-USER"
USER_LICENSE_NAME = "Remote application server per-user license"

# Azure SQL Database (General Purpose, Gen5)
DATABASE_VCORES: Dict[str, int] = {
    "small": 2,
    "medium": 4,
    "large": 8,
}
DATABASE_SERVICE_NAME = "SQL Database"
DATABASE_COMPUTE_PRODUCT = "SQL Database Single General Purpose - Compute Gen5"
DATABASE_STORAGE_PRODUCT = "SQL Database Single General Purpose - Storage"
DATABASE_STORAGE_SKU = "General Purpose Data Stored"

# Approximate reserved-capacity discount for SQL Database compute.
# The catalog carries consumption prices only; these multipliers stand in
# for real reservation prices.
DATABASE_RESERVATION_DISCOUNT: Dict[str, float] = {
    "payg": 1.0,
    "1year": 0.67,
    "3year": 0.45,
}

# Support effort per user per month, by support level
SUPPORT_HOURS_PER_USER: Dict[str, float] = {
    "none": 0.0,
    "low": 0.1,
    "medium": 0.25,
    "high": 0.5,
}

# Region labels for display
REGION_LABELS: Dict[str, str] = {
    "eastus": "East US",
    "eastus2": "East US 2",
    "westus": "West US",
    "westus2": "West US 2",
    "westus3": "West US 3",
    "centralus": "Central US",
    "northcentralus": "North Central US",
    "southcentralus": "South Central US",
    "westcentralus": "West Central US",
}


def database_sku(size: str) -> str:
    """
    Catalog SKU name for a database size.

    Args:
        size: Database size ('small', 'medium' or 'large')

    Returns:
        SKU name as published by the pricing feed (e.g., '4 vCore')
    """
    return f"{DATABASE_VCORES[size]} vCore"
