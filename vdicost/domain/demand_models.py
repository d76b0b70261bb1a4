"""
Domain models for estimate requests.
Defines the demand parameters an estimate is derived from.
"""
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass
from enum import Enum

from vdicost.core.config import config


class InvalidDemandError(Exception):
    """Raised when demand parameters fall outside their allowed domain."""
    pass


class WorkloadIntensity(str, Enum):
    """Per-user compute demand class."""
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class StorageServiceTier(str, Enum):
    """Azure NetApp Files service level."""
    STANDARD = "Standard"
    PREMIUM = "Premium"


class CommitmentTerm(str, Enum):
    """Billing commitment for compute."""
    PAYG = "payg"
    ONE_YEAR = "1year"
    THREE_YEAR = "3year"

    @property
    def is_reserved(self) -> bool:
        return self is not CommitmentTerm.PAYG


class DatabaseSize(str, Enum):
    """Managed database compute size."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@dataclass(frozen=True)
class DatabaseDisabled:
    """No managed database in the deployment."""

    @property
    def enabled(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": False}


@dataclass(frozen=True)
class DatabaseEnabled:
    """Managed database with a compute size and provisioned storage."""
    size: DatabaseSize
    storage_gb: int

    def __post_init__(self):
        if self.storage_gb < 1:
            raise InvalidDemandError(
                f"Database storage must be a positive number of GB (got: {self.storage_gb})"
            )

    @property
    def enabled(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": True,
            "size": self.size.value,
            "storage_gb": self.storage_gb,
        }


DatabaseConfig = Union[DatabaseDisabled, DatabaseEnabled]


def _coerce_enum(enum_cls, value: Any, field_name: str):
    """Convert a raw value to an enum member or raise InvalidDemandError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as error:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidDemandError(
            f"Invalid {field_name}: {value!r} (expected one of: {allowed})"
        ) from error


def build_database_config(
    enabled: Optional[bool],
    size: Optional[str] = None,
    storage_gb: Optional[int] = None
) -> DatabaseConfig:
    """
    Build the database variant from the flat request fields.

    When the flag is false (or absent), size and storage are ignored
    whatever their values.

    Args:
        enabled: Whether a managed database is requested
        size: Database size ('small', 'medium', 'large')
        storage_gb: Provisioned storage in GB (configured default if None)

    Returns:
        DatabaseDisabled or DatabaseEnabled

    Raises:
        InvalidDemandError: If the database is enabled with invalid size or storage
    """
    if not enabled:
        return DatabaseDisabled()
    if size is None:
        raise InvalidDemandError("Database size is required when the database is enabled")
    database_size = _coerce_enum(DatabaseSize, size, "database size")
    if storage_gb is None:
        storage_gb = config.DATABASE_DEFAULT_STORAGE_GB
    return DatabaseEnabled(size=database_size, storage_gb=int(storage_gb))


def normalize_region(region: str) -> str:
    """
    Normalize an Azure region name to its ARM form.

    Args:
        region: Azure region (e.g., 'eastus' or 'East US')

    Returns:
        Normalized region name (lowercase, no spaces)
    """
    return region.lower().replace(" ", "")


@dataclass(frozen=True)
class DemandInput:
    """One estimate request."""
    region: str
    concurrent_users: int
    workload_intensity: WorkloadIntensity
    storage_service_tier: StorageServiceTier
    commitment_term: CommitmentTerm = CommitmentTerm.THREE_YEAR
    database: DatabaseConfig = DatabaseDisabled()

    @classmethod
    def create(
        cls,
        region: Any,
        concurrent_users: Any,
        workload_intensity: Any,
        storage_service_tier: Any,
        commitment_term: Any = None,
        database_enabled: Optional[bool] = False,
        database_size: Optional[str] = None,
        database_storage_gb: Optional[int] = None,
    ) -> "DemandInput":
        """
        Validate raw request values and build a DemandInput.

        Region is accepted as an opaque identifier; an unknown region only
        surfaces later as a missing price.

        Raises:
            InvalidDemandError: If any value is outside its allowed domain
        """
        if not isinstance(region, str) or not region.strip():
            raise InvalidDemandError("Invalid region")

        if isinstance(concurrent_users, bool) or not isinstance(concurrent_users, int):
            raise InvalidDemandError("Invalid concurrent users: must be an integer")
        if concurrent_users < config.MIN_CONCURRENT_USERS:
            raise InvalidDemandError(
                f"Invalid concurrent users: must be at least {config.MIN_CONCURRENT_USERS}"
            )

        term = (
            CommitmentTerm.THREE_YEAR if commitment_term is None
            else _coerce_enum(CommitmentTerm, commitment_term, "commitment term")
        )

        return cls(
            region=normalize_region(region.strip()),
            concurrent_users=concurrent_users,
            workload_intensity=_coerce_enum(WorkloadIntensity, workload_intensity, "workload intensity"),
            storage_service_tier=_coerce_enum(StorageServiceTier, storage_service_tier, "storage service tier"),
            commitment_term=term,
            database=build_database_config(database_enabled, database_size, database_storage_gb),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "region": self.region,
            "concurrent_users": self.concurrent_users,
            "workload_intensity": self.workload_intensity.value,
            "storage_service_tier": self.storage_service_tier.value,
            "commitment_term": self.commitment_term.value,
            "database": self.database.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DemandInput":
        """Rebuild a DemandInput from its to_dict() form."""
        database = data.get("database") or {}
        return cls.create(
            region=data.get("region"),
            concurrent_users=data.get("concurrent_users"),
            workload_intensity=data.get("workload_intensity"),
            storage_service_tier=data.get("storage_service_tier"),
            commitment_term=data.get("commitment_term"),
            database_enabled=database.get("enabled", False),
            database_size=database.get("size"),
            database_storage_gb=database.get("storage_gb"),
        )
