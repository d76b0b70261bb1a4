"""
Configuration module for loading environment variables.
All tunable values are loaded from the process environment.
"""
import os
from typing import List, Optional


def _split_regions(raw: str) -> List[str]:
    """Parse a comma-separated region list, dropping blanks."""
    return [region.strip().lower() for region in raw.split(",") if region.strip()]


class Config:
    """Application configuration loaded from environment variables."""

    # Azure Retail Prices API (catalog producer)
    PRICING_API_URL: str = os.getenv(
        "PRICING_API_URL",
        "https://prices.azure.com/api/retail/prices"
    )
    PRICING_HTTP_TIMEOUT: float = float(os.getenv("PRICING_HTTP_TIMEOUT", "30"))
    PRICING_REGIONS: List[str] = _split_regions(os.getenv(
        "PRICING_REGIONS",
        "eastus,eastus2,westus,westus2,westus3,centralus,"
        "northcentralus,southcentralus,westcentralus"
    ))
    REFRESH_CONCURRENCY: int = int(os.getenv("REFRESH_CONCURRENCY", "3"))  # Regions per batch

    # Optional on-disk copy of the price catalog (gzipped JSON)
    CATALOG_CACHE_PATH: Optional[str] = os.getenv("CATALOG_CACHE_PATH") or None

    # Estimation
    MIN_CONCURRENT_USERS: int = int(os.getenv("MIN_CONCURRENT_USERS", "1"))
    HOURS_PER_MONTH: int = 730  # Standard assumption: 24/7 operation
    LICENSE_PACK_MONTHLY_PRICE: float = float(os.getenv("LICENSE_PACK_MONTHLY_PRICE", "6.20"))
    DATABASE_DEFAULT_STORAGE_GB: int = int(os.getenv("DATABASE_DEFAULT_STORAGE_GB", "32"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def validate(cls) -> None:
        """
        Validates that configuration values are usable.

        Raises:
            ValueError: If any configuration value is missing or invalid.
        """
        if not cls.PRICING_API_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"PRICING_API_URL must be a valid URL (got: {cls.PRICING_API_URL})"
            )
        if not cls.PRICING_REGIONS:
            raise ValueError("PRICING_REGIONS must list at least one region")
        if cls.REFRESH_CONCURRENCY < 1:
            raise ValueError("REFRESH_CONCURRENCY must be at least 1")
        if cls.MIN_CONCURRENT_USERS < 1:
            raise ValueError("MIN_CONCURRENT_USERS must be at least 1")
        if cls.LICENSE_PACK_MONTHLY_PRICE < 0:
            raise ValueError("LICENSE_PACK_MONTHLY_PRICE must not be negative")
        if cls.DATABASE_DEFAULT_STORAGE_GB < 1:
            raise ValueError("DATABASE_DEFAULT_STORAGE_GB must be at least 1")


config = Config()
