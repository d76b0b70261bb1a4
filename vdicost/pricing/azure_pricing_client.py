"""
Azure Retail Prices API client.
Uses public REST API (no authentication required).
"""
from typing import Dict, Any, List, Optional
import logging
import httpx

from vdicost.core.config import config
from vdicost.resilience.circuit_breaker import CircuitBreaker, get_circuit_breaker


logger = logging.getLogger(__name__)

# Upper bound on followed NextPageLink pages for a single query
MAX_PAGES = 50


class AzurePricingError(Exception):
    """Raised when Azure pricing lookup fails."""
    pass


class AzureRetailPricesClient:
    """Client for querying the Azure Retail Prices API."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        """
        Initialize Azure pricing client.

        Args:
            api_url: Retail Prices endpoint (config.PRICING_API_URL if None)
            timeout: Per-request timeout in seconds
            http_client: Shared httpx client (a short-lived one is created per query if None)
            circuit_breaker: Breaker guarding the API (shared 'azure_pricing' breaker if None)
        """
        self.api_url = api_url or config.PRICING_API_URL
        self.timeout = timeout or config.PRICING_HTTP_TIMEOUT
        self._http_client = http_client
        self.circuit_breaker = circuit_breaker or get_circuit_breaker("azure_pricing")

    async def _fetch_pages(self, client: httpx.AsyncClient, filter_expression: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        url: Optional[str] = self.api_url
        params: Optional[Dict[str, str]] = {"$filter": filter_expression}
        pages = 0

        while url:
            pages += 1
            if pages > MAX_PAGES:
                raise AzurePricingError(f"Too many result pages for filter: {filter_expression}")

            response = await client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise AzurePricingError(
                    f"Invalid response from Azure pricing API: expected an object, got {type(data).__name__}"
                )
            items.extend(data.get("Items", []))

            # NextPageLink already carries the filter and skip token
            url = data.get("NextPageLink") or None
            params = None

        return items

    async def fetch_items(self, filter_expression: str) -> List[Dict[str, Any]]:
        """
        Fetch all price items matching an OData filter, following pagination.

        Args:
            filter_expression: OData $filter (e.g., "serviceName eq 'Storage'")

        Returns:
            List of raw price items as returned by the API

        Raises:
            AzurePricingError: If the circuit is open or the API call fails
        """
        if not self.circuit_breaker.allow_request():
            raise AzurePricingError("Azure pricing API circuit is open; skipping request")

        try:
            if self._http_client is not None:
                items = await self._fetch_pages(self._http_client, filter_expression)
            else:
                async with httpx.AsyncClient() as client:
                    items = await self._fetch_pages(client, filter_expression)
        except httpx.HTTPStatusError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Azure pricing API HTTP error: {error}")
            raise AzurePricingError(f"Azure Prices API error: {error.response.status_code}") from error
        except httpx.RequestError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Azure pricing API request error: {error}")
            raise AzurePricingError(f"Failed to connect to Azure pricing API: {str(error)}") from error
        except AzurePricingError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Azure pricing API error: {error}")
            raise
        except ValueError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Error parsing Azure pricing response: {error}")
            raise AzurePricingError(f"Invalid response from Azure pricing API: {str(error)}") from error
        except Exception as error:
            self.circuit_breaker.record_failure()
            logger.error(f"Unexpected Azure pricing response: {error!r}")
            raise AzurePricingError(f"Invalid response from Azure pricing API: {error!r}") from error

        self.circuit_breaker.record_success()
        logger.debug("Fetched %d price items for filter: %s", len(items), filter_expression)
        return items
