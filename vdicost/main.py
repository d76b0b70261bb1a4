"""
Main FastAPI application bootstrap.
Configures logging and middleware and includes routers.
"""
import logging

from fastapi import FastAPI

from vdicost.core.config import config
from vdicost.api.estimate import router as estimate_router
from vdicost.api.prices import router as prices_router
from vdicost.api.scenarios import router as scenarios_router
from vdicost.middleware.rate_limiter import RateLimitMiddleware
from vdicost.middleware.request_size_limiter import RequestSizeLimiterMiddleware


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Validate configuration on startup
try:
    config.validate()
except ValueError as error:
    raise RuntimeError(f"Configuration error: {error}") from error

logger.info(
    "Pricing %d regions from %s (refresh concurrency %d)",
    len(config.PRICING_REGIONS),
    config.PRICING_API_URL,
    config.REFRESH_CONCURRENCY,
)


app = FastAPI(
    title="VDI Cost Estimator",
    description="Azure virtual-desktop infrastructure cost estimation",
)

# Size limit runs inside the rate limiter
app.add_middleware(RequestSizeLimiterMiddleware)
app.add_middleware(RateLimitMiddleware)

app.include_router(estimate_router)
app.include_router(prices_router)
app.include_router(scenarios_router)


@app.get("/")
async def root() -> dict:
    """Service summary."""
    return {
        "status": "ok",
        "service": "vdi-cost-estimator",
        "regions": config.PRICING_REGIONS,
    }
