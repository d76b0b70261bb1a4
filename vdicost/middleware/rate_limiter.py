"""
Rate limiting middleware for FastAPI.
Implements in-memory sliding-window rate limiting.
"""
from typing import Dict, List, Tuple
from collections import defaultdict
from datetime import datetime, timedelta
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Rate limit configuration: (method, endpoint) -> requests per window (per client IP)
RATE_LIMITS: Dict[Tuple[str, str], int] = {
    ("POST", "/api/calculate"): 120,
    ("POST", "/api/prices/refresh"): 5,  # Each refresh fans out to the upstream feed
}

# Time window for rate limiting (seconds)
RATE_LIMIT_WINDOW = 60


class RateLimiter:
    """
    In-memory rate limiter using sliding window approach.

    Stores timestamps of recent requests per client and endpoint, dropping
    expired ones on each check.
    """

    def __init__(self):
        # client_id -> endpoint -> request timestamps
        self._storage: Dict[str, Dict[str, List[datetime]]] = defaultdict(lambda: defaultdict(list))

    def client_id(self, request: Request) -> str:
        """
        Client identifier: first X-Forwarded-For hop, else the peer address.
        """
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return f"ip:{forwarded_for.split(',')[0].strip()}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    def _cleanup_expired(self, client_id: str, endpoint: str) -> None:
        cutoff_time = datetime.now() - timedelta(seconds=RATE_LIMIT_WINDOW)
        timestamps = [ts for ts in self._storage[client_id][endpoint] if ts > cutoff_time]
        if timestamps:
            self._storage[client_id][endpoint] = timestamps
            return

        del self._storage[client_id][endpoint]
        if not self._storage[client_id]:
            del self._storage[client_id]

    def is_allowed(self, client_id: str, endpoint: str, limit: int) -> bool:
        """
        Record a request and report whether it is within the limit.

        Args:
            client_id: Client identifier
            endpoint: Endpoint path
            limit: Maximum requests per window

        Returns:
            True if allowed, False if rate limited
        """
        self._cleanup_expired(client_id, endpoint)
        timestamps = self._storage[client_id][endpoint]
        if len(timestamps) >= limit:
            return False
        timestamps.append(datetime.now())
        return True


# Global rate limiter instance
_rate_limiter = RateLimiter()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies rate limits to the configured endpoints only.
    Other routes pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: ASGIApp):
        path = request.url.path
        limit = RATE_LIMITS.get((request.method, path))

        if limit is not None:
            client_id = _rate_limiter.client_id(request)
            if not _rate_limiter.is_allowed(client_id, path, limit):
                logger.info(f"Rate limit exceeded for {request.method} {path} (limit: {limit}/min)")
                return JSONResponse(
                    status_code=429,
                    content={
                        "status": "error",
                        "error": "rate_limited",
                        "message": "Too many requests. Please try again later.",
                        "retry_after": RATE_LIMIT_WINDOW,
                    }
                )

        return await call_next(request)
