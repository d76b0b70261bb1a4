"""
Request size limiting middleware for FastAPI.
Protects JSON endpoints from oversized payloads.
"""
from typing import Any, Dict, Optional
import json
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


MAX_REQUEST_BODY_SIZE = 262_144  # 256 KB in bytes
MAX_ESTIMATE_LINE_ITEMS = 100  # A saved estimate has a dozen or so rows

# Path prefixes whose request bodies are size limited
PROTECTED_PREFIXES = ("/api/calculate", "/api/scenarios")


def _too_large(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "status": "error",
            "error": "request_too_large",
            "message": message,
        }
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    Rejects oversized request bodies on the estimate and scenario endpoints.

    Bodies that are not valid JSON are passed on for FastAPI to reject.
    """

    async def dispatch(self, request: Request, call_next: ASGIApp):
        path = request.url.path
        if request.method not in ("POST", "PUT") or not path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_BODY_SIZE:
            logger.info(f"Request body size exceeded for {path}: {content_length} bytes")
            return _too_large("Request body size exceeds allowed limit of 256 KB.")

        body_bytes = await request.body()
        if len(body_bytes) > MAX_REQUEST_BODY_SIZE:
            logger.info(f"Request body size exceeded for {path}: {len(body_bytes)} bytes")
            return _too_large("Request body size exceeds allowed limit of 256 KB.")

        if body_bytes:
            try:
                validation_error = self._validate_payload(json.loads(body_bytes.decode("utf-8")))
            except (json.JSONDecodeError, UnicodeDecodeError):
                validation_error = None
            if validation_error:
                logger.info(f"Payload validation failed for {path}: {validation_error}")
                return _too_large(validation_error)

        # Starlette needs the consumed body replayed for the route handler
        async def receive():
            return {"type": "http.request", "body": body_bytes}

        request._receive = receive
        return await call_next(request)

    def _validate_payload(self, body_json: Any) -> Optional[str]:
        """
        Bound the size of a saved estimate.

        Returns:
            Error message if validation fails, None if valid
        """
        if not isinstance(body_json, dict):
            return None
        estimate: Dict[str, Any] = body_json.get("estimate") or {}
        line_items = estimate.get("line_items", []) if isinstance(estimate, dict) else []
        if isinstance(line_items, list) and len(line_items) > MAX_ESTIMATE_LINE_ITEMS:
            return (
                f"Estimate too large: {len(line_items)} line items "
                f"(limit: {MAX_ESTIMATE_LINE_ITEMS})"
            )
        return None
