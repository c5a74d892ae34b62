"""
Society Management - HTTP Middleware
Request correlation, access logging and response headers
"""

import time
from typing import Callable, Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from society.core.config import settings
from society.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


API_PREFIX = f"/api/{settings.API_VERSION}/"

SLOW_REQUEST_MS = 1000


def api_area(path: str) -> Optional[str]:
    """
    First segment under the API prefix ("auth", "flats", "maintenance",
    "admin"), or None for paths outside the API (health, docs).
    """
    if not path.startswith(API_PREFIX):
        return None
    return path[len(API_PREFIX):].split("/", 1)[0] or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each API request with an id, time it and log the outcome.

    The id is taken from an incoming X-Request-ID header when present and
    echoed back together with X-Response-Time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        area = api_area(path)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"{request.method} {path} raised {type(exc).__name__} after {duration_ms:.1f}ms",
                exc_info=True,
                extra={"event_type": "http_request_error", "api_area": area},
            )
            raise
        finally:
            set_user_id("")

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if area is not None:
            client_ip = request.client.host if request.client else "unknown"
            logger.log_request(
                request.method, path, response.status_code, duration_ms,
                api_area=area, client_ip=client_ip,
            )
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning(f"Slow request: {request.method} {path} took {duration_ms:.0f}ms")

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Hardening headers on every response. API responses carry tokens and
    personal data, so they are also marked non-cacheable.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if api_area(request.url.path) is not None:
            response.headers["Cache-Control"] = "no-store"

        return response


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "api_area",
]
