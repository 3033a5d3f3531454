import logging
import os
import time

from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

access_logger = logging.getLogger("viziopath.access")

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def configure_logging() -> None:
    """Configure structured logging defaults for the application."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def log_requests(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Emit one access line per request and attach the default security headers."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    for header, value in _SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    access_logger.info(
        "%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms
    )
    return response
