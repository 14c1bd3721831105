"""HTTP middleware for the exposition endpoints"""
import time
from typing import Iterable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from procfs_exporter.logging_config import get_logger


logger = get_logger(__name__)

# Scrapers and probes hit these on every interval
QUIET_PATHS = ("/metrics", "/health")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add fixed security headers and hide the server banner"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        # The index page only needs inline styles
        "Content-Security-Policy": "default-src 'none'; style-src 'unsafe-inline'; base-uri 'none'",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        if "server" in response.headers:
            del response.headers["server"]
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration.

    Requests to ``quiet_paths`` are logged at debug so periodic scrapes do
    not flood the INFO stream.
    """

    def __init__(self, app: ASGIApp, quiet_paths: Iterable[str] = QUIET_PATHS):
        super().__init__(app)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "HTTP request failed",
                error=str(e),
                process_time_seconds=round(time.time() - start_time, 3),
                event_type="http_request_error",
                exc_info=True,
                **fields
            )
            raise

        process_time = round(time.time() - start_time, 3)
        log = logger.debug if request.url.path in self.quiet_paths else logger.info
        log(
            "HTTP request completed",
            status_code=response.status_code,
            process_time_seconds=process_time,
            event_type="http_request_complete",
            **fields
        )

        response.headers["X-Process-Time"] = str(process_time)
        return response
