"""
Drama Quotes Backend — Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, status, duration,
       request id, client IP and whether a bearer token was presented.
When:  Runs inside RequestIDMiddleware so the request id is already set.

Never logged: request bodies (passwords travel there) and the token itself.

Log level follows the status class: 5xx → ERROR, 4xx → WARNING, else INFO.
A request that escapes every handler is logged as 500 and re-raised.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from dramaquotes.middleware.request_id import request_id_var

logger = logging.getLogger("dramaquotes.access")

QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            self._log(request, status, (time.perf_counter() - started) * 1000)

    @staticmethod
    def _log(request: Request, status: int, elapsed_ms: float) -> None:
        rid = request_id_var.get("")
        client = request.client.host if request.client else "unknown"
        authenticated = request.headers.get("authorization", "").lower().startswith("bearer ")

        logger.log(
            _level_for(status),
            "%s %s -> %d in %.1fms [%s] client=%s auth=%s",
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            rid,
            client,
            "bearer" if authenticated else "none",
            extra={
                "request_id": rid,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
