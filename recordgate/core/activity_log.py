"""Request activity logging.

Writes one log line per request. A route can opt out of logging its
successful responses (the log ingestion endpoint does, since it is
called a lot and its own payload already lands in the log); failed
requests are always logged.
"""
import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

_SKIP_SUCCESS_FLAG = "skip_success_activity_log"


def skip_success_activity_log(request: Request) -> None:
    """Route dependency: don't log this request if it succeeds."""
    setattr(request.state, _SKIP_SUCCESS_FLAG, True)


def _client_ip(request: Request) -> str:
    # Same resolution as the handlers: trusted proxy headers, then the peer
    resolver = getattr(request.app.state, "client_ip_resolver", None)
    if resolver is not None:
        return resolver.resolve(request)
    return request.client.host if request.client else ""


class ActivityLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        if response.status_code < 400 and getattr(request.state, _SKIP_SUCCESS_FLAG, False):
            return response

        client_ip = _client_ip(request) or "unknown"
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            "%s %s -> %d (%.2fms) from %s",
            request.method, request.url.path, response.status_code, duration_ms, client_ip,
        )
        return response
