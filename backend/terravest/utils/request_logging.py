"""
Access log and HTTP metrics, one structured line per request
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from terravest.auth.principal import Principal
from terravest.infrastructure.logging_config import trace_id_context
from terravest.utils.metrics import record_http_request, route_label

logger = logging.getLogger(__name__)

# Probes and scrapes are logged at DEBUG
QUIET_PATHS = frozenset({"/health", "/ready", "/metrics"})


def _level_for(status_code: int, path: str) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Fields: trace_id, method, path, route, status_code, duration_ms, and
    actor_id / actor_roles once an auth dependency has stored a Principal on
    request.state.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - started
            route = route_label(request)
            fields = {
                "trace_id": trace_id_context.get(),
                "method": request.method,
                "path": request.url.path,
                "route": route,
                "status_code": status_code,
                "duration_ms": round(elapsed * 1000, 2),
            }
            principal = getattr(request.state, "principal", None)
            if isinstance(principal, Principal):
                fields["actor_id"] = principal.subject
                fields["actor_roles"] = principal.roles

            logger.log(_level_for(status_code, request.url.path), "%s %s -> %s", request.method, request.url.path, status_code, extra=fields)
            record_http_request(route, request.method, status_code, elapsed)
