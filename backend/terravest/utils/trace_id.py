"""
Per-request trace id, propagated to logs, error bodies and the response
"""

import re
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from terravest.infrastructure.logging_config import trace_id_context

TRACE_HEADER = "X-Trace-ID"
# Checked in order; the first acceptable value wins
INCOMING_HEADERS = (TRACE_HEADER, "X-Request-Id", "X-Correlation-Id")
_ACCEPTABLE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_trace_id(request: Request) -> Optional[str]:
    for header in INCOMING_HEADERS:
        value = request.headers.get(header)
        if value and _ACCEPTABLE.match(value):
            return value
    return None


class TraceIDMiddleware(BaseHTTPMiddleware):
    """
    Reuses a caller-supplied id when it looks sane, otherwise mints a uuid4.
    The id is stored on request.state and in the logging context var.
    """

    async def dispatch(self, request: Request, call_next):
        trace_id = _incoming_trace_id(request) or str(uuid.uuid4())
        request.state.trace_id = trace_id
        token = trace_id_context.set(trace_id)
        try:
            response = await call_next(request)
        finally:
            trace_id_context.reset(token)
        response.headers[TRACE_HEADER] = trace_id
        return response


def get_trace_id(request: Request) -> Optional[str]:
    return getattr(request.state, "trace_id", None)
