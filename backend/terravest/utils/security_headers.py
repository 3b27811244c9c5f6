"""
Browser hardening headers
"""

from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

BASE_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds BASE_HEADERS to every response (and HSTS when enabled).

    Responses under api_prefix carry balances and personal data, so they are
    marked Cache-Control: no-store.
    """

    def __init__(self, app, api_prefix: str = "/api", enable_hsts: bool = False):
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/") + "/"
        self.headers = dict(BASE_HEADERS)
        if enable_hsts:
            self.headers["Strict-Transport-Security"] = HSTS_VALUE

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        if request.url.path.startswith(self.api_prefix):
            response.headers["Cache-Control"] = "no-store"
        return response
