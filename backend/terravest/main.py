"""
TerraVest API application

Run with: uvicorn terravest.main:app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

import terravest.models  # noqa: F401  (registers every table on Base.metadata)
from terravest.api.admin import router as admin_router
from terravest.api.exceptions import (
    app_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from terravest.api.public.health import router as health_router
from terravest.api.public.metrics import router as metrics_router
from terravest.api.v1 import router as api_router
from terravest.infrastructure.logging_config import setup_logging
from terravest.infrastructure.redis_client import close_redis, get_redis
from terravest.infrastructure.settings import Settings, get_settings
from terravest.services.exceptions import AppError
from terravest.utils.rate_limiter import RateLimitMiddleware
from terravest.utils.request_logging import RequestLoggingMiddleware
from terravest.utils.security_headers import SecurityHeadersMiddleware
from terravest.utils.trace_id import TraceIDMiddleware

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("TerraVest API starting", extra={"version": API_VERSION})
    yield
    close_redis()
    logger.info("TerraVest API stopped")


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    # Each add wraps the previous ones. Resulting order, outermost first:
    # CORS, trace id, rate limit, security headers, request logging.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, api_prefix=settings.API_PREFIX, enable_hsts=settings.ENABLE_HSTS)
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(RateLimitMiddleware, redis_client=get_redis(), settings=settings)
    app.add_middleware(TraceIDMiddleware)

    if settings.CORS_ENABLED:
        origins = settings.cors_allow_origins_list
        if not origins:
            logger.warning("CORS_ENABLED but CORS_ALLOW_ORIGINS is empty; cross-origin requests will be refused")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=settings.cors_allow_methods_list or ["*"],
            allow_headers=settings.cors_allow_headers_list or ["*"],
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            expose_headers=["X-Trace-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        )


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(
        title="TerraVest API",
        description="Wallet, real estate, green energy and market investments with referral commissions",
        version=API_VERSION,
        lifespan=lifespan,
    )
    _add_middleware(app, settings)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    for router in (health_router, metrics_router, api_router, admin_router):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": "TerraVest API", "version": API_VERSION, "status": "running"}

    return app


settings = get_settings()
setup_logging(settings.LOG_LEVEL)
app = create_app(settings)
