"""
Exception handlers

Every error response, whatever raised it, is rendered as
    {"error": {"code": ..., "message": ..., "trace_id": ...}}
with optional extra keys (details, requires_kyc).
"""

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from terravest.services.exceptions import AppError
from terravest.utils.trace_id import get_trace_id

logger = logging.getLogger(__name__)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message, "trace_id": get_trace_id(request)}
    error.update(extra)
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Domain errors from the services layer"""
    if exc.status_code >= 500:
        logger.error("Domain error", extra={"error_code": exc.code, "error_message": exc.message})
    else:
        logger.info(
            "Request rejected",
            extra={"error_code": exc.code, "error_message": exc.message, "path": request.url.path},
        )
    return error_response(request, exc.status_code, exc.code, exc.message, **(exc.details or {}))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Auth dependencies raise with detail={"error": {"code", "message"}} to
    choose their own code; any other detail becomes HTTP_<status>.
    """
    headers = getattr(exc, "headers", None)
    detail = exc.detail
    if isinstance(detail, dict) and isinstance(detail.get("error"), dict):
        error = dict(detail["error"])
        code = error.pop("code", f"HTTP_{exc.status_code}")
        message = error.pop("message", "")
        return error_response(request, exc.status_code, code, message, headers=headers, **error)
    message = detail if isinstance(detail, str) else str(detail)
    return error_response(request, exc.status_code, f"HTTP_{exc.status_code}", message, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters (422)"""
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details=details,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: logged with traceback, opaque to the client"""
    logger.exception("Unhandled exception", exc_info=exc, extra={"path": request.url.path})
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
