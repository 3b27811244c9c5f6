"""
Prometheus scrape endpoint
"""

import hmac
import logging
from typing import Optional

import jwt as pyjwt
from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import Response

from terravest.auth.principal import decode_access_token
from terravest.core.users.models import Role
from terravest.infrastructure.settings import get_settings
from terravest.utils.metrics import CONTENT_TYPE_LATEST, get_metrics_output

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


def _is_admin_bearer(authorization: Optional[str]) -> bool:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return False
    try:
        return decode_access_token(token.strip()).has_role(Role.ADMIN.value)
    except pyjwt.InvalidTokenError:
        logger.info("Metrics scrape with invalid bearer token")
        return False


async def verify_metrics_access(
    x_metrics_token: Optional[str] = Header(None, alias="X-Metrics-Token"),
    authorization: Optional[str] = Header(None),
) -> None:
    """METRICS_PUBLIC, a matching X-Metrics-Token, or an admin bearer token"""
    settings = get_settings()
    if settings.METRICS_PUBLIC:
        return
    if settings.METRICS_TOKEN and x_metrics_token and hmac.compare_digest(x_metrics_token, settings.METRICS_TOKEN):
        return
    if _is_admin_bearer(authorization):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Metrics access denied")


@router.get("/metrics", summary="Prometheus metrics", dependencies=[Depends(verify_metrics_access)])
async def get_metrics() -> Response:
    return Response(content=get_metrics_output(), media_type=CONTENT_TYPE_LATEST)
