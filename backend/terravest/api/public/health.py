"""
Liveness and readiness probes
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from terravest.infrastructure.database import get_db
from terravest.infrastructure.redis_client import ping_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_check(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Readiness: database unreachable", extra={"error": str(e)})
        return "disconnected"
    return "connected"


def _redis_check() -> str:
    return "connected" if ping_redis() else "disconnected"


@router.get("/health")
async def health():
    """Process is up"""
    return {"status": "ok"}


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    """
    Database and Redis reachable.

    200 {"status": "ready", "checks": {...}} or 503 with status "not_ready".
    """
    checks = {
        "database": _database_check(db),
        "redis": _redis_check(),
    }
    is_ready = all(state == "connected" for state in checks.values())
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={"status": "ready" if is_ready else "not_ready", "checks": checks},
    )
