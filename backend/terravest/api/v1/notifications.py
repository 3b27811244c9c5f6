"""
Notification API endpoints
"""

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.schemas.notifications import MarkAllReadResponse, NotificationResponse
from terravest.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse], summary="List my notifications")
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notification_service.list_notifications(
        db, user_id=user.id, unread_only=unread_only, limit=limit, offset=offset
    )


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark all notifications read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=notification_service.mark_all_read(db, user_id=user.id))


@router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Mark notification read")
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return notification_service.mark_read(db, user_id=user.id, notification_id=notification_id)
