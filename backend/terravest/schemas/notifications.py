"""
Notification API schemas
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from terravest.core.notifications.models import NotificationType


class NotificationResponse(BaseModel):
    id: UUID
    type: NotificationType
    title: str
    message: str
    read: bool
    action_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MarkAllReadResponse(BaseModel):
    updated: int
