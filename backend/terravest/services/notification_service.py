"""
Notification service - in-app notification rows

notify() only adds the row to the session; it is committed (or rolled back)
together with the operation that produced it.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from terravest.core.notifications.models import Notification, NotificationType
from terravest.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    *,
    user_id: UUID,
    type: NotificationType,
    title: str,
    message: str,
    action_url: Optional[str] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        read=False,
        action_url=action_url,
    )
    db.add(notification)
    return notification


def list_notifications(
    db: Session,
    *,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> List[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def mark_read(db: Session, *, user_id: UUID, notification_id: UUID) -> Notification:
    notification = db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    ).scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, *, user_id: UUID) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount
