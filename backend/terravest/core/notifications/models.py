"""
Notification model - in-app notifications (delivery is not handled here)
"""

import enum
from sqlalchemy import Boolean, Column, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from terravest.core.common.base_model import BaseModel


class NotificationType(str, enum.Enum):
    """Notification type enum"""
    WALLET_UPDATED = "WALLET_UPDATED"
    INVESTMENT_CREATED = "INVESTMENT_CREATED"
    INVESTMENT_MATURED = "INVESTMENT_MATURED"
    INVESTMENT_CANCELLED = "INVESTMENT_CANCELLED"
    ORDER_UPDATED = "ORDER_UPDATED"
    PROPERTY_PURCHASED = "PROPERTY_PURCHASED"
    COMMISSION_EARNED = "COMMISSION_EARNED"
    COMMISSION_PAID = "COMMISSION_PAID"
    COMMISSION_REJECTED = "COMMISSION_REJECTED"
    KYC_UPDATED = "KYC_UPDATED"
    SYSTEM_UPDATE = "SYSTEM_UPDATE"


class Notification(BaseModel):
    """Notification model"""

    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_notifications_user_id"), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType, name="notification_type", create_constraint=True), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False, index=True)
    action_url = Column(String(500), nullable=True)
