"""
Referral models - referrals, commission rate snapshots and commissions
"""

import enum
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from terravest.core.common.base_model import BaseModel


class ReferralStatus(str, enum.Enum):
    """Referral status - commissions are only earned on COMPLETED referrals"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class CommissionStatus(str, enum.Enum):
    """ReferralCommission status enum"""
    PENDING = "PENDING"
    PAID = "PAID"
    REJECTED = "REJECTED"


class CommissionTransactionType(str, enum.Enum):
    """Money movement a commission was earned on"""
    REAL_ESTATE_INVESTMENT = "REAL_ESTATE_INVESTMENT"
    PROPERTY_PURCHASE = "PROPERTY_PURCHASE"
    EQUIPMENT_PURCHASE = "EQUIPMENT_PURCHASE"
    MARKET_INVESTMENT = "MARKET_INVESTMENT"
    GREEN_ENERGY_INVESTMENT = "GREEN_ENERGY_INVESTMENT"


class Referral(BaseModel):
    """Referral model - a referred user has exactly one referrer"""

    __tablename__ = "referrals"

    referrer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_referrals_referrer_id"), nullable=False, index=True)
    referred_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_referrals_referred_id"), nullable=False, unique=True, index=True)
    status = Column(
        SQLEnum(ReferralStatus, name="referral_status", create_constraint=True),
        nullable=False,
        default=ReferralStatus.PENDING,
        index=True,
    )
    commission_paid = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class ReferralSettings(BaseModel):
    """
    ReferralSettings model - append-only snapshots of commission rates (percent).

    The row with the highest revision is the one in force.
    """

    __tablename__ = "referral_settings"

    revision = Column(Integer, nullable=False, unique=True)
    property_commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    equipment_commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    market_commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    green_energy_commission_rate = Column(Numeric(5, 2), nullable=False, default=0)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_referral_settings_created_by_id"), nullable=True)


class ReferralCommission(BaseModel):
    """ReferralCommission model - owed to referrer user_id"""

    __tablename__ = "referral_commissions"

    referral_id = Column(Uuid(as_uuid=True), ForeignKey("referrals.id", name="fk_referral_commissions_referral_id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_referral_commissions_user_id"), nullable=False, index=True)
    referred_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_referral_commissions_referred_user_id"), nullable=False)
    transaction_type = Column(SQLEnum(CommissionTransactionType, name="commission_transaction_type", create_constraint=True), nullable=False)
    reference_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    base_amount = Column(Numeric(20, 2), nullable=False)
    rate = Column(Numeric(5, 2), nullable=False)  # snapshot at creation
    amount = Column(Numeric(20, 2), nullable=False)
    status = Column(
        SQLEnum(CommissionStatus, name="commission_status", create_constraint=True),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True,
    )
    paid_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    reference_label = Column(String(255), nullable=True)

    referral = relationship("Referral", lazy="joined")
