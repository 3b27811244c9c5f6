"""
Real estate models - properties, property purchases and real estate investments
"""

import enum
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from terravest.core.common.base_model import BaseModel
from terravest.core.investments.models import InvestmentMixin


class PropertyStatus(str, enum.Enum):
    """Property status enum"""
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"  # installment plan in progress
    SOLD = "SOLD"


class PaymentType(str, enum.Enum):
    """How a property is paid for"""
    FULL = "FULL"
    INSTALLMENT = "INSTALLMENT"


class PropertyTransactionStatus(str, enum.Enum):
    """PropertyTransaction status enum"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class RealEstatePlanType(str, enum.Enum):
    """Fixed real estate investment plans"""
    SEMI_ANNUAL = "SEMI_ANNUAL"
    ANNUAL = "ANNUAL"


class Property(BaseModel):
    """Property model"""

    __tablename__ = "properties"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=False)
    price = Column(Numeric(20, 2), nullable=False)
    status = Column(
        SQLEnum(PropertyStatus, name="property_status", create_constraint=True),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        index=True,
    )
    area = Column(Numeric(12, 2), nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    features = Column(JSON, nullable=True)
    main_image = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("price > 0", name="check_properties_price_positive"),
    )


class PropertyTransaction(BaseModel):
    """
    PropertyTransaction model - one property purchase.

    FULL purchases complete immediately. INSTALLMENT purchases stay PENDING
    while paid_installments < installments.
    """

    __tablename__ = "property_transactions"

    property_id = Column(Uuid(as_uuid=True), ForeignKey("properties.id", name="fk_property_transactions_property_id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_property_transactions_user_id"), nullable=False, index=True)
    payment_type = Column(SQLEnum(PaymentType, name="property_payment_type", create_constraint=True), nullable=False)
    status = Column(
        SQLEnum(PropertyTransactionStatus, name="property_transaction_status", create_constraint=True),
        nullable=False,
        default=PropertyTransactionStatus.PENDING,
        index=True,
    )
    amount = Column(Numeric(20, 2), nullable=False)
    amount_paid = Column(Numeric(20, 2), nullable=False, default=0)
    installments = Column(Integer, nullable=False, default=1)
    installment_amount = Column(Numeric(20, 2), nullable=True)
    paid_installments = Column(Integer, nullable=False, default=0)
    next_payment_due = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("paid_installments <= installments", name="check_property_transactions_installments"),
    )

    property = relationship("Property", lazy="joined")


class RealEstateInvestment(InvestmentMixin, BaseModel):
    """Real estate investment on a fixed plan"""

    __tablename__ = "real_estate_investments"

    plan_type = Column(SQLEnum(RealEstatePlanType, name="real_estate_plan_type", create_constraint=True), nullable=False)
