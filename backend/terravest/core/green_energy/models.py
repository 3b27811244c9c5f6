"""
Green energy models - equipment, equipment orders, plans and investments
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
from terravest.core.investments.models import InvestmentMixin, PlanMixin


class EquipmentStatus(str, enum.Enum):
    """Equipment status enum"""
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"  # out of stock
    DISCONTINUED = "DISCONTINUED"


class OrderStatus(str, enum.Enum):
    """
    Equipment order status.

    PENDING -> ACCEPTED -> PROCESSING -> OUT_FOR_DELIVERY -> COMPLETED,
    CANCELLED from PENDING, ACCEPTED or PROCESSING.
    """
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    PROCESSING = "PROCESSING"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Equipment(BaseModel):
    """Equipment model"""

    __tablename__ = "equipment"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False)
    price = Column(Numeric(20, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    status = Column(
        SQLEnum(EquipmentStatus, name="equipment_status", create_constraint=True),
        nullable=False,
        default=EquipmentStatus.AVAILABLE,
        index=True,
    )
    specifications = Column(JSON, nullable=True)
    main_image = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="check_equipment_stock_non_negative"),
        CheckConstraint("price > 0", name="check_equipment_price_positive"),
    )


class EquipmentTransaction(BaseModel):
    """EquipmentTransaction model - one equipment order"""

    __tablename__ = "equipment_transactions"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_equipment_transactions_user_id"), nullable=False, index=True)
    equipment_id = Column(Uuid(as_uuid=True), ForeignKey("equipment.id", name="fk_equipment_transactions_equipment_id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(20, 2), nullable=False)
    total_amount = Column(Numeric(20, 2), nullable=False)
    status = Column(
        SQLEnum(OrderStatus, name="equipment_order_status", create_constraint=True),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    delivery_address = Column(JSON, nullable=False)  # street, city, state, postal_code, country
    tracking_number = Column(String(100), nullable=True)
    delivery_pin = Column(String(6), nullable=True)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_equipment_transactions_quantity_positive"),
    )

    equipment = relationship("Equipment", lazy="joined")


class GreenEnergyPlan(PlanMixin, BaseModel):
    """Green energy investment plan"""

    __tablename__ = "green_energy_plans"


class GreenEnergyInvestment(InvestmentMixin, BaseModel):
    """Investment in a green energy plan"""

    __tablename__ = "green_energy_investments"

    plan_id = Column(Uuid(as_uuid=True), ForeignKey("green_energy_plans.id", name="fk_green_energy_investments_plan_id"), nullable=False, index=True)

    plan = relationship("GreenEnergyPlan", lazy="joined")
