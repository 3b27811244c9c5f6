"""
Shared investment columns and status machine

RealEstateInvestment, GreenEnergyInvestment and MarketInvestment each have
their own table but share the lifecycle ACTIVE -> MATURED | CANCELLED.
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
from sqlalchemy.orm import declared_attr


class InvestmentStatus(str, enum.Enum):
    """Investment status enum - MATURED and CANCELLED are terminal"""
    ACTIVE = "ACTIVE"
    MATURED = "MATURED"
    CANCELLED = "CANCELLED"


class InvestmentMixin:
    """Columns common to every investment product table"""

    @declared_attr
    def user_id(cls):
        return Column(
            Uuid(as_uuid=True),
            ForeignKey("users.id", name=f"fk_{cls.__tablename__}_user_id"),
            nullable=False,
            index=True,
        )

    @declared_attr
    def status(cls):
        return Column(
            SQLEnum(InvestmentStatus, name="investment_status", create_constraint=True),
            nullable=False,
            default=InvestmentStatus.ACTIVE,
            index=True,
        )

    @declared_attr
    def reinvested_from_id(cls):
        # Set on the investment opened when a matured one was rolled over
        return Column(
            Uuid(as_uuid=True),
            ForeignKey(f"{cls.__tablename__}.id", name=f"fk_{cls.__tablename__}_reinvested_from_id"),
            nullable=True,
        )

    amount = Column(Numeric(20, 2), nullable=False)
    expected_return = Column(Numeric(20, 2), nullable=False)
    actual_return = Column(Numeric(20, 2), nullable=True)
    return_rate = Column(Numeric(5, 2), nullable=False)  # percent over the whole term
    duration_months = Column(Integer, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    matured_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    reinvest = Column(Boolean, nullable=False, default=False)


class PlanMixin:
    """Columns common to admin-managed investment plans (green energy, markets)"""

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False)
    min_amount = Column(Numeric(20, 2), nullable=False)
    max_amount = Column(Numeric(20, 2), nullable=False)
    return_rate = Column(Numeric(5, 2), nullable=False)  # percent over the whole term
    duration_months = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
