"""
Schemas shared by the investment products
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from terravest.core.investments.models import InvestmentStatus


class InvestmentResponse(BaseModel):
    """Fields common to every investment product"""
    id: UUID
    user_id: UUID
    amount: Decimal
    expected_return: Decimal
    actual_return: Optional[Decimal] = None
    return_rate: Decimal
    duration_months: int
    status: InvestmentStatus
    start_date: datetime
    end_date: datetime
    matured_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    reinvest: bool
    reinvested_from_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UpdateReinvestRequest(BaseModel):
    """Toggle rollover at maturity"""
    reinvest: bool = Field(..., description="Roll principal + return into a new investment at maturity")


class PlanInvestmentRequest(BaseModel):
    """Invest in an admin-managed plan"""
    plan_id: UUID = Field(..., description="Plan UUID")
    amount: Decimal = Field(
        ...,
        max_digits=20,
        decimal_places=2,
        gt=0,
        description="Amount to invest (within the plan bounds)",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "123e4567-e89b-12d3-a456-426614174000",
                "amount": "5000.00",
            }
        }


class PlanResponse(BaseModel):
    """Investment plan"""
    id: UUID
    name: str
    description: Optional[str] = None
    type: str
    min_amount: Decimal
    max_amount: Decimal
    return_rate: Decimal
    duration_months: int
    is_active: bool

    class Config:
        from_attributes = True


class CreatePlanRequest(BaseModel):
    """Request schema for creating an investment plan (admin only)"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: str = Field(..., min_length=1, max_length=50, description="Plan category, e.g. SOLAR or STOCKS")
    min_amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    max_amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    # stored as Numeric(5, 2)
    return_rate: Decimal = Field(
        ...,
        ge=0,
        le=Decimal("999.99"),
        max_digits=5,
        decimal_places=2,
        description="Return over the whole term, in percent",
    )
    duration_months: int = Field(..., ge=1, le=120)
    is_active: bool = True

    @field_validator('type')
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.upper()


class InvestmentActionRequest(BaseModel):
    """Admin maturation / cancellation payload"""
    actual_return: Optional[Decimal] = Field(
        None,
        max_digits=20,
        decimal_places=2,
        ge=0,
        description="Overrides the expected return at maturity",
    )
    reason: Optional[str] = Field(None, max_length=500)
