"""
Real estate API schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from terravest.core.real_estate.models import (
    PaymentType,
    PropertyStatus,
    PropertyTransactionStatus,
    RealEstatePlanType,
)
from terravest.schemas.common import InvestmentResponse


class PropertyResponse(BaseModel):
    """Property listing"""
    id: UUID
    name: str
    description: Optional[str] = None
    location: str
    price: Decimal
    status: PropertyStatus
    area: Optional[Decimal] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    features: Optional[List[Any]] = None
    main_image: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreatePropertyRequest(BaseModel):
    """Request schema for listing a property (admin only)"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    area: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    features: Optional[List[str]] = None
    main_image: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ocean View Villa",
                "location": "Mombasa, Kenya",
                "price": "450000.00",
                "bedrooms": 4,
                "bathrooms": 3,
                "features": ["pool", "garden"],
            }
        }


class UpdatePropertyRequest(BaseModel):
    """Partial property update (admin only); null fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, max_digits=20, decimal_places=2, gt=0)
    status: Optional[PropertyStatus] = None
    area: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    features: Optional[List[str]] = None
    main_image: Optional[str] = Field(None, max_length=500)


class PurchasePropertyRequest(BaseModel):
    """Buy a property outright or by installments"""
    type: PaymentType = Field(..., description="FULL or INSTALLMENT")
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0, description="Must equal the property price")
    installments: Optional[int] = Field(None, description="Number of installments (INSTALLMENT only)")


class PropertyTransactionResponse(BaseModel):
    """Property purchase"""
    id: UUID
    property_id: UUID
    user_id: UUID
    payment_type: PaymentType
    status: PropertyTransactionStatus
    amount: Decimal
    amount_paid: Decimal
    installments: int
    installment_amount: Optional[Decimal] = None
    paid_installments: int
    next_payment_due: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    property: Optional[PropertyResponse] = None

    class Config:
        from_attributes = True


class UpdatePropertyTransactionRequest(BaseModel):
    """Admin resolution of a pending purchase"""
    status: PropertyTransactionStatus = Field(..., description="COMPLETED, CANCELLED or FAILED")
    reason: Optional[str] = Field(None, max_length=500)


class RealEstatePlanResponse(BaseModel):
    """Fixed real estate plan terms"""
    plan_type: RealEstatePlanType
    duration_months: int
    return_rate: Decimal
    min_amount: Decimal
    max_amount: Decimal


class RealEstateInvestRequest(BaseModel):
    """Invest in a fixed real estate plan"""
    type: RealEstatePlanType = Field(..., description="SEMI_ANNUAL or ANNUAL")
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)


class RealEstateInvestmentResponse(InvestmentResponse):
    plan_type: RealEstatePlanType
