"""
Green energy API schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from terravest.core.green_energy.models import EquipmentStatus, OrderStatus
from terravest.schemas.common import InvestmentResponse, PlanResponse


class EquipmentResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    type: str
    price: Decimal
    stock_quantity: int
    status: EquipmentStatus
    specifications: Optional[Dict[str, Any]] = None
    main_image: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreateEquipmentRequest(BaseModel):
    """Request schema for adding equipment to the catalogue (admin only)"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: str = Field(..., min_length=1, max_length=50, description="e.g. SOLAR_PANEL, INVERTER, BATTERY")
    price: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    stock_quantity: int = Field(0, ge=0)
    specifications: Optional[Dict[str, Any]] = None
    main_image: Optional[str] = Field(None, max_length=500)

    @field_validator('type')
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.upper()


class UpdateEquipmentRequest(BaseModel):
    """Partial equipment update (admin only)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, max_digits=20, decimal_places=2, gt=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    status: Optional[EquipmentStatus] = None
    specifications: Optional[Dict[str, Any]] = None
    main_image: Optional[str] = Field(None, max_length=500)


class DeliveryAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=2, max_length=100)


class PurchaseEquipmentRequest(BaseModel):
    quantity: int = Field(..., ge=1, description="Units to buy")
    delivery_address: DeliveryAddress

    class Config:
        json_schema_extra = {
            "example": {
                "quantity": 2,
                "delivery_address": {
                    "street": "12 Kenyatta Ave",
                    "city": "Nairobi",
                    "state": "Nairobi",
                    "postal_code": "00100",
                    "country": "Kenya",
                },
            }
        }


class EquipmentOrderResponse(BaseModel):
    """Equipment order; delivery_pin is only shown to the buyer and admins"""
    id: UUID
    user_id: UUID
    equipment_id: UUID
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    status: OrderStatus
    delivery_address: Dict[str, Any]
    tracking_number: Optional[str] = None
    delivery_pin: Optional[str] = None
    delivery_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    equipment: Optional[EquipmentResponse] = None

    class Config:
        from_attributes = True


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    reason: Optional[str] = Field(None, max_length=500)


class GreenEnergyInvestmentResponse(InvestmentResponse):
    plan_id: UUID
    plan: Optional[PlanResponse] = None
