"""
Referral API schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from terravest.core.referrals.models import CommissionStatus, CommissionTransactionType, ReferralStatus


class ReferralResponse(BaseModel):
    id: UUID
    referrer_id: UUID
    referred_id: UUID
    status: ReferralStatus
    commission_paid: bool
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CommissionResponse(BaseModel):
    id: UUID
    referral_id: UUID
    user_id: UUID
    referred_user_id: UUID
    transaction_type: CommissionTransactionType
    reference_id: UUID
    reference_label: Optional[str] = None
    base_amount: Decimal
    rate: Decimal
    amount: Decimal
    status: CommissionStatus
    paid_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReferralSummaryResponse(BaseModel):
    """The caller's referral code, referrals and commission totals"""
    referral_code: str
    referrals: List[ReferralResponse]
    totals: Dict[str, Decimal] = Field(..., description="Commission totals keyed by status")


class ReferralSettingsResponse(BaseModel):
    """Commission rates in percent"""
    property_commission_rate: Decimal
    equipment_commission_rate: Decimal
    market_commission_rate: Decimal
    green_energy_commission_rate: Decimal


class UpdateReferralSettingsRequest(BaseModel):
    """New commission rates; omitted rates keep their current value"""
    property_commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    equipment_commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    market_commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    green_energy_commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)


class BulkApproveRequest(BaseModel):
    ids: List[UUID] = Field(..., min_length=1, description="Commissions to pay in one transaction")
