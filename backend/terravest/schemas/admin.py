"""
Admin API schemas (users, KYC and account status)
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from terravest.core.users.models import KycStatus, Role, UserStatus


class AdminUserResponse(BaseModel):
    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: UserStatus
    role: Role
    kyc_status: KycStatus
    referral_code: str
    created_at: datetime

    class Config:
        from_attributes = True


class UpdateKycRequest(BaseModel):
    status: KycStatus = Field(..., description="PENDING, APPROVED or REJECTED")
    reason: Optional[str] = Field(None, max_length=500)


class UpdateUserStatusRequest(BaseModel):
    status: UserStatus = Field(..., description="ACTIVE or SUSPENDED")
    reason: Optional[str] = Field(None, max_length=500)
