"""
Registration, login and profile schemas
"""

from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from terravest.core.users.models import KycStatus, Role, UserStatus


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128, description="At least 8 characters")
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    referral_code: Optional[str] = Field(None, max_length=16, description="Code shared by the inviting user")

    @field_validator("referral_code")
    @classmethod
    def normalize_referral_code(cls, v: Optional[str]) -> Optional[str]:
        """Codes are stored upper-case; blank means no referrer"""
        if v is None:
            return None
        return v.strip().upper() or None


class RegisterResponse(BaseModel):
    user_id: UUID = Field(..., validation_alias=AliasChoices("id", "user_id"))
    email: str
    referral_code: str
    message: str = "User registered successfully"

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Bearer token for the Authorization header"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user_id: UUID
    email: str
    role: Role


class MeResponse(BaseModel):
    """Profile of the authenticated user"""
    user_id: UUID = Field(..., validation_alias=AliasChoices("id", "user_id"))
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: UserStatus
    role: Role
    kyc_status: KycStatus
    referral_code: str

    class Config:
        from_attributes = True
