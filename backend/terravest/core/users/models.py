"""
User model
"""

import enum
from typing import List

from sqlalchemy import Column, String, Enum as SQLEnum
from terravest.core.common.base_model import BaseModel


class Role(str, enum.Enum):
    """Account role stored on users.role"""
    USER = "USER"
    ADMIN = "ADMIN"

    @property
    def token_roles(self) -> List[str]:
        """Roles written into the access token; admins also pass USER checks"""
        if self is Role.ADMIN:
            return [Role.USER.value, Role.ADMIN.value]
        return [Role.USER.value]


class UserStatus(str, enum.Enum):
    """User status enum"""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class KycStatus(str, enum.Enum):
    """
    KYC verification status.

    Only APPROVED users may open investments or buy products.
    """
    NOT_SUBMITTED = "NOT_SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(BaseModel):
    """User model"""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    status = Column(SQLEnum(UserStatus, name="user_status", create_constraint=True), nullable=False, default=UserStatus.ACTIVE)
    role = Column(SQLEnum(Role, name="user_role", create_constraint=True), nullable=False, default=Role.USER)
    kyc_status = Column(
        SQLEnum(KycStatus, name="kyc_status", create_constraint=True),
        nullable=False,
        default=KycStatus.NOT_SUBMITTED,
        index=True,
    )

    # Code shared with invitees; looked up at registration
    referral_code = Column(String(16), unique=True, nullable=False, index=True)

    # Profile fields
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    @property
    def is_kyc_approved(self) -> bool:
        return self.kyc_status == KycStatus.APPROVED
