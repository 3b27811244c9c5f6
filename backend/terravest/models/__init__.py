"""
Models registry - Import all models here to ensure Base.metadata is complete

Used by Alembic and by the application entry point so that every mapper
(and every string-based relationship target) is configured before use.
Import order follows foreign key dependencies.
"""

from terravest.infrastructure.database import Base

# 1. Users (no dependencies)
from terravest.core.users.models import User, UserStatus, KycStatus, Role

# 2. Wallet ledger (depends on User)
from terravest.core.wallets.models import (
    Wallet,
    WalletTransaction,
    WalletTransactionType,
    WalletTransactionStatus,
    CryptoType,
)

# 3. AuditLog and notifications (depend on User)
from terravest.core.audit.models import AuditLog
from terravest.core.notifications.models import Notification, NotificationType

# 4. Products
from terravest.core.investments.models import InvestmentStatus
from terravest.core.real_estate.models import (
    Property,
    PropertyStatus,
    PropertyTransaction,
    PropertyTransactionStatus,
    PaymentType,
    RealEstateInvestment,
    RealEstatePlanType,
)
from terravest.core.green_energy.models import (
    Equipment,
    EquipmentStatus,
    EquipmentTransaction,
    OrderStatus,
    GreenEnergyPlan,
    GreenEnergyInvestment,
)
from terravest.core.markets.models import MarketInvestmentPlan, MarketInvestment

# 5. Referrals (depend on User)
from terravest.core.referrals.models import (
    Referral,
    ReferralStatus,
    ReferralSettings,
    ReferralCommission,
    CommissionStatus,
    CommissionTransactionType,
)

__all__ = [
    "Base",
    "Role",
    "User",
    "UserStatus",
    "KycStatus",
    "Wallet",
    "WalletTransaction",
    "WalletTransactionType",
    "WalletTransactionStatus",
    "CryptoType",
    "AuditLog",
    "Notification",
    "NotificationType",
    "InvestmentStatus",
    "Property",
    "PropertyStatus",
    "PropertyTransaction",
    "PropertyTransactionStatus",
    "PaymentType",
    "RealEstateInvestment",
    "RealEstatePlanType",
    "Equipment",
    "EquipmentStatus",
    "EquipmentTransaction",
    "OrderStatus",
    "GreenEnergyPlan",
    "GreenEnergyInvestment",
    "MarketInvestmentPlan",
    "MarketInvestment",
    "Referral",
    "ReferralStatus",
    "ReferralSettings",
    "ReferralCommission",
    "CommissionStatus",
    "CommissionTransactionType",
]
