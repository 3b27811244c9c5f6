"""
Wallet API request/response schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from terravest.core.wallets.models import CryptoType, WalletTransactionStatus, WalletTransactionType


class WalletResponse(BaseModel):
    """Wallet balance and deposit addresses"""
    id: UUID
    user_id: UUID
    balance: Decimal
    currency: str
    btc_address: Optional[str] = None
    usdt_address: Optional[str] = None

    class Config:
        from_attributes = True


class WalletTransactionResponse(BaseModel):
    """One ledger row"""
    id: UUID
    type: WalletTransactionType
    status: WalletTransactionStatus
    amount: Decimal
    balance_after: Optional[Decimal] = None
    description: Optional[str] = None
    crypto_type: Optional[CryptoType] = None
    tx_hash: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WalletStatsResponse(BaseModel):
    """Aggregated wallet figures (COMPLETED movements only, pending counts aside)"""
    balance: Decimal
    currency: str
    total_deposits: Decimal
    total_withdrawals: Decimal
    total_invested: Decimal
    total_returns: Decimal
    total_commissions: Decimal
    pending_deposits: int
    pending_withdrawals: int


class DepositRequest(BaseModel):
    """Declare an on-chain deposit for admin confirmation"""
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0, description="Deposited amount")
    crypto_type: CryptoType = Field(..., description="BTC or USDT")
    tx_hash: str = Field(..., min_length=8, max_length=255, description="On-chain transaction hash")

    class Config:
        json_schema_extra = {
            "example": {"amount": "1000.00", "crypto_type": "USDT", "tx_hash": "0x9f2c6e..."}
        }


class WithdrawalRequest(BaseModel):
    """Crypto withdrawal to an external address"""
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    crypto_type: CryptoType
    address: str = Field(..., min_length=10, max_length=128, description="Destination address")


class PayoutRequest(BaseModel):
    """Off-chain payout (bank transfer, mobile money...)"""
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    method: str = Field(..., min_length=2, max_length=50, description="Payout method, e.g. BANK_TRANSFER")
    details: Dict[str, Any] = Field(default_factory=dict, description="Method-specific payout details")


class UpdateAddressesRequest(BaseModel):
    """Set wallet deposit addresses (empty string clears)"""
    btc_address: Optional[str] = Field(None, max_length=128)
    usdt_address: Optional[str] = Field(None, max_length=128)


class AdminWalletAdjustmentRequest(BaseModel):
    """Admin funding / deduction"""
    amount: Decimal = Field(..., max_digits=20, decimal_places=2, gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class RejectRequest(BaseModel):
    """Reason for an admin rejection"""
    reason: str = Field(..., min_length=1, max_length=500)
