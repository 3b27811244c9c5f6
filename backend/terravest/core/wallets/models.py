"""
Wallet models - per-user balance and its ledger
"""

import enum
from decimal import Decimal
from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from terravest.core.common.base_model import BaseModel


class WalletTransactionType(str, enum.Enum):
    """
    Direction of a wallet movement.

    DEPOSIT, RETURN and COMMISSION credit the wallet; WITHDRAWAL, PAYOUT,
    INVESTMENT and PURCHASE debit it. Amounts are always stored positive.
    """
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    PAYOUT = "PAYOUT"
    INVESTMENT = "INVESTMENT"
    RETURN = "RETURN"
    PURCHASE = "PURCHASE"
    COMMISSION = "COMMISSION"


class WalletTransactionStatus(str, enum.Enum):
    """WalletTransaction status enum"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CryptoType(str, enum.Enum):
    """Supported deposit / withdrawal networks"""
    BTC = "BTC"
    USDT = "USDT"


class Wallet(BaseModel):
    """
    Wallet model - the only mutable financial state of a user.

    balance is changed exclusively through terravest.services.ledger, which
    locks the row and bumps version on every movement.
    """

    __tablename__ = "wallets"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_wallets_user_id"), nullable=False, unique=True, index=True)
    balance = Column(Numeric(20, 2), nullable=False, default=Decimal("0.00"))
    currency = Column(String(10), nullable=False, default="USDT")
    btc_address = Column(String(128), nullable=True)
    usdt_address = Column(String(128), nullable=True)
    version = Column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="check_wallets_balance_non_negative"),
    )

    transactions = relationship(
        "WalletTransaction",
        back_populates="wallet",
        lazy="select",
        order_by="WalletTransaction.created_at.desc()",
    )


class WalletTransaction(BaseModel):
    """
    WalletTransaction model - one immutable row per balance movement.

    Only status is mutated afterwards (PENDING -> COMPLETED / FAILED).
    """

    __tablename__ = "wallet_transactions"

    wallet_id = Column(Uuid(as_uuid=True), ForeignKey("wallets.id", name="fk_wallet_transactions_wallet_id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_wallet_transactions_user_id"), nullable=False, index=True)
    type = Column(SQLEnum(WalletTransactionType, name="wallet_transaction_type", create_constraint=True), nullable=False, index=True)
    status = Column(
        SQLEnum(WalletTransactionStatus, name="wallet_transaction_status", create_constraint=True),
        nullable=False,
        default=WalletTransactionStatus.COMPLETED,
        index=True,
    )
    amount = Column(Numeric(20, 2), nullable=False)
    balance_after = Column(Numeric(20, 2), nullable=True)  # NULL while a deposit is pending
    description = Column(Text, nullable=True)

    # Crypto metadata (deposits / withdrawals)
    crypto_type = Column(SQLEnum(CryptoType, name="crypto_type", create_constraint=True), nullable=True)
    tx_hash = Column(String(255), nullable=True, unique=True)

    # What this movement paid for (investment, order, commission...)
    reference_type = Column(String(50), nullable=True, index=True)
    reference_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    details = Column(JSON, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_wallet_transactions_amount_positive"),
    )

    wallet = relationship("Wallet", back_populates="transactions")
