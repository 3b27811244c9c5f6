"""
Wallet ledger - the only code path that changes a wallet balance

Every movement follows the same steps, inside the caller's transaction:
1. Lock the wallet row (SELECT ... FOR UPDATE)
2. Apply a guarded UPDATE (debits only match while balance >= amount)
3. Insert the WalletTransaction row with the resulting balance

Nothing here commits. Callers wrap a whole logical operation (debit, domain
record, notification, commission) in ledger_transaction() so it commits or
rolls back as one unit.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterator, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from terravest.core.wallets.models import (
    CryptoType,
    Wallet,
    WalletTransaction,
    WalletTransactionStatus,
    WalletTransactionType,
)
from terravest.infrastructure.settings import get_settings
from terravest.services.exceptions import (
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from terravest.utils.metrics import record_insufficient_funds, record_wallet_movement
from terravest.utils.money import MAX_AMOUNT, quantize_money

logger = logging.getLogger(__name__)

CREDIT_TYPES = frozenset((
    WalletTransactionType.DEPOSIT,
    WalletTransactionType.RETURN,
    WalletTransactionType.COMMISSION,
))
DEBIT_TYPES = frozenset((
    WalletTransactionType.WITHDRAWAL,
    WalletTransactionType.PAYOUT,
    WalletTransactionType.INVESTMENT,
    WalletTransactionType.PURCHASE,
))


@contextmanager
def ledger_transaction(db: Session) -> Iterator[Session]:
    """
    Commit everything done in the block, or roll all of it back.

    Usage:
        with ledger_transaction(db):
            debit_wallet(db, ...)
            db.add(investment)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def validate_amount(amount: Any) -> Decimal:
    """Quantize to cents and reject zero, negative and out-of-range amounts"""
    try:
        value = quantize_money(amount)
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount is not a valid number")
    if not value.is_finite():
        raise ValidationError("Amount is not a valid number")
    if value <= 0:
        raise ValidationError("Amount must be greater than 0")
    if value > MAX_AMOUNT:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}")
    return value


def create_wallet(db: Session, user_id: UUID) -> Wallet:
    """Create an empty wallet for a new user (flushes, does not commit)"""
    wallet = Wallet(
        user_id=user_id,
        balance=Decimal("0.00"),
        currency=get_settings().WALLET_CURRENCY,
        version=0,
    )
    db.add(wallet)
    db.flush()
    return wallet


def get_wallet(db: Session, user_id: UUID, *, for_update: bool = False) -> Wallet:
    """Get a user's wallet, optionally locking the row for the rest of the transaction"""
    stmt = select(Wallet).where(Wallet.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    wallet = db.execute(stmt).scalar_one_or_none()
    if wallet is None:
        raise NotFoundError("Wallet")
    return wallet


def _apply_delta(db: Session, wallet: Wallet, delta: Decimal) -> Decimal:
    """
    Move the balance by delta and return the new balance.

    A negative delta only matches the row while balance >= -delta, so two
    concurrent debits can never both succeed against the same funds.
    """
    stmt = update(Wallet).where(Wallet.id == wallet.id)
    if delta < 0:
        stmt = stmt.where(Wallet.balance >= -delta)
    stmt = stmt.values(
        balance=Wallet.balance + delta,
        version=Wallet.version + 1,
    ).execution_options(synchronize_session=False)

    result = db.execute(stmt)
    if result.rowcount != 1:
        record_insufficient_funds()
        logger.info(
            "Debit rejected: insufficient funds",
            extra={"user_id": str(wallet.user_id), "amount": str(-delta)},
        )
        raise InsufficientFundsError()

    db.refresh(wallet)
    return quantize_money(wallet.balance)


def _write_entry(
    db: Session,
    wallet: Wallet,
    *,
    amount: Decimal,
    tx_type: WalletTransactionType,
    status: WalletTransactionStatus,
    description: Optional[str],
    balance_after: Optional[Decimal],
    reference_type: Optional[str] = None,
    reference_id: Optional[UUID] = None,
    crypto_type: Optional[CryptoType] = None,
    tx_hash: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> WalletTransaction:
    entry = WalletTransaction(
        wallet_id=wallet.id,
        user_id=wallet.user_id,
        type=tx_type,
        status=status,
        amount=amount,
        balance_after=balance_after,
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        crypto_type=crypto_type,
        tx_hash=tx_hash,
        details=details,
    )
    db.add(entry)
    db.flush()
    record_wallet_movement(tx_type.value)
    logger.info(
        "Wallet movement recorded",
        extra={
            "user_id": str(wallet.user_id),
            "wallet_transaction_id": str(entry.id),
            "type": tx_type.value,
            "status": status.value,
            "amount": str(amount),
            "reference_type": reference_type,
            "reference_id": str(reference_id) if reference_id else None,
        },
    )
    return entry


def debit_wallet(
    db: Session,
    *,
    user_id: UUID,
    amount: Any,
    tx_type: WalletTransactionType,
    description: str,
    reference_type: Optional[str] = None,
    reference_id: Optional[UUID] = None,
    status: WalletTransactionStatus = WalletTransactionStatus.COMPLETED,
    crypto_type: Optional[CryptoType] = None,
    details: Optional[Dict[str, Any]] = None,
) -> WalletTransaction:
    """
    Debit a wallet and record the movement.

    Raises:
        InsufficientFundsError: balance < amount (nothing is written)
        NotFoundError: the user has no wallet
    """
    if tx_type not in DEBIT_TYPES:
        raise ValueError(f"{tx_type.value} is not a debit type")
    value = validate_amount(amount)
    wallet = get_wallet(db, user_id, for_update=True)
    balance_after = _apply_delta(db, wallet, -value)
    return _write_entry(
        db,
        wallet,
        amount=value,
        tx_type=tx_type,
        status=status,
        description=description,
        balance_after=balance_after,
        reference_type=reference_type,
        reference_id=reference_id,
        crypto_type=crypto_type,
        details=details,
    )


def credit_wallet(
    db: Session,
    *,
    user_id: UUID,
    amount: Any,
    tx_type: WalletTransactionType,
    description: str,
    reference_type: Optional[str] = None,
    reference_id: Optional[UUID] = None,
    details: Optional[Dict[str, Any]] = None,
) -> WalletTransaction:
    """Credit a wallet and record the movement as COMPLETED"""
    if tx_type not in CREDIT_TYPES:
        raise ValueError(f"{tx_type.value} is not a credit type")
    value = validate_amount(amount)
    wallet = get_wallet(db, user_id, for_update=True)
    balance_after = _apply_delta(db, wallet, value)
    return _write_entry(
        db,
        wallet,
        amount=value,
        tx_type=tx_type,
        status=WalletTransactionStatus.COMPLETED,
        description=description,
        balance_after=balance_after,
        reference_type=reference_type,
        reference_id=reference_id,
        details=details,
    )


def record_pending_deposit(
    db: Session,
    *,
    user_id: UUID,
    amount: Any,
    crypto_type: CryptoType,
    tx_hash: str,
    description: str,
) -> WalletTransaction:
    """Record a deposit awaiting admin approval - the balance is not touched"""
    value = validate_amount(amount)
    wallet = get_wallet(db, user_id)
    return _write_entry(
        db,
        wallet,
        amount=value,
        tx_type=WalletTransactionType.DEPOSIT,
        status=WalletTransactionStatus.PENDING,
        description=description,
        balance_after=None,
        crypto_type=crypto_type,
        tx_hash=tx_hash,
    )


def settle_pending_deposit(db: Session, entry: WalletTransaction) -> WalletTransaction:
    """Credit a PENDING deposit and mark it COMPLETED"""
    if entry.type != WalletTransactionType.DEPOSIT or entry.status != WalletTransactionStatus.PENDING:
        raise InvalidStateError(f"Transaction {entry.id} is not a pending deposit")
    wallet = get_wallet(db, entry.user_id, for_update=True)
    entry.balance_after = _apply_delta(db, wallet, quantize_money(entry.amount))
    entry.status = WalletTransactionStatus.COMPLETED
    record_wallet_movement(entry.type.value)
    logger.info(
        "Pending deposit settled",
        extra={"user_id": str(entry.user_id), "wallet_transaction_id": str(entry.id), "amount": str(entry.amount)},
    )
    return entry
