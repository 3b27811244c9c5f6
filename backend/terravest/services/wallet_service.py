"""
Wallet services - user deposit / withdrawal / payout requests and admin settlement
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from terravest.core.notifications.models import NotificationType
from terravest.core.users.models import User
from terravest.core.wallets.models import (
    CryptoType,
    Wallet,
    WalletTransaction,
    WalletTransactionStatus,
    WalletTransactionType,
)
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import InvalidStateError, NotFoundError, ValidationError
from terravest.services.ledger import (
    credit_wallet,
    debit_wallet,
    get_wallet,
    ledger_transaction,
    record_pending_deposit,
    settle_pending_deposit,
)
from terravest.services.notification_service import notify
from terravest.utils.money import quantize_money

logger = logging.getLogger(__name__)

# Debits that hold funds until an admin approves or rejects them
HELD_TYPES = frozenset((WalletTransactionType.WITHDRAWAL, WalletTransactionType.PAYOUT))


def list_transactions(
    db: Session,
    *,
    user_id: Optional[UUID] = None,
    tx_type: Optional[WalletTransactionType] = None,
    status: Optional[WalletTransactionStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[WalletTransaction]:
    """Newest first"""
    stmt = select(WalletTransaction)
    if user_id is not None:
        stmt = stmt.where(WalletTransaction.user_id == user_id)
    if tx_type is not None:
        stmt = stmt.where(WalletTransaction.type == tx_type)
    if status is not None:
        stmt = stmt.where(WalletTransaction.status == status)
    stmt = stmt.order_by(WalletTransaction.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def get_wallet_stats(db: Session, *, user_id: UUID) -> Dict[str, Any]:
    wallet = get_wallet(db, user_id)
    rows = db.execute(
        select(
            WalletTransaction.type,
            WalletTransaction.status,
            func.count(WalletTransaction.id),
            func.coalesce(func.sum(WalletTransaction.amount), 0),
        )
        .where(WalletTransaction.user_id == user_id)
        .group_by(WalletTransaction.type, WalletTransaction.status)
    ).all()

    completed: Dict[WalletTransactionType, Decimal] = {t: Decimal("0.00") for t in WalletTransactionType}
    pending: Dict[WalletTransactionType, int] = {t: 0 for t in WalletTransactionType}
    for tx_type, status, count, total in rows:
        if status == WalletTransactionStatus.COMPLETED:
            completed[tx_type] += quantize_money(total)
        elif status == WalletTransactionStatus.PENDING:
            pending[tx_type] += count

    return {
        "balance": quantize_money(wallet.balance),
        "currency": wallet.currency,
        "total_deposits": completed[WalletTransactionType.DEPOSIT],
        "total_withdrawals": completed[WalletTransactionType.WITHDRAWAL] + completed[WalletTransactionType.PAYOUT],
        "total_invested": completed[WalletTransactionType.INVESTMENT] + completed[WalletTransactionType.PURCHASE],
        "total_returns": completed[WalletTransactionType.RETURN],
        "total_commissions": completed[WalletTransactionType.COMMISSION],
        "pending_deposits": pending[WalletTransactionType.DEPOSIT],
        "pending_withdrawals": pending[WalletTransactionType.WITHDRAWAL] + pending[WalletTransactionType.PAYOUT],
    }


def update_addresses(
    db: Session,
    *,
    user_id: UUID,
    btc_address: Optional[str] = None,
    usdt_address: Optional[str] = None,
) -> Wallet:
    wallet = get_wallet(db, user_id)
    if btc_address is not None:
        wallet.btc_address = btc_address or None
    if usdt_address is not None:
        wallet.usdt_address = usdt_address or None
    db.commit()
    db.refresh(wallet)
    return wallet


# ---- User requests ----

def request_deposit(
    db: Session,
    *,
    user: User,
    amount: Any,
    crypto_type: CryptoType,
    tx_hash: str,
) -> WalletTransaction:
    """Record a PENDING deposit; the balance moves only when an admin approves it"""
    tx_hash = tx_hash.strip()
    if not tx_hash:
        raise ValidationError("Transaction hash is required")
    existing = db.execute(
        select(WalletTransaction.id).where(WalletTransaction.tx_hash == tx_hash)
    ).scalar_one_or_none()
    if existing is not None:
        raise ValidationError("This transaction hash has already been submitted")

    try:
        with ledger_transaction(db):
            entry = record_pending_deposit(
                db,
                user_id=user.id,
                amount=amount,
                crypto_type=crypto_type,
                tx_hash=tx_hash,
                description=f"{crypto_type.value} deposit",
            )
            notify(
                db,
                user_id=user.id,
                type=NotificationType.WALLET_UPDATED,
                title="Deposit submitted",
                message=f"Your {crypto_type.value} deposit of {entry.amount} is awaiting confirmation.",
                action_url="/wallet",
            )
    except IntegrityError:
        # a concurrent request committed the same hash first
        logger.warning("Duplicate deposit hash rejected", extra={"user_id": str(user.id), "tx_hash": tx_hash})
        raise ValidationError("This transaction hash has already been submitted")
    db.refresh(entry)
    return entry


def request_withdrawal(
    db: Session,
    *,
    user: User,
    amount: Any,
    crypto_type: CryptoType,
    address: str,
) -> WalletTransaction:
    """Hold the amount now (PENDING WITHDRAWAL); rejection refunds it"""
    with ledger_transaction(db):
        entry = debit_wallet(
            db,
            user_id=user.id,
            amount=amount,
            tx_type=WalletTransactionType.WITHDRAWAL,
            status=WalletTransactionStatus.PENDING,
            description=f"{crypto_type.value} withdrawal to {address}",
            crypto_type=crypto_type,
            details={"address": address},
        )
        notify(
            db,
            user_id=user.id,
            type=NotificationType.WALLET_UPDATED,
            title="Withdrawal requested",
            message=f"Your withdrawal of {entry.amount} {crypto_type.value} is being processed.",
            action_url="/wallet",
        )
    db.refresh(entry)
    return entry


def request_payout(
    db: Session,
    *,
    user: User,
    amount: Any,
    method: str,
    details: Dict[str, Any],
) -> WalletTransaction:
    """Hold the amount now (PENDING PAYOUT); rejection refunds it"""
    with ledger_transaction(db):
        entry = debit_wallet(
            db,
            user_id=user.id,
            amount=amount,
            tx_type=WalletTransactionType.PAYOUT,
            status=WalletTransactionStatus.PENDING,
            description=f"Payout via {method}",
            details={"method": method, **details},
        )
        notify(
            db,
            user_id=user.id,
            type=NotificationType.WALLET_UPDATED,
            title="Payout requested",
            message=f"Your payout of {entry.amount} via {method} is being processed.",
            action_url="/wallet",
        )
    db.refresh(entry)
    return entry


# ---- Admin settlement ----

def _lock_pending(db: Session, transaction_id: UUID) -> WalletTransaction:
    entry = db.execute(
        select(WalletTransaction).where(WalletTransaction.id == transaction_id).with_for_update()
    ).scalar_one_or_none()
    if entry is None:
        raise NotFoundError("WalletTransaction", transaction_id)
    if entry.status != WalletTransactionStatus.PENDING:
        raise InvalidStateError(f"Transaction {transaction_id} is {entry.status.value}, expected PENDING")
    return entry


def approve_transaction(db: Session, *, transaction_id: UUID, actor_id: UUID) -> WalletTransaction:
    """
    Approve a PENDING request.

    Deposits are credited now; withdrawals and payouts were already held, so
    approval only completes them.
    """
    with ledger_transaction(db):
        entry = _lock_pending(db, transaction_id)
        if entry.type == WalletTransactionType.DEPOSIT:
            settle_pending_deposit(db, entry)
            message = f"Your deposit of {entry.amount} has been credited."
        elif entry.type in HELD_TYPES:
            entry.status = WalletTransactionStatus.COMPLETED
            message = f"Your {entry.type.value.lower()} of {entry.amount} has been sent."
        else:
            raise InvalidStateError(f"{entry.type.value} transactions cannot be approved")

        notify(
            db,
            user_id=entry.user_id,
            type=NotificationType.WALLET_UPDATED,
            title=f"{entry.type.value.capitalize()} approved",
            message=message,
            action_url="/wallet",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action=f"{entry.type.value}_APPROVED",
            entity_type="WalletTransaction",
            entity_id=entry.id,
            before={"status": WalletTransactionStatus.PENDING.value},
            after={"status": WalletTransactionStatus.COMPLETED.value, "amount": str(entry.amount)},
        )
    db.refresh(entry)
    return entry


def reject_transaction(db: Session, *, transaction_id: UUID, actor_id: UUID, reason: str) -> WalletTransaction:
    """Reject a PENDING request; held withdrawals / payouts are refunded"""
    with ledger_transaction(db):
        entry = _lock_pending(db, transaction_id)
        if entry.type != WalletTransactionType.DEPOSIT and entry.type not in HELD_TYPES:
            raise InvalidStateError(f"{entry.type.value} transactions cannot be rejected")

        entry.status = WalletTransactionStatus.FAILED
        entry.description = f"{entry.description or entry.type.value} (Rejected: {reason})"
        if entry.type in HELD_TYPES:
            credit_wallet(
                db,
                user_id=entry.user_id,
                amount=entry.amount,
                tx_type=WalletTransactionType.RETURN,
                description=f"Refund for rejected {entry.type.value.lower()}",
                reference_type="WalletTransaction",
                reference_id=entry.id,
            )

        notify(
            db,
            user_id=entry.user_id,
            type=NotificationType.WALLET_UPDATED,
            title=f"{entry.type.value.capitalize()} rejected",
            message=f"Your {entry.type.value.lower()} of {entry.amount} was rejected: {reason}",
            action_url="/wallet",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action=f"{entry.type.value}_REJECTED",
            entity_type="WalletTransaction",
            entity_id=entry.id,
            before={"status": WalletTransactionStatus.PENDING.value},
            after={"status": WalletTransactionStatus.FAILED.value},
            reason=reason,
        )
    db.refresh(entry)
    return entry


def admin_fund_wallet(db: Session, *, user_id: UUID, amount: Any, reason: str, actor_id: UUID) -> WalletTransaction:
    with ledger_transaction(db):
        entry = credit_wallet(
            db,
            user_id=user_id,
            amount=amount,
            tx_type=WalletTransactionType.DEPOSIT,
            description=f"Admin funding: {reason}",
        )
        notify(
            db,
            user_id=user_id,
            type=NotificationType.WALLET_UPDATED,
            title="Wallet funded",
            message=f"{entry.amount} was added to your wallet.",
            action_url="/wallet",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="WALLET_FUNDED",
            entity_type="Wallet",
            entity_id=entry.wallet_id,
            after={"amount": str(entry.amount), "balance_after": str(entry.balance_after)},
            reason=reason,
        )
    db.refresh(entry)
    return entry


def admin_deduct_wallet(db: Session, *, user_id: UUID, amount: Any, reason: str, actor_id: UUID) -> WalletTransaction:
    with ledger_transaction(db):
        entry = debit_wallet(
            db,
            user_id=user_id,
            amount=amount,
            tx_type=WalletTransactionType.WITHDRAWAL,
            description=f"Admin deduction: {reason}",
        )
        notify(
            db,
            user_id=user_id,
            type=NotificationType.WALLET_UPDATED,
            title="Wallet debited",
            message=f"{entry.amount} was deducted from your wallet: {reason}",
            action_url="/wallet",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="WALLET_DEDUCTED",
            entity_type="Wallet",
            entity_id=entry.wallet_id,
            after={"amount": str(entry.amount), "balance_after": str(entry.balance_after)},
            reason=reason,
        )
    db.refresh(entry)
    return entry
