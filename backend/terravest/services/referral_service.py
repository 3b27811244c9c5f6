"""
Referral service - commission rates, commission accrual and payout
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from terravest.core.notifications.models import NotificationType
from terravest.core.referrals.models import (
    CommissionStatus,
    CommissionTransactionType,
    Referral,
    ReferralCommission,
    ReferralSettings,
    ReferralStatus,
)
from terravest.core.users.models import User
from terravest.core.wallets.models import WalletTransactionType
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import InvalidStateError, NotFoundError, ValidationError
from terravest.services.ledger import credit_wallet, ledger_transaction
from terravest.services.notification_service import notify
from terravest.utils.money import percent_of, quantize_money, utcnow

logger = logging.getLogger(__name__)

# Which ReferralSettings column applies to each kind of money movement
RATE_FIELD_BY_TYPE: Dict[CommissionTransactionType, str] = {
    CommissionTransactionType.REAL_ESTATE_INVESTMENT: "property_commission_rate",
    CommissionTransactionType.PROPERTY_PURCHASE: "property_commission_rate",
    CommissionTransactionType.EQUIPMENT_PURCHASE: "equipment_commission_rate",
    CommissionTransactionType.MARKET_INVESTMENT: "market_commission_rate",
    CommissionTransactionType.GREEN_ENERGY_INVESTMENT: "green_energy_commission_rate",
}

RATE_FIELDS = (
    "property_commission_rate",
    "equipment_commission_rate",
    "market_commission_rate",
    "green_energy_commission_rate",
)


def get_current_settings(db: Session) -> Optional[ReferralSettings]:
    """Latest ReferralSettings snapshot, or None when rates were never configured"""
    return db.execute(
        select(ReferralSettings).order_by(ReferralSettings.revision.desc()).limit(1)
    ).scalar_one_or_none()


def get_current_rates(db: Session) -> Dict[str, Decimal]:
    settings_row = get_current_settings(db)
    if settings_row is None:
        return {field: Decimal("0") for field in RATE_FIELDS}
    return {field: Decimal(getattr(settings_row, field) or 0) for field in RATE_FIELDS}


def update_settings(db: Session, *, rates: Dict[str, Decimal], actor_id: UUID) -> ReferralSettings:
    """Append a new rate snapshot; unspecified rates carry over from the current one"""
    current = get_current_rates(db)
    for field, value in rates.items():
        if field not in RATE_FIELDS:
            raise ValidationError(f"Unknown commission rate {field}")
        if value is None:
            continue
        value = Decimal(value)
        if value < 0 or value > 100:
            raise ValidationError(f"{field} must be between 0 and 100")
        current[field] = value

    try:
        with ledger_transaction(db):
            latest = db.execute(select(func.max(ReferralSettings.revision))).scalar_one()
            snapshot = ReferralSettings(
                revision=(latest or 0) + 1, created_by_id=actor_id, created_at=utcnow(), **current
            )
            db.add(snapshot)
            db.flush()
            record_audit(
                db,
                actor_user_id=actor_id,
                action="REFERRAL_SETTINGS_UPDATED",
                entity_type="ReferralSettings",
                entity_id=snapshot.id,
                after={field: str(value) for field, value in current.items()},
            )
    except IntegrityError:
        raise InvalidStateError("Referral settings were changed by another request, please retry")
    db.refresh(snapshot)
    return snapshot


def get_completed_referral(db: Session, referred_id: UUID) -> Optional[Referral]:
    return db.execute(
        select(Referral).where(
            Referral.referred_id == referred_id,
            Referral.status == ReferralStatus.COMPLETED,
        )
    ).scalar_one_or_none()


def process_referral_commission(
    db: Session,
    *,
    user_id: UUID,
    amount: Decimal,
    transaction_type: CommissionTransactionType,
    reference_id: UUID,
    reference_label: Optional[str] = None,
) -> Optional[ReferralCommission]:
    """
    Accrue a PENDING commission for the referrer of user_id, if any.

    Runs inside the caller's transaction: the commission and the referrer's
    notification commit or roll back with the investment that produced them.
    Returns None when the user has no COMPLETED referral or the rate is 0.
    """
    referral = get_completed_referral(db, user_id)
    if referral is None:
        return None

    rate = get_current_rates(db)[RATE_FIELD_BY_TYPE[transaction_type]]
    commission_amount = percent_of(amount, rate)
    if commission_amount <= 0:
        return None

    commission = ReferralCommission(
        referral_id=referral.id,
        user_id=referral.referrer_id,
        referred_user_id=user_id,
        transaction_type=transaction_type,
        reference_id=reference_id,
        reference_label=reference_label,
        base_amount=quantize_money(amount),
        rate=rate,
        amount=commission_amount,
        status=CommissionStatus.PENDING,
    )
    db.add(commission)
    db.flush()

    notify(
        db,
        user_id=referral.referrer_id,
        type=NotificationType.COMMISSION_EARNED,
        title="Commission earned",
        message=f"You earned a {commission_amount} commission on a referral {_label(transaction_type)}.",
        action_url="/referrals",
    )
    logger.info(
        "Referral commission accrued",
        extra={
            "referral_id": str(referral.id),
            "referrer_id": str(referral.referrer_id),
            "referred_id": str(user_id),
            "transaction_type": transaction_type.value,
            "rate": str(rate),
            "amount": str(commission_amount),
        },
    )
    return commission


def _label(transaction_type: CommissionTransactionType) -> str:
    return transaction_type.value.lower().replace("_", " ")


def _get_commission_for_update(db: Session, commission_id: UUID) -> ReferralCommission:
    commission = db.execute(
        select(ReferralCommission).where(ReferralCommission.id == commission_id).with_for_update(of=ReferralCommission)
    ).scalar_one_or_none()
    if commission is None:
        raise NotFoundError("ReferralCommission", commission_id)
    if commission.status != CommissionStatus.PENDING:
        raise InvalidStateError(f"Commission {commission_id} is {commission.status.value}, expected PENDING")
    return commission


def _approve(db: Session, commission_id: UUID, actor_id: UUID) -> ReferralCommission:
    commission = _get_commission_for_update(db, commission_id)
    commission.status = CommissionStatus.PAID
    commission.paid_at = utcnow()

    credit_wallet(
        db,
        user_id=commission.user_id,
        amount=commission.amount,
        tx_type=WalletTransactionType.COMMISSION,
        description=f"Referral commission for {_label(commission.transaction_type)}",
        reference_type="ReferralCommission",
        reference_id=commission.id,
    )
    notify(
        db,
        user_id=commission.user_id,
        type=NotificationType.COMMISSION_PAID,
        title="Commission paid",
        message=f"Your referral commission of {quantize_money(commission.amount)} has been credited to your wallet.",
        action_url="/wallet",
    )
    db.flush()

    remaining = db.execute(
        select(func.count(ReferralCommission.id)).where(
            ReferralCommission.referral_id == commission.referral_id,
            ReferralCommission.status == CommissionStatus.PENDING,
        )
    ).scalar_one()
    if remaining == 0:
        commission.referral.commission_paid = True

    record_audit(
        db,
        actor_user_id=actor_id,
        action="COMMISSION_APPROVED",
        entity_type="ReferralCommission",
        entity_id=commission.id,
        before={"status": CommissionStatus.PENDING.value},
        after={"status": CommissionStatus.PAID.value, "amount": str(commission.amount)},
    )
    return commission


def approve_commission(db: Session, *, commission_id: UUID, actor_id: UUID) -> ReferralCommission:
    """PENDING -> PAID, crediting the referrer's wallet"""
    with ledger_transaction(db):
        commission = _approve(db, commission_id, actor_id)
    db.refresh(commission)
    return commission


def bulk_approve_commissions(db: Session, *, commission_ids: Sequence[UUID], actor_id: UUID) -> List[ReferralCommission]:
    """Approve every id in one transaction - any failure rolls back the whole batch"""
    if not commission_ids:
        raise ValidationError("No commissions selected")
    with ledger_transaction(db):
        approved = [_approve(db, commission_id, actor_id) for commission_id in dict.fromkeys(commission_ids)]
    for commission in approved:
        db.refresh(commission)
    return approved


def reject_commission(db: Session, *, commission_id: UUID, actor_id: UUID, reason: str) -> ReferralCommission:
    """PENDING -> REJECTED (no wallet movement)"""
    with ledger_transaction(db):
        commission = _get_commission_for_update(db, commission_id)
        commission.status = CommissionStatus.REJECTED
        commission.rejection_reason = reason
        notify(
            db,
            user_id=commission.user_id,
            type=NotificationType.COMMISSION_REJECTED,
            title="Commission rejected",
            message=f"Your referral commission of {quantize_money(commission.amount)} was rejected: {reason}",
            action_url="/referrals",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="COMMISSION_REJECTED",
            entity_type="ReferralCommission",
            entity_id=commission.id,
            before={"status": CommissionStatus.PENDING.value},
            after={"status": CommissionStatus.REJECTED.value},
            reason=reason,
        )
    db.refresh(commission)
    return commission


def complete_referral(db: Session, *, referral_id: UUID, actor_id: UUID) -> Referral:
    """PENDING -> COMPLETED; from then on the referred user's investments earn commissions"""
    with ledger_transaction(db):
        referral = db.execute(
            select(Referral).where(Referral.id == referral_id).with_for_update()
        ).scalar_one_or_none()
        if referral is None:
            raise NotFoundError("Referral", referral_id)
        if referral.status != ReferralStatus.PENDING:
            raise InvalidStateError(f"Referral {referral_id} is already {referral.status.value}")
        referral.status = ReferralStatus.COMPLETED
        referral.completed_at = utcnow()
        record_audit(
            db,
            actor_user_id=actor_id,
            action="REFERRAL_COMPLETED",
            entity_type="Referral",
            entity_id=referral.id,
            before={"status": ReferralStatus.PENDING.value},
            after={"status": ReferralStatus.COMPLETED.value},
        )
    db.refresh(referral)
    return referral


def create_referral(db: Session, *, referral_code: str, referred: User) -> Referral:
    """Link a newly registered user to the owner of referral_code (no commit)"""
    referrer = db.execute(
        select(User).where(User.referral_code == referral_code.strip().upper())
    ).scalar_one_or_none()
    if referrer is None:
        raise ValidationError("Invalid referral code")
    if referrer.id == referred.id:
        raise ValidationError("Users cannot refer themselves")
    referral = Referral(
        referrer_id=referrer.id,
        referred_id=referred.id,
        status=ReferralStatus.PENDING,
        commission_paid=False,
    )
    db.add(referral)
    return referral


def list_referrals(
    db: Session,
    *,
    referrer_id: Optional[UUID] = None,
    status: Optional[ReferralStatus] = None,
) -> List[Referral]:
    stmt = select(Referral)
    if referrer_id is not None:
        stmt = stmt.where(Referral.referrer_id == referrer_id)
    if status is not None:
        stmt = stmt.where(Referral.status == status)
    return list(db.execute(stmt.order_by(Referral.created_at.desc())).scalars().all())


def list_commissions(
    db: Session,
    *,
    user_id: Optional[UUID] = None,
    status: Optional[CommissionStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[ReferralCommission]:
    stmt = select(ReferralCommission)
    if user_id is not None:
        stmt = stmt.where(ReferralCommission.user_id == user_id)
    if status is not None:
        stmt = stmt.where(ReferralCommission.status == status)
    stmt = stmt.order_by(ReferralCommission.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def commission_totals(db: Session, *, user_id: UUID) -> Dict[str, Decimal]:
    rows = db.execute(
        select(ReferralCommission.status, func.coalesce(func.sum(ReferralCommission.amount), 0))
        .where(ReferralCommission.user_id == user_id)
        .group_by(ReferralCommission.status)
    ).all()
    totals = {status.value: Decimal("0.00") for status in CommissionStatus}
    for status, total in rows:
        totals[status.value] = quantize_money(total)
    return totals
