"""
Real estate services - property catalogue, property purchases and fixed-plan investments
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from terravest.core.notifications.models import NotificationType
from terravest.core.real_estate.models import (
    PaymentType,
    Property,
    PropertyStatus,
    PropertyTransaction,
    PropertyTransactionStatus,
    RealEstateInvestment,
    RealEstatePlanType,
)
from terravest.core.referrals.models import CommissionTransactionType
from terravest.core.users.models import User
from terravest.core.wallets.models import WalletTransactionType
from terravest.infrastructure.settings import get_settings
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import InvalidStateError, NotFoundError, ValidationError
from terravest.services.investments import (
    InvestmentProduct,
    ensure_kyc_approved,
    ensure_within_bounds,
    mature_investment,
    open_investment,
)
from terravest.services.ledger import credit_wallet, debit_wallet, ledger_transaction, validate_amount
from terravest.services.notification_service import notify
from terravest.services.referral_service import process_referral_commission
from terravest.utils.money import as_utc, floor_money, quantize_money, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RealEstatePlan:
    plan_type: RealEstatePlanType
    duration_months: int
    return_rate: Decimal  # percent over the whole term
    min_amount: Decimal
    max_amount: Decimal


REAL_ESTATE_PLANS: Dict[RealEstatePlanType, RealEstatePlan] = {
    RealEstatePlanType.SEMI_ANNUAL: RealEstatePlan(
        plan_type=RealEstatePlanType.SEMI_ANNUAL,
        duration_months=6,
        return_rate=Decimal("15"),
        min_amount=Decimal("300000"),
        max_amount=Decimal("700000"),
    ),
    RealEstatePlanType.ANNUAL: RealEstatePlan(
        plan_type=RealEstatePlanType.ANNUAL,
        duration_months=12,
        return_rate=Decimal("30"),
        min_amount=Decimal("1500000"),
        max_amount=Decimal("2000000"),
    ),
}

PROPERTY_FIELDS = ("name", "description", "location", "price", "status", "area", "bedrooms", "bathrooms", "features", "main_image")


# ---- Fixed-plan investments ----

def invest_in_real_estate(db: Session, *, user: User, plan_type: RealEstatePlanType, amount: Any) -> RealEstateInvestment:
    """Debit the wallet and open a real estate investment on a fixed plan"""
    ensure_kyc_approved(user)
    plan = REAL_ESTATE_PLANS[plan_type]
    value = validate_amount(amount)
    ensure_within_bounds(value, plan.min_amount, plan.max_amount)

    with ledger_transaction(db):
        investment = open_investment(
            db,
            user=user,
            product=InvestmentProduct.REAL_ESTATE,
            amount=value,
            return_rate=plan.return_rate,
            duration_months=plan.duration_months,
            description=f"Real Estate Investment - {plan_type.value}",
            plan_type=plan_type,
        )
    db.refresh(investment)
    return investment


def withdraw_investment(db: Session, *, user: User, investment_id: UUID) -> RealEstateInvestment:
    """
    Owner-initiated maturation once the term has ended.

    Credits principal + expected return, exactly like an admin maturation.
    """
    return mature_investment(
        db,
        product=InvestmentProduct.REAL_ESTATE,
        investment_id=investment_id,
        owner_id=user.id,
        require_term_ended=True,
    )


# ---- Property catalogue ----

def list_properties(db: Session, *, status: Optional[PropertyStatus] = None) -> List[Property]:
    stmt = select(Property)
    if status is not None:
        stmt = stmt.where(Property.status == status)
    return list(db.execute(stmt.order_by(Property.created_at.desc())).scalars().all())


def get_property(db: Session, property_id: UUID) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property", property_id)
    return prop


def create_property(db: Session, *, data: Dict[str, Any], actor_id: UUID) -> Property:
    with ledger_transaction(db):
        prop = Property(**{key: value for key, value in data.items() if key in PROPERTY_FIELDS})
        prop.price = validate_amount(prop.price)
        db.add(prop)
        db.flush()
        record_audit(
            db,
            actor_user_id=actor_id,
            action="PROPERTY_CREATED",
            entity_type="Property",
            entity_id=prop.id,
            after={"name": prop.name, "price": str(prop.price)},
        )
    db.refresh(prop)
    return prop


def update_property(db: Session, *, property_id: UUID, data: Dict[str, Any], actor_id: UUID) -> Property:
    with ledger_transaction(db):
        prop = _lock_property(db, property_id)
        before = {"name": prop.name, "price": str(prop.price), "status": prop.status.value}
        for key, value in data.items():
            if key in PROPERTY_FIELDS and value is not None:
                setattr(prop, key, validate_amount(value) if key == "price" else value)
        record_audit(
            db,
            actor_user_id=actor_id,
            action="PROPERTY_UPDATED",
            entity_type="Property",
            entity_id=prop.id,
            before=before,
            after={"name": prop.name, "price": str(prop.price), "status": prop.status.value},
        )
    db.refresh(prop)
    return prop


def delete_property(db: Session, *, property_id: UUID, actor_id: UUID) -> None:
    """Delete a property that was never purchased"""
    with ledger_transaction(db):
        prop = _lock_property(db, property_id)
        purchases = db.execute(
            select(func.count(PropertyTransaction.id)).where(PropertyTransaction.property_id == property_id)
        ).scalar_one()
        if purchases:
            raise InvalidStateError("Property has purchase transactions and cannot be deleted")
        record_audit(
            db,
            actor_user_id=actor_id,
            action="PROPERTY_DELETED",
            entity_type="Property",
            entity_id=prop.id,
            before={"name": prop.name, "price": str(prop.price)},
        )
        db.delete(prop)


def _lock_property(db: Session, property_id: UUID) -> Property:
    prop = db.execute(
        select(Property).where(Property.id == property_id).with_for_update()
    ).scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Property", property_id)
    return prop


# ---- Property purchases ----

def purchase_property(
    db: Session,
    *,
    user: User,
    property_id: UUID,
    payment_type: PaymentType,
    amount: Any,
    installments: Optional[int] = None,
) -> PropertyTransaction:
    """
    Buy a property outright or start an installment plan.

    FULL: the whole price is debited, the purchase is COMPLETED and the
    property SOLD. INSTALLMENT: the first of `installments` equal payments is
    debited, the purchase stays PENDING and the property is reserved (PENDING).
    """
    settings = get_settings()
    ensure_kyc_approved(user)
    value = validate_amount(amount)

    if payment_type == PaymentType.INSTALLMENT:
        if installments is None or not settings.MIN_INSTALLMENTS <= installments <= settings.MAX_INSTALLMENTS:
            raise ValidationError(
                f"Installments must be between {settings.MIN_INSTALLMENTS} and {settings.MAX_INSTALLMENTS}"
            )
        count = installments
    else:
        count = 1

    with ledger_transaction(db):
        prop = _lock_property(db, property_id)
        if prop.status != PropertyStatus.AVAILABLE:
            raise InvalidStateError(f"Property {prop.name} is not available")
        if value != quantize_money(prop.price):
            raise ValidationError(f"Amount must equal the property price of {quantize_money(prop.price)}")

        now = utcnow()
        transaction_id = uuid4()
        installment_amount = None
        if payment_type == PaymentType.INSTALLMENT:
            # rounded down so the final installment covers a non-negative remainder
            installment_amount = floor_money(value / count)
            if installment_amount <= 0:
                raise ValidationError(f"Amount is too small to split into {count} installments")
        first_payment = installment_amount if installment_amount is not None else value

        debit_wallet(
            db,
            user_id=user.id,
            amount=first_payment,
            tx_type=WalletTransactionType.PURCHASE,
            description=f"Payment for property: {prop.name}",
            reference_type="PropertyTransaction",
            reference_id=transaction_id,
        )

        purchase = PropertyTransaction(
            id=transaction_id,
            property_id=prop.id,
            user_id=user.id,
            payment_type=payment_type,
            amount=value,
            amount_paid=first_payment,
            installments=count,
            installment_amount=installment_amount,
            paid_installments=1,
        )
        if payment_type == PaymentType.FULL:
            purchase.status = PropertyTransactionStatus.COMPLETED
            purchase.completed_at = now
            prop.status = PropertyStatus.SOLD
        else:
            purchase.status = PropertyTransactionStatus.PENDING
            purchase.next_payment_due = now + timedelta(days=settings.INSTALLMENT_PERIOD_DAYS)
            prop.status = PropertyStatus.PENDING
        db.add(purchase)
        db.flush()

        process_referral_commission(
            db,
            user_id=user.id,
            amount=first_payment,
            transaction_type=CommissionTransactionType.PROPERTY_PURCHASE,
            reference_id=purchase.id,
            reference_label=prop.name,
        )
        notify(
            db,
            user_id=user.id,
            type=NotificationType.PROPERTY_PURCHASED,
            title="Property purchase confirmed",
            message=(
                f"You purchased {prop.name} for {value}."
                if payment_type == PaymentType.FULL
                else f"Your installment plan for {prop.name} started: {count} payments of {installment_amount}."
            ),
            action_url="/real-estate/transactions",
        )

    db.refresh(purchase)
    logger.info(
        "Property purchased",
        extra={
            "property_transaction_id": str(purchase.id),
            "property_id": str(property_id),
            "user_id": str(user.id),
            "payment_type": payment_type.value,
            "amount": str(value),
        },
    )
    return purchase


def _lock_purchase(db: Session, transaction_id: UUID) -> PropertyTransaction:
    purchase = db.execute(
        select(PropertyTransaction)
        .where(PropertyTransaction.id == transaction_id)
        .with_for_update(of=PropertyTransaction)
    ).scalar_one_or_none()
    if purchase is None:
        raise NotFoundError("PropertyTransaction", transaction_id)
    return purchase


def pay_installment(db: Session, *, user: User, transaction_id: UUID) -> PropertyTransaction:
    """
    Pay the next installment of a PENDING installment purchase.

    The last installment absorbs rounding so amount_paid ends equal to amount.
    """
    settings = get_settings()
    with ledger_transaction(db):
        purchase = _lock_purchase(db, transaction_id)
        if purchase.user_id != user.id:
            raise NotFoundError("PropertyTransaction", transaction_id)
        if purchase.payment_type != PaymentType.INSTALLMENT:
            raise InvalidStateError("Only installment purchases accept installment payments")
        if purchase.status != PropertyTransactionStatus.PENDING:
            raise InvalidStateError(f"Purchase is {purchase.status.value}, no installment is due")
        remaining = purchase.installments - purchase.paid_installments
        if remaining <= 0:
            raise InvalidStateError("All installments have been paid")

        if remaining == 1:
            due = quantize_money(purchase.amount) - quantize_money(purchase.amount_paid)
        else:
            due = quantize_money(purchase.installment_amount)
        number = purchase.paid_installments + 1
        prop = purchase.property

        debit_wallet(
            db,
            user_id=user.id,
            amount=due,
            tx_type=WalletTransactionType.PURCHASE,
            description=f"Installment {number}/{purchase.installments} for property: {prop.name}",
            reference_type="PropertyTransaction",
            reference_id=purchase.id,
        )

        now = utcnow()
        purchase.paid_installments = number
        purchase.amount_paid = quantize_money(purchase.amount_paid) + due
        if number == purchase.installments:
            purchase.status = PropertyTransactionStatus.COMPLETED
            purchase.completed_at = now
            purchase.next_payment_due = None
            prop.status = PropertyStatus.SOLD
            message = f"Final installment paid. {prop.name} is now yours."
        else:
            purchase.next_payment_due = (as_utc(purchase.next_payment_due) or now) + timedelta(
                days=settings.INSTALLMENT_PERIOD_DAYS
            )
            message = f"Installment {number} of {purchase.installments} paid for {prop.name}."

        process_referral_commission(
            db,
            user_id=user.id,
            amount=due,
            transaction_type=CommissionTransactionType.PROPERTY_PURCHASE,
            reference_id=purchase.id,
            reference_label=prop.name,
        )
        notify(
            db,
            user_id=user.id,
            type=NotificationType.PROPERTY_PURCHASED,
            title="Installment paid",
            message=message,
            action_url="/real-estate/transactions",
        )

    db.refresh(purchase)
    return purchase


def list_purchases(db: Session, *, user_id: Optional[UUID] = None, status: Optional[PropertyTransactionStatus] = None) -> List[PropertyTransaction]:
    stmt = select(PropertyTransaction)
    if user_id is not None:
        stmt = stmt.where(PropertyTransaction.user_id == user_id)
    if status is not None:
        stmt = stmt.where(PropertyTransaction.status == status)
    return list(db.execute(stmt.order_by(PropertyTransaction.created_at.desc())).scalars().all())


def update_purchase_status(
    db: Session,
    *,
    transaction_id: UUID,
    new_status: PropertyTransactionStatus,
    actor_id: UUID,
    reason: Optional[str] = None,
) -> PropertyTransaction:
    """
    Admin resolution of a PENDING purchase.

    COMPLETED marks the property SOLD. CANCELLED / FAILED refund everything
    paid so far and release the property.
    """
    if new_status == PropertyTransactionStatus.PENDING:
        raise ValidationError("Status must be COMPLETED, CANCELLED or FAILED")

    with ledger_transaction(db):
        purchase = _lock_purchase(db, transaction_id)
        if purchase.status != PropertyTransactionStatus.PENDING:
            raise InvalidStateError(f"Purchase is already {purchase.status.value}")
        prop = purchase.property
        before = {"status": purchase.status.value, "property_status": prop.status.value}

        purchase.status = new_status
        if new_status == PropertyTransactionStatus.COMPLETED:
            purchase.completed_at = utcnow()
            purchase.next_payment_due = None
            prop.status = PropertyStatus.SOLD
            message = f"Your purchase of {prop.name} has been completed."
        else:
            refund = quantize_money(purchase.amount_paid)
            if refund > 0:
                credit_wallet(
                    db,
                    user_id=purchase.user_id,
                    amount=refund,
                    tx_type=WalletTransactionType.RETURN,
                    description=f"Refund for property: {prop.name}",
                    reference_type="PropertyTransaction",
                    reference_id=purchase.id,
                )
            purchase.next_payment_due = None
            prop.status = PropertyStatus.AVAILABLE
            message = f"Your purchase of {prop.name} was {new_status.value.lower()} and {refund} was refunded."

        notify(
            db,
            user_id=purchase.user_id,
            type=NotificationType.PROPERTY_PURCHASED,
            title="Property purchase updated",
            message=message,
            action_url="/real-estate/transactions",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action=f"PROPERTY_TRANSACTION_{new_status.value}",
            entity_type="PropertyTransaction",
            entity_id=purchase.id,
            before=before,
            after={"status": new_status.value, "property_status": prop.status.value},
            reason=reason,
        )

    db.refresh(purchase)
    return purchase
