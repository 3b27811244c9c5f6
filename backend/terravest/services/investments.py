"""
Investment lifecycle shared by every product

An investment is opened ACTIVE by debiting the wallet, and leaves ACTIVE
exactly once:
- MATURED: principal + return is credited (or rolled into a new investment)
- CANCELLED: the principal alone is refunded
"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from terravest.core.green_energy.models import GreenEnergyInvestment, GreenEnergyPlan
from terravest.core.investments.models import InvestmentStatus
from terravest.core.markets.models import MarketInvestment, MarketInvestmentPlan
from terravest.core.notifications.models import NotificationType
from terravest.core.real_estate.models import RealEstateInvestment
from terravest.core.referrals.models import CommissionTransactionType
from terravest.core.users.models import User
from terravest.core.wallets.models import WalletTransactionType
from terravest.infrastructure.settings import get_settings
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import (
    InvalidStateError,
    KycRequiredError,
    NotFoundError,
    ValidationError,
)
from terravest.services.ledger import credit_wallet, debit_wallet, ledger_transaction, validate_amount
from terravest.services.notification_service import notify
from terravest.services.referral_service import process_referral_commission
from terravest.utils.metrics import record_investment_action
from terravest.utils.money import add_months, as_utc, percent_of, quantize_money, utcnow

logger = logging.getLogger(__name__)


class InvestmentProduct(str, enum.Enum):
    """Investment product families"""
    REAL_ESTATE = "REAL_ESTATE"
    GREEN_ENERGY = "GREEN_ENERGY"
    MARKET = "MARKET"


@dataclass(frozen=True)
class ProductSpec:
    model: Type
    commission_type: CommissionTransactionType
    label: str
    action_url: str
    # Columns copied onto the new investment when a matured one is reinvested
    carry_fields: tuple
    plan_model: Optional[Type] = None


PRODUCTS: Dict[InvestmentProduct, ProductSpec] = {
    InvestmentProduct.REAL_ESTATE: ProductSpec(
        model=RealEstateInvestment,
        commission_type=CommissionTransactionType.REAL_ESTATE_INVESTMENT,
        label="Real estate investment",
        action_url="/real-estate/investments",
        carry_fields=("plan_type",),
    ),
    InvestmentProduct.GREEN_ENERGY: ProductSpec(
        model=GreenEnergyInvestment,
        commission_type=CommissionTransactionType.GREEN_ENERGY_INVESTMENT,
        label="Green energy investment",
        action_url="/green-energy/investments",
        carry_fields=("plan_id",),
        plan_model=GreenEnergyPlan,
    ),
    InvestmentProduct.MARKET: ProductSpec(
        model=MarketInvestment,
        commission_type=CommissionTransactionType.MARKET_INVESTMENT,
        label="Market investment",
        action_url="/markets/investments",
        carry_fields=("plan_id",),
        plan_model=MarketInvestmentPlan,
    ),
}


def ensure_kyc_approved(user: User) -> None:
    if not user.is_kyc_approved:
        raise KycRequiredError("KYC verification must be approved before investing")


def ensure_within_bounds(amount: Decimal, min_amount: Decimal, max_amount: Decimal) -> None:
    if amount < quantize_money(min_amount) or amount > quantize_money(max_amount):
        raise ValidationError(
            f"Amount must be between {quantize_money(min_amount)} and {quantize_money(max_amount)}"
        )


def _snapshot(investment: Any) -> Dict[str, Any]:
    return {
        "status": investment.status.value,
        "amount": str(investment.amount),
        "expected_return": str(investment.expected_return),
        "actual_return": str(investment.actual_return) if investment.actual_return is not None else None,
    }


def open_investment(
    db: Session,
    *,
    user: User,
    product: InvestmentProduct,
    amount: Any,
    return_rate: Decimal,
    duration_months: int,
    description: str,
    **fields: Any,
):
    """
    Debit the wallet and create an ACTIVE investment (no commit).

    Also accrues the referrer's commission and notifies the investor, all in
    the caller's transaction.
    """
    spec = PRODUCTS[product]
    ensure_kyc_approved(user)
    value = validate_amount(amount)
    rate = Decimal(return_rate)

    investment_id = uuid4()
    debit_wallet(
        db,
        user_id=user.id,
        amount=value,
        tx_type=WalletTransactionType.INVESTMENT,
        description=description,
        reference_type=spec.model.__name__,
        reference_id=investment_id,
    )

    start = utcnow()
    investment = spec.model(
        id=investment_id,
        user_id=user.id,
        amount=value,
        expected_return=percent_of(value, rate),
        return_rate=rate,
        duration_months=duration_months,
        start_date=start,
        end_date=add_months(start, duration_months, get_settings().DAYS_PER_MONTH),
        status=InvestmentStatus.ACTIVE,
        reinvest=False,
        **fields,
    )
    db.add(investment)
    db.flush()

    process_referral_commission(
        db,
        user_id=user.id,
        amount=value,
        transaction_type=spec.commission_type,
        reference_id=investment.id,
        reference_label=description,
    )
    notify(
        db,
        user_id=user.id,
        type=NotificationType.INVESTMENT_CREATED,
        title=f"{spec.label} created",
        message=f"Your {spec.label.lower()} of {value} is active until {investment.end_date.date().isoformat()}.",
        action_url=spec.action_url,
    )
    record_investment_action(product.value, "open")
    logger.info(
        "Investment opened",
        extra={
            "product": product.value,
            "investment_id": str(investment.id),
            "user_id": str(user.id),
            "amount": str(value),
            "expected_return": str(investment.expected_return),
        },
    )
    return investment


def _get_for_update(db: Session, spec: ProductSpec, investment_id: UUID):
    investment = db.execute(
        select(spec.model).where(spec.model.id == investment_id).with_for_update(of=spec.model)
    ).scalar_one_or_none()
    if investment is None:
        raise NotFoundError(spec.model.__name__, investment_id)
    return investment


def _ensure_active(investment: Any, action: str) -> None:
    if investment.status != InvestmentStatus.ACTIVE:
        raise InvalidStateError(
            f"Investment {investment.id} is {investment.status.value}; only ACTIVE investments can be {action}"
        )


def mature_investment(
    db: Session,
    *,
    product: InvestmentProduct,
    investment_id: UUID,
    actor_id: Optional[UUID] = None,
    actual_return: Optional[Any] = None,
    owner_id: Optional[UUID] = None,
    require_term_ended: bool = False,
):
    """
    ACTIVE -> MATURED, paying out principal + return.

    With reinvest set, the payout is rolled into a new ACTIVE investment on the
    same terms instead of being credited. A second call finds the investment
    MATURED and raises InvalidStateError without moving money.

    Args:
        actor_id: admin performing the action (audited); None for owner withdrawals
        actual_return: overrides expected_return when given
        owner_id: restrict to investments owned by this user
        require_term_ended: reject while end_date is still in the future
    """
    spec = PRODUCTS[product]
    with ledger_transaction(db):
        investment = _get_for_update(db, spec, investment_id)
        if owner_id is not None and investment.user_id != owner_id:
            raise NotFoundError(spec.model.__name__, investment_id)
        _ensure_active(investment, "matured")

        now = utcnow()
        if require_term_ended and as_utc(investment.end_date) > now:
            raise InvalidStateError("Investment has not matured yet")

        before = _snapshot(investment)
        principal = quantize_money(investment.amount)
        if actual_return is None:
            earned = quantize_money(investment.expected_return)
        else:
            earned = quantize_money(actual_return)
            if earned < 0:
                raise ValidationError("Actual return cannot be negative")

        investment.status = InvestmentStatus.MATURED
        investment.actual_return = earned
        investment.matured_at = now
        payout = principal + earned

        if investment.reinvest:
            rollover = spec.model(
                user_id=investment.user_id,
                amount=payout,
                expected_return=percent_of(payout, investment.return_rate),
                return_rate=investment.return_rate,
                duration_months=investment.duration_months,
                start_date=now,
                end_date=add_months(now, investment.duration_months, get_settings().DAYS_PER_MONTH),
                status=InvestmentStatus.ACTIVE,
                reinvest=False,
                reinvested_from_id=investment.id,
                **{field: getattr(investment, field) for field in spec.carry_fields},
            )
            db.add(rollover)
            db.flush()
            message = f"Your {spec.label.lower()} matured and {payout} was reinvested."
            record_investment_action(product.value, "reinvest")
        else:
            credit_wallet(
                db,
                user_id=investment.user_id,
                amount=payout,
                tx_type=WalletTransactionType.RETURN,
                description=f"{spec.label} matured: principal {principal} + return {earned}",
                reference_type=spec.model.__name__,
                reference_id=investment.id,
            )
            message = f"Your {spec.label.lower()} matured and {payout} was credited to your wallet."

        notify(
            db,
            user_id=investment.user_id,
            type=NotificationType.INVESTMENT_MATURED,
            title=f"{spec.label} matured",
            message=message,
            action_url=spec.action_url,
        )
        if actor_id is not None:
            record_audit(
                db,
                actor_user_id=actor_id,
                action="INVESTMENT_MATURED",
                entity_type=spec.model.__name__,
                entity_id=investment.id,
                before=before,
                after=_snapshot(investment),
            )
        record_investment_action(product.value, "mature")

    db.refresh(investment)
    logger.info(
        "Investment matured",
        extra={
            "product": product.value,
            "investment_id": str(investment.id),
            "payout": str(payout),
            "reinvested": bool(investment.reinvest),
        },
    )
    return investment


def cancel_investment(
    db: Session,
    *,
    product: InvestmentProduct,
    investment_id: UUID,
    actor_id: UUID,
    reason: Optional[str] = None,
):
    """ACTIVE -> CANCELLED, refunding the principal only"""
    spec = PRODUCTS[product]
    with ledger_transaction(db):
        investment = _get_for_update(db, spec, investment_id)
        _ensure_active(investment, "cancelled")
        before = _snapshot(investment)

        now = utcnow()
        investment.status = InvestmentStatus.CANCELLED
        investment.cancelled_at = now
        investment.end_date = now

        principal = quantize_money(investment.amount)
        credit_wallet(
            db,
            user_id=investment.user_id,
            amount=principal,
            tx_type=WalletTransactionType.RETURN,
            description=f"Refund for cancelled {spec.label.lower()}",
            reference_type=spec.model.__name__,
            reference_id=investment.id,
        )
        notify(
            db,
            user_id=investment.user_id,
            type=NotificationType.INVESTMENT_CANCELLED,
            title=f"{spec.label} cancelled",
            message=f"Your {spec.label.lower()} was cancelled and {principal} was refunded to your wallet.",
            action_url=spec.action_url,
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action="INVESTMENT_CANCELLED",
            entity_type=spec.model.__name__,
            entity_id=investment.id,
            before=before,
            after=_snapshot(investment),
            reason=reason,
        )
        record_investment_action(product.value, "cancel")

    db.refresh(investment)
    return investment


def set_reinvest(
    db: Session,
    *,
    product: InvestmentProduct,
    investment_id: UUID,
    user_id: UUID,
    reinvest: bool,
):
    """Toggle rollover at maturity (owner only, while ACTIVE)"""
    spec = PRODUCTS[product]
    with ledger_transaction(db):
        investment = _get_for_update(db, spec, investment_id)
        if investment.user_id != user_id:
            raise NotFoundError(spec.model.__name__, investment_id)
        _ensure_active(investment, "updated")
        investment.reinvest = reinvest
    db.refresh(investment)
    return investment


def list_investments(
    db: Session,
    *,
    product: InvestmentProduct,
    user_id: Optional[UUID] = None,
    status: Optional[InvestmentStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Any]:
    model = PRODUCTS[product].model
    stmt = select(model)
    if user_id is not None:
        stmt = stmt.where(model.user_id == user_id)
    if status is not None:
        stmt = stmt.where(model.status == status)
    stmt = stmt.order_by(model.created_at.desc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def get_investment(db: Session, *, product: InvestmentProduct, investment_id: UUID, user_id: Optional[UUID] = None):
    model = PRODUCTS[product].model
    investment = db.get(model, investment_id)
    if investment is None or (user_id is not None and investment.user_id != user_id):
        raise NotFoundError(model.__name__, investment_id)
    return investment


# ---- Plans (green energy, markets) ----

def _plan_model(product: InvestmentProduct) -> Type:
    plan_model = PRODUCTS[product].plan_model
    if plan_model is None:
        raise ValueError(f"{product.value} has no plan table")
    return plan_model


def create_plan(db: Session, *, product: InvestmentProduct, data: Dict[str, Any], actor_id: UUID):
    """Create an investment plan after checking bounds, rate and duration"""
    plan_model = _plan_model(product)
    min_amount = quantize_money(data["min_amount"])
    max_amount = quantize_money(data["max_amount"])
    if min_amount <= 0 or max_amount < min_amount:
        raise ValidationError("Plan bounds must satisfy 0 < min_amount <= max_amount")
    if Decimal(data["return_rate"]) < 0:
        raise ValidationError("Return rate cannot be negative")
    if int(data["duration_months"]) < 1:
        raise ValidationError("Duration must be at least one month")

    with ledger_transaction(db):
        plan = plan_model(**{**data, "min_amount": min_amount, "max_amount": max_amount})
        db.add(plan)
        db.flush()
        record_audit(
            db,
            actor_user_id=actor_id,
            action="PLAN_CREATED",
            entity_type=plan_model.__name__,
            entity_id=plan.id,
            after={key: str(value) for key, value in data.items()},
        )
    db.refresh(plan)
    return plan


def list_plans(db: Session, *, product: InvestmentProduct, active_only: bool = True) -> List[Any]:
    plan_model = _plan_model(product)
    stmt = select(plan_model)
    if active_only:
        stmt = stmt.where(plan_model.is_active.is_(True))
    return list(db.execute(stmt.order_by(plan_model.min_amount)).scalars().all())


def get_plan(db: Session, *, product: InvestmentProduct, plan_id: UUID):
    plan_model = _plan_model(product)
    plan = db.get(plan_model, plan_id)
    if plan is None:
        raise NotFoundError(plan_model.__name__, plan_id)
    return plan


def invest_in_plan(
    db: Session,
    *,
    user: User,
    product: InvestmentProduct,
    plan_id: UUID,
    amount: Any,
    description: str,
):
    """
    Open an investment on an admin-managed plan.

    description may reference {name} and {type} of the plan.
    """
    ensure_kyc_approved(user)
    value = validate_amount(amount)
    plan = get_plan(db, product=product, plan_id=plan_id)
    if not plan.is_active:
        raise InvalidStateError(f"Plan {plan.name} is not open for investment")
    ensure_within_bounds(value, plan.min_amount, plan.max_amount)

    with ledger_transaction(db):
        investment = open_investment(
            db,
            user=user,
            product=product,
            amount=value,
            return_rate=plan.return_rate,
            duration_months=plan.duration_months,
            description=description.format(name=plan.name, type=plan.type),
            plan_id=plan.id,
        )
    db.refresh(investment)
    return investment
