"""
Green energy services - equipment catalogue, equipment orders and plan investments
"""

import logging
import secrets
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from terravest.core.green_energy.models import (
    Equipment,
    EquipmentStatus,
    EquipmentTransaction,
    GreenEnergyInvestment,
    OrderStatus,
)
from terravest.core.notifications.models import NotificationType
from terravest.core.referrals.models import CommissionTransactionType
from terravest.core.users.models import User
from terravest.core.wallets.models import WalletTransactionType
from terravest.services.audit_service import record_audit
from terravest.services.exceptions import InvalidStateError, NotFoundError, ValidationError
from terravest.services.investments import InvestmentProduct, ensure_kyc_approved, invest_in_plan
from terravest.services.ledger import credit_wallet, debit_wallet, ledger_transaction, validate_amount
from terravest.services.notification_service import notify
from terravest.services.referral_service import process_referral_commission
from terravest.utils.money import quantize_money, utcnow

logger = logging.getLogger(__name__)

# Allowed admin transitions for an equipment order
ORDER_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

EQUIPMENT_FIELDS = ("name", "description", "type", "price", "stock_quantity", "status", "specifications", "main_image")
ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country")


def generate_delivery_pin() -> str:
    """6-digit PIN the customer gives the courier on delivery"""
    return f"{secrets.randbelow(1_000_000):06d}"


# ---- Equipment catalogue ----

def list_equipment(db: Session, *, status: Optional[EquipmentStatus] = None) -> List[Equipment]:
    stmt = select(Equipment)
    if status is not None:
        stmt = stmt.where(Equipment.status == status)
    return list(db.execute(stmt.order_by(Equipment.name)).scalars().all())


def get_equipment(db: Session, equipment_id: UUID) -> Equipment:
    equipment = db.get(Equipment, equipment_id)
    if equipment is None:
        raise NotFoundError("Equipment", equipment_id)
    return equipment


def create_equipment(db: Session, *, data: Dict[str, Any], actor_id: UUID) -> Equipment:
    if int(data.get("stock_quantity") or 0) < 0:
        raise ValidationError("Stock quantity cannot be negative")
    with ledger_transaction(db):
        equipment = Equipment(**{key: value for key, value in data.items() if key in EQUIPMENT_FIELDS})
        equipment.price = validate_amount(equipment.price)
        db.add(equipment)
        db.flush()
        record_audit(
            db,
            actor_user_id=actor_id,
            action="EQUIPMENT_CREATED",
            entity_type="Equipment",
            entity_id=equipment.id,
            after={"name": equipment.name, "price": str(equipment.price), "stock_quantity": equipment.stock_quantity},
        )
    db.refresh(equipment)
    return equipment


def update_equipment(db: Session, *, equipment_id: UUID, data: Dict[str, Any], actor_id: UUID) -> Equipment:
    with ledger_transaction(db):
        equipment = _lock_equipment(db, equipment_id)
        before = {"price": str(equipment.price), "stock_quantity": equipment.stock_quantity, "status": equipment.status.value}
        for key, value in data.items():
            if key not in EQUIPMENT_FIELDS or value is None:
                continue
            if key == "price":
                value = validate_amount(value)
            elif key == "stock_quantity" and int(value) < 0:
                raise ValidationError("Stock quantity cannot be negative")
            setattr(equipment, key, value)
        record_audit(
            db,
            actor_user_id=actor_id,
            action="EQUIPMENT_UPDATED",
            entity_type="Equipment",
            entity_id=equipment.id,
            before=before,
            after={"price": str(equipment.price), "stock_quantity": equipment.stock_quantity, "status": equipment.status.value},
        )
    db.refresh(equipment)
    return equipment


def _lock_equipment(db: Session, equipment_id: UUID) -> Equipment:
    equipment = db.execute(
        select(Equipment).where(Equipment.id == equipment_id).with_for_update()
    ).scalar_one_or_none()
    if equipment is None:
        raise NotFoundError("Equipment", equipment_id)
    return equipment


# ---- Orders ----

def purchase_equipment(
    db: Session,
    *,
    user: User,
    equipment_id: UUID,
    quantity: int,
    delivery_address: Dict[str, str],
) -> EquipmentTransaction:
    """
    Debit price * quantity, take the units out of stock and open a PENDING order.
    """
    ensure_kyc_approved(user)
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    missing = [field for field in ADDRESS_FIELDS if not delivery_address.get(field)]
    if missing:
        raise ValidationError(f"Delivery address is missing {', '.join(missing)}")

    with ledger_transaction(db):
        equipment = _lock_equipment(db, equipment_id)
        if equipment.status != EquipmentStatus.AVAILABLE:
            raise InvalidStateError(f"{equipment.name} is not available for purchase")
        if equipment.stock_quantity < quantity:
            raise ValidationError(f"Only {equipment.stock_quantity} units of {equipment.name} in stock")

        unit_price = quantize_money(equipment.price)
        total = quantize_money(unit_price * quantity)
        order_id = uuid4()

        debit_wallet(
            db,
            user_id=user.id,
            amount=total,
            tx_type=WalletTransactionType.PURCHASE,
            description=f"Purchase of {quantity} {equipment.name}",
            reference_type="EquipmentTransaction",
            reference_id=order_id,
        )

        equipment.stock_quantity -= quantity
        if equipment.stock_quantity == 0:
            equipment.status = EquipmentStatus.SOLD

        order = EquipmentTransaction(
            id=order_id,
            user_id=user.id,
            equipment_id=equipment.id,
            quantity=quantity,
            unit_price=unit_price,
            total_amount=total,
            status=OrderStatus.PENDING,
            delivery_address={field: delivery_address[field] for field in ADDRESS_FIELDS},
        )
        db.add(order)
        db.flush()

        process_referral_commission(
            db,
            user_id=user.id,
            amount=total,
            transaction_type=CommissionTransactionType.EQUIPMENT_PURCHASE,
            reference_id=order.id,
            reference_label=equipment.name,
        )
        notify(
            db,
            user_id=user.id,
            type=NotificationType.ORDER_UPDATED,
            title="Order placed",
            message=f"Your order of {quantity} {equipment.name} ({total}) was placed.",
            action_url="/green-energy/orders",
        )

    db.refresh(order)
    logger.info(
        "Equipment purchased",
        extra={
            "order_id": str(order.id),
            "equipment_id": str(equipment_id),
            "user_id": str(user.id),
            "quantity": quantity,
            "total": str(total),
        },
    )
    return order


def list_orders(db: Session, *, user_id: Optional[UUID] = None, status: Optional[OrderStatus] = None) -> List[EquipmentTransaction]:
    stmt = select(EquipmentTransaction)
    if user_id is not None:
        stmt = stmt.where(EquipmentTransaction.user_id == user_id)
    if status is not None:
        stmt = stmt.where(EquipmentTransaction.status == status)
    return list(db.execute(stmt.order_by(EquipmentTransaction.created_at.desc())).scalars().all())


def update_order_status(
    db: Session,
    *,
    order_id: UUID,
    new_status: OrderStatus,
    actor_id: UUID,
    tracking_number: Optional[str] = None,
    reason: Optional[str] = None,
) -> EquipmentTransaction:
    """
    Move an order one step along its state machine.

    Cancelling refunds the order total and puts the units back in stock.
    """
    with ledger_transaction(db):
        order = db.execute(
            select(EquipmentTransaction)
            .where(EquipmentTransaction.id == order_id)
            .with_for_update(of=EquipmentTransaction)
        ).scalar_one_or_none()
        if order is None:
            raise NotFoundError("EquipmentTransaction", order_id)

        current = order.status
        if new_status not in ORDER_TRANSITIONS[current]:
            raise InvalidStateError(f"Cannot move order from {current.value} to {new_status.value}")

        now = utcnow()
        order.status = new_status
        if new_status == OrderStatus.OUT_FOR_DELIVERY:
            order.delivery_date = now
            if tracking_number:
                order.tracking_number = tracking_number
            if not order.delivery_pin:
                order.delivery_pin = generate_delivery_pin()
        elif new_status == OrderStatus.COMPLETED:
            order.completed_at = now
        elif new_status == OrderStatus.CANCELLED:
            order.cancelled_at = now
            equipment = _lock_equipment(db, order.equipment_id)
            equipment.stock_quantity += order.quantity
            if equipment.status == EquipmentStatus.SOLD:
                equipment.status = EquipmentStatus.AVAILABLE
            credit_wallet(
                db,
                user_id=order.user_id,
                amount=order.total_amount,
                tx_type=WalletTransactionType.RETURN,
                description=f"Refund for cancelled order of {order.quantity} {equipment.name}",
                reference_type="EquipmentTransaction",
                reference_id=order.id,
            )

        notify(
            db,
            user_id=order.user_id,
            type=NotificationType.ORDER_UPDATED,
            title="Order updated",
            message=f"Your order {order.id} is now {new_status.value.replace('_', ' ').lower()}.",
            action_url="/green-energy/orders",
        )
        record_audit(
            db,
            actor_user_id=actor_id,
            action=f"ORDER_{new_status.value}",
            entity_type="EquipmentTransaction",
            entity_id=order.id,
            before={"status": current.value},
            after={"status": new_status.value, "tracking_number": order.tracking_number},
            reason=reason,
        )

    db.refresh(order)
    return order


# ---- Plan investments ----

def invest_in_green_energy(db: Session, *, user: User, plan_id: UUID, amount: Any) -> GreenEnergyInvestment:
    return invest_in_plan(
        db,
        user=user,
        product=InvestmentProduct.GREEN_ENERGY,
        plan_id=plan_id,
        amount=amount,
        description="Investment in {name} ({type})",
    )
