"""
Green energy admin endpoints - equipment catalogue, orders and plans
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.green_energy.models import OrderStatus
from terravest.infrastructure.database import get_db
from terravest.schemas.common import CreatePlanRequest, PlanResponse
from terravest.schemas.green_energy import (
    CreateEquipmentRequest,
    EquipmentOrderResponse,
    EquipmentResponse,
    UpdateEquipmentRequest,
    UpdateOrderStatusRequest,
)
from terravest.services import green_energy_service
from terravest.services.investments import InvestmentProduct, create_plan, list_plans

router = APIRouter()


@router.post(
    "/equipment",
    response_model=EquipmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create equipment",
    description="Add equipment to the catalogue. Requires ADMIN role.",
)
async def create_equipment(
    request: CreateEquipmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return green_energy_service.create_equipment(db, data=request.model_dump(), actor_id=principal.user_id)


@router.put(
    "/equipment/{equipment_id}",
    response_model=EquipmentResponse,
    summary="Update equipment",
    description="Update price, stock, status or details. Requires ADMIN role.",
)
async def update_equipment(
    equipment_id: UUID,
    request: UpdateEquipmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return green_energy_service.update_equipment(
        db, equipment_id=equipment_id, data=request.model_dump(exclude_unset=True), actor_id=principal.user_id
    )


@router.get(
    "/equipment-orders",
    response_model=List[EquipmentOrderResponse],
    summary="List equipment orders",
)
async def list_equipment_orders(
    user_id: Optional[UUID] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return green_energy_service.list_orders(db, user_id=user_id, status=status)


@router.post(
    "/equipment-orders/{order_id}/status",
    response_model=EquipmentOrderResponse,
    summary="Advance equipment order",
    description=(
        "Move an order along PENDING -> ACCEPTED -> PROCESSING -> OUT_FOR_DELIVERY -> COMPLETED. "
        "Cancelling refunds the order and restocks. Requires ADMIN role."
    ),
)
async def update_equipment_order_status(
    order_id: UUID,
    request: UpdateOrderStatusRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return green_energy_service.update_order_status(
        db,
        order_id=order_id,
        new_status=request.status,
        actor_id=principal.user_id,
        tracking_number=request.tracking_number,
        reason=request.reason,
    )


@router.get(
    "/green-energy/plans",
    response_model=List[PlanResponse],
    summary="List green energy plans (including inactive)",
)
async def list_green_energy_plans(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return list_plans(db, product=InvestmentProduct.GREEN_ENERGY, active_only=False)


@router.post(
    "/green-energy/plans",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create green energy plan",
    description="Requires ADMIN role.",
)
async def create_green_energy_plan(
    request: CreatePlanRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return create_plan(db, product=InvestmentProduct.GREEN_ENERGY, data=request.model_dump(), actor_id=principal.user_id)
