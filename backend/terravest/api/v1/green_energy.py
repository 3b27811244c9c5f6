"""
Green energy API endpoints - equipment shop and plan investments
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.green_energy.models import EquipmentStatus
from terravest.core.investments.models import InvestmentStatus
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.schemas.common import PlanInvestmentRequest, PlanResponse, UpdateReinvestRequest
from terravest.schemas.green_energy import (
    EquipmentOrderResponse,
    EquipmentResponse,
    GreenEnergyInvestmentResponse,
    PurchaseEquipmentRequest,
)
from terravest.services import green_energy_service
from terravest.services.investments import InvestmentProduct, list_investments, list_plans, set_reinvest

router = APIRouter(prefix="/green-energy", tags=["green-energy"])


@router.get("/equipment", response_model=List[EquipmentResponse], summary="List equipment")
async def list_equipment(
    status: Optional[EquipmentStatus] = Query(None),
    db: Session = Depends(get_db),
):
    return green_energy_service.list_equipment(db, status=status)


@router.get("/equipment/{equipment_id}", response_model=EquipmentResponse, summary="Get equipment")
async def get_equipment(equipment_id: UUID, db: Session = Depends(get_db)):
    return green_energy_service.get_equipment(db, equipment_id)


@router.post(
    "/equipment/{equipment_id}/purchase",
    response_model=EquipmentOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Purchase equipment",
    description="Debit price x quantity and open a PENDING delivery order. Requires approved KYC.",
)
async def purchase_equipment(
    equipment_id: UUID,
    request: PurchaseEquipmentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return green_energy_service.purchase_equipment(
        db,
        user=user,
        equipment_id=equipment_id,
        quantity=request.quantity,
        delivery_address=request.delivery_address.model_dump(),
    )


@router.get("/orders", response_model=List[EquipmentOrderResponse], summary="List my equipment orders")
async def list_my_orders(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return green_energy_service.list_orders(db, user_id=user.id)


@router.get("/plans", response_model=List[PlanResponse], summary="List green energy plans")
async def list_green_energy_plans(db: Session = Depends(get_db)):
    return list_plans(db, product=InvestmentProduct.GREEN_ENERGY)


@router.post(
    "/investments",
    response_model=GreenEnergyInvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invest in a green energy plan",
    description="The plan must be active and the amount within its bounds. Requires approved KYC.",
)
async def create_investment(
    request: PlanInvestmentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return green_energy_service.invest_in_green_energy(db, user=user, plan_id=request.plan_id, amount=request.amount)


@router.get(
    "/investments",
    response_model=List[GreenEnergyInvestmentResponse],
    summary="List my green energy investments",
)
async def list_my_investments(
    status: Optional[InvestmentStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_investments(db, product=InvestmentProduct.GREEN_ENERGY, user_id=user.id, status=status)


@router.patch(
    "/investments/{investment_id}",
    response_model=GreenEnergyInvestmentResponse,
    summary="Toggle reinvest",
)
async def update_investment(
    investment_id: UUID,
    request: UpdateReinvestRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return set_reinvest(
        db,
        product=InvestmentProduct.GREEN_ENERGY,
        investment_id=investment_id,
        user_id=user.id,
        reinvest=request.reinvest,
    )
