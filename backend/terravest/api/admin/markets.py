"""
Market admin endpoints - investment plans
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.infrastructure.database import get_db
from terravest.schemas.common import CreatePlanRequest, PlanResponse
from terravest.services.investments import InvestmentProduct, create_plan, list_plans

router = APIRouter(prefix="/markets")


@router.get("/plans", response_model=List[PlanResponse], summary="List market plans (including inactive)")
async def list_market_plans(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return list_plans(db, product=InvestmentProduct.MARKET, active_only=False)


@router.post(
    "/plans",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create market plan",
    description="Requires ADMIN role.",
)
async def create_market_plan(
    request: CreatePlanRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return create_plan(db, product=InvestmentProduct.MARKET, data=request.model_dump(), actor_id=principal.user_id)
