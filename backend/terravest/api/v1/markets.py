"""
Market investment API endpoints
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.investments.models import InvestmentStatus
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.schemas.common import PlanInvestmentRequest, PlanResponse, UpdateReinvestRequest
from terravest.schemas.markets import MarketInvestmentResponse
from terravest.services.investments import InvestmentProduct, list_investments, list_plans, set_reinvest
from terravest.services.market_service import invest_in_market

router = APIRouter(prefix="/markets", tags=["markets"])


@router.get("/plans", response_model=List[PlanResponse], summary="List market investment plans")
async def list_market_plans(db: Session = Depends(get_db)):
    return list_plans(db, product=InvestmentProduct.MARKET)


@router.post(
    "/investments",
    response_model=MarketInvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invest in a market plan",
    description="The plan must be active and the amount within its bounds. Requires approved KYC.",
)
async def create_investment(
    request: PlanInvestmentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return invest_in_market(db, user=user, plan_id=request.plan_id, amount=request.amount)


@router.get("/investments", response_model=List[MarketInvestmentResponse], summary="List my market investments")
async def list_my_investments(
    status: Optional[InvestmentStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_investments(db, product=InvestmentProduct.MARKET, user_id=user.id, status=status)


@router.patch(
    "/investments/{investment_id}",
    response_model=MarketInvestmentResponse,
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
        product=InvestmentProduct.MARKET,
        investment_id=investment_id,
        user_id=user.id,
        reinvest=request.reinvest,
    )
