"""
Real estate API endpoints - properties, purchases and fixed-plan investments
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.investments.models import InvestmentStatus
from terravest.core.real_estate.models import PropertyStatus
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.schemas.common import UpdateReinvestRequest
from terravest.schemas.real_estate import (
    PropertyResponse,
    PropertyTransactionResponse,
    PurchasePropertyRequest,
    RealEstateInvestmentResponse,
    RealEstateInvestRequest,
    RealEstatePlanResponse,
)
from terravest.services import real_estate_service
from terravest.services.investments import InvestmentProduct, get_investment, list_investments, set_reinvest

router = APIRouter(prefix="/real-estate", tags=["real-estate"])


@router.get(
    "/properties",
    response_model=List[PropertyResponse],
    summary="List properties",
)
async def list_properties(
    status: Optional[PropertyStatus] = Query(None, description="Filter by property status"),
    db: Session = Depends(get_db),
):
    return real_estate_service.list_properties(db, status=status)


@router.get(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Get property",
)
async def get_property(property_id: UUID, db: Session = Depends(get_db)):
    return real_estate_service.get_property(db, property_id)


@router.post(
    "/properties/{property_id}/purchase",
    response_model=PropertyTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Purchase property",
    description="Buy a property outright (FULL) or start an installment plan (INSTALLMENT). Requires approved KYC.",
)
async def purchase_property(
    property_id: UUID,
    request: PurchasePropertyRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return real_estate_service.purchase_property(
        db,
        user=user,
        property_id=property_id,
        payment_type=request.type,
        amount=request.amount,
        installments=request.installments,
    )


@router.get(
    "/transactions",
    response_model=List[PropertyTransactionResponse],
    summary="List my property purchases",
)
async def list_my_purchases(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return real_estate_service.list_purchases(db, user_id=user.id)


@router.post(
    "/transactions/{transaction_id}/installments",
    response_model=PropertyTransactionResponse,
    summary="Pay next installment",
    description="Debit the next installment of a pending installment purchase",
)
async def pay_installment(
    transaction_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return real_estate_service.pay_installment(db, user=user, transaction_id=transaction_id)


@router.get(
    "/plans",
    response_model=List[RealEstatePlanResponse],
    summary="List real estate plans",
)
async def list_plans() -> List[RealEstatePlanResponse]:
    return [
        RealEstatePlanResponse(
            plan_type=plan.plan_type,
            duration_months=plan.duration_months,
            return_rate=plan.return_rate,
            min_amount=plan.min_amount,
            max_amount=plan.max_amount,
        )
        for plan in real_estate_service.REAL_ESTATE_PLANS.values()
    ]


@router.post(
    "/investments",
    response_model=RealEstateInvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invest in real estate",
    description="Open an investment on a fixed plan. The amount must be within the plan bounds. Requires approved KYC.",
)
async def create_investment(
    request: RealEstateInvestRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return real_estate_service.invest_in_real_estate(db, user=user, plan_type=request.type, amount=request.amount)


@router.get(
    "/investments",
    response_model=List[RealEstateInvestmentResponse],
    summary="List my real estate investments",
)
async def list_my_investments(
    status: Optional[InvestmentStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_investments(db, product=InvestmentProduct.REAL_ESTATE, user_id=user.id, status=status)


@router.get(
    "/investments/{investment_id}",
    response_model=RealEstateInvestmentResponse,
    summary="Get real estate investment",
)
async def read_investment(
    investment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_investment(db, product=InvestmentProduct.REAL_ESTATE, investment_id=investment_id, user_id=user.id)


@router.patch(
    "/investments/{investment_id}",
    response_model=RealEstateInvestmentResponse,
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
        product=InvestmentProduct.REAL_ESTATE,
        investment_id=investment_id,
        user_id=user.id,
        reinvest=request.reinvest,
    )


@router.post(
    "/investments/{investment_id}/withdraw",
    response_model=RealEstateInvestmentResponse,
    summary="Withdraw matured investment",
    description="Credit principal + expected return once the investment term has ended",
)
async def withdraw_investment(
    investment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return real_estate_service.withdraw_investment(db, user=user, investment_id=investment_id)
