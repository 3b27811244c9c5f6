"""
Referral API endpoints (referrer view)
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.referrals.models import CommissionStatus
from terravest.core.users.models import User
from terravest.infrastructure.database import get_db
from terravest.schemas.referrals import CommissionResponse, ReferralResponse, ReferralSummaryResponse
from terravest.services import referral_service

router = APIRouter(prefix="/referrals", tags=["referrals"])


@router.get(
    "",
    response_model=ReferralSummaryResponse,
    summary="My referrals",
    description="Referral code, referred users and commission totals by status",
)
async def my_referrals(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReferralSummaryResponse:
    referrals = referral_service.list_referrals(db, referrer_id=user.id)
    return ReferralSummaryResponse(
        referral_code=user.referral_code,
        referrals=[ReferralResponse.model_validate(referral) for referral in referrals],
        totals=referral_service.commission_totals(db, user_id=user.id),
    )


@router.get("/commissions", response_model=List[CommissionResponse], summary="My referral commissions")
async def my_commissions(
    status: Optional[CommissionStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return referral_service.list_commissions(db, user_id=user.id, status=status, limit=limit, offset=offset)
