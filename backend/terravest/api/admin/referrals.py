"""
Referral admin endpoints - referrals, commission rates and commission payouts
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.referrals.models import CommissionStatus, ReferralStatus
from terravest.infrastructure.database import get_db
from terravest.schemas.referrals import (
    BulkApproveRequest,
    CommissionResponse,
    ReferralResponse,
    ReferralSettingsResponse,
    UpdateReferralSettingsRequest,
)
from terravest.schemas.wallet import RejectRequest
from terravest.services import referral_service

router = APIRouter()


@router.get("/referrals", response_model=List[ReferralResponse], summary="List referrals")
async def list_referrals(
    referrer_id: Optional[UUID] = Query(None),
    status: Optional[ReferralStatus] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.list_referrals(db, referrer_id=referrer_id, status=status)


@router.post(
    "/referrals/{referral_id}/complete",
    response_model=ReferralResponse,
    summary="Complete referral",
    description="From now on the referred user's investments and purchases earn commissions. Requires ADMIN role.",
)
async def complete_referral(
    referral_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.complete_referral(db, referral_id=referral_id, actor_id=principal.user_id)


@router.get(
    "/referral-settings",
    response_model=ReferralSettingsResponse,
    summary="Current commission rates",
)
async def get_referral_settings(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> ReferralSettingsResponse:
    return ReferralSettingsResponse(**referral_service.get_current_rates(db))


@router.put(
    "/referral-settings",
    response_model=ReferralSettingsResponse,
    summary="Update commission rates",
    description="Append a new rate snapshot; omitted rates keep their current value. Requires ADMIN role.",
)
async def update_referral_settings(
    request: UpdateReferralSettingsRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> ReferralSettingsResponse:
    referral_service.update_settings(db, rates=request.model_dump(exclude_none=True), actor_id=principal.user_id)
    return ReferralSettingsResponse(**referral_service.get_current_rates(db))


@router.get(
    "/referral-commissions",
    response_model=List[CommissionResponse],
    summary="List referral commissions",
)
async def list_commissions(
    status: Optional[CommissionStatus] = Query(None),
    user_id: Optional[UUID] = Query(None, description="Referrer"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.list_commissions(db, user_id=user_id, status=status, limit=limit, offset=offset)


@router.post(
    "/referral-commissions/bulk-approve",
    response_model=List[CommissionResponse],
    summary="Approve several commissions",
    description="Pay every listed commission in one transaction; any failure rolls back the batch. Requires ADMIN role.",
)
async def bulk_approve(
    request: BulkApproveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.bulk_approve_commissions(db, commission_ids=request.ids, actor_id=principal.user_id)


@router.post(
    "/referral-commissions/{commission_id}/approve",
    response_model=CommissionResponse,
    summary="Approve commission",
    description="Credit the referrer's wallet with the commission. Requires ADMIN role.",
)
async def approve(
    commission_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.approve_commission(db, commission_id=commission_id, actor_id=principal.user_id)


@router.post(
    "/referral-commissions/{commission_id}/reject",
    response_model=CommissionResponse,
    summary="Reject commission",
    description="Requires ADMIN role.",
)
async def reject(
    commission_id: UUID,
    request: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return referral_service.reject_commission(
        db, commission_id=commission_id, actor_id=principal.user_id, reason=request.reason
    )
