"""
Users admin endpoints - KYC review, suspension and manual wallet adjustments
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.users.models import KycStatus
from terravest.infrastructure.database import get_db
from terravest.schemas.admin import AdminUserResponse, UpdateKycRequest, UpdateUserStatusRequest
from terravest.schemas.wallet import AdminWalletAdjustmentRequest, WalletTransactionResponse
from terravest.services import user_service, wallet_service

router = APIRouter()


@router.get(
    "/users",
    response_model=List[AdminUserResponse],
    summary="List users",
    description="List all users, newest first. Requires ADMIN role.",
)
async def list_users(
    kyc_status: Optional[KycStatus] = Query(None, description="Filter by KYC status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return user_service.list_users(db, kyc_status=kyc_status, limit=limit, offset=offset)


@router.post(
    "/users/{user_id}/kyc",
    response_model=AdminUserResponse,
    summary="Set KYC status",
    description="Record the outcome of a KYC review and notify the user. Requires ADMIN role.",
)
async def update_kyc(
    user_id: UUID,
    request: UpdateKycRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return user_service.set_kyc_status(
        db, user_id=user_id, kyc_status=request.status, actor_id=principal.user_id, reason=request.reason
    )


@router.post(
    "/users/{user_id}/status",
    response_model=AdminUserResponse,
    summary="Suspend or reactivate user",
    description="Set the account status and notify the user. Admins cannot suspend themselves. Requires ADMIN role.",
)
async def update_status(
    user_id: UUID,
    request: UpdateUserStatusRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return user_service.set_user_status(
        db, user_id=user_id, status=request.status, actor_id=principal.user_id, reason=request.reason
    )


@router.post(
    "/users/{user_id}/wallet/fund",
    response_model=WalletTransactionResponse,
    summary="Fund user wallet",
    description="Credit a COMPLETED deposit to the user's wallet. Requires ADMIN role.",
)
async def fund_wallet(
    user_id: UUID,
    request: AdminWalletAdjustmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return wallet_service.admin_fund_wallet(
        db, user_id=user_id, amount=request.amount, reason=request.reason, actor_id=principal.user_id
    )


@router.post(
    "/users/{user_id}/wallet/deduct",
    response_model=WalletTransactionResponse,
    summary="Deduct from user wallet",
    description="Debit a COMPLETED withdrawal from the user's wallet. Fails when the balance is short. Requires ADMIN role.",
)
async def deduct_wallet(
    user_id: UUID,
    request: AdminWalletAdjustmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return wallet_service.admin_deduct_wallet(
        db, user_id=user_id, amount=request.amount, reason=request.reason, actor_id=principal.user_id
    )
