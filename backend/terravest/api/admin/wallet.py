"""
Wallet admin endpoints - settlement of pending deposits, withdrawals and payouts
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.wallets.models import WalletTransactionStatus, WalletTransactionType
from terravest.infrastructure.database import get_db
from terravest.schemas.wallet import RejectRequest, WalletTransactionResponse
from terravest.services import wallet_service

router = APIRouter(prefix="/wallet")


@router.get(
    "/transactions",
    response_model=List[WalletTransactionResponse],
    summary="List wallet transactions",
    description="All users' ledger entries, newest first. Requires ADMIN role.",
)
async def list_transactions(
    user_id: Optional[UUID] = Query(None),
    type: Optional[WalletTransactionType] = Query(None),
    status: Optional[WalletTransactionStatus] = Query(None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return wallet_service.list_transactions(
        db, user_id=user_id, tx_type=type, status=status, limit=limit, offset=offset
    )


@router.post(
    "/transactions/{transaction_id}/approve",
    response_model=WalletTransactionResponse,
    summary="Approve pending transaction",
    description="Credit a pending deposit, or complete a held withdrawal / payout. Requires ADMIN role.",
)
async def approve_transaction(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return wallet_service.approve_transaction(db, transaction_id=transaction_id, actor_id=principal.user_id)


@router.post(
    "/transactions/{transaction_id}/reject",
    response_model=WalletTransactionResponse,
    summary="Reject pending transaction",
    description="Fail a pending request. Held withdrawals and payouts are refunded. Requires ADMIN role.",
)
async def reject_transaction(
    transaction_id: UUID,
    request: RejectRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return wallet_service.reject_transaction(
        db, transaction_id=transaction_id, actor_id=principal.user_id, reason=request.reason
    )
