"""
Wallet API endpoints
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import get_current_user
from terravest.core.users.models import User
from terravest.core.wallets.models import WalletTransactionStatus, WalletTransactionType
from terravest.infrastructure.database import get_db
from terravest.schemas.wallet import (
    DepositRequest,
    PayoutRequest,
    UpdateAddressesRequest,
    WalletResponse,
    WalletStatsResponse,
    WalletTransactionResponse,
    WithdrawalRequest,
)
from terravest.services import wallet_service
from terravest.services.ledger import get_wallet

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get(
    "",
    response_model=WalletResponse,
    summary="Get wallet",
    description="Balance, currency and deposit addresses of the authenticated user",
)
async def read_wallet(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_wallet(db, user.id)


@router.get(
    "/transactions",
    response_model=List[WalletTransactionResponse],
    summary="List wallet transactions",
    description="Ledger entries of the authenticated user, newest first",
)
async def list_wallet_transactions(
    type: Optional[WalletTransactionType] = Query(None, description="Filter by transaction type"),
    status: Optional[WalletTransactionStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return wallet_service.list_transactions(
        db, user_id=user.id, tx_type=type, status=status, limit=limit, offset=offset
    )


@router.get(
    "/stats",
    response_model=WalletStatsResponse,
    summary="Wallet statistics",
    description="Completed totals per movement type and pending request counts",
)
async def wallet_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> WalletStatsResponse:
    return WalletStatsResponse(**wallet_service.get_wallet_stats(db, user_id=user.id))


@router.post(
    "/deposits",
    response_model=WalletTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Declare a deposit",
    description="Record a PENDING crypto deposit. The balance is credited when an admin approves it.",
)
async def create_deposit(
    request: DepositRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return wallet_service.request_deposit(
        db, user=user, amount=request.amount, crypto_type=request.crypto_type, tx_hash=request.tx_hash
    )


@router.post(
    "/withdrawals",
    response_model=WalletTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a withdrawal",
    description="Hold the amount and create a PENDING withdrawal for admin approval",
)
async def create_withdrawal(
    request: WithdrawalRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return wallet_service.request_withdrawal(
        db, user=user, amount=request.amount, crypto_type=request.crypto_type, address=request.address
    )


@router.post(
    "/payouts",
    response_model=WalletTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a payout",
    description="Hold the amount and create a PENDING payout for admin approval",
)
async def create_payout(
    request: PayoutRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return wallet_service.request_payout(
        db, user=user, amount=request.amount, method=request.method, details=request.details
    )


@router.put(
    "/addresses",
    response_model=WalletResponse,
    summary="Update deposit addresses",
)
async def update_addresses(
    request: UpdateAddressesRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return wallet_service.update_addresses(
        db, user_id=user.id, btc_address=request.btc_address, usdt_address=request.usdt_address
    )
