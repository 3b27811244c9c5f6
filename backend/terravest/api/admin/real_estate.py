"""
Real estate admin endpoints - property catalogue and purchase resolution
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.real_estate.models import PropertyTransactionStatus
from terravest.infrastructure.database import get_db
from terravest.schemas.real_estate import (
    CreatePropertyRequest,
    PropertyResponse,
    PropertyTransactionResponse,
    UpdatePropertyRequest,
    UpdatePropertyTransactionRequest,
)
from terravest.services import real_estate_service

router = APIRouter()


@router.post(
    "/properties",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="List a new AVAILABLE property. Requires ADMIN role.",
)
async def create_property(
    request: CreatePropertyRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return real_estate_service.create_property(db, data=request.model_dump(), actor_id=principal.user_id)


@router.put(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Update property fields; null fields are left unchanged. Requires ADMIN role.",
)
async def update_property(
    property_id: UUID,
    request: UpdatePropertyRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return real_estate_service.update_property(
        db, property_id=property_id, data=request.model_dump(exclude_unset=True), actor_id=principal.user_id
    )


@router.delete(
    "/properties/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Delete a property that has no purchase transactions. Requires ADMIN role.",
)
async def delete_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> None:
    real_estate_service.delete_property(db, property_id=property_id, actor_id=principal.user_id)


@router.get(
    "/property-transactions",
    response_model=List[PropertyTransactionResponse],
    summary="List property purchases",
)
async def list_property_transactions(
    user_id: Optional[UUID] = Query(None),
    status: Optional[PropertyTransactionStatus] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return real_estate_service.list_purchases(db, user_id=user_id, status=status)


@router.post(
    "/property-transactions/{transaction_id}/status",
    response_model=PropertyTransactionResponse,
    summary="Resolve property purchase",
    description="Complete, cancel or fail a PENDING purchase. Cancelling or failing refunds what was paid. Requires ADMIN role.",
)
async def update_property_transaction_status(
    transaction_id: UUID,
    request: UpdatePropertyTransactionRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    return real_estate_service.update_purchase_status(
        db,
        transaction_id=transaction_id,
        new_status=request.status,
        actor_id=principal.user_id,
        reason=request.reason,
    )
