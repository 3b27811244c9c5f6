"""
Investment admin endpoints, one router per product
"""

from typing import List, Optional, Type
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from terravest.auth.dependencies import require_admin
from terravest.auth.principal import Principal
from terravest.core.investments.models import InvestmentStatus
from terravest.infrastructure.database import get_db
from terravest.schemas.common import InvestmentActionRequest
from terravest.services.investments import (
    InvestmentProduct,
    cancel_investment,
    list_investments,
    mature_investment,
)


def build_investment_router(product: InvestmentProduct, prefix: str, response_model: Type[BaseModel]) -> APIRouter:
    """List / mature / cancel endpoints for one investment product"""
    router = APIRouter(prefix=prefix)

    @router.get(
        "/investments",
        response_model=List[response_model],
        summary=f"List {product.value.lower()} investments",
    )
    async def list_product_investments(
        user_id: Optional[UUID] = Query(None),
        status: Optional[InvestmentStatus] = Query(None),
        limit: int = Query(default=100, ge=1, le=500),
        offset: int = Query(default=0, ge=0),
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
    ):
        return list_investments(db, product=product, user_id=user_id, status=status, limit=limit, offset=offset)

    @router.post(
        "/investments/{investment_id}/mature",
        response_model=response_model,
        summary=f"Mature {product.value.lower()} investment",
        description="Pay out principal + return (or roll it over when reinvest is set). Requires ADMIN role.",
    )
    async def mature(
        investment_id: UUID,
        request: Optional[InvestmentActionRequest] = None,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
    ):
        return mature_investment(
            db,
            product=product,
            investment_id=investment_id,
            actor_id=principal.user_id,
            actual_return=request.actual_return if request else None,
        )

    @router.post(
        "/investments/{investment_id}/cancel",
        response_model=response_model,
        summary=f"Cancel {product.value.lower()} investment",
        description="Refund the principal only. Requires ADMIN role.",
    )
    async def cancel(
        investment_id: UUID,
        request: Optional[InvestmentActionRequest] = None,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_admin),
    ):
        return cancel_investment(
            db,
            product=product,
            investment_id=investment_id,
            actor_id=principal.user_id,
            reason=request.reason if request else None,
        )

    return router
