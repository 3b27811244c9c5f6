"""
Market investment API schemas
"""

from typing import Optional
from uuid import UUID

from terravest.schemas.common import InvestmentResponse, PlanResponse


class MarketInvestmentResponse(InvestmentResponse):
    plan_id: UUID
    plan: Optional[PlanResponse] = None
