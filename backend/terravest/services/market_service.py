"""
Market services - investments on admin-managed market plans
"""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from terravest.core.markets.models import MarketInvestment
from terravest.core.users.models import User
from terravest.services.investments import InvestmentProduct, invest_in_plan


def invest_in_market(db: Session, *, user: User, plan_id: UUID, amount: Any) -> MarketInvestment:
    return invest_in_plan(
        db,
        user=user,
        product=InvestmentProduct.MARKET,
        plan_id=plan_id,
        amount=amount,
        description="Investment in {name}",
    )
