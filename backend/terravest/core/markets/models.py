"""
Market models - market investment plans and investments
"""

from sqlalchemy import Column, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from terravest.core.common.base_model import BaseModel
from terravest.core.investments.models import InvestmentMixin, PlanMixin


class MarketInvestmentPlan(PlanMixin, BaseModel):
    """Market investment plan"""

    __tablename__ = "market_investment_plans"


class MarketInvestment(InvestmentMixin, BaseModel):
    """Investment in a market plan"""

    __tablename__ = "market_investments"

    plan_id = Column(Uuid(as_uuid=True), ForeignKey("market_investment_plans.id", name="fk_market_investments_plan_id"), nullable=False, index=True)

    plan = relationship("MarketInvestmentPlan", lazy="joined")
